# gb_core_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令の実行結果（CPU状態、命令、バスアクセス、割り込み）を記録した
不変のデータ構造を定義します。ホストやテストへの情報提供に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from gb_core_tracer.core.state import CpuState
from gb_core_tracer.transport.bus import BusAccessType, BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（HEX、ニーモニック、オペランド、サイクル数）を記録するデータクラス。
    条件分岐命令の場合、cycle_countはデコード時点では分岐成立時の値であり、
    実行後に実際に消費したサイクル数へ置き換えられます。
    """
    opcode_hex: str # 例: "C3"
    mnemonic: str # 例: "JP"
    operands: List[str] = field(default_factory=list) # 例: ["$1234"]
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト
    cycle_count: int = 0 # T-cycle数
    length: int = 1 # 命令のバイト長
    prefix: Optional[int] = None # 0xCB プレフィックス命令の場合のみ設定

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、シンボル情報など）を記録するデータクラス。
    """
    cycle_count: int # 累計T-cycle数
    symbol_info: Optional[str] = None # 例: "main_loop: JR NZ,$0150"
    step_cycles: int = 0 # このstepで消費したT-cycle数（割り込みディスパッチ分を含む）

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    ある一時点における、CPUとバスの状態を記録した不変のデータ構造。
    interruptには、このstepの最後にディスパッチされた割り込みのビット番号が入ります。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
    interrupt: Optional[int] = None

    # @intent:rationale stateはCPUが保持する可変オブジェクトのコピーです。
    #                  後続のstepによってSnapshotの内容が書き換わらないよう、生成側でコピーを渡します。


__all__ = ["BusAccessType", "BusAccess", "Operation", "Metadata", "Snapshot"]
