# gb_core_tracer/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CPUの基本的な状態（レジスタ群）を保持するデータ構造を定義します。
"""
from dataclasses import dataclass

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    CPUのレジスタ状態を保持するデータクラス。
    PCとSPはどちらも16ビットの符号なしアドレスです。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer (下位アドレスに向かって伸びる)
