# gb_core_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional, Dict, Tuple

from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Snapshot, Operation, Metadata
from gb_core_tracer.core.state import CpuState
from gb_core_tracer.common.types import SymbolMap, DisassemblyListing

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルの抽象化を提供します。
    """
    # @intent:pre-condition `bus`は read_byte / write_byte を提供するBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._running: bool = False
        self._symbol_map: SymbolMap = {}
        self._reverse_symbol_map: Dict[int, str] = {}
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility シンボルマップを設定します。
    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        """
        シンボルマップ（名前とアドレスの対応表）を設定します。
        """
        self._symbol_map = symbol_map
        self._reverse_symbol_map = {addr: name for name, addr in symbol_map.items()}

    def get_symbol_map(self) -> SymbolMap:
        return self._symbol_map

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        """
        CPUのレジスタと累計サイクル数を初期値にリセットします。メモリの内容は変更しません。
        """
        self._state = self._create_initial_state()
        self._cycle_count = 0

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility ホストが外部で保存したCPU状態を復元します。
    def restore_state(self, state: CpuState) -> None:
        self._state = replace(state)

    # @intent:responsibility これまでに消費した累計T-cycle数を返します。
    def get_cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility 現在のPCからオペコードをフェッチします。PCはこの時点では進めません。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    # @intent:responsibility フェッチしたオペコードを解析し、Operationオブジェクトに変換します。
    # @intent:post-condition デコードに失敗した場合、CPUの状態を変更せずに例外を送出します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、実際に消費したT-cycle数を返します。
    @abstractmethod
    def _execute(self, operation: Operation) -> int:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー
    #                  （ログクリア→HALT判定→フェッチ→デコード→PC更新→実行→後処理→Snapshot生成）を定義します。
    #                  タイマーや割り込みなどアーキテクチャ固有の振る舞いはフックメソッドで対応します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 2. HALT判定 (Hook)
        halt_snapshot = self._handle_halt(initial_pc)
        if halt_snapshot:
            return halt_snapshot

        # 3. フェッチ
        opcode = self._fetch()

        # 4. デコード（未定義オペコードの場合はここで例外が送出され、状態は変化しない）
        operation = self._decode(opcode)

        # 5. PC更新 (Hook)
        self._update_pc(operation)

        # 6. 実行
        cycles = self._execute(operation)
        if cycles != operation.cycle_count:
            operation = replace(operation, cycle_count=cycles)

        # 7. 後処理 (Hook): タイマー更新、割り込み判定など
        extra_cycles, interrupt = self._post_execute(cycles)

        # 8. Snapshot生成
        return self._create_snapshot(initial_pc, operation, cycles + extra_cycles, interrupt)

    # @intent:responsibility step()を繰り返し呼び出します。
    # @intent:rationale コア自身は停止条件を持たないため、stop()の呼び出しか命令数の上限のみで終了します。
    def run(self, max_steps: Optional[int] = None) -> int:
        """
        stop()が呼ばれるか、max_steps命令を実行するまでstep()を繰り返し、実行したステップ数を返します。
        step()が送出した例外はそのまま呼び出し元へ伝播します。
        """
        self._running = True
        executed = 0
        try:
            while self._running and (max_steps is None or executed < max_steps):
                self.step()
                executed += 1
        finally:
            self._running = False
        return executed

    def stop(self) -> None:
        self._running = False

    # @intent:responsibility HALT状態の場合の処理を行います。
    # @intent:return HALT中であればその状態のSnapshot、そうでなければNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        return None

    # @intent:responsibility 命令実行前にPCを命令長分進めます。
    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility 命令実行後の処理を行い、追加で消費したサイクル数とディスパッチした割り込みを返します。
    def _post_execute(self, cycles: int) -> Tuple[int, Optional[int]]:
        return 0, None

    # @intent:responsibility トレース表示用に命令を1行の文字列へ整形します。
    def _format_operation(self, operation: Operation) -> str:
        text = operation.mnemonic
        if operation.operands:
            text += " " + ", ".join(operation.operands)
        return text

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation, step_cycles: int,
                         interrupt: Optional[int] = None) -> Snapshot:
        """
        実行結果からSnapshotオブジェクトを生成する共通ロジック。
        """
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += step_cycles

        symbol_label = self._reverse_symbol_map.get(initial_pc, "")
        symbol_info = f"{symbol_label}: " if symbol_label else ""
        symbol_info += self._format_operation(operation)

        return Snapshot(
            state=replace(self._state), # 後続のstepで書き換わらないようにコピーする
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=symbol_info, step_cycles=step_cycles),
            bus_activity=bus_activity,
            interrupt=interrupt,
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグの各ビットの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> DisassemblyListing:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
