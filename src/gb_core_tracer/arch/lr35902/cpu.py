# gb_core_tracer/arch/lr35902/cpu.py
"""
LR35902 CPUエミュレーションの中心モジュール。

このモジュールはGame Boy (DMG) CPUの具体的な実装を提供し、
AbstractCpuインターフェースを実装します。命令実行後のDIVレジスタ更新、
EIの遅延適用、割り込みディスパッチ、HALT/STOP中の待機もここで扱います。
"""
import logging
from typing import Dict, Optional, Tuple

from gb_core_tracer.core.cpu import AbstractCpu
from gb_core_tracer.core.snapshot import Operation, Snapshot
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.common.types import DisassemblyListing
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.arch.lr35902.instructions import decode_opcode, execute_instruction, format_instruction
from gb_core_tracer.arch.lr35902.interrupts import (
    InterruptController, Interrupt, IF_ADDRESS, DISPATCH_CYCLES
)
from gb_core_tracer.arch.lr35902 import disassembler

logger = logging.getLogger(__name__)

# @intent:constant DIVレジスタのアドレスと、1カウントあたりのT-cycle数。
DIV_ADDRESS = 0xFF04
DIV_PERIOD = 256

# @intent:constant HALT/STOP中に1stepで経過させるT-cycle数（1マシンサイクル）。
IDLE_CYCLES = 4


# @intent:responsibility LR35902 CPUの具体的なエミュレーションロジックを提供します。
class Lr35902Cpu(AbstractCpu):
    """
    LR35902 CPUをエミュレートするクラス。
    AbstractCpuを継承し、Game Boy固有のタイマーと割り込みの振る舞いを実装します。
    """
    # @intent:pre-condition `bus`は read_byte / write_byte を提供するBusオブジェクトである必要があります。
    def __init__(self, bus: Bus, initial_ime: bool = False):
        self._initial_ime = initial_ime
        self._interrupts = InterruptController()
        super().__init__(bus)

    def _create_initial_state(self) -> Lr35902CpuState:
        # 全レジスタ0、PC=0、SP=0。IMEの初期値は設定で切り替え可能
        return Lr35902CpuState(ime=self._initial_ime)

    @property
    def interrupts(self) -> InterruptController:
        return self._interrupts

    # @intent:responsibility ホスト（ペリフェラル役）からの割り込み要求をIFに反映します。
    def request_interrupt(self, interrupt: Interrupt) -> None:
        self._interrupts.request(self._bus, interrupt)

    # @intent:responsibility 現在のPCからオペコードをフェッチします。
    def _fetch(self) -> int:
        return self._bus.read_byte(self._state.pc)

    def _decode(self, opcode: int) -> Operation:
        # オペランドはPC+1以降から読まれる
        return decode_opcode(opcode, self._bus, self._state.pc)

    # @intent:responsibility 命令を実行し、直前のEIによる予約があればこの命令の完了時にIMEを立てます。
    def _execute(self, operation: Operation) -> int:
        state = self._state
        enable_after = state.ime_pending
        cycles = execute_instruction(operation, state, self._bus)
        # DIがこの命令で予約を取り消していれば何もしない
        if enable_after and state.ime_pending:
            state.ime = True
            state.ime_pending = False
            logger.debug("IME enabled after instruction at %#06x", (state.pc - operation.length) & 0xFFFF)
        return cycles

    # @intent:responsibility 命令実行後にDIVを進め、割り込みをディスパッチします。
    def _post_execute(self, cycles: int) -> Tuple[int, Optional[int]]:
        self._tick_divider(cycles)
        interrupt = self._interrupts.service(self._state, self._bus)
        if interrupt is None:
            return 0, None
        self._tick_divider(DISPATCH_CYCLES)
        return DISPATCH_CYCLES, int(interrupt)

    # @intent:responsibility 累積T-cycleが256に達するごとにDIVを1つ進めます。端数は次回へ持ち越します。
    def _tick_divider(self, cycles: int) -> None:
        state = self._state
        state.div_counter += cycles
        while state.div_counter >= DIV_PERIOD:
            state.div_counter -= DIV_PERIOD
            self._bus.write_byte(DIV_ADDRESS, (self._bus.read_byte(DIV_ADDRESS) + 1) & 0xFF)

    # @intent:responsibility HALT/STOP中の待機と復帰を処理します。
    # @intent:rationale HALTはIMEに関わらず IF & IE != 0 で復帰します。IMEが有効なら同じstepで割り込みを処理します。
    #                  STOPはJoypad割り込みの要求（IFのビット4）でのみ復帰し、待機中はDIVも停止します。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        state = self._state
        if state.stopped:
            if self._bus.read_byte(IF_ADDRESS) & Interrupt.JOYPAD.mask:
                state.stopped = False
                logger.debug("Resumed from STOP at %#06x", current_pc)
                return None
            operation = Operation(opcode_hex="10", mnemonic="STOP (suspended)", cycle_count=IDLE_CYCLES, length=0)
            return self._create_snapshot(current_pc, operation, IDLE_CYCLES)

        if not state.halted:
            return None

        if self._interrupts.pending(self._bus) == 0:
            self._tick_divider(IDLE_CYCLES)
            operation = Operation(opcode_hex="76", mnemonic="HALT (suspended)", cycle_count=IDLE_CYCLES, length=0)
            return self._create_snapshot(current_pc, operation, IDLE_CYCLES)

        state.halted = False
        logger.debug("Woke from HALT at %#06x", current_pc)
        if not state.ime:
            # 割り込みは処理せず、HALTの次の命令から実行を再開する
            return None

        interrupt = self._interrupts.service(state, self._bus)
        self._tick_divider(DISPATCH_CYCLES)
        operation = Operation(opcode_hex="76", mnemonic="HALT (wake)", cycle_count=0, length=0)
        return self._create_snapshot(current_pc, operation, DISPATCH_CYCLES, int(interrupt))

    def _format_operation(self, operation: Operation) -> str:
        return format_instruction(operation)

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        return {
            "A": s.a, "F": s.f, "B": s.b, "C": s.c, "D": s.d, "E": s.e, "H": s.h, "L": s.l,
            "AF": s.af, "BC": s.bc, "DE": s.de, "HL": s.hl,
            "SP": s.sp, "PC": s.pc,
        }

    def get_flag_state(self) -> Dict[str, bool]:
        s = self._state
        return {
            "Z": s.flag_z,
            "N": s.flag_n,
            "H": s.flag_h,
            "C": s.flag_c,
        }

    def disassemble(self, start_addr: int, length: int) -> DisassemblyListing:
        return disassembler.disassemble(self._bus, start_addr, length)
