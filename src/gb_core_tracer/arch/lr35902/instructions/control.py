"""
LR35902 制御命令（分岐、サブルーチン、割り込み許可、システム制御）の実装。

条件付き命令の実行関数は、分岐の成否に応じて実際に消費したT-cycle数を返します。
"""
from typing import Optional

from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Operation
from .base import (
    CONDITION_CODES, check_condition, read_operand8, read_operand16,
    push_word, pop_word, to_signed8
)

# @intent:constant 条件不成立時のT-cycle数。成立時はOperation.cycle_countを使用します。
JR_NOT_TAKEN_CYCLES = 8
JP_NOT_TAKEN_CYCLES = 12
CALL_NOT_TAKEN_CYCLES = 12
RET_NOT_TAKEN_CYCLES = 8

# --- Decoding Functions ---

def decode_00(opcode: int, bus: Bus, pc: int) -> Operation:
    """NOP命令をデコードします。"""
    return Operation(opcode_hex="00", mnemonic="NOP", operands=[], cycle_count=4, length=1)

# @intent:responsibility オペコード0x10 (STOP) をデコードします。後続の1バイト(0x00)も命令に含まれます。
def decode_10(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="10", mnemonic="STOP", operands=[], cycle_count=4, length=2)

# @intent:responsibility オペコード0x76 (HALT) をデコードします。
def decode_76(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="76", mnemonic="HALT", operands=[], cycle_count=4, length=1)

# @intent:responsibility JR e8 / JR cc,e8 形式の命令をデコードします。
def decode_jr(opcode: int, bus: Bus, pc: int) -> Operation:
    """相対ジャンプ命令をデコードします。オペランドには計算済みの飛び先を表示します。"""
    offset = read_operand8(bus, pc)
    target = (pc + 2 + to_signed8(offset)) & 0xFFFF
    if opcode == 0x18:
        mnemonic = "JR e8"
    else:
        mnemonic = f"JR {CONDITION_CODES[(opcode >> 3) & 0b11]},e8"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${target:04X}"],
        cycle_count=12,
        length=2,
        operand_bytes=[offset]
    )

# @intent:responsibility JP a16 / JP cc,a16 形式の命令をデコードします。
def decode_jp(opcode: int, bus: Bus, pc: int) -> Operation:
    low, high = read_operand16(bus, pc)
    if opcode == 0xC3:
        mnemonic = "JP a16"
    else:
        mnemonic = f"JP {CONDITION_CODES[(opcode >> 3) & 0b11]},a16"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${(high << 8) | low:04X}"],
        cycle_count=16,
        length=3,
        operand_bytes=[low, high]
    )

def decode_e9(opcode: int, bus: Bus, pc: int) -> Operation:
    """JP HL命令をデコードします。"""
    return Operation(opcode_hex="E9", mnemonic="JP HL", operands=[], cycle_count=4, length=1)

# @intent:responsibility CALL a16 / CALL cc,a16 形式の命令をデコードします。
def decode_call(opcode: int, bus: Bus, pc: int) -> Operation:
    low, high = read_operand16(bus, pc)
    if opcode == 0xCD:
        mnemonic = "CALL a16"
    else:
        mnemonic = f"CALL {CONDITION_CODES[(opcode >> 3) & 0b11]},a16"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${(high << 8) | low:04X}"],
        cycle_count=24,
        length=3,
        operand_bytes=[low, high]
    )

# @intent:responsibility RET / RET cc / RETI をデコードします。
def decode_ret(opcode: int, bus: Bus, pc: int) -> Operation:
    if opcode == 0xC9:
        return Operation(opcode_hex="C9", mnemonic="RET", operands=[], cycle_count=16, length=1)
    if opcode == 0xD9:
        return Operation(opcode_hex="D9", mnemonic="RETI", operands=[], cycle_count=16, length=1)
    cc = CONDITION_CODES[(opcode >> 3) & 0b11]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=f"RET {cc}", operands=[], cycle_count=20, length=1)

# @intent:responsibility RST n 形式の命令をデコードします。
def decode_rst(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="RST",
        operands=[f"${opcode & 0x38:02X}"],
        cycle_count=16,
        length=1
    )

def decode_f3(opcode: int, bus: Bus, pc: int) -> Operation:
    """DI命令をデコードします。"""
    return Operation(opcode_hex="F3", mnemonic="DI", operands=[], cycle_count=4, length=1)

def decode_fb(opcode: int, bus: Bus, pc: int) -> Operation:
    """EI命令をデコードします。"""
    return Operation(opcode_hex="FB", mnemonic="EI", operands=[], cycle_count=4, length=1)

# --- Execution Functions ---

def execute_00(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    # Intentional: NOP (No Operation)
    pass

def execute_10(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    # @intent:responsibility CPUをSTOP状態にします。Joypad割り込み要求で復帰します。
    state.stopped = True

def execute_76(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    # @intent:responsibility CPUをHALT状態にします。割り込み要求が発生するまで停止し続けます。
    state.halted = True

def execute_jr(state: Lr35902CpuState, bus: Bus, operation: Operation) -> Optional[int]:
    opcode = int(operation.opcode_hex, 16)
    if opcode != 0x18 and not check_condition(state, (opcode >> 3) & 0b11):
        return JR_NOT_TAKEN_CYCLES
    # PCは実行前にオフセットバイトの直後まで進んでいる
    state.pc = (state.pc + to_signed8(operation.operand_bytes[0])) & 0xFFFF
    return operation.cycle_count

def execute_jp(state: Lr35902CpuState, bus: Bus, operation: Operation) -> Optional[int]:
    opcode = int(operation.opcode_hex, 16)
    if opcode != 0xC3 and not check_condition(state, (opcode >> 3) & 0b11):
        return JP_NOT_TAKEN_CYCLES
    low, high = operation.operand_bytes
    state.pc = (high << 8) | low
    return operation.cycle_count

def execute_e9(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = state.hl

def execute_call(state: Lr35902CpuState, bus: Bus, operation: Operation) -> Optional[int]:
    opcode = int(operation.opcode_hex, 16)
    if opcode != 0xCD and not check_condition(state, (opcode >> 3) & 0b11):
        return CALL_NOT_TAKEN_CYCLES
    # 戻り先は2バイトのオペランドの直後（PCは既に進んでいる）
    push_word(state, bus, state.pc)
    low, high = operation.operand_bytes
    state.pc = (high << 8) | low
    return operation.cycle_count

def execute_ret(state: Lr35902CpuState, bus: Bus, operation: Operation) -> Optional[int]:
    opcode = int(operation.opcode_hex, 16)
    if opcode not in (0xC9, 0xD9) and not check_condition(state, (opcode >> 3) & 0b11):
        return RET_NOT_TAKEN_CYCLES
    state.pc = pop_word(state, bus)
    if opcode == 0xD9:
        # RETIはEIと異なり、遅延なしでIMEを復帰させる
        state.ime = True
        state.ime_pending = False
    return operation.cycle_count

def execute_rst(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    push_word(state, bus, state.pc)
    state.pc = int(operation.opcode_hex, 16) & 0x38

def execute_f3(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    """DI命令を実行します。直前のEIによる予約も取り消します。"""
    state.ime = False
    state.ime_pending = False

def execute_fb(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    """EI命令を実行します。IMEは次の命令の完了後にCPU側で立てられます。"""
    state.ime_pending = True
