"""
LR35902 算術論理演算 (ALU) 命令の実装。
"""
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Operation
from gb_core_tracer.arch.lr35902.alu import (
    update_flags_add8, update_flags_sub8, update_flags_logic8,
    update_flags_inc_dec8, update_flags_add16, add_sp_offset,
    decimal_adjust, rotate_shift8
)
from .base import (
    get_register_name, get_register_value, set_register_value,
    get_rr_reg_name, read_operand8, to_signed8
)

# オペコードのビット5-3に対応する8ビット演算
ALU_OPS = ("ADD A,", "ADC A,", "SUB ", "SBC A,", "AND ", "XOR ", "OR ", "CP ")

# 0x07, 0x0F, 0x17, 0x1F: RLCA, RRCA, RLA, RRA
ACCUMULATOR_ROTATES = {0x07: ("RLCA", 0), 0x0F: ("RRCA", 1), 0x17: ("RLA", 2), 0x1F: ("RRA", 3)}

# --- Decoding Functions ---

# @intent:responsibility ADD/ADC/SUB/SBC/AND/XOR/OR/CP A,r 形式の命令をデコードします。
def decode_alu_r(opcode: int, bus: Bus, pc: int) -> Operation:
    """レジスタ（または(HL)）をオペランドとする8ビット演算命令をデコードします。"""
    src_reg_name = get_register_name(opcode & 0b111)
    op_name = ALU_OPS[(opcode >> 3) & 0b111]
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{op_name}{src_reg_name}",
        operands=[],
        cycle_count=4 if src_reg_name != "(HL)" else 8,
        length=1
    )

# @intent:responsibility ADD/ADC/SUB/SBC/AND/XOR/OR/CP A,d8 形式の命令をデコードします。
def decode_alu_d8(opcode: int, bus: Bus, pc: int) -> Operation:
    n = read_operand8(bus, pc)
    op_name = ALU_OPS[(opcode >> 3) & 0b111]
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{op_name}d8",
        operands=[f"${n:02X}"],
        cycle_count=8,
        length=2,
        operand_bytes=[n]
    )

# @intent:responsibility INC r / DEC r 形式の命令をデコードします。
def decode_inc_dec8(opcode: int, bus: Bus, pc: int) -> Operation:
    """8ビットのINC/DEC命令をデコードします。"""
    reg_name = get_register_name((opcode >> 3) & 0b111)
    is_inc = (opcode & 1) == 0
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{'INC' if is_inc else 'DEC'} {reg_name}",
        operands=[],
        cycle_count=4 if reg_name != "(HL)" else 12,
        length=1
    )

# @intent:responsibility INC rr / DEC rr 形式の命令をデコードします。
def decode_inc_dec16(opcode: int, bus: Bus, pc: int) -> Operation:
    rr_name = get_rr_reg_name((opcode >> 4) & 0b11)
    is_inc = (opcode & 0x0F) == 0x03
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{'INC' if is_inc else 'DEC'} {rr_name}",
        operands=[],
        cycle_count=8,
        length=1
    )

# @intent:responsibility ADD HL,rr 形式の命令をデコードします。
def decode_add_hl_rr(opcode: int, bus: Bus, pc: int) -> Operation:
    rr_name = get_rr_reg_name((opcode >> 4) & 0b11)
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=f"ADD HL,{rr_name}", operands=[], cycle_count=8, length=1)

# @intent:responsibility オペコード0xE8 (ADD SP,e8) をデコードします。
def decode_e8(opcode: int, bus: Bus, pc: int) -> Operation:
    e = read_operand8(bus, pc)
    return Operation(
        opcode_hex="E8",
        mnemonic="ADD SP,e8",
        operands=[f"{to_signed8(e):+d}"],
        cycle_count=16,
        length=2,
        operand_bytes=[e]
    )

# @intent:responsibility RLCA/RRCA/RLA/RRA をデコードします。
def decode_rotate_a(opcode: int, bus: Bus, pc: int) -> Operation:
    mnemonic, _ = ACCUMULATOR_ROTATES[opcode]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, operands=[], cycle_count=4, length=1)

# @intent:responsibility DAA/CPL/SCF/CCF をデコードします。
def decode_misc_a(opcode: int, bus: Bus, pc: int) -> Operation:
    mnemonic = {0x27: "DAA", 0x2F: "CPL", 0x37: "SCF", 0x3F: "CCF"}[opcode]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, operands=[], cycle_count=4, length=1)

# --- Execution Functions ---

# @intent:responsibility Aレジスタと値valで8ビット演算を行い、結果とフラグを反映します。
def _apply_alu(state: Lr35902CpuState, op_index: int, val: int) -> None:
    a = state.a
    if op_index == 0:   # ADD
        result = a + val
        update_flags_add8(state, a, val, result)
        state.a = result
    elif op_index == 1: # ADC
        carry = 1 if state.flag_c else 0
        result = a + val + carry
        update_flags_add8(state, a, val, result, carry)
        state.a = result
    elif op_index == 2: # SUB
        result = a - val
        update_flags_sub8(state, a, val, result)
        state.a = result
    elif op_index == 3: # SBC
        borrow = 1 if state.flag_c else 0
        result = a - val - borrow
        update_flags_sub8(state, a, val, result, borrow)
        state.a = result
    elif op_index == 4: # AND
        state.a = a & val
        update_flags_logic8(state, state.a, h_flag=True)
    elif op_index == 5: # XOR
        state.a = a ^ val
        update_flags_logic8(state, state.a)
    elif op_index == 6: # OR
        state.a = a | val
        update_flags_logic8(state, state.a)
    else:               # CP: フラグのみ更新し、結果は破棄する
        update_flags_sub8(state, a, val, a - val)

def execute_alu_r(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    val = get_register_value(state, bus, get_register_name(opcode & 0b111))
    _apply_alu(state, (opcode >> 3) & 0b111, val)

def execute_alu_d8(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    _apply_alu(state, (opcode >> 3) & 0b111, operation.operand_bytes[0])

def execute_inc_dec8(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    reg_name = get_register_name((opcode >> 3) & 0b111)
    is_inc = (opcode & 1) == 0
    val = get_register_value(state, bus, reg_name)
    result = (val + 1) & 0xFF if is_inc else (val - 1) & 0xFF
    update_flags_inc_dec8(state, val, result, is_inc)
    set_register_value(state, bus, reg_name, result)

def execute_inc_dec16(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    rr_name = get_rr_reg_name((opcode >> 4) & 0b11)
    delta = 1 if (opcode & 0x0F) == 0x03 else -1
    state.set16(rr_name, (state.get16(rr_name) + delta) & 0xFFFF)

def execute_add_hl_rr(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    val = state.get16(get_rr_reg_name((opcode >> 4) & 0b11))
    result = state.hl + val
    update_flags_add16(state, state.hl, val, result)
    state.hl = result & 0xFFFF

def execute_e8(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    state.sp = add_sp_offset(state, operation.operand_bytes[0])

def execute_rotate_a(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    # アキュムレータ専用の旧形式はZを結果に関わらずリセットします
    _, op_index = ACCUMULATOR_ROTATES[int(operation.opcode_hex, 16)]
    state.a = rotate_shift8(state, state.a, op_index)
    state.flag_z = False

def execute_misc_a(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    if opcode == 0x27:   # DAA
        state.a = decimal_adjust(state)
    elif opcode == 0x2F: # CPL
        state.a = ~state.a & 0xFF
        state.flag_n = True
        state.flag_h = True
    elif opcode == 0x37: # SCF
        state.flag_n = False
        state.flag_h = False
        state.flag_c = True
    else:                # CCF
        state.flag_n = False
        state.flag_h = False
        state.flag_c = not state.flag_c
