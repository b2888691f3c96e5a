"""
LR35902 データ転送命令の実装。
"""
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Operation
from gb_core_tracer.arch.lr35902.alu import add_sp_offset
from .base import (
    IO_PAGE_BASE, get_register_name, get_register_value, set_register_value,
    get_push_pop_reg_name, get_rr_reg_name, read_operand8, read_operand16,
    push_word, pop_word, to_signed8
)

# (BC), (DE), (HL+), (HL-) の順。オペコードのビット5-4に対応します。
INDIRECT_NAMES = ("(BC)", "(DE)", "(HL+)", "(HL-)")

# --- Decoding Functions ---

# @intent:responsibility LD rr,d16 形式の命令をデコードします。
def decode_ld_rr_d16(opcode: int, bus: Bus, pc: int) -> Operation:
    """LD rr,d16命令をデコードします。最初に読んだバイトが下位バイトです。"""
    rr_name = get_rr_reg_name((opcode >> 4) & 0b11)
    low, high = read_operand16(bus, pc)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"LD {rr_name},d16",
        operands=[f"${(high << 8) | low:04X}"],
        cycle_count=12,
        length=3,
        operand_bytes=[low, high]
    )

# @intent:responsibility LD r,d8 形式の命令をデコードします。
def decode_ld_r_d8(opcode: int, bus: Bus, pc: int) -> Operation:
    """LD r,d8命令をデコードします。"""
    reg_name = get_register_name((opcode >> 3) & 0b111)
    n = read_operand8(bus, pc)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"LD {reg_name},d8",
        operands=[f"${n:02X}"],
        cycle_count=8 if reg_name != "(HL)" else 12,
        length=2,
        operand_bytes=[n]
    )

# @intent:responsibility LD r,r' 形式の命令をデコードします。
def decode_ld_r_r(opcode: int, bus: Bus, pc: int) -> Operation:
    """汎用的なLD r,r'命令をデコードします。0x76はHALTのためここには来ません。"""
    dest_reg_name = get_register_name((opcode >> 3) & 0b111)
    src_reg_name = get_register_name(opcode & 0b111)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"LD {dest_reg_name},{src_reg_name}",
        operands=[],
        cycle_count=4 if "(HL)" not in (dest_reg_name, src_reg_name) else 8,
        length=1
    )

# @intent:responsibility LD (rr),A / LD A,(rr) 形式（HL+/HL-を含む）の命令をデコードします。
def decode_ld_indirect_a(opcode: int, bus: Bus, pc: int) -> Operation:
    """LD (BC),A / LD A,(DE) / LD (HL+),A などをデコードします。"""
    target = INDIRECT_NAMES[(opcode >> 4) & 0b11]
    is_load_a = (opcode & 0x0F) == 0x0A
    mnemonic = f"LD A,{target}" if is_load_a else f"LD {target},A"
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, operands=[], cycle_count=8, length=1)

# @intent:responsibility PUSH rr / POP rr 形式の命令をデコードします。
def decode_push_pop(opcode: int, bus: Bus, pc: int) -> Operation:
    """PUSH/POP命令をデコードします。"""
    reg_name = get_push_pop_reg_name((opcode >> 4) & 0b11)
    is_push = (opcode & 0x0F) == 0x05
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{'PUSH' if is_push else 'POP'} {reg_name}",
        operands=[],
        cycle_count=16 if is_push else 12,
        length=1
    )

# @intent:responsibility LDH (a8),A / LDH A,(a8) をデコードします。
def decode_ldh(opcode: int, bus: Bus, pc: int) -> Operation:
    """0xFF00+a8 のI/Oページへアクセスする命令をデコードします。"""
    n = read_operand8(bus, pc)
    mnemonic = "LDH (a8),A" if opcode == 0xE0 else "LDH A,(a8)"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${IO_PAGE_BASE + n:04X}"],
        cycle_count=12,
        length=2,
        operand_bytes=[n]
    )

# @intent:responsibility LD (C),A / LD A,(C) をデコードします。
def decode_ld_c_io(opcode: int, bus: Bus, pc: int) -> Operation:
    mnemonic = "LD (C),A" if opcode == 0xE2 else "LD A,(C)"
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, operands=[], cycle_count=8, length=1)

# @intent:responsibility LD (a16),A / LD A,(a16) をデコードします。
def decode_ld_a16(opcode: int, bus: Bus, pc: int) -> Operation:
    low, high = read_operand16(bus, pc)
    mnemonic = "LD (a16),A" if opcode == 0xEA else "LD A,(a16)"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${(high << 8) | low:04X}"],
        cycle_count=16,
        length=3,
        operand_bytes=[low, high]
    )

# @intent:responsibility オペコード0x08 (LD (a16),SP) をデコードします。
def decode_08(opcode: int, bus: Bus, pc: int) -> Operation:
    low, high = read_operand16(bus, pc)
    return Operation(
        opcode_hex="08",
        mnemonic="LD (a16),SP",
        operands=[f"${(high << 8) | low:04X}"],
        cycle_count=20,
        length=3,
        operand_bytes=[low, high]
    )

# @intent:responsibility オペコード0xF8 (LD HL,SP+e8) をデコードします。
def decode_f8(opcode: int, bus: Bus, pc: int) -> Operation:
    e = read_operand8(bus, pc)
    return Operation(
        opcode_hex="F8",
        mnemonic="LD HL,SP+e8",
        operands=[f"{to_signed8(e):+d}"],
        cycle_count=12,
        length=2,
        operand_bytes=[e]
    )

def decode_f9(opcode: int, bus: Bus, pc: int) -> Operation:
    """LD SP,HL命令をデコードします。"""
    return Operation(opcode_hex="F9", mnemonic="LD SP,HL", operands=[], cycle_count=8, length=1)

# --- Execution Functions ---

def execute_ld_rr_d16(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    low, high = operation.operand_bytes
    state.set16(get_rr_reg_name((opcode >> 4) & 0b11), (high << 8) | low)

def execute_ld_r_d8(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    reg_name = get_register_name((opcode >> 3) & 0b111)
    set_register_value(state, bus, reg_name, operation.operand_bytes[0])

def execute_ld_r_r(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    dest_reg_name = get_register_name((opcode >> 3) & 0b111)
    src_reg_name = get_register_name(opcode & 0b111)
    value = get_register_value(state, bus, src_reg_name)
    set_register_value(state, bus, dest_reg_name, value)

def execute_ld_indirect_a(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    selector = (opcode >> 4) & 0b11
    address = (state.bc, state.de, state.hl, state.hl)[selector]
    if (opcode & 0x0F) == 0x0A:
        state.a = bus.read_byte(address)
    else:
        bus.write_byte(address, state.a)
    # (HL+) / (HL-) はアクセス後にHLを増減します
    if selector == 2:
        state.hl = (state.hl + 1) & 0xFFFF
    elif selector == 3:
        state.hl = (state.hl - 1) & 0xFFFF

def execute_push_pop(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    reg_name = get_push_pop_reg_name((opcode >> 4) & 0b11)
    if (opcode & 0x0F) == 0x05:
        push_word(state, bus, state.get16(reg_name))
    else:
        # POP AF の場合、Fの下位ニブルは状態クラス側で破棄されます
        state.set16(reg_name, pop_word(state, bus))

def execute_ldh(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    # 0xFF00 + 0xFF = 0xFFFF のため折り返しは発生しない
    address = IO_PAGE_BASE + operation.operand_bytes[0]
    if operation.opcode_hex == "E0":
        bus.write_byte(address, state.a)
    else:
        state.a = bus.read_byte(address)

def execute_ld_c_io(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    address = IO_PAGE_BASE + state.c
    if operation.opcode_hex == "E2":
        bus.write_byte(address, state.a)
    else:
        state.a = bus.read_byte(address)

def execute_ld_a16(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    low, high = operation.operand_bytes
    address = (high << 8) | low
    if operation.opcode_hex == "EA":
        bus.write_byte(address, state.a)
    else:
        state.a = bus.read_byte(address)

def execute_08(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    """LD (a16),SP: SPの下位バイトをa16に、上位バイトをa16+1に書き込みます。"""
    low, high = operation.operand_bytes
    address = (high << 8) | low
    bus.write_byte(address, state.sp & 0xFF)
    bus.write_byte((address + 1) & 0xFFFF, (state.sp >> 8) & 0xFF)

def execute_f8(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    state.hl = add_sp_offset(state, operation.operand_bytes[0])

def execute_f9(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    state.sp = state.hl
