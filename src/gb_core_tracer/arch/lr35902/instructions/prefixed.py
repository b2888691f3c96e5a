"""
LR35902 CBプレフィックス命令（ローテート/シフト、BIT、RES、SET）の実装。

CB命令は2バイト目で種類（ビット7-6）、ビット番号または演算（ビット5-3）、
対象レジスタ（ビット2-0）を表します。
"""
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Operation
from gb_core_tracer.arch.lr35902.alu import SHIFT_OPS, rotate_shift8, update_flags_bit
from .base import get_register_name, get_register_value, set_register_value, read_operand8

CB_PREFIX = 0xCB

# @intent:constant プレフィックスバイトのフェッチにかかるT-cycle数。
PREFIX_CYCLES = 4

# @intent:utility_function CB命令の拡張オペコード自体のT-cycle数を返します（プレフィックス分を含まない）。
def cb_cycles(cb_opcode: int) -> int:
    if (cb_opcode & 0b111) != 0b110:
        return 4
    # (HL) を対象とするBITは読み出しのみ
    return 8 if (cb_opcode >> 6) == 0b01 else 12

# @intent:utility_function CB命令のニーモニックを組み立てます。
def cb_mnemonic(cb_opcode: int) -> str:
    reg_name = get_register_name(cb_opcode & 0b111)
    type_code = (cb_opcode >> 6) & 0b11
    index = (cb_opcode >> 3) & 0b111
    if type_code == 0b00:
        return f"{SHIFT_OPS[index]} {reg_name}"
    return f"{('BIT', 'RES', 'SET')[type_code - 1]} {index},{reg_name}"

# @intent:responsibility 0xCB プレフィックス命令をデコードします。
def decode_cb(opcode: int, bus: Bus, pc: int) -> Operation:
    """CBプレフィックス命令をデコードします。2バイト目はoperand_bytesに保持されます。"""
    cb_opcode = read_operand8(bus, pc)
    return Operation(
        opcode_hex="CB",
        mnemonic=cb_mnemonic(cb_opcode),
        operands=[],
        cycle_count=PREFIX_CYCLES + cb_cycles(cb_opcode),
        length=2,
        operand_bytes=[cb_opcode],
        prefix=CB_PREFIX
    )

# --- Execution Functions ---

def execute_cb_shift(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    cb_opcode = operation.operand_bytes[0]
    reg_name = get_register_name(cb_opcode & 0b111)
    val = get_register_value(state, bus, reg_name)
    set_register_value(state, bus, reg_name, rotate_shift8(state, val, (cb_opcode >> 3) & 0b111))

def execute_cb_bit(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    """BIT b,r: Zに対象ビットの反転を設定します。Cフラグは変化しません。"""
    cb_opcode = operation.operand_bytes[0]
    val = get_register_value(state, bus, get_register_name(cb_opcode & 0b111))
    update_flags_bit(state, val, (cb_opcode >> 3) & 0b111)

def execute_cb_res(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    cb_opcode = operation.operand_bytes[0]
    reg_name = get_register_name(cb_opcode & 0b111)
    val = get_register_value(state, bus, reg_name)
    set_register_value(state, bus, reg_name, val & ~(1 << ((cb_opcode >> 3) & 0b111)))

def execute_cb_set(state: Lr35902CpuState, bus: Bus, operation: Operation) -> None:
    cb_opcode = operation.operand_bytes[0]
    reg_name = get_register_name(cb_opcode & 0b111)
    val = get_register_value(state, bus, reg_name)
    set_register_value(state, bus, reg_name, val | (1 << ((cb_opcode >> 3) & 0b111)))
