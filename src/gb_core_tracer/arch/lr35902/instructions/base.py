"""
LR35902命令セット実装のための共通ヘルパー関数と定数。
"""
import re
from typing import Tuple

from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Operation

# @intent:constant I/Oページ（LDH命令、LD (C),A）の基底アドレス。
IO_PAGE_BASE = 0xFF00

# Helper functions for register mapping
REGISTER_CODES = {
    0b000: "B", 0b001: "C", 0b010: "D", 0b011: "E",
    0b100: "H", 0b101: "L", 0b110: "(HL)", 0b111: "A"
}

CONDITION_CODES = {0b00: "NZ", 0b01: "Z", 0b10: "NC", 0b11: "C"}

_PLACEHOLDER = re.compile(r"\+e8\b|\b(?:d8|d16|a8|a16|e8)\b")

# @intent:utility_function 指定されたコードに対応するレジスタ名を返します。
def get_register_name(code: int) -> str:
    return REGISTER_CODES.get(code, "UNKNOWN_REG")

# @intent:utility_function レジスタ名（または(HL)）に基づいて現在の値を取得します。
def get_register_value(state: Lr35902CpuState, bus: Bus, reg_name: str) -> int:
    if reg_name == "(HL)":
        return bus.read_byte(state.hl)
    return getattr(state, reg_name.lower())

# @intent:utility_function レジスタ名（または(HL)）に値を設定します。
def set_register_value(state: Lr35902CpuState, bus: Bus, reg_name: str, value: int) -> None:
    if reg_name == "(HL)":
        bus.write_byte(state.hl, value & 0xFF)
    else:
        setattr(state, reg_name.lower(), value & 0xFF)

# @intent:utility_function PUSH/POP命令で使用されるレジスタペア名を返します。
def get_push_pop_reg_name(code: int) -> str:
    return {0b00: "BC", 0b01: "DE", 0b10: "HL", 0b11: "AF"}.get(code, "UNKNOWN")

# @intent:utility_function 16ビット演算で使用されるレジスタペア名(rr)を返します。
def get_rr_reg_name(code: int) -> str:
    return {0b00: "BC", 0b01: "DE", 0b10: "HL", 0b11: "SP"}.get(code, "UNKNOWN")

# @intent:utility_function 条件コード(cc)が現在のフラグで成立するかを判定します。
def check_condition(state: Lr35902CpuState, cc_code: int) -> bool:
    if cc_code == 0: return not state.flag_z # NZ
    if cc_code == 1: return state.flag_z     # Z
    if cc_code == 2: return not state.flag_c # NC
    return state.flag_c                      # C

# @intent:utility_function 8ビット値を2の補数の符号付き整数として解釈します。
def to_signed8(value: int) -> int:
    return value - 0x100 if value & 0x80 else value

# @intent:utility_function PCの直後からオペランドを読み出します。アドレスは16ビットで折り返します。
def read_operand8(bus: Bus, pc: int, offset: int = 1) -> int:
    return bus.read_byte((pc + offset) & 0xFFFF)

# @intent:utility_function リトルエンディアンの16ビットオペランドを (low, high) で読み出します。
def read_operand16(bus: Bus, pc: int) -> Tuple[int, int]:
    low = read_operand8(bus, pc, 1)
    high = read_operand8(bus, pc, 2)
    return low, high

# @intent:utility_function 16ビット値をスタックに積みます。
# @intent:rationale 上位バイトを先に高いアドレスへ書き、下位バイトが最後に積まれた（低い）アドレスに来るようにします。
def push_word(state: Lr35902CpuState, bus: Bus, value: int) -> None:
    state.sp = (state.sp - 1) & 0xFFFF
    bus.write_byte(state.sp, (value >> 8) & 0xFF)
    state.sp = (state.sp - 1) & 0xFFFF
    bus.write_byte(state.sp, value & 0xFF)

# @intent:utility_function スタックから16ビット値を取り出します。下位バイトを先に読みます。
def pop_word(state: Lr35902CpuState, bus: Bus) -> int:
    low = bus.read_byte(state.sp)
    state.sp = (state.sp + 1) & 0xFFFF
    high = bus.read_byte(state.sp)
    state.sp = (state.sp + 1) & 0xFFFF
    return (high << 8) | low

# @intent:utility_function ニーモニック中のプレースホルダ（d8, d16, a8, a16, e8）をオペランドの値で置き換えます。
# "SP+e8" の形では符号付きのオペランドが "+e8" 全体を置き換えます。
def format_instruction(operation: Operation) -> str:
    text = operation.mnemonic
    for operand in operation.operands:
        text, count = _PLACEHOLDER.subn(lambda _: operand, text, count=1)
        if count == 0:
            text += f" {operand}"
    return text
