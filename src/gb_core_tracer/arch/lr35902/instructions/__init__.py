"""
LR35902命令セット実装パッケージ。
"""
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.snapshot import Operation
from gb_core_tracer.core.errors import UnimplementedOpcodeError
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from .base import format_instruction
from .maps import DECODE_MAP, EXECUTE_MAP, CB_EXECUTE_MAP, UNDEFINED_OPCODES

__all__ = [
    "decode_opcode", "execute_instruction", "format_instruction",
    "DECODE_MAP", "EXECUTE_MAP", "CB_EXECUTE_MAP", "UNDEFINED_OPCODES",
]

# @intent:responsibility 与えられたオペコードをLR35902の命令としてデコードします。
# @intent:pre-condition `pc`はデコードするオペコードの先頭アドレスを指している必要があります。
def decode_opcode(opcode: int, bus: Bus, pc: int) -> Operation:
    """
    LR35902のオペコードをデコードし、Operationオブジェクトを返します。
    表に存在しないオペコードの場合はUnimplementedOpcodeErrorを送出します。
    """
    decoder = DECODE_MAP.get(opcode)
    if decoder is None:
        raise UnimplementedOpcodeError(opcode, pc)
    return decoder(opcode, bus, pc)

# @intent:responsibility デコードされたLR35902命令を実行し、実際に消費したT-cycle数を返します。
# @intent:pre-condition `operation`はdecode_opcodeが返したOperationである必要があります。
def execute_instruction(operation: Operation, state: Lr35902CpuState, bus: Bus) -> int:
    """
    デコードされたLR35902命令を実行し、CPUの状態を変更します。
    条件付き分岐以外はoperation.cycle_countをそのまま返します。
    """
    if operation.prefix is not None:
        executor = CB_EXECUTE_MAP[operation.operand_bytes[0]]
    else:
        executor = EXECUTE_MAP[int(operation.opcode_hex, 16)]
    cycles = executor(state, bus, operation)
    return operation.cycle_count if cycles is None else cycles
