"""
LR35902逆アセンブラモジュール。

メモリ上のバイナリデータを解析し、Game Boyアセンブリ言語のニーモニック形式に変換します。
"""
from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.core.errors import UnimplementedOpcodeError
from gb_core_tracer.common.types import DisassemblyListing
from gb_core_tracer.arch.lr35902.instructions import decode_opcode, format_instruction


# @intent:responsibility デコーダからの読み出しをpeekに振り替え、バスのアクセスログを汚さないようにします。
class _PeekView:
    def __init__(self, bus: Bus):
        self._bus = bus

    def read_byte(self, address: int) -> int:
        return self._bus.peek(address)


# @intent:responsibility 指定されたメモリ範囲のバイナリデータを解析し、アドレスとニーモニックのリストを返します。
def disassemble(bus: Bus, start_addr: int, length: int) -> DisassemblyListing:
    """
    メモリ上のデータを読み取り、(アドレス, 16進ダンプ, ニーモニック) のタプルのリストを返します。
    未定義オペコードは1バイトのデータ (DB $xx) として表示します。
    """
    view = _PeekView(bus)
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr and current_addr <= 0xFFFF:
        opcode = bus.peek(current_addr)
        try:
            operation = decode_opcode(opcode, view, current_addr)
        except UnimplementedOpcodeError:
            result.append((current_addr, f"{opcode:02X}", f"DB ${opcode:02X}"))
            current_addr += 1
            continue

        hex_dump = " ".join(f"{b:02X}" for b in [opcode, *operation.operand_bytes])
        if operation.opcode_hex == "10":
            # STOPは2バイト命令（2バイト目は通常0x00）
            hex_dump += f" {bus.peek((current_addr + 1) & 0xFFFF):02X}"
        result.append((current_addr, hex_dump, format_instruction(operation)))
        current_addr += operation.length

    return result
