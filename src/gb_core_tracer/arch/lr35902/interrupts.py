"""
LR35902 割り込みコントローラ。

IF (0xFF0F) と IE (0xFFFF) はメモリ上に存在し、ペリフェラルやホストがIFのビットを立てることで
割り込みを要求します。複数の要求がある場合は最下位ビットが優先されます。
"""
import logging
from enum import IntEnum
from typing import Optional

from gb_core_tracer.transport.bus import Bus
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.arch.lr35902.instructions.base import push_word

logger = logging.getLogger(__name__)

IF_ADDRESS = 0xFF0F
IE_ADDRESS = 0xFFFF

# @intent:constant 割り込みディスパッチ（PCのプッシュとベクタへのジャンプ）に要するT-cycle数。
DISPATCH_CYCLES = 20

INTERRUPT_BITS = 0x1F


# @intent:responsibility 割り込み要因とIF/IEのビット番号の対応を定義します。
class Interrupt(IntEnum):
    VBLANK = 0
    LCD_STAT = 1
    TIMER = 2
    SERIAL = 3
    JOYPAD = 4

    @property
    def mask(self) -> int:
        return 1 << self.value

    @property
    def vector(self) -> int:
        return VECTORS[self]


VECTORS = {
    Interrupt.VBLANK: 0x40,
    Interrupt.LCD_STAT: 0x48,
    Interrupt.TIMER: 0x50,
    Interrupt.SERIAL: 0x58,
    Interrupt.JOYPAD: 0x60,
}


# @intent:responsibility IF/IEの読み書きと、割り込みのディスパッチを担当します。
class InterruptController:
    """
    メモリマップ上のIF/IEレジスタを介して割り込みを判定・処理します。
    自身は状態を持たず、レジスタの値は常にBusから読み出します。
    """

    # @intent:responsibility IFとIEの両方が立っている割り込みビットを返します。
    def pending(self, bus: Bus) -> int:
        return bus.read_byte(IF_ADDRESS) & bus.read_byte(IE_ADDRESS) & INTERRUPT_BITS

    # @intent:responsibility 指定された割り込みのIFビットを立てます。
    def request(self, bus: Bus, interrupt: Interrupt) -> None:
        bus.write_byte(IF_ADDRESS, bus.read_byte(IF_ADDRESS) | interrupt.mask)

    # @intent:responsibility IMEが有効かつ保留中の割り込みがあれば、最優先の1つをディスパッチします。
    # @intent:post-condition ディスパッチした場合、IMEはFalse、該当IFビットはクリア、
    #                        HALT/STOPは解除され、直前のPCはスタックに積まれ、PCはベクタアドレスを指します。
    def service(self, state: Lr35902CpuState, bus: Bus) -> Optional[Interrupt]:
        """
        割り込みを1つ処理し、処理した割り込みを返します。処理しなかった場合はNoneを返します。
        """
        if not state.ime:
            return None
        pending = self.pending(bus)
        if pending == 0:
            return None

        # 最下位のセットビットが最優先
        interrupt = Interrupt((pending & -pending).bit_length() - 1)

        state.ime = False
        state.ime_pending = False
        # HALT/STOP中に要求済みの割り込みを処理した場合も、ハンドラから実行を再開する
        state.halted = False
        state.stopped = False
        bus.write_byte(IF_ADDRESS, bus.read_byte(IF_ADDRESS) & ~interrupt.mask & 0xFF)
        return_address = state.pc
        push_word(state, bus, return_address)
        state.pc = interrupt.vector
        logger.debug("Dispatched %s interrupt: PC %#06x -> %#06x", interrupt.name, return_address, state.pc)
        return interrupt
