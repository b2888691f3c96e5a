# gb_core_tracer/arch/lr35902/state.py
"""
LR35902 (Game Boy CPU) 固有の状態定義。

このモジュールは、8本の8ビットレジスタ、Fレジスタに詰め込まれた4つのフラグ、
16ビットのレジスタペア、およびCPUが所有する制御状態（IME、HALT、DIV用サイクル累積値）を保持します。
"""
from dataclasses import dataclass

from gb_core_tracer.core.state import CpuState

# LR35902フラグビットマスク
# @intent:constant Fレジスタ内の各フラグビットの位置を定義します。下位4ビットは常に0です。
Z_FLAG = 0b10000000  # Zero (ゼロ)
N_FLAG = 0b01000000  # Subtract (減算)
H_FLAG = 0b00100000  # Half Carry (ハーフキャリー, bit3 -> bit4)
C_FLAG = 0b00010000  # Carry (キャリー, bit7 -> bit8)
FLAG_MASK = 0xF0

REGISTERS_8 = ("a", "f", "b", "c", "d", "e", "h", "l")
REGISTER_PAIRS = {"af": ("a", "f"), "bc": ("b", "c"), "de": ("d", "e"), "hl": ("h", "l")}


# @intent:responsibility LR35902 CPUの全てのレジスタとフラグ、制御状態を保持します。
@dataclass
class Lr35902CpuState(CpuState):
    """
    LR35902 CPUのレジスタ状態を保持するデータクラス。
    8ビットレジスタへの代入は常に8ビットに切り詰められ、Fへの代入では下位ニブルがクリアされます。
    """
    a: int = 0x00
    f: int = 0x00  # Flag register
    b: int = 0x00
    c: int = 0x00
    d: int = 0x00
    e: int = 0x00
    h: int = 0x00
    l: int = 0x00

    ime: bool = False          # Interrupt Master Enable
    ime_pending: bool = False  # EI実行後、次の命令の完了時にIMEを立てる
    halted: bool = False
    stopped: bool = False
    div_counter: int = 0       # DIVレジスタ更新用のT-cycle累積値

    # @intent:invariant 8ビットレジスタは0-255、PC/SPは0-65535、Fの下位ニブルは常に0。
    # @intent:rationale 全ての書き込み経路（命令、レジスタペア、POP AF、外部からの設定）で
    #                   不変条件を保証するため、属性代入の一箇所で正規化します。
    def __setattr__(self, name: str, value) -> None:
        if name in REGISTERS_8:
            value &= 0xFF
            if name == "f":
                value &= FLAG_MASK
        elif name in ("pc", "sp"):
            value &= 0xFFFF
        super().__setattr__(name, value)

    # --- 名前によるアクセス ---

    def get8(self, name: str) -> int:
        """8ビットレジスタ（A, F, B, C, D, E, H, L）の値を返します。"""
        return getattr(self, self._register8(name))

    def set8(self, name: str, value: int) -> None:
        setattr(self, self._register8(name), value)

    def get16(self, pair: str) -> int:
        """レジスタペア（AF, BC, DE, HL, SP）の値を返します。先頭のレジスタが上位バイトです。"""
        return getattr(self, self._register16(pair))

    def set16(self, pair: str, value: int) -> None:
        setattr(self, self._register16(pair), value)

    @staticmethod
    def _register8(name: str) -> str:
        key = name.lower()
        if key not in REGISTERS_8:
            raise ValueError(f"Unknown 8-bit register: {name}")
        return key

    @staticmethod
    def _register16(pair: str) -> str:
        key = pair.lower()
        if key not in REGISTER_PAIRS and key != "sp":
            raise ValueError(f"Unknown 16-bit register pair: {pair}")
        return key

    # --- フラグ操作 ---

    # @intent:responsibility 指定された全てのフラグビットが立っている場合のみTrueを返します。
    def test_flags(self, mask: int) -> bool:
        return (self.f & mask) == mask

    def set_flags(self, mask: int) -> None:
        self.f |= mask

    def reset_flags(self, mask: int) -> None:
        self.f &= ~mask

    # @intent:accessor Fレジスタの各フラグビットにアクセスするためのプロパティを提供します。
    # @intent:rationale フラグを直接ビット操作する代わりに、分かりやすいプロパティとして提供することで、コードの可読性と保守性を高めます。

    @property
    def flag_z(self) -> bool:
        return (self.f & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        if value:
            self.f |= Z_FLAG
        else:
            self.f &= ~Z_FLAG

    @property
    def flag_n(self) -> bool:
        return (self.f & N_FLAG) != 0

    @flag_n.setter
    def flag_n(self, value: bool) -> None:
        if value:
            self.f |= N_FLAG
        else:
            self.f &= ~N_FLAG

    @property
    def flag_h(self) -> bool:
        return (self.f & H_FLAG) != 0

    @flag_h.setter
    def flag_h(self, value: bool) -> None:
        if value:
            self.f |= H_FLAG
        else:
            self.f &= ~H_FLAG

    @property
    def flag_c(self) -> bool:
        return (self.f & C_FLAG) != 0

    @flag_c.setter
    def flag_c(self, value: bool) -> None:
        if value:
            self.f |= C_FLAG
        else:
            self.f &= ~C_FLAG

    # 16-bit register pairs
    @property
    def af(self) -> int:
        return (self.a << 8) | self.f

    @af.setter
    def af(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & 0xFF # 下位ニブルは__setattr__で破棄される

    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF
