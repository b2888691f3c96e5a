"""
LR35902 ALU (算術論理演算ユニット) およびフラグ操作ユーティリティ。

演算結果に基づいた正確なフラグ（Z, N, H, C）の計算と更新を担当します。
ハーフキャリーはビット3からビット4への桁上がり/桁借り、キャリーはビット7からの桁上がり/桁借りです。
"""
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState

# @intent:constant CBプレフィックスのローテート/シフト命令群（オペコードのビット5-3に対応）。
SHIFT_OPS = ("RLC", "RRC", "RL", "RR", "SLA", "SRA", "SWAP", "SRL")

# @intent:responsibility 8ビット加算の結果に基づいて全フラグを更新します。
def update_flags_add8(state: Lr35902CpuState, val1: int, val2: int, result: int, carry_in: int = 0) -> None:
    """ADD/ADC命令のフラグを更新します。resultは切り詰め前の和です。"""
    state.flag_z = (result & 0xFF) == 0
    state.flag_n = False
    state.flag_h = ((val1 & 0x0F) + (val2 & 0x0F) + carry_in) > 0x0F
    state.flag_c = result > 0xFF

# @intent:responsibility 8ビット減算の結果に基づいて全フラグを更新します。
def update_flags_sub8(state: Lr35902CpuState, val1: int, val2: int, result: int, borrow_in: int = 0) -> None:
    """SUB/SBC/CP命令のフラグを更新します。resultは切り詰め前の差（負になり得る）です。"""
    state.flag_z = (result & 0xFF) == 0
    state.flag_n = True
    state.flag_h = ((val1 & 0x0F) - (val2 & 0x0F) - borrow_in) < 0
    state.flag_c = result < 0

# @intent:responsibility 8ビット論理演算の結果に基づいてフラグを更新します。
def update_flags_logic8(state: Lr35902CpuState, result: int, h_flag: bool = False) -> None:
    """AND/OR/XOR命令のフラグを更新します。"""
    state.flag_z = (result & 0xFF) == 0
    state.flag_n = False
    state.flag_h = h_flag # ANDならTrue, OR/XORならFalse
    state.flag_c = False

# @intent:responsibility インクリメント/デクリメント命令のフラグを更新します（Cフラグは変化しません）。
def update_flags_inc_dec8(state: Lr35902CpuState, val: int, result: int, is_inc: bool) -> None:
    """INC/DEC命令のフラグを更新します。Hは演算前の値の下位ニブルから判定します。"""
    state.flag_z = (result & 0xFF) == 0
    if is_inc:
        state.flag_h = (val & 0x0F) == 0x0F
        state.flag_n = False
    else:
        state.flag_h = (val & 0x0F) == 0x00
        state.flag_n = True

# @intent:responsibility ADD HL,rr の結果に基づいてフラグ（N, H, C）を更新します。
# @intent:rationale Zフラグは影響を受けないことに注意してください。
def update_flags_add16(state: Lr35902CpuState, val1: int, val2: int, result: int) -> None:
    """ADD HL,rr命令のフラグを更新します。"""
    state.flag_n = False
    # Half Carry: Bit 11から12へのキャリー
    state.flag_h = ((val1 & 0x0FFF) + (val2 & 0x0FFF)) > 0x0FFF
    state.flag_c = result > 0xFFFF

# @intent:responsibility SPに符号付き8ビット値を加算し、フラグを更新した結果を返します。
# @intent:rationale ADD SP,e8 と LD HL,SP+e8 は、H/Cを符号なし下位バイト同士の加算から求めます。
def add_sp_offset(state: Lr35902CpuState, offset_byte: int) -> int:
    """SP + 符号拡張したoffset_byte を16ビットで返します。Z, Nは常にリセットされます。"""
    sp = state.sp
    signed = offset_byte - 0x100 if offset_byte & 0x80 else offset_byte
    state.flag_z = False
    state.flag_n = False
    state.flag_h = ((sp & 0x0F) + (offset_byte & 0x0F)) > 0x0F
    state.flag_c = ((sp & 0xFF) + offset_byte) > 0xFF
    return (sp + signed) & 0xFFFF

# @intent:responsibility 直前の加減算に基づいてAレジスタを二進化十進数に補正します。
def decimal_adjust(state: Lr35902CpuState) -> int:
    """DAA命令の結果を返し、Z, H, Cフラグを更新します。Nは保持されます。"""
    a = state.a
    if not state.flag_n:
        if state.flag_c or a > 0x99:
            a += 0x60
            state.flag_c = True
        if state.flag_h or (a & 0x0F) > 0x09:
            a += 0x06
    else:
        if state.flag_c:
            a -= 0x60
        if state.flag_h:
            a -= 0x06
    a &= 0xFF
    state.flag_z = a == 0
    state.flag_h = False
    return a

# @intent:responsibility CBプレフィックスのローテート/シフト/SWAPを実行し、結果を返します。
# @intent:pre-condition op_indexは0-7（SHIFT_OPSのインデックス）である必要があります。
def rotate_shift8(state: Lr35902CpuState, val: int, op_index: int) -> int:
    """
    8ビット値を1ビット回転/シフトします。押し出されたビットが新しいCフラグになります。
    RL/RRは回転前のCフラグを押し込み、RLC/RRCは押し出したビットを反対側に戻します。
    """
    carry_in = 1 if state.flag_c else 0
    if op_index == 0:   # RLC
        carry = (val >> 7) & 1
        result = ((val << 1) | carry) & 0xFF
    elif op_index == 1: # RRC
        carry = val & 1
        result = (val >> 1) | (carry << 7)
    elif op_index == 2: # RL
        carry = (val >> 7) & 1
        result = ((val << 1) | carry_in) & 0xFF
    elif op_index == 3: # RR
        carry = val & 1
        result = (val >> 1) | (carry_in << 7)
    elif op_index == 4: # SLA
        carry = (val >> 7) & 1
        result = (val << 1) & 0xFF
    elif op_index == 5: # SRA (bit7は保持)
        carry = val & 1
        result = (val >> 1) | (val & 0x80)
    elif op_index == 6: # SWAP
        carry = 0
        result = ((val << 4) | (val >> 4)) & 0xFF
    else:               # SRL
        carry = val & 1
        result = val >> 1

    state.flag_z = result == 0
    state.flag_n = False
    state.flag_h = False
    state.flag_c = carry == 1
    return result

# @intent:responsibility BIT n,r のフラグを更新します。対象の値は変更しません。
def update_flags_bit(state: Lr35902CpuState, val: int, bit_index: int) -> None:
    state.flag_z = (val & (1 << bit_index)) == 0
    state.flag_n = False
    state.flag_h = True
