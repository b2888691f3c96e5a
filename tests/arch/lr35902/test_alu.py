# tests/arch/lr35902/test_alu.py
"""
gb_core_tracer.arch.lr35902.alu（フラグ計算）の単体テスト。
"""
import pytest
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState
from gb_core_tracer.arch.lr35902 import alu

# @intent:test_suite 演算ごとのZ/N/H/Cフラグの計算規則を検証します。

@pytest.fixture
def state():
    return Lr35902CpuState()

class TestAddSub:
    # @intent:test_case_add_half_carry 0x0F + 0x01 でHが立ち、Cは立たないことを検証します。
    def test_add8_half_carry(self, state):
        alu.update_flags_add8(state, 0x0F, 0x01, 0x10)
        assert (state.flag_z, state.flag_n, state.flag_h, state.flag_c) == (False, False, True, False)

    # @intent:test_case_add_carry 0xFF + 0x01 でZ/H/Cが立つことを検証します。
    def test_add8_overflow(self, state):
        alu.update_flags_add8(state, 0xFF, 0x01, 0x100)
        assert (state.flag_z, state.flag_n, state.flag_h, state.flag_c) == (True, False, True, True)

    # @intent:test_case_adc ADCのキャリー入力がハーフキャリー判定に含まれることを検証します。
    def test_add8_carry_in(self, state):
        alu.update_flags_add8(state, 0x0E, 0x01, 0x10, carry_in=1)
        assert state.flag_h

    # @intent:test_case_sub_borrow 0x10 - 0x01 でHが立ち、0x00 - 0x01 でCが立つことを検証します。
    def test_sub8_borrows(self, state):
        alu.update_flags_sub8(state, 0x10, 0x01, 0x0F)
        assert (state.flag_n, state.flag_h, state.flag_c) == (True, True, False)
        alu.update_flags_sub8(state, 0x00, 0x01, -1)
        assert state.flag_c

    def test_add16_keeps_zero(self, state):
        state.flag_z = True
        alu.update_flags_add16(state, 0x0FFF, 0x0001, 0x1000)
        assert state.flag_z
        assert state.flag_h and not state.flag_c and not state.flag_n

    # @intent:test_case_sp_offset SP+e8は下位バイト同士の符号なし加算でH/Cを決めることを検証します。
    def test_add_sp_offset(self, state):
        state.sp = 0x00FF
        assert alu.add_sp_offset(state, 0x01) == 0x0100
        assert state.flag_h and state.flag_c
        state.sp = 0x1000
        assert alu.add_sp_offset(state, 0xFF) == 0x0FFF # -1
        assert not state.flag_z and not state.flag_n
        assert not state.flag_h and not state.flag_c

class TestIncDec:
    def test_inc_flags(self, state):
        state.flag_c = True
        alu.update_flags_inc_dec8(state, 0x0F, 0x10, is_inc=True)
        assert state.flag_h and not state.flag_n and state.flag_c

    def test_dec_flags(self, state):
        alu.update_flags_inc_dec8(state, 0x01, 0x00, is_inc=False)
        assert state.flag_z and state.flag_n and not state.flag_h

class TestDecimalAdjust:
    # @intent:test_case_daa_add 0x15 + 0x27 = 0x3C をBCDの0x42に補正することを検証します。
    def test_after_addition(self, state):
        state.a = 0x3C
        assert alu.decimal_adjust(state) == 0x42
        assert not state.flag_c

    # @intent:test_case_daa_carry 0x99 + 0x01 = 0x9A が0x00（キャリーあり）に補正されることを検証します。
    def test_after_addition_with_carry(self, state):
        state.a = 0x9A
        assert alu.decimal_adjust(state) == 0x00
        assert state.flag_z and state.flag_c

    # @intent:test_case_daa_sub 0x42 - 0x15 = 0x2D (H) が0x27に補正されることを検証します。
    def test_after_subtraction(self, state):
        state.a = 0x2D
        state.flag_n = True
        state.flag_h = True
        assert alu.decimal_adjust(state) == 0x27
        assert state.flag_n and not state.flag_h

class TestRotateShift:
    @pytest.mark.parametrize("op_index, carry_in, value, expected, carry_out", [
        (0, False, 0x85, 0x0B, True),   # RLC
        (1, False, 0x01, 0x80, True),   # RRC
        (2, True, 0x80, 0x01, True),    # RL
        (3, False, 0x01, 0x00, True),   # RR
        (4, False, 0x80, 0x00, True),   # SLA
        (5, False, 0x81, 0xC0, True),   # SRA
        (6, True, 0xF1, 0x1F, False),   # SWAP
        (7, False, 0x01, 0x00, True),   # SRL
    ])
    def test_rotate_shift8(self, state, op_index, carry_in, value, expected, carry_out):
        state.flag_c = carry_in
        assert alu.rotate_shift8(state, value, op_index) == expected
        assert state.flag_c == carry_out
        assert state.flag_z == (expected == 0)
        assert not state.flag_n and not state.flag_h

    def test_bit(self, state):
        alu.update_flags_bit(state, 0x80, 7)
        assert not state.flag_z and state.flag_h
        alu.update_flags_bit(state, 0x7F, 7)
        assert state.flag_z
