# tests/arch/lr35902/test_state.py
"""
gb_core_tracer.arch.lr35902.stateモジュールの単体テスト。
"""
import pytest
from gb_core_tracer.arch.lr35902.state import Lr35902CpuState, Z_FLAG, N_FLAG, H_FLAG, C_FLAG

# @intent:test_suite レジスタファイルの不変条件（8ビット切り詰め、Fの下位ニブル0）とペアアクセスを検証します。

class TestLr35902CpuState:
    @pytest.fixture
    def state(self):
        return Lr35902CpuState()

    # @intent:test_case_init 全レジスタが0、IMEがFalseで初期化されることを検証します。
    def test_initial_values(self, state):
        assert (state.a, state.f, state.b, state.c, state.d, state.e, state.h, state.l) == (0,) * 8
        assert state.pc == 0 and state.sp == 0
        assert state.ime is False
        assert state.halted is False

    # @intent:test_case_mask 8ビットレジスタ、PC、SPへの代入が切り詰められることを検証します。
    def test_writes_are_masked(self, state):
        state.b = 0x1FF
        state.pc = 0x10000
        state.sp = -1
        assert state.b == 0xFF
        assert state.pc == 0x0000
        assert state.sp == 0xFFFF

    # @intent:test_case_f_low_nibble Fの下位ニブルが常に0であることを検証します。
    def test_f_low_nibble_always_zero(self, state):
        state.f = 0xFF
        assert state.f == 0xF0
        state.af = 0x12FF
        assert state.af == 0x12F0
        state.set8("F", 0x0F)
        assert state.f == 0x00

    # @intent:test_case_pairs ペアの書き込みが先頭レジスタを上位バイトとして分解されることを検証します。
    def test_register_pairs(self, state):
        state.bc = 0x1234
        state.set16("DE", 0xABCD)
        state.hl = 0xBEEF
        assert (state.b, state.c) == (0x12, 0x34)
        assert (state.d, state.e) == (0xAB, 0xCD)
        assert state.get16("hl") == 0xBEEF
        state.set16("SP", 0xFFFE)
        assert state.sp == 0xFFFE

    # @intent:test_case_unknown 未知のレジスタ名はValueErrorになることを検証します。
    def test_unknown_register_names(self, state):
        with pytest.raises(ValueError):
            state.get8("IX")
        with pytest.raises(ValueError):
            state.set16("AB", 0)

    # @intent:test_case_flags test_flagsは全ビットが立っている場合のみTrueになることを検証します。
    def test_flag_helpers(self, state):
        state.set_flags(Z_FLAG | C_FLAG)
        assert state.test_flags(Z_FLAG)
        assert state.test_flags(Z_FLAG | C_FLAG)
        assert not state.test_flags(Z_FLAG | N_FLAG)

        state.reset_flags(Z_FLAG)
        assert not state.flag_z
        assert state.flag_c

        state.flag_h = True
        assert state.f == H_FLAG | C_FLAG
