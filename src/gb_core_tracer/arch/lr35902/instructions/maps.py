"""
LR35902 命令マッピング定義。
各命令モジュールから関数をインポートし、オペコードと関数の対応表を構築します。

未定義オペコード（0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD）は
表に含めません。表は構築後に変更されないよう読み取り専用のビューとして公開します。
"""
from types import MappingProxyType

from .alu import (
    decode_alu_r, decode_alu_d8, decode_inc_dec8, decode_inc_dec16, decode_add_hl_rr,
    decode_e8, decode_rotate_a, decode_misc_a,
    execute_alu_r, execute_alu_d8, execute_inc_dec8, execute_inc_dec16, execute_add_hl_rr,
    execute_e8, execute_rotate_a, execute_misc_a
)
from .load import (
    decode_ld_rr_d16, decode_ld_r_d8, decode_ld_r_r, decode_ld_indirect_a, decode_push_pop,
    decode_ldh, decode_ld_c_io, decode_ld_a16, decode_08, decode_f8, decode_f9,
    execute_ld_rr_d16, execute_ld_r_d8, execute_ld_r_r, execute_ld_indirect_a, execute_push_pop,
    execute_ldh, execute_ld_c_io, execute_ld_a16, execute_08, execute_f8, execute_f9
)
from .control import (
    decode_00, decode_10, decode_76, decode_jr, decode_jp, decode_e9, decode_call, decode_ret,
    decode_rst, decode_f3, decode_fb,
    execute_00, execute_10, execute_76, execute_jr, execute_jp, execute_e9, execute_call, execute_ret,
    execute_rst, execute_f3, execute_fb
)
from .prefixed import (
    CB_PREFIX, decode_cb,
    execute_cb_shift, execute_cb_bit, execute_cb_res, execute_cb_set
)

UNDEFINED_OPCODES = frozenset({0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD})

DECODE_MAP = MappingProxyType({
    0x00: decode_00,
    0x08: decode_08,
    0x10: decode_10,
    0x18: decode_jr,
    0x76: decode_76,
    0xC3: decode_jp,
    0xC9: decode_ret,
    0xCD: decode_call,
    0xD9: decode_ret,
    CB_PREFIX: decode_cb,
    0xE0: decode_ldh,
    0xF0: decode_ldh,
    0xE2: decode_ld_c_io,
    0xF2: decode_ld_c_io,
    0xE8: decode_e8,
    0xE9: decode_e9,
    0xEA: decode_ld_a16,
    0xFA: decode_ld_a16,
    0xF3: decode_f3,
    0xF8: decode_f8,
    0xF9: decode_f9,
    0xFB: decode_fb,
    **{op: decode_ld_rr_d16 for op in range(0x01, 0x40, 0x10)}, # LD BC/DE/HL/SP,d16
    **{op: decode_ld_indirect_a for op in range(0x02, 0x40, 0x10)}, # LD (rr),A
    **{op: decode_ld_indirect_a for op in range(0x0A, 0x40, 0x10)}, # LD A,(rr)
    **{op: decode_inc_dec16 for op in range(0x03, 0x40, 0x10)}, # INC rr
    **{op: decode_inc_dec16 for op in range(0x0B, 0x40, 0x10)}, # DEC rr
    **{op: decode_add_hl_rr for op in range(0x09, 0x40, 0x10)}, # ADD HL,rr
    **{op: decode_inc_dec8 for op in range(0x04, 0x40, 0x08)}, # INC r
    **{op: decode_inc_dec8 for op in range(0x05, 0x40, 0x08)}, # DEC r
    **{op: decode_ld_r_d8 for op in range(0x06, 0x40, 0x08)}, # LD r,d8
    **{op: decode_rotate_a for op in (0x07, 0x0F, 0x17, 0x1F)},
    **{op: decode_misc_a for op in (0x27, 0x2F, 0x37, 0x3F)},
    **{op: decode_jr for op in range(0x20, 0x40, 0x08)}, # JR cc,e8
    **{op: decode_ld_r_r for op in range(0x40, 0x80) if op != 0x76},
    **{op: decode_alu_r for op in range(0x80, 0xC0)},
    **{op: decode_ret for op in range(0xC0, 0xE0, 0x08)}, # RET cc
    **{op: decode_jp for op in range(0xC2, 0xE0, 0x08)}, # JP cc,a16
    **{op: decode_call for op in range(0xC4, 0xE0, 0x08)}, # CALL cc,a16
    **{op: decode_push_pop for op in range(0xC1, 0x100, 0x10)}, # POP rr
    **{op: decode_push_pop for op in range(0xC5, 0x100, 0x10)}, # PUSH rr
    **{op: decode_alu_d8 for op in range(0xC6, 0x100, 0x08)},
    **{op: decode_rst for op in range(0xC7, 0x100, 0x08)},
})

# CBプレフィックス命令はCB_EXECUTE_MAPで実行するため、ここには0xCBを含めない
EXECUTE_MAP = MappingProxyType({
    0x00: execute_00,
    0x08: execute_08,
    0x10: execute_10,
    0x18: execute_jr,
    0x76: execute_76,
    0xC3: execute_jp,
    0xC9: execute_ret,
    0xCD: execute_call,
    0xD9: execute_ret,
    0xE0: execute_ldh,
    0xF0: execute_ldh,
    0xE2: execute_ld_c_io,
    0xF2: execute_ld_c_io,
    0xE8: execute_e8,
    0xE9: execute_e9,
    0xEA: execute_ld_a16,
    0xFA: execute_ld_a16,
    0xF3: execute_f3,
    0xF8: execute_f8,
    0xF9: execute_f9,
    0xFB: execute_fb,
    **{op: execute_ld_rr_d16 for op in range(0x01, 0x40, 0x10)},
    **{op: execute_ld_indirect_a for op in range(0x02, 0x40, 0x10)},
    **{op: execute_ld_indirect_a for op in range(0x0A, 0x40, 0x10)},
    **{op: execute_inc_dec16 for op in range(0x03, 0x40, 0x10)},
    **{op: execute_inc_dec16 for op in range(0x0B, 0x40, 0x10)},
    **{op: execute_add_hl_rr for op in range(0x09, 0x40, 0x10)},
    **{op: execute_inc_dec8 for op in range(0x04, 0x40, 0x08)},
    **{op: execute_inc_dec8 for op in range(0x05, 0x40, 0x08)},
    **{op: execute_ld_r_d8 for op in range(0x06, 0x40, 0x08)},
    **{op: execute_rotate_a for op in (0x07, 0x0F, 0x17, 0x1F)},
    **{op: execute_misc_a for op in (0x27, 0x2F, 0x37, 0x3F)},
    **{op: execute_jr for op in range(0x20, 0x40, 0x08)},
    **{op: execute_ld_r_r for op in range(0x40, 0x80) if op != 0x76},
    **{op: execute_alu_r for op in range(0x80, 0xC0)},
    **{op: execute_ret for op in range(0xC0, 0xE0, 0x08)},
    **{op: execute_jp for op in range(0xC2, 0xE0, 0x08)},
    **{op: execute_call for op in range(0xC4, 0xE0, 0x08)},
    **{op: execute_push_pop for op in range(0xC1, 0x100, 0x10)},
    **{op: execute_push_pop for op in range(0xC5, 0x100, 0x10)},
    **{op: execute_alu_d8 for op in range(0xC6, 0x100, 0x08)},
    **{op: execute_rst for op in range(0xC7, 0x100, 0x08)},
})

CB_EXECUTE_MAP = MappingProxyType({
    **{op: execute_cb_shift for op in range(0x00, 0x40)},
    **{op: execute_cb_bit for op in range(0x40, 0x80)},
    **{op: execute_cb_res for op in range(0x80, 0xC0)},
    **{op: execute_cb_set for op in range(0xC0, 0x100)},
})
