# tests/arch/lr35902/test_instructions_load.py
"""
LR35902 データ転送命令の単体テスト。
"""
import pytest
from gb_core_tracer.transport.bus import Bus, RAM
from gb_core_tracer.arch.lr35902.cpu import Lr35902Cpu

# @intent:test_suite 8/16ビット転送、スタック操作、I/Oページアクセスを検証します。

@pytest.fixture
def cpu_bus():
    bus = Bus()
    bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
    cpu = Lr35902Cpu(bus)
    cpu.get_state().pc = 0x0100
    cpu.get_state().sp = 0xFFFE
    return cpu, bus

def run_program(cpu, bus, program, steps=1):
    bus.load_bytes(0x0100, bytes(program))
    snapshot = None
    for _ in range(steps):
        snapshot = cpu.step()
    return snapshot

class TestLoad16:
    # @intent:test_case_ld_hl_d16 0x21 0x34 0x12 でHL=0x1234、PC+3、12サイクルになることを検証します。
    def test_ld_hl_d16(self, cpu_bus):
        cpu, bus = cpu_bus
        snapshot = run_program(cpu, bus, [0x21, 0x34, 0x12])
        state = cpu.get_state()
        assert state.hl == 0x1234
        assert state.pc == 0x0103
        assert snapshot.operation.cycle_count == 12
        assert snapshot.metadata.symbol_info == "LD HL,$1234"

    def test_ld_sp_d16(self, cpu_bus):
        cpu, bus = cpu_bus
        run_program(cpu, bus, [0x31, 0xF0, 0xCF])
        assert cpu.get_state().sp == 0xCFF0

    # @intent:test_case_ld_a16_sp LD (a16),SPが下位バイト、上位バイトの順に書き込むことを検証します。
    def test_ld_a16_sp(self, cpu_bus):
        cpu, bus = cpu_bus
        snapshot = run_program(cpu, bus, [0x08, 0x00, 0xC0])
        assert bus.peek(0xC000) == 0xFE
        assert bus.peek(0xC001) == 0xFF
        assert snapshot.operation.cycle_count == 20

    def test_ld_sp_hl(self, cpu_bus):
        cpu, bus = cpu_bus
        cpu.get_state().hl = 0xD000
        run_program(cpu, bus, [0xF9])
        assert cpu.get_state().sp == 0xD000

    # @intent:test_case_ld_hl_sp_e8 LD HL,SP+e8が負のオフセットを扱えることを検証します。
    def test_ld_hl_sp_offset(self, cpu_bus):
        cpu, bus = cpu_bus
        snapshot = run_program(cpu, bus, [0xF8, 0xFE]) # SP-2
        assert cpu.get_state().hl == 0xFFFC
        assert cpu.get_state().sp == 0xFFFE
        assert snapshot.metadata.symbol_info == "LD HL,SP-2"

class TestLoad8:
    def test_ld_r_d8_and_r_r(self, cpu_bus):
        cpu, bus = cpu_bus
        snapshot = run_program(cpu, bus, [0x06, 0x42, 0x48], steps=2) # LD B,$42 ; LD C,B
        assert cpu.get_state().c == 0x42
        assert snapshot.operation.cycle_count == 4

    # @intent:test_case_hl_indirect (HL)を対象とする転送がメモリを読み書きすることを検証します。
    def test_ld_hl_indirect(self, cpu_bus):
        cpu, bus = cpu_bus
        cpu.get_state().hl = 0xC000
        snapshot = run_program(cpu, bus, [0x36, 0x99, 0x7E], steps=1) # LD (HL),$99
        assert bus.peek(0xC000) == 0x99
        assert snapshot.operation.cycle_count == 12
        snapshot = cpu.step() # LD A,(HL)
        assert cpu.get_state().a == 0x99
        assert snapshot.operation.cycle_count == 8

    # @intent:test_case_hl_increment (HL+)/(HL-)がアクセス後にHLを増減することを検証します。
    def test_ld_hl_increment_decrement(self, cpu_bus):
        cpu, bus = cpu_bus
        state = cpu.get_state()
        state.hl = 0xC000
        state.a = 0x11
        run_program(cpu, bus, [0x22, 0x32, 0x2A], steps=2) # LD (HL+),A ; LD (HL-),A
        assert bus.peek(0xC000) == 0x11
        assert bus.peek(0xC001) == 0x11
        assert state.hl == 0xC000
        cpu.step() # LD A,(HL+)
        assert state.hl == 0xC001

    def test_ld_bc_de_indirect(self, cpu_bus):
        cpu, bus = cpu_bus
        state = cpu.get_state()
        state.bc = 0xC010
        state.de = 0xC020
        state.a = 0x5A
        bus.load(0xC020, 0x77)
        run_program(cpu, bus, [0x02, 0x1A], steps=2) # LD (BC),A ; LD A,(DE)
        assert bus.peek(0xC010) == 0x5A
        assert state.a == 0x77

    # @intent:test_case_ldh I/Oページ（0xFF00+n, 0xFF00+C）へのアクセスを検証します。
    def test_io_page_access(self, cpu_bus):
        cpu, bus = cpu_bus
        state = cpu.get_state()
        state.a = 0x80
        state.c = 0x45
        snapshot = run_program(cpu, bus, [0xE0, 0x40, 0xE2, 0xF0, 0x44], steps=1)
        assert bus.peek(0xFF40) == 0x80
        assert snapshot.metadata.symbol_info == "LDH ($FF40),A"
        cpu.step()
        assert bus.peek(0xFF45) == 0x80
        bus.load(0xFF44, 0x90)
        cpu.step()
        assert state.a == 0x90

    def test_ld_a16_a(self, cpu_bus):
        cpu, bus = cpu_bus
        cpu.get_state().a = 0x3C
        run_program(cpu, bus, [0xEA, 0x00, 0xD0, 0xFA, 0x00, 0xD0], steps=1)
        assert bus.peek(0xD000) == 0x3C
        cpu.get_state().a = 0
        cpu.step()
        assert cpu.get_state().a == 0x3C

class TestStack:
    # @intent:test_case_push_pop PUSH BC → POP DE でDE=BC、SPが元に戻ることを検証します。
    def test_push_bc_pop_de(self, cpu_bus):
        cpu, bus = cpu_bus
        state = cpu.get_state()
        state.bc = 0x1234
        push = run_program(cpu, bus, [0xC5, 0xD1])
        assert state.sp == 0xFFFC
        assert bus.peek(0xFFFD) == 0x12 # 上位バイトが高いアドレス
        assert bus.peek(0xFFFC) == 0x34
        assert push.operation.cycle_count == 16
        pop = cpu.step()
        assert state.de == 0x1234
        assert state.sp == 0xFFFE
        assert pop.operation.cycle_count == 12

    # @intent:test_case_pop_af POP AFでFの下位ニブルが破棄されることを検証します。
    def test_pop_af_clears_low_nibble(self, cpu_bus):
        cpu, bus = cpu_bus
        state = cpu.get_state()
        state.sp = 0xC000
        bus.load(0xC000, 0xFF) # F
        bus.load(0xC001, 0x12) # A
        run_program(cpu, bus, [0xF1])
        assert state.a == 0x12
        assert state.f == 0xF0
