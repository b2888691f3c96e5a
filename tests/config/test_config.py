# tests/config/test_config.py
"""
gb_core_tracer.configパッケージ（YAML読み込みとシステム構築）の単体テスト。
"""
import logging

import pytest
from gb_core_tracer.config.loader import ConfigLoader
from gb_core_tracer.config.builder import SystemBuilder
from gb_core_tracer.config.models import SystemConfig, MemoryRegion, CpuInitialState
from gb_core_tracer.arch.lr35902.cpu import Lr35902Cpu

# @intent:test_suite 構成ファイルの解析と、構成に基づくBus/CPUの組み立てを検証します。

DMG_CONFIG = """
architecture: LR35902
memory_map:
  - start: 0x0000
    end: 0x7FFF
    type: ROM
    label: Cartridge
    permissions: RO
  - start: "0x8000"
    end: "0xFFFF"
    type: RAM
    label: Work RAM
initial_state:
  pc: "0x0100"
  sp: 0xFFFE
  ime: true
  registers:
    A: 0x01
    F: 0xB0
    BC: "0x0013"
"""

class TestConfigLoader:
    def test_load_from_string(self):
        config = ConfigLoader().load_from_string(DMG_CONFIG)
        assert config.architecture == "LR35902"
        assert config.memory_map[0] == MemoryRegion(0x0000, 0x7FFF, "ROM", "Cartridge", "RO")
        assert config.memory_map[1].start == 0x8000
        assert config.initial_state.pc == 0x0100
        assert config.initial_state.ime is True
        assert config.initial_state.registers == {"a": 0x01, "f": 0xB0, "bc": 0x0013}

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "dmg.yaml"
        path.write_text(DMG_CONFIG)
        config = ConfigLoader().load_from_file(str(path))
        assert config.initial_state.sp == 0xFFFE

    def test_defaults_for_empty_document(self):
        config = ConfigLoader().load_from_string("")
        assert config == SystemConfig()

    def test_invalid_integer(self):
        with pytest.raises(ValueError, match="Invalid integer format"):
            ConfigLoader().load_from_string("initial_state:\n  pc: zzz\n")

class TestSystemBuilder:
    def test_build_dmg_system(self):
        config = ConfigLoader().load_from_string(DMG_CONFIG)
        cpu, bus = SystemBuilder().build_system(config)
        state = cpu.get_state()
        assert isinstance(cpu, Lr35902Cpu)
        assert (state.pc, state.sp) == (0x0100, 0xFFFE)
        assert (state.a, state.f, state.bc) == (0x01, 0xB0, 0x0013)
        assert state.ime is True

        bus.write_byte(0x0000, 0x12) # ROM
        bus.write_byte(0xC000, 0x34) # RAM
        assert bus.peek(0x0000) == 0x00
        assert bus.peek(0xC000) == 0x34

    def test_default_memory_map(self):
        cpu, bus = SystemBuilder().build_system(SystemConfig())
        bus.write_byte(0x1234, 0x56)
        assert bus.peek(0x1234) == 0x56
        assert cpu.get_state().ime is False

    # @intent:test_case_unknown_device 未知のデバイス種別はRAMとして登録され、警告ログが出ることを検証します。
    def test_unknown_device_falls_back_to_ram(self, caplog):
        config = SystemConfig(memory_map=[MemoryRegion(0x0000, 0xFFFF, "MMIO")])
        with caplog.at_level(logging.WARNING, logger="gb_core_tracer.config.builder"):
            _, bus = SystemBuilder().build_system(config)
        assert "Unknown device type 'MMIO'" in caplog.text
        bus.write_byte(0xFF00, 0x30)
        assert bus.peek(0xFF00) == 0x30

    def test_unsupported_architecture(self):
        with pytest.raises(ValueError, match="Unsupported architecture"):
            SystemBuilder().build_system(SystemConfig(architecture="Z80"))

    def test_unknown_register_name(self):
        config = SystemConfig(initial_state=CpuInitialState(registers={"ix": 1}))
        with pytest.raises(ValueError):
            SystemBuilder().build_system(config)

    # @intent:test_case_apply_ime 既定構成で生成したCPUに対しても、初期状態のIMEが適用されることを検証します。
    def test_apply_initial_state_sets_ime(self):
        cpu = Lr35902Cpu(SystemBuilder().build_system(SystemConfig())[1])
        SystemBuilder().apply_initial_state(cpu, CpuInitialState(ime=True))
        assert cpu.get_state().ime is True
        SystemBuilder().apply_initial_state(cpu, CpuInitialState(ime=False))
        assert cpu.get_state().ime is False
