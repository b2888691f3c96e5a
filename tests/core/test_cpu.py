# tests/core/test_cpu.py
"""
gb_core_tracer.core.cpuモジュールの単体テスト。
"""
import pytest
from typing import Dict

from gb_core_tracer.core.state import CpuState
from gb_core_tracer.core.cpu import AbstractCpu
from gb_core_tracer.core.snapshot import Snapshot, Operation
from gb_core_tracer.transport.bus import Bus, RAM, BusAccessType
from gb_core_tracer.common.types import DisassemblyListing

# @intent:test_suite 抽象CPUの命令サイクル（Template Method）と状態管理を検証します。

class FakeCpu(AbstractCpu):
    """
    0x00をNOP(4サイクル)、0x01を「0x0020に0xFFを書く」命令(8サイクル)、
    0x02を「実際には12サイクル消費する」命令として扱う最小のCPU。
    """
    def __init__(self, bus: Bus, initial_pc: int = 0x0000, initial_sp: int = 0x0000):
        self._initial_pc = initial_pc
        self._initial_sp = initial_sp
        super().__init__(bus)

    def _create_initial_state(self) -> CpuState:
        return CpuState(pc=self._initial_pc, sp=self._initial_sp)

    def _fetch(self) -> int:
        return self._bus.read_byte(self._state.pc)

    def _decode(self, opcode: int) -> Operation:
        if opcode == 0x00:
            return Operation(opcode_hex="00", mnemonic="NOP", cycle_count=4)
        if opcode == 0x01:
            return Operation(opcode_hex="01", mnemonic="POKE", operands=["$0020"], cycle_count=8)
        return Operation(opcode_hex=f"{opcode:02X}", mnemonic="SLOW", cycle_count=8)

    def _execute(self, operation: Operation) -> int:
        if operation.opcode_hex == "01":
            self._bus.write_byte(0x0020, 0xFF)
        if operation.mnemonic == "SLOW":
            return 12
        return operation.cycle_count

    def get_register_map(self) -> Dict[str, int]:
        return {"PC": self._state.pc, "SP": self._state.sp}

    def get_flag_state(self) -> Dict[str, bool]:
        return {}

    def disassemble(self, start_addr: int, length: int) -> DisassemblyListing:
        return [(start_addr + i, "00", "NOP") for i in range(length)]

class TestCpuState:
    def test_defaults(self):
        state = CpuState()
        assert state.pc == 0x0000
        assert state.sp == 0x0000

class TestAbstractCpu:
    @pytest.fixture
    def setup_cpu(self):
        bus = Bus()
        bus.register_device(0x0000, 0x00FF, RAM(256))
        cpu = FakeCpu(bus, initial_pc=0x0010, initial_sp=0x00F0)
        return cpu, bus

    # @intent:test_case_reset resetでレジスタと累計サイクル数が初期値に戻ることを検証します。
    def test_reset(self, setup_cpu):
        cpu, _ = setup_cpu
        cpu.step()
        cpu.get_state().sp = 0xBBBB
        cpu.reset()
        assert cpu.get_state().pc == 0x0010
        assert cpu.get_state().sp == 0x00F0
        assert cpu.get_cycle_count() == 0

    # @intent:test_case_step 1stepでPCが命令長分進み、バスアクセスとサイクルがSnapshotに記録されることを検証します。
    def test_step(self, setup_cpu):
        cpu, bus = setup_cpu
        bus.load(0x0010, 0x01)

        snapshot = cpu.step()

        assert isinstance(snapshot, Snapshot)
        assert cpu.get_state().pc == 0x0011
        assert snapshot.operation.mnemonic == "POKE"
        assert snapshot.metadata.symbol_info == "POKE $0020"
        assert snapshot.metadata.step_cycles == 8
        assert snapshot.metadata.cycle_count == 8
        assert [(a.address, a.data, a.access_type) for a in snapshot.bus_activity] == [
            (0x0010, 0x01, BusAccessType.READ),
            (0x0020, 0xFF, BusAccessType.WRITE),
        ]

    # @intent:test_case_snapshot_copy Snapshotの状態が後続のstepで書き換わらないことを検証します。
    def test_snapshot_state_is_a_copy(self, setup_cpu):
        cpu, _ = setup_cpu
        first = cpu.step()
        cpu.step()
        assert first.state.pc == 0x0011
        assert cpu.get_state().pc == 0x0012

    # @intent:test_case_actual_cycles 実行関数が返したサイクル数でOperationが置き換えられることを検証します。
    def test_actual_cycles_replace_operation(self, setup_cpu):
        cpu, bus = setup_cpu
        bus.load(0x0010, 0x02)
        snapshot = cpu.step()
        assert snapshot.operation.cycle_count == 12
        assert cpu.get_cycle_count() == 12

    # @intent:test_case_symbol シンボルマップに登録されたアドレスではラベルが付与されることを検証します。
    def test_symbol_info(self, setup_cpu):
        cpu, _ = setup_cpu
        cpu.set_symbol_map({"start": 0x0010})
        assert cpu.get_symbol_map() == {"start": 0x0010}
        assert cpu.step().metadata.symbol_info == "start: NOP"

    # @intent:test_case_run runが指定ステップ数で停止し、実行数を返すことを検証します。
    def test_run_with_budget(self, setup_cpu):
        cpu, _ = setup_cpu
        assert cpu.run(max_steps=5) == 5
        assert cpu.get_state().pc == 0x0015
        assert cpu.get_cycle_count() == 20

    # @intent:test_case_stop stop()でrunのループが終了することを検証します。
    def test_run_until_stop(self, setup_cpu):
        cpu, _ = setup_cpu
        original_step = cpu.step
        calls = []

        def step_then_stop():
            calls.append(1)
            if len(calls) == 3:
                cpu.stop()
            return original_step()

        cpu.step = step_then_stop
        assert cpu.run() == 3

    # @intent:test_case_restore restore_stateが状態のコピーを適用することを検証します。
    def test_restore_state(self, setup_cpu):
        cpu, _ = setup_cpu
        saved = CpuState(pc=0x0042, sp=0x0080)
        cpu.restore_state(saved)
        cpu.get_state().pc = 0x0000
        assert saved.pc == 0x0042
