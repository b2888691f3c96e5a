import logging
from typing import Tuple

from gb_core_tracer.transport.bus import Bus, RAM, ROM
from gb_core_tracer.arch.lr35902.cpu import Lr35902Cpu
from .models import SystemConfig, MemoryRegion, CpuInitialState

logger = logging.getLogger(__name__)

# @intent:constant メモリマップの指定がない場合に用いる、全アドレス空間を覆うRAM。
DEFAULT_MEMORY_MAP = (MemoryRegion(start=0x0000, end=0xFFFF, type="RAM", label="RAM"),)

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig) -> Tuple[Lr35902Cpu, Bus]:
        if config.architecture.upper() != "LR35902":
            raise ValueError(f"Unsupported architecture: {config.architecture}")

        bus = Bus()
        for region in config.memory_map or DEFAULT_MEMORY_MAP:
            size = region.end - region.start + 1
            if region.type == "RAM":
                device = RAM(size)
            elif region.type == "ROM":
                device = ROM(size)
            else:
                logger.warning(
                    "Unknown device type '%s' for range %04X-%04X, defaulting to RAM",
                    region.type, region.start, region.end
                )
                device = RAM(size)
            bus.register_device(region.start, region.end, device)

        cpu = Lr35902Cpu(bus)

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        return cpu, bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Lr35902Cpu, config_state: CpuInitialState) -> None:
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        未知のレジスタ名はValueErrorになります。
        """
        cpu.reset()
        state = cpu.get_state()
        state.pc = config_state.pc
        state.sp = config_state.sp
        state.ime = config_state.ime
        for reg_name, value in config_state.registers.items():
            if reg_name in ("af", "bc", "de", "hl"):
                state.set16(reg_name, value)
            else:
                state.set8(reg_name, value)
