from dataclasses import dataclass, field
from typing import List

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str  # "RAM", "ROM"
    label: str = ""
    permissions: str = "RW"  # "RW", "RO"

@dataclass
class CpuInitialState:
    pc: int = 0x0000
    sp: int = 0x0000
    ime: bool = False
    registers: dict = field(default_factory=dict)

@dataclass
class SystemConfig:
    architecture: str = "LR35902"
    memory_map: List[MemoryRegion] = field(default_factory=list)
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
