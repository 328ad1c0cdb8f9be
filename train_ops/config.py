import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_SECTIONS = ["Section A", "Section B", "Section C", "Section D"]
DEFAULT_CAPACITY = 10
CONGESTION_THRESHOLD = 80


@dataclass(frozen=True)
class SectionConfig:
    name: str
    capacity: int = DEFAULT_CAPACITY


def default_reroute_map(section_names: List[str]) -> Dict[str, str]:
    """First section reroutes to the second, every other section back to the first"""
    if len(section_names) < 2:
        return {}
    first, second = section_names[0], section_names[1]
    mapping = {first: second}
    for name in section_names[1:]:
        mapping[name] = first
    return mapping


@dataclass
class EngineConfig:
    sections: List[SectionConfig] = field(
        default_factory=lambda: [SectionConfig(name) for name in DEFAULT_SECTIONS]
    )
    reroute_map: Optional[Dict[str, str]] = None
    congestion_threshold: int = CONGESTION_THRESHOLD

    def __post_init__(self):
        if not self.sections:
            raise ValueError("At least one section must be configured")

        names = [s.name for s in self.sections]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate section names in {names}")

        for section in self.sections:
            if section.capacity <= 0:
                raise ValueError(f"Section {section.name} must have a positive capacity")

        if self.reroute_map is None:
            self.reroute_map = default_reroute_map(names)

        for source, target in self.reroute_map.items():
            if source not in names or target not in names:
                raise ValueError(f"Reroute {source} -> {target} references an unknown section")
            if source == target:
                raise ValueError(f"Section {source} cannot reroute to itself")

    @property
    def section_names(self) -> List[str]:
        return [s.name for s in self.sections]

    def has_section(self, name: str) -> bool:
        return name in self.section_names

    def capacity_of(self, name: str) -> int:
        for section in self.sections:
            if section.name == name:
                return section.capacity
        raise KeyError(name)

    def alternate_section(self, name: str) -> Optional[str]:
        return self.reroute_map.get(name)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """
        Build configuration from environment variables:
        SECTIONS, SECTION_CAPACITY, SECTION_CAPACITIES ("name=10;name=8")
        and REROUTE_MAP ("Section A>Section B;Section B>Section A")
        """
        names = _split(os.getenv("SECTIONS", ""), ",") or list(DEFAULT_SECTIONS)
        default_capacity = int(os.getenv("SECTION_CAPACITY", str(DEFAULT_CAPACITY)))

        overrides = {}
        for item in _split(os.getenv("SECTION_CAPACITIES", ""), ";"):
            name, _, capacity = item.partition("=")
            overrides[name.strip()] = int(capacity)

        reroute_map = None
        raw_map = _split(os.getenv("REROUTE_MAP", ""), ";")
        if raw_map:
            reroute_map = {}
            for item in raw_map:
                source, _, target = item.partition(">")
                reroute_map[source.strip()] = target.strip()

        return cls(
            sections=[SectionConfig(name, overrides.get(name, default_capacity)) for name in names],
            reroute_map=reroute_map,
            congestion_threshold=int(os.getenv("CONGESTION_THRESHOLD", str(CONGESTION_THRESHOLD))),
        )


def _split(value: str, sep: str) -> List[str]:
    return [part.strip() for part in value.split(sep) if part.strip()]
