"""
Graph Generation Settings
=========================
The declarative configuration surface of the graph engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import StrEnum
from typing import Any, Dict, List, Optional

from netstrat.errors import InvalidSettingsError


class EdgeWeight(StrEnum):
    FIXED = "fixed"
    # Uniform random weight in [0, 1)
    RANDOM = "random"


class Direction(StrEnum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


@dataclass
class Settings:
    ini_cnt: int = 5
    fin_cnt: int = 5
    total_cnt: int = 20
    max_out_degree: int = 3
    no_twin_edges: bool = True
    edge_weight_type: EdgeWeight = EdgeWeight.FIXED
    edge_weight: float = 1.0
    diamond_filter: bool = True
    # Seed for the random generator, None draws fresh entropy
    seed: Optional[int] = None

    def validate(self) -> None:
        """Raises InvalidSettingsError if the settings cannot produce a graph."""
        if self.total_cnt < 1:
            raise InvalidSettingsError(f"total_cnt must be at least 1, got {self.total_cnt}.")
        if self.ini_cnt < 0 or self.fin_cnt < 0:
            raise InvalidSettingsError("ini_cnt and fin_cnt must not be negative.")
        if self.max_out_degree < 1:
            raise InvalidSettingsError(f"max_out_degree must be at least 1, got {self.max_out_degree}.")
        if self.edge_weight_type == EdgeWeight.FIXED and self.edge_weight < 0:
            raise InvalidSettingsError(f"edge_weight must not be negative, got {self.edge_weight}.")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["edge_weight_type"] = self.edge_weight_type.value
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Settings:
        data = dict(data)
        data["edge_weight_type"] = EdgeWeight(data.get("edge_weight_type", EdgeWeight.FIXED))
        return Settings(**data)


@dataclass
class ConeSettings:
    roots_names: List[str] = field(default_factory=list)
    direction: Direction = Direction.OUTGOING
    # -1 walks until the frontier is empty
    max_steps: int = -1
