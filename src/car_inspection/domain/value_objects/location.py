"""Inspection location value object."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class InspectionLocation:
    """Where the inspection took place."""
    address: str = ""
    city: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", (self.address or "").strip())
        object.__setattr__(self, "city", (self.city or "").strip())

    @property
    def is_empty(self) -> bool:
        return not self.address and not self.city

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "city": self.city}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InspectionLocation":
        return cls(address=data.get("address") or "", city=data.get("city") or "")
