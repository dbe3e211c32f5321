"""Value objects mapped as SQLAlchemy composites.

``Capacity`` is the tagged tons-or-litres quantity shared by vehicles
(what they can carry) and loads (what they need).  Storing one unit and
one value makes "weight XOR volume" a property of the row shape rather
than a convention between two nullable columns.
"""

import enum
from dataclasses import dataclass


class CapacityUnit(str, enum.Enum):
    TONS = "TONS"
    LITRES = "LITRES"


@dataclass(frozen=True)
class Capacity:
    unit: CapacityUnit
    value: float

    @classmethod
    def tons(cls, value: float) -> "Capacity":
        return cls(CapacityUnit.TONS, float(value))

    @classmethod
    def litres(cls, value: float) -> "Capacity":
        return cls(CapacityUnit.LITRES, float(value))

    def covers(self, required: "Capacity") -> bool:
        """True if this capacity can carry ``required`` (same unit, >=)."""
        return self.unit == required.unit and self.value >= required.value


@dataclass(frozen=True)
class Location:
    street: str
    city: str
    state: str
    pincode: str
