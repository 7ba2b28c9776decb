"""
Bookable unit references

An apartment and a room are both "units": physical space that can be reserved.
UnitRef is the tagged reference used everywhere a booking target or an
availability override has to name exactly one of them.
"""

import enum
from dataclasses import dataclass


class UnitKind(str, enum.Enum):
    APARTMENT = "APARTMENT"
    ROOM = "ROOM"


@dataclass(frozen=True)
class UnitRef:
    """Tagged reference to a single apartment or room"""
    kind: UnitKind
    id: str

    @classmethod
    def apartment(cls, apartment_id: str) -> "UnitRef":
        return cls(UnitKind.APARTMENT, apartment_id)

    @classmethod
    def room(cls, room_id: str) -> "UnitRef":
        return cls(UnitKind.ROOM, room_id)

    @property
    def is_apartment(self) -> bool:
        return self.kind == UnitKind.APARTMENT

    @property
    def is_room(self) -> bool:
        return self.kind == UnitKind.ROOM

    @property
    def lock_key(self) -> str:
        return f"{self.kind.value.lower()}:{self.id}"

    def __str__(self) -> str:
        return self.lock_key
