"""Core type definitions"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

VenvScope = Enum('VenvScope', ['LOCAL', 'GLOBAL'])


@dataclass(frozen=True)
class EnvInfo:
    """Virtual environment entry in a store"""
    name: str
    path: Path
    is_active: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "path": str(self.path), "is_active": self.is_active}
