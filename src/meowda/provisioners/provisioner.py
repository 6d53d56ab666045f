"""Provisioner interface for the external environment tool."""

from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class Provisioner(Protocol):
    """Creates environments and installs packages into them."""

    async def check_available(self) -> bool: ...

    async def create_venv(self, path: Path, python: str) -> None: ...

    async def install(self, venv: Path, args: Sequence[str]) -> None: ...

    async def uninstall(self, venv: Path, args: Sequence[str]) -> None: ...
