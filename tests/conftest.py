import asyncio
from pathlib import Path
from typing import List, Sequence, Tuple

import pytest
import pytest_asyncio

from meowda.backend import VenvBackend
from meowda.errors import ExternalToolError
from meowda.store.scope import ScopeResolver
from meowda.types import VenvScope


class FakeProvisioner:
    """In-memory stand-in for uv that records calls"""

    def __init__(self):
        self.available = True
        self.fail_with: int | None = None
        self.delay = 0.0
        self.created: List[Tuple[Path, str]] = []
        self.installed: List[Tuple[Path, List[str]]] = []
        self.uninstalled: List[Tuple[Path, List[str]]] = []

    async def check_available(self) -> bool:
        return self.available

    async def _maybe_fail(self, action: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise ExternalToolError(f"Failed to {action}", returncode=self.fail_with)

    async def create_venv(self, path: Path, python: str) -> None:
        await self._maybe_fail("create virtual environment")
        path.mkdir(parents=True)
        (path / "pyvenv.cfg").write_text(f"version = {python}\n")
        self.created.append((path, python))

    async def install(self, venv: Path, args: Sequence[str]) -> None:
        await self._maybe_fail("install packages")
        self.installed.append((venv, list(args)))

    async def uninstall(self, venv: Path, args: Sequence[str]) -> None:
        await self._maybe_fail("uninstall packages")
        self.uninstalled.append((venv, list(args)))


@pytest.fixture
def fake_provisioner() -> FakeProvisioner:
    return FakeProvisioner()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Working directory for local scope lookups"""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def global_dir(tmp_path: Path) -> Path:
    return tmp_path / "global" / "venvs"


@pytest.fixture
def resolver(project_dir: Path, global_dir: Path) -> ScopeResolver:
    return ScopeResolver(
        environ={"MEOWDA_GLOBAL_VENV_DIR": str(global_dir)},
        cwd=project_dir,
    )


@pytest_asyncio.fixture
async def backend(fake_provisioner: FakeProvisioner, resolver: ScopeResolver) -> VenvBackend:
    return await VenvBackend.open(fake_provisioner, VenvScope.GLOBAL, resolver)
