"""Venv management operations over a locked store."""

import os
import shutil
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from meowda.constants import ACTIVE_VENV_ENV, UV_INSTALL_HINT
from meowda.errors import ExternalToolError, PreconditionError, StoreIOError
from meowda.logging import get_logger
from meowda.provisioners.provisioner import Provisioner
from meowda.store.scope import ScopeResolver
from meowda.store.venv_store import VenvStore
from meowda.types import EnvInfo, VenvScope

logger = get_logger(__name__)


def detect_current_venv(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Return the absolute path of the activated environment, if any."""
    environ = os.environ if environ is None else environ
    value = environ.get(ACTIVE_VENV_ENV)
    if not value:
        return None
    return Path(value).absolute()


def validate_env_name(name: str) -> None:
    # Leading dots would collide with the marker and lock files
    if (
        not name
        or name.startswith(".")
        or "/" in name
        or os.sep in name
        or "\0" in name
    ):
        raise PreconditionError(
            f"Invalid virtual environment name '{name}'", details={"name": name}
        )


def _same_path(a: Path, b: Path) -> bool:
    try:
        return a.resolve(strict=True) == b.resolve(strict=True)
    except OSError:
        return False


class VenvBackend:
    """Create, remove, list and manage packages of stored environments.

    Every operation builds a fresh store for the scope and holds the store
    lock from the precondition checks through the mutation.
    """

    def __init__(
        self,
        provisioner: Provisioner,
        scope: VenvScope = VenvScope.GLOBAL,
        resolver: Optional[ScopeResolver] = None,
    ):
        self.provisioner = provisioner
        self.scope = scope
        self.resolver = resolver or ScopeResolver()

    @classmethod
    async def open(
        cls,
        provisioner: Provisioner,
        scope: VenvScope = VenvScope.GLOBAL,
        resolver: Optional[ScopeResolver] = None,
    ) -> "VenvBackend":
        """Build a backend after checking the provisioner can be run."""
        if not await provisioner.check_available():
            raise ExternalToolError(UV_INSTALL_HINT)
        return cls(provisioner, scope, resolver)

    def get_venv_store(self) -> VenvStore:
        return VenvStore.create(self.scope, self.resolver).ensure_ready()

    def _remove_venv(self, env_path: Path) -> None:
        try:
            shutil.rmtree(env_path)
        except OSError as e:
            raise StoreIOError(
                f"Failed to remove virtual environment at {env_path}: {e}",
                details={"path": str(env_path)},
            ) from e

    def _check_active(self, store: VenvStore, active_env: Optional[Path]) -> Path:
        if active_env is None:
            raise PreconditionError("No virtual environment is currently activated")
        if not store.contains(active_env):
            raise PreconditionError(
                f"Current virtual environment ({active_env}) is not managed by "
                f"this backend ({store.path})",
                details={"active_env": str(active_env), "store": str(store.path)},
            )
        return active_env

    async def create(self, name: str, python: str, clear: bool = False) -> Path:
        validate_env_name(name)
        store = self.get_venv_store()
        async with store.lock():
            venv_path = store.path / name
            if store.exists(name):
                if not clear:
                    raise PreconditionError(
                        f"Virtual environment '{name}' already exists",
                        details={"name": name, "path": str(store.find_env_path(name))},
                    )
                # Shadowed copies are read-only here; only the primary one is cleared
                if venv_path.is_dir():
                    self._remove_venv(venv_path)

            await self.provisioner.create_venv(venv_path, python)

        logger.info({"event": "venv_created", "name": name, "path": str(venv_path)})
        return venv_path

    async def remove(self, name: str) -> None:
        validate_env_name(name)
        store = self.get_venv_store()
        async with store.lock():
            env_path = store.find_env_path(name)
            if env_path is None:
                raise PreconditionError(
                    f"Virtual environment '{name}' does not exist", details={"name": name}
                )
            if env_path != store.path / name:
                raise PreconditionError(
                    f"Virtual environment '{name}' belongs to the outer store "
                    f"{env_path.parent} and cannot be removed from here",
                    details={"name": name, "path": str(env_path)},
                )
            self._remove_venv(env_path)

        logger.info({"event": "venv_removed", "name": name, "path": str(env_path)})

    async def list(self, active_env: Optional[Path] = None) -> List[EnvInfo]:
        """List environments in the primary store path only."""
        store = self.get_venv_store()
        async with store.lock():
            try:
                entries = sorted(store.path.iterdir())
            except OSError as e:
                raise StoreIOError(
                    f"Failed to read venv directory {store.path}: {e}",
                    details={"path": str(store.path)},
                ) from e

            return [
                EnvInfo(
                    name=entry.name,
                    path=entry,
                    is_active=active_env is not None and _same_path(entry, active_env),
                )
                for entry in entries
                if entry.is_dir()
            ]

    async def install(self, args: Sequence[str], active_env: Optional[Path]) -> None:
        store = self.get_venv_store()
        async with store.lock():
            venv = self._check_active(store, active_env)
            await self.provisioner.install(venv, args)
        logger.info({"event": "packages_installed", "venv": str(venv), "args": list(args)})

    async def uninstall(self, args: Sequence[str], active_env: Optional[Path]) -> None:
        store = self.get_venv_store()
        async with store.lock():
            venv = self._check_active(store, active_env)
            await self.provisioner.uninstall(venv, args)
        logger.info({"event": "packages_uninstalled", "venv": str(venv), "args": list(args)})

    def dir(self) -> Path:
        return self.get_venv_store().path
