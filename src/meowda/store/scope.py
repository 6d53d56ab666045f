"""Store location resolution for local and global scopes."""

import os
from pathlib import Path
from typing import Iterator, List, Mapping, Optional

import appdirs

from meowda.constants import (
    APP_NAME,
    GLOBAL_VENV_DIR_ENV,
    LOCAL_STORE_DIR,
    LOCAL_VENV_DIR_ENV,
    VENVS_DIR,
)
from meowda.errors import ConfigError
from meowda.logging import get_logger
from meowda.types import VenvScope

logger = get_logger(__name__)


def iter_ancestors(start: Path) -> Iterator[Path]:
    """Yield start and each of its parents up to the filesystem root."""
    current = start
    while True:
        yield current
        parent = current.parent
        if parent == current:
            return
        current = parent


def _is_readable_dir(path: Path) -> bool:
    try:
        if not path.is_dir():
            return False
        with os.scandir(path):
            return True
    except PermissionError:
        logger.debug({"event": "venv_dir_unreadable", "path": str(path)})
        return False


def find_local_venv_dirs(start: Path) -> List[Path]:
    """Collect every readable `.meowda/venvs` from start upwards, nearest first."""
    return [
        candidate
        for candidate in (d / LOCAL_STORE_DIR / VENVS_DIR for d in iter_ancestors(start))
        if _is_readable_dir(candidate)
    ]


def user_state_dir() -> Path:
    """Return the user-level data directory for meowda.

    Corresponds to `$XDG_DATA_HOME/meowda` on Unix.
    """
    try:
        return Path(appdirs.user_data_dir(APP_NAME))
    except (OSError, KeyError, RuntimeError) as e:
        raise ConfigError("Failed to determine user state directory") from e


class ScopeResolver:
    """Computes the ordered candidate store directories for a scope.

    Reads the environment and the filesystem only; nothing is created.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ):
        self.environ = os.environ if environ is None else environ
        self._cwd = cwd

    @property
    def cwd(self) -> Path:
        if self._cwd is not None:
            return Path(self._cwd)
        try:
            return Path.cwd()
        except OSError as e:
            raise ConfigError("Failed to get current working directory") from e

    def _override(self, var: str) -> Optional[Path]:
        value = self.environ.get(var)
        if not value:
            return None
        if "\0" in value:
            raise ConfigError(
                f"Invalid path for `{var}` environment variable",
                details={"variable": var},
            )
        # `..` segments are kept; collapsing them could cross a symlink
        path = Path(value)
        if not path.is_absolute():
            path = self.cwd / path
        return path

    def global_paths(self) -> List[Path]:
        override = self._override(GLOBAL_VENV_DIR_ENV)
        if override is not None:
            return [override]
        return [user_state_dir() / VENVS_DIR]

    def local_paths(self) -> List[Path]:
        override = self._override(LOCAL_VENV_DIR_ENV)
        if override is not None:
            return [override]

        cwd = self.cwd
        found = find_local_venv_dirs(cwd)
        if found:
            return found
        return [cwd / LOCAL_STORE_DIR / VENVS_DIR]

    def resolve(self, scope: VenvScope) -> List[Path]:
        """Return candidate store paths, primary first."""
        match scope:
            case VenvScope.LOCAL:
                paths = self.local_paths()
            case VenvScope.GLOBAL:
                paths = self.global_paths()
            case _:
                raise ConfigError(f"Unknown scope: {scope}")

        logger.debug(
            {"event": "scope_resolved", "scope": scope.name, "paths": [str(p) for p in paths]}
        )
        return paths
