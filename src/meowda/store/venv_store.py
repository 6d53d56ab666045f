"""Filesystem-backed registry of named virtual environments."""

from pathlib import Path
from typing import List, Optional, Sequence

from meowda.constants import LOCK_FILE, LOCK_RESOURCE, MARKER_CONTENT, MARKER_FILE
from meowda.errors import StoreIOError
from meowda.logging import get_logger
from meowda.store.file_lock import FileLock
from meowda.store.scope import ScopeResolver
from meowda.types import VenvScope

logger = get_logger(__name__)


def _canonical(path: Path) -> Path:
    return Path(path).resolve(strict=False)


class VenvStore:
    """Store over a primary directory plus read-only shadow directories.

    The primary path is the only one that is ever created, locked or
    listed. Shadow paths only take part in lookups, where a nearer path
    wins over a farther one.
    """

    def __init__(self, paths: Sequence[Path]):
        if not paths:
            raise ValueError("VenvStore needs at least one path")
        self._paths = [Path(p) for p in paths]

    @classmethod
    def create(cls, scope: VenvScope, resolver: Optional[ScopeResolver] = None) -> "VenvStore":
        resolver = resolver or ScopeResolver()
        return cls(resolver.resolve(scope))

    @property
    def path(self) -> Path:
        return self._paths[0]

    @property
    def shadow_paths(self) -> List[Path]:
        return self._paths[1:]

    @property
    def marker_path(self) -> Path:
        return self.path / MARKER_FILE

    @property
    def lock_path(self) -> Path:
        return self.path / LOCK_FILE

    def all_paths(self) -> List[Path]:
        return list(self._paths)

    def is_ready(self) -> bool:
        return self.path.is_dir() and self.marker_path.exists()

    def init(self) -> None:
        """Create the primary directory and marker file if missing."""
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreIOError(
                f"Failed to create venv store directory {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

        try:
            with open(self.marker_path, "x") as f:
                f.write(MARKER_CONTENT)
        except FileExistsError:
            return
        except OSError as e:
            raise StoreIOError(
                f"Failed to create store marker {self.marker_path}: {e}",
                details={"path": str(self.marker_path)},
            ) from e

        logger.info({"event": "store_initialized", "path": str(self.path)})

    def ensure_ready(self) -> "VenvStore":
        if not self.is_ready():
            self.init()
        return self

    def find_env_path(self, name: str) -> Optional[Path]:
        """Return the environment path from the nearest store holding name."""
        for base in self._paths:
            env_path = base / name
            if env_path.is_dir():
                return env_path
        return None

    def exists(self, name: str) -> bool:
        return self.find_env_path(name) is not None

    def contains(self, path: Path) -> bool:
        """Check whether path lies inside the primary or a shadow path."""
        target = _canonical(path)
        return any(target.is_relative_to(_canonical(base)) for base in self._paths)

    def lock(self) -> FileLock:
        return FileLock(self.lock_path, LOCK_RESOURCE)
