"""Venv store location, layout and locking."""

from meowda.store.file_lock import FileLock
from meowda.store.scope import ScopeResolver, find_local_venv_dirs, iter_ancestors, user_state_dir
from meowda.store.venv_store import VenvStore

__all__ = [
    "FileLock",
    "ScopeResolver",
    "VenvStore",
    "find_local_venv_dirs",
    "iter_ancestors",
    "user_state_dir",
]
