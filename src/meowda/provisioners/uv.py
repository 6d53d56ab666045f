"""uv-backed provisioner."""

import asyncio
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from meowda.constants import ACTIVE_VENV_ENV, UV_BINARY
from meowda.errors import ExternalToolError
from meowda.logging import get_logger

logger = get_logger(__name__)


def build_venv_command(uv_path: str, path: Path, python: str) -> List[str]:
    return [uv_path, "venv", str(path), "--python", python, "--seed"]


def build_pip_command(uv_path: str, action: str, args: Sequence[str]) -> List[str]:
    return [uv_path, "pip", action, *args]


class UvProvisioner:
    """Runs `uv` as a child process and checks only its exit code.

    With capture_output the child's stdout/stderr are collected and logged
    instead of inherited, which keeps stdio-based servers clean.
    """

    def __init__(self, uv_path: str = UV_BINARY, capture_output: bool = False):
        self.uv_path = uv_path
        self.capture_output = capture_output

    async def _run(self, cmd: List[str], env: Optional[Dict[str, str]] = None) -> int:
        logger.debug({"event": "uv_cmd_exec", "cmd": cmd})

        stream = asyncio.subprocess.PIPE if self.capture_output else None
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                env=env,
                stdout=stream,
                stderr=stream,
            )
        except OSError as e:
            raise ExternalToolError(
                f"Failed to execute {self.uv_path}: {e}",
                details={"cmd": cmd},
            ) from e

        stdout, stderr = await process.communicate()

        if stdout:
            logger.debug({"event": "uv_cmd_stdout", "cmd": cmd, "output": stdout.decode(errors="replace")})
        if stderr:
            logger.debug({"event": "uv_cmd_stderr", "cmd": cmd, "output": stderr.decode(errors="replace")})

        logger.debug({"event": "uv_cmd_complete", "cmd": cmd, "returncode": process.returncode})
        return process.returncode

    async def check_available(self) -> bool:
        """Check that `uv --version` runs and succeeds."""
        try:
            returncode = await self._run([self.uv_path, "--version"])
        except ExternalToolError:
            return False
        return returncode == 0

    async def create_venv(self, path: Path, python: str) -> None:
        returncode = await self._run(build_venv_command(self.uv_path, path, python))
        if returncode != 0:
            raise ExternalToolError(
                "Failed to create virtual environment",
                returncode=returncode,
                details={"path": str(path), "python": python},
            )

    async def _pip(self, action: str, venv: Path, args: Sequence[str]) -> None:
        env = {**os.environ, ACTIVE_VENV_ENV: str(venv)}
        returncode = await self._run(build_pip_command(self.uv_path, action, args), env=env)
        if returncode != 0:
            raise ExternalToolError(
                f"Failed to {action} packages",
                returncode=returncode,
                details={"venv": str(venv), "args": list(args)},
            )

    async def install(self, venv: Path, args: Sequence[str]) -> None:
        await self._pip("install", venv, args)

    async def uninstall(self, venv: Path, args: Sequence[str]) -> None:
        await self._pip("uninstall", venv, args)
