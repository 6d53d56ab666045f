"""Tests for the uv provisioner against a stand-in executable."""
import stat
import sys
from pathlib import Path

import pytest

from meowda.errors import ExternalToolError
from meowda.provisioners import Provisioner, UvProvisioner
from meowda.provisioners.uv import build_pip_command, build_venv_command

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as uv")


def write_fake_uv(directory: Path, exit_code: int = 0, output: str = "") -> Path:
    """Write a script that records its argv and VIRTUAL_ENV"""
    script = directory / "uv"
    script.write_text(
        "#!/bin/sh\n"
        f'echo "$@" > "{directory}/argv.txt"\n'
        f'echo "$VIRTUAL_ENV" > "{directory}/venv.txt"\n'
        f"{output}\n"
        f"exit {exit_code}\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


def test_build_venv_command(tmp_path):
    assert build_venv_command("uv", tmp_path / "env", "3.12") == [
        "uv", "venv", str(tmp_path / "env"), "--python", "3.12", "--seed",
    ]


def test_build_pip_command():
    assert build_pip_command("uv", "install", ["-r", "req.txt"]) == [
        "uv", "pip", "install", "-r", "req.txt",
    ]


def test_satisfies_provisioner_protocol():
    assert isinstance(UvProvisioner(), Provisioner)


@pytest.mark.asyncio
async def test_create_venv_runs_uv(tmp_path):
    uv = write_fake_uv(tmp_path)

    await UvProvisioner(str(uv), capture_output=True).create_venv(tmp_path / "env", "3.12")

    assert (tmp_path / "argv.txt").read_text().split() == [
        "venv", str(tmp_path / "env"), "--python", "3.12", "--seed",
    ]


@pytest.mark.asyncio
async def test_install_sets_virtual_env(tmp_path):
    uv = write_fake_uv(tmp_path)
    venv = tmp_path / "env"

    await UvProvisioner(str(uv), capture_output=True).install(venv, ["requests"])

    assert (tmp_path / "argv.txt").read_text().split() == ["pip", "install", "requests"]
    assert (tmp_path / "venv.txt").read_text().strip() == str(venv)


@pytest.mark.asyncio
async def test_nonzero_exit_raises(tmp_path):
    uv = write_fake_uv(tmp_path, exit_code=3)

    with pytest.raises(ExternalToolError) as exc_info:
        await UvProvisioner(str(uv), capture_output=True).uninstall(tmp_path / "env", ["requests"])

    assert exc_info.value.returncode == 3
    assert exc_info.value.details["returncode"] == 3


@pytest.mark.asyncio
async def test_spawn_failure_raises(tmp_path):
    provisioner = UvProvisioner(str(tmp_path / "no-such-uv"))

    with pytest.raises(ExternalToolError, match="Failed to execute"):
        await provisioner.create_venv(tmp_path / "env", "3.12")


@pytest.mark.asyncio
async def test_check_available(tmp_path):
    assert await UvProvisioner(str(write_fake_uv(tmp_path)), capture_output=True).check_available()
    assert not await UvProvisioner(str(tmp_path / "missing")).check_available()
    assert not await UvProvisioner(
        str(write_fake_uv(tmp_path, exit_code=1)), capture_output=True
    ).check_available()


@pytest.mark.asyncio
async def test_non_utf8_output_does_not_fail(tmp_path):
    uv = write_fake_uv(tmp_path, output=r"printf 'Installed caf\351\n'; printf 'warn \377\n' >&2")

    await UvProvisioner(str(uv), capture_output=True).install(tmp_path / "env", ["cafe"])

    assert (tmp_path / "argv.txt").read_text().split() == ["pip", "install", "cafe"]
