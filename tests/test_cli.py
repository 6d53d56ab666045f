"""Tests for the meowda command line."""
import logging

import pytest
from click.testing import CliRunner

from meowda.cli import main


@pytest.fixture(autouse=True)
def reset_logging():
    logger = logging.getLogger("meowda")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield
    logger.handlers, level, logger.propagate = saved
    logger.setLevel(level)


@pytest.fixture
def invoke(fake_provisioner, resolver):
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(
            main, list(args), obj={"provisioner": fake_provisioner, "resolver": resolver}
        )

    return _invoke


def test_create(invoke, fake_provisioner, global_dir):
    result = invoke("create", "web", "--python", "3.11")

    assert result.exit_code == 0, result.output
    assert "Virtual environment 'web' created successfully." in result.output
    assert fake_provisioner.created == [(global_dir / "web", "3.11")]


def test_create_existing_fails(invoke):
    invoke("create", "web")
    result = invoke("create", "web")

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_create_local(invoke, fake_provisioner, project_dir):
    result = invoke("create", "web", "--local")

    assert result.exit_code == 0, result.output
    assert fake_provisioner.created[0][0] == project_dir / ".meowda" / "venvs" / "web"


def test_remove(invoke, global_dir):
    invoke("create", "web")
    result = invoke("remove", "web")

    assert result.exit_code == 0, result.output
    assert not (global_dir / "web").exists()


def test_list_empty(invoke):
    result = invoke("list")

    assert result.exit_code == 0
    assert "No virtual environments found." in result.output


def test_list_marks_active(invoke, global_dir, monkeypatch):
    invoke("create", "a")
    invoke("create", "b")
    monkeypatch.setenv("VIRTUAL_ENV", str(global_dir / "b"))

    result = invoke("list")

    assert result.exit_code == 0
    assert "Available virtual environments:" in result.output
    assert "  a (" in result.output
    assert "* b" in result.output


def test_dir(invoke, global_dir):
    result = invoke("dir")

    assert result.exit_code == 0
    assert result.output.strip() == str(global_dir)


def test_install_passes_unknown_options(invoke, fake_provisioner, global_dir, monkeypatch):
    invoke("create", "web")
    monkeypatch.setenv("VIRTUAL_ENV", str(global_dir / "web"))

    result = invoke("install", "requests", "--upgrade")

    assert result.exit_code == 0, result.output
    assert fake_provisioner.installed == [(global_dir / "web", ["requests", "--upgrade"])]


def test_uninstall_without_active_env(invoke, monkeypatch):
    monkeypatch.delenv("VIRTUAL_ENV", raising=False)

    result = invoke("uninstall", "requests")

    assert result.exit_code == 1
    assert "No virtual environment is currently activated" in result.output


def test_missing_uv(invoke, fake_provisioner):
    fake_provisioner.available = False

    result = invoke("dir")

    assert result.exit_code == 1
    assert "uv is not available" in result.output


@pytest.mark.parametrize("command", [["activate", "web"], ["deactivate"]])
def test_activation_is_refused(invoke, command):
    result = invoke(*command)

    assert result.exit_code == 1
    assert "meowda init" in result.output
