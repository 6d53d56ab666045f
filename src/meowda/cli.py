"""meowda CLI: manage virtual environments in local and global stores."""

import asyncio
import functools

import click

from meowda import __version__
from meowda.backend import VenvBackend, detect_current_venv
from meowda.constants import ACTIVATION_HINT, LOG_LEVEL_ENV
from meowda.errors import MeowdaError, log_error
from meowda.logging import configure_logging, get_logger
from meowda.provisioners.uv import UvProvisioner
from meowda.types import VenvScope

logger = get_logger("cli")


def scope_option(f):
    """Add the mutually exclusive --local/--global selector."""
    f = click.option(
        "--global", "scope", flag_value="global", default=True,
        help="Use the per-user store (default)",
    )(f)
    f = click.option(
        "--local", "scope", flag_value="local",
        help="Use the project store found from the current directory",
    )(f)
    return f


def handle_errors(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except MeowdaError as e:
            log_error(e, logger=logger)
            raise click.ClickException(str(e)) from e
    return wrapper


def run_with_backend(ctx: click.Context, scope: str, operation):
    """Open a backend for scope and run operation(backend) to completion."""
    obj = ctx.ensure_object(dict)

    async def runner():
        provisioner = obj.get("provisioner") or UvProvisioner()
        backend = await VenvBackend.open(
            provisioner, VenvScope[scope.upper()], obj.get("resolver")
        )
        return await operation(backend)

    return asyncio.run(runner())


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    default="WARNING",
    envvar=LOG_LEVEL_ENV,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Level for JSON logs written to stderr",
)
@click.pass_context
def main(ctx: click.Context, log_level: str):
    """meowda: named Python virtual environments backed by uv.

    Environments live in a global per-user store or in project-local
    `.meowda/venvs` directories discovered from the current directory
    upwards.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)


@main.command()
@click.argument("name")
@click.option("--python", "-p", default="3.13", show_default=True, help="Python version or interpreter")
@click.option("--clear", is_flag=True, help="Replace an existing environment with the same name")
@scope_option
@click.pass_context
@handle_errors
def create(ctx: click.Context, name: str, python: str, clear: bool, scope: str):
    """Create virtual environment NAME."""
    run_with_backend(ctx, scope, lambda backend: backend.create(name, python, clear))
    click.echo(f"Virtual environment '{name}' created successfully.")


@main.command()
@click.argument("name")
@scope_option
@click.pass_context
@handle_errors
def remove(ctx: click.Context, name: str, scope: str):
    """Remove virtual environment NAME."""
    run_with_backend(ctx, scope, lambda backend: backend.remove(name))
    click.echo(f"Virtual environment '{name}' removed successfully.")


@main.command("list")
@scope_option
@click.pass_context
@handle_errors
def list_envs(ctx: click.Context, scope: str):
    """List virtual environments in the store."""
    active = detect_current_venv()
    envs = run_with_backend(ctx, scope, lambda backend: backend.list(active))

    if not envs:
        click.echo("No virtual environments found.")
        return

    click.echo("Available virtual environments:")
    for env in envs:
        indicator = "* " if env.is_active else "  "
        name_display = f"{indicator}{env.name}"
        if env.is_active:
            name_display = click.style(name_display, fg="green", bold=True)
        click.echo(f"{name_display} ({click.style(str(env.path), fg='blue')})")


@main.command("dir")
@scope_option
@click.pass_context
@handle_errors
def store_dir(ctx: click.Context, scope: str):
    """Print the store directory."""

    async def operation(backend: VenvBackend):
        return backend.dir()

    click.echo(str(run_with_backend(ctx, scope, operation)))


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@scope_option
@click.pass_context
@handle_errors
def install(ctx: click.Context, args: tuple, scope: str):
    """Install packages into the active environment (uv pip install ARGS)."""
    active = detect_current_venv()
    run_with_backend(ctx, scope, lambda backend: backend.install(list(args), active))
    click.echo("Packages installed successfully.")


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@scope_option
@click.pass_context
@handle_errors
def uninstall(ctx: click.Context, args: tuple, scope: str):
    """Uninstall packages from the active environment (uv pip uninstall ARGS)."""
    active = detect_current_venv()
    run_with_backend(ctx, scope, lambda backend: backend.uninstall(list(args), active))
    click.echo("Packages uninstalled successfully.")


@main.command()
@click.argument("name", required=False)
@scope_option
def activate(name: str, scope: str):
    """Activate an environment (requires the shell integration)."""
    raise click.ClickException(ACTIVATION_HINT)


@main.command()
def deactivate():
    """Deactivate the current environment (requires the shell integration)."""
    raise click.ClickException(ACTIVATION_HINT)


@main.command()
def serve():
    """Serve the venv operations as MCP tools over stdio."""
    from meowda.server import main as serve_main

    serve_main()
