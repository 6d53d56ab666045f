"""MCP server exposing venv store operations as tools."""
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions
from mcp.server import stdio

from meowda import __version__
from meowda.backend import VenvBackend, detect_current_venv
from meowda.errors import ConfigError, MeowdaError, PreconditionError, log_error
from meowda.logging import configure_logging, get_logger
from meowda.provisioners.provisioner import Provisioner
from meowda.provisioners.uv import UvProvisioner
from meowda.store.scope import ScopeResolver
from meowda.types import VenvScope

logger = get_logger("server")

SCOPE_PROPERTY = {
    "type": "string",
    "enum": ["local", "global"],
    "description": "Store scope (defaults to global)",
}

PACKAGE_ARGS_PROPERTY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Arguments forwarded to `uv pip`",
}

ACTIVE_ENV_PROPERTY = {
    "type": "string",
    "description": "Path of the target environment; defaults to the server's VIRTUAL_ENV",
}

tools = [
    types.Tool(
        name="meowda_create",
        description="Create a named virtual environment in the store",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Environment name"},
                "python": {"type": "string", "description": "Python version or interpreter"},
                "clear": {"type": "boolean", "description": "Replace an existing environment"},
                "scope": SCOPE_PROPERTY,
            },
            "required": ["name"],
        },
    ),
    types.Tool(
        name="meowda_remove",
        description="Remove a named virtual environment from the store",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Environment name"},
                "scope": SCOPE_PROPERTY,
            },
            "required": ["name"],
        },
    ),
    types.Tool(
        name="meowda_list",
        description="List virtual environments in the store",
        inputSchema={
            "type": "object",
            "properties": {"scope": SCOPE_PROPERTY, "active_env": ACTIVE_ENV_PROPERTY},
        },
    ),
    types.Tool(
        name="meowda_dir",
        description="Return the store directory",
        inputSchema={"type": "object", "properties": {"scope": SCOPE_PROPERTY}},
    ),
    types.Tool(
        name="meowda_install",
        description="Install packages into an environment of the store",
        inputSchema={
            "type": "object",
            "properties": {
                "args": PACKAGE_ARGS_PROPERTY,
                "scope": SCOPE_PROPERTY,
                "active_env": ACTIVE_ENV_PROPERTY,
            },
            "required": ["args"],
        },
    ),
    types.Tool(
        name="meowda_uninstall",
        description="Uninstall packages from an environment of the store",
        inputSchema={
            "type": "object",
            "properties": {
                "args": PACKAGE_ARGS_PROPERTY,
                "scope": SCOPE_PROPERTY,
                "active_env": ACTIVE_ENV_PROPERTY,
            },
            "required": ["args"],
        },
    ),
]


def _text(payload: Dict[str, Any]) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload))]


def _active_env(arguments: Dict[str, Any], environ: Optional[Mapping[str, str]]) -> Optional[Path]:
    if arguments.get("active_env"):
        return Path(arguments["active_env"]).absolute()
    return detect_current_venv(environ)


def _scope(arguments: Dict[str, Any]) -> VenvScope:
    value = arguments.get("scope") or "global"
    try:
        return VenvScope[str(value).upper()]
    except KeyError:
        raise ConfigError(f"Unknown scope: {value}", details={"scope": value}) from None


def _required(arguments: Dict[str, Any], key: str) -> Any:
    if arguments.get(key) is None:
        raise PreconditionError(f"Missing required argument '{key}'", details={"argument": key})
    return arguments[key]


async def handle_tool_call(
    name: str,
    arguments: Dict[str, Any],
    provisioner: Optional[Provisioner] = None,
    resolver: Optional[ScopeResolver] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> List[types.TextContent]:
    """Run one tool call and render its result as JSON text."""
    logger.debug(f"Tool call received: {name} with arguments {arguments}")

    if name not in {t.name for t in tools}:
        return _text({"success": False, "error": f"Unknown tool: {name}"})

    # Child output must not reach the stdio transport
    provisioner = provisioner or UvProvisioner(capture_output=True)
    try:
        backend = await VenvBackend.open(
            provisioner,
            _scope(arguments),
            resolver,
        )

        if name == "meowda_create":
            path = await backend.create(
                _required(arguments, "name"), arguments.get("python", "3.13"), arguments.get("clear", False)
            )
            data = {"name": arguments["name"], "path": str(path)}

        elif name == "meowda_remove":
            await backend.remove(_required(arguments, "name"))
            data = {"name": arguments["name"]}

        elif name == "meowda_list":
            envs = await backend.list(_active_env(arguments, environ))
            data = {"envs": [env.to_dict() for env in envs]}

        elif name == "meowda_dir":
            data = {"path": str(backend.dir())}

        elif name == "meowda_install":
            await backend.install(_required(arguments, "args"), _active_env(arguments, environ))
            data = {"message": "Packages installed successfully."}

        else:
            await backend.uninstall(_required(arguments, "args"), _active_env(arguments, environ))
            data = {"message": "Packages uninstalled successfully."}

    except MeowdaError as e:
        log_error(e, context={"tool": name}, logger=logger)
        return _text({"success": False, "error": str(e), "code": e.code})

    return _text({"success": True, "data": data})


async def init_server() -> Server:
    logger.info(f"Registered tools: {', '.join(t.name for t in tools)}")

    server = Server("meowda")

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug("Tools requested")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        return await handle_tool_call(name, arguments or {})

    return server


async def serve() -> None:
    configure_logging()
    logger.info("Starting meowda MCP server")
    server = await init_server()
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name="meowda",
            server_version=__version__,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    """Run the MCP server."""
    asyncio.run(serve())
