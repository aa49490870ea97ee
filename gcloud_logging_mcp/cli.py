"""CLI commands for gcloud-logging-mcp."""

import asyncio
import json
import logging
import sys
from typing import Any

import click
import yaml
from fastmcp import Client
from fastmcp.client.transports import StdioTransport as ClientStdioTransport
from pydantic import ValidationError

from gcloud_logging_mcp.config import load_config, load_config_data, resolve_config
from gcloud_logging_mcp.tools import SELECT_PROJECT, list_tools

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run an async coroutine from sync CLI code."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def config_option():
    """Decorator for --config option."""
    return click.option(
        "--config", "-c",
        default=None,
        type=click.Path(exists=False),
        help="YAML config file path",
    )


def parse_tool_args(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Parse key=value pairs, turning numeric values into numbers."""
    args: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--arg")
        key, value = pair.split("=", 1)
        try:
            args[key] = int(value)
        except ValueError:
            try:
                args[key] = float(value)
            except ValueError:
                args[key] = value
    return args


def make_client(url: str | None, config: str | None) -> Client:
    """Create an MCP client for a running server or a local stdio child."""
    if url:
        return Client(url)

    args = ["-m", "gcloud_logging_mcp", "serve", "--transport", "stdio"]
    if config:
        args.extend(["--config", config])
    return Client(ClientStdioTransport(command=sys.executable, args=args))


def _result_text(result: Any) -> str:
    if hasattr(result, "content"):
        return "\n".join(getattr(item, "text", str(item)) for item in result.content)
    return json.dumps(result, default=str)


@click.group()
def main():
    """Google Cloud Logging MCP server."""
    pass


@main.command()
@config_option()
@click.option("--transport", "-t", default=None, type=click.Choice(["stdio", "sse"]), help="Transport type (env: MCP_TRANSPORT)")
@click.option("--port", "-p", default=None, type=int, help="Port for the sse transport (env: PORT)")
@click.option("--host", default=None, help="Bind address for the sse transport (env: MCP_HOST)")
@click.option("--env-file", "-e", default=".env", type=click.Path(), help="Path to .env file (default: .env)")
@click.option("--debug", is_flag=True, help="Log timing for every tool call")
def serve(
    config: str | None,
    transport: str | None,
    port: int | None,
    host: str | None,
    env_file: str,
    debug: bool,
):
    """Start the MCP server."""
    from dotenv import load_dotenv

    from gcloud_logging_mcp.debug import configure_logging, enable_debug
    from gcloud_logging_mcp.server import run

    load_dotenv(env_file)

    if debug:
        enable_debug()
    configure_logging()

    try:
        cfg = resolve_config(config, transport=transport, port=port, host=host)
    except (ValidationError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    try:
        run(cfg)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception:
        logger.exception("Server terminated by an unexpected error")
        raise SystemExit(1)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tools(as_json: bool):
    """List the tools this server exposes."""
    catalog = list_tools()
    if as_json:
        dumped = [t.model_dump(by_alias=True, exclude_none=True, mode="json") for t in catalog]
        click.echo(json.dumps({"tools": dumped}, indent=2))
        return

    for tool in catalog:
        click.echo(f"{tool.name}: {tool.description}")
        for name, prop in tool.input_schema.get("properties", {}).items():
            required = " (required)" if name in tool.input_schema.get("required", []) else ""
            click.echo(f"  - {name} [{prop.get('type')}]{required}: {prop.get('description', '')}")


@main.command()
@click.argument("tool_name")
@config_option()
@click.option("--arg", "-a", multiple=True, help="Tool arguments as key=value")
@click.option("--project", "-P", default=None, help="Select this project first, in the same session")
@click.option("--url", "-u", default=None, help="URL of a running sse server (e.g. http://127.0.0.1:3000/sse)")
def call(tool_name: str, config: str | None, arg: tuple[str, ...], project: str | None, url: str | None):
    """Call a tool on a running or freshly spawned server."""
    args = parse_tool_args(arg)

    async def call_tool():
        """Call the tool over one MCP session."""
        client = make_client(url, config)
        async with client:
            if project:
                selected = await client.call_tool(SELECT_PROJECT, {"projectId": project})
                click.echo(_result_text(selected))
            return await client.call_tool(tool_name, args)

    try:
        click.echo(f"Calling {tool_name} with args: {json.dumps(args)}")
        result = run_async(call_tool())
        click.echo(f"Result: {_result_text(result)}")
    except Exception as e:
        click.echo(f"Error calling {tool_name}: {e}", err=True)
        raise SystemExit(1)


@main.command("config")
@config_option()
@click.option("--resolved", is_flag=True, help="Show the effective config including env vars and defaults")
def config_cmd(config: str | None, resolved: bool):
    """Show configuration."""
    try:
        if resolved:
            cfg = resolve_config(config)
            click.echo(yaml.dump(cfg.model_dump(), default_flow_style=False, sort_keys=False))
        elif config:
            click.echo(yaml.dump(load_config_data(config), default_flow_style=False, sort_keys=False))
        else:
            click.echo(yaml.dump(load_config().model_dump(), default_flow_style=False, sort_keys=False))
    except (ValidationError, ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
