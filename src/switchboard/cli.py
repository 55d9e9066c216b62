"""Command-line interface for Switchboard."""

import asyncio
import json
from pathlib import Path

import click

from switchboard import __version__
from switchboard.config import Config
from switchboard.errors import LinkConfigError, StoreError
from switchboard.logging import get_logger, setup_logging

log = get_logger("cli")


def _load_graph(config: Config):
    """Validate configured links, exiting on a bad definition."""
    from switchboard.links import LinkGraph

    try:
        return LinkGraph.from_config(config.links)
    except LinkConfigError as e:
        click.echo(f"Link configuration error: {e}", err=True)
        raise SystemExit(1)


def _open_store(config: Config):
    from switchboard.conversation import ConversationStore
    from switchboard.database import create_tables, get_engine

    engine = get_engine(config)
    create_tables(engine)
    return engine, ConversationStore(engine, max_workers=config.store.max_workers)


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    log_level: str | None,
    log_json: bool | None,
) -> None:
    """Switchboard - policy-governed agent links with durable history.

    Declares who may message whom, and keeps what they said.
    """
    ctx.ensure_object(dict)

    config = Config.load_or_default(config_file)
    ctx.obj["config"] = config
    ctx.obj["config_file"] = config_file

    # CLI overrides config
    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json

    setup_logging(json_output=effective_log_json, level=effective_log_level)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"switchboard {__version__}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind.")
@click.option("--port", default=8000, type=int, help="Port to bind.")
@click.pass_context
def api(ctx: click.Context, host: str, port: int) -> None:
    """Start the read-only API server.

    Serves links, topology and channel views. Access the API
    documentation at /docs.
    """
    import uvicorn

    from switchboard.api import create_app
    from switchboard.topology import TopologyView

    cfg = ctx.obj["config"]
    graph = _load_graph(cfg)
    engine, store = _open_store(cfg)

    async def run():
        app = create_app(cfg)
        app.state.db = engine
        app.state.graph = graph
        app.state.topology = TopologyView(graph, cfg.agent_ids)
        app.state.store = store

        server_config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="info",
        )
        server = uvicorn.Server(server_config)
        await server.serve()

    log.info("api_command_invoked", host=host, port=port)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        log.info("api_shutdown_requested")
    except Exception as e:
        log.error("api_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        store.close()
        engine.dispose()


@cli.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command(name="init")
@click.pass_context
def db_init(ctx: click.Context) -> None:
    """Create the conversation tables if they don't exist."""
    from switchboard.database import create_tables, get_engine

    config = ctx.obj["config"]
    engine = get_engine(config)
    create_tables(engine)
    engine.dispose()
    click.echo(f"Database ready: {config.database_path}")


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="check")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    default="config.yaml",
    help="Path to configuration file.",
)
def config_check(config_file: Path) -> None:
    """Validate configuration file, including link definitions."""
    from switchboard.links import validate_links

    try:
        cfg = Config.load(config_file)
        links = validate_links(cfg.links)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except LinkConfigError as e:
        click.echo(f"Link configuration error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Configuration valid: {config_file}")
    click.echo(f"  Data directory: {cfg.data_dir}")
    click.echo(f"  Database path: {cfg.database_path}")
    click.echo(f"  Log level: {cfg.log_level}")
    click.echo(f"  Agents: {len(cfg.agents)}")
    click.echo(f"  Links: {len(links)}")

    # Links naming agents that aren't configured still load, but are worth a look
    known = set(cfg.agent_ids)
    unknown = sorted(
        {agent for link in links for agent in (link.from_agent_id, link.to_agent_id)} - known
    )
    if known and unknown:
        click.echo(f"  Warning: links reference unconfigured agents: {', '.join(unknown)}")


@cli.group()
def links() -> None:
    """Agent link commands."""
    pass


@links.command(name="list")
@click.option("--agent", "agent_id", default=None, help="Only links touching this agent.")
@click.pass_context
def links_list(ctx: click.Context, agent_id: str | None) -> None:
    """List configured links and their channel ids."""
    graph = _load_graph(ctx.obj["config"])
    selected = graph.links_for(agent_id) if agent_id else list(graph.load())

    if not selected:
        click.echo("No links configured.")
        return

    for link in selected:
        arrow = "->" if link.direction.value == "one_way" else "<->"
        click.echo(
            f"{link.from_agent_id} {arrow} {link.to_agent_id}  "
            f"[{link.kind.value}]  {link.channel_id()}"
        )


@links.command(name="topology")
@click.pass_context
def links_topology(ctx: click.Context) -> None:
    """Print the agent topology as JSON."""
    from switchboard.topology import TopologyView

    cfg = ctx.obj["config"]
    view = TopologyView(_load_graph(cfg), cfg.agent_ids)
    click.echo(json.dumps(view.render().model_dump(by_alias=True), indent=2))


@cli.group()
def channels() -> None:
    """Conversation channel commands."""
    pass


@channels.command(name="list")
@click.pass_context
def channels_list(ctx: click.Context) -> None:
    """List channels, most recently active first."""
    engine, store = _open_store(ctx.obj["config"])
    try:
        infos = store.list_channels()
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        store.close()
        engine.dispose()

    if not infos:
        click.echo("No channels found.")
        return

    for info in infos:
        name = info.channel_name or "-"
        click.echo(
            f"{info.channel_id}  {name}  "
            f"{info.message_count} messages  last {info.last_activity.isoformat()}"
        )


@channels.command(name="find")
@click.argument("name")
@click.pass_context
def channels_find(ctx: click.Context, name: str) -> None:
    """Resolve a channel name to its id."""
    from switchboard.resolver import ChannelResolver

    engine, store = _open_store(ctx.obj["config"])
    try:
        channel_id = ChannelResolver(store).find_channel_by_name(name)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        store.close()
        engine.dispose()

    if channel_id is None:
        click.echo(f"No channel matching '{name}'", err=True)
        raise SystemExit(1)
    click.echo(channel_id)


@channels.command(name="transcript")
@click.argument("channel_id")
@click.option("--limit", default=50, type=int, help="Maximum messages to show.")
@click.pass_context
def channels_transcript(ctx: click.Context, channel_id: str, limit: int) -> None:
    """Show a channel's recent messages, oldest first."""
    engine, store = _open_store(ctx.obj["config"])
    try:
        messages = store.load_channel_transcript(channel_id, limit)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        store.close()
        engine.dispose()

    for message in messages:
        speaker = message.sender_name or message.role.value
        click.echo(f"[{message.created_at.isoformat()}] {speaker}: {message.content}")


@channels.command(name="compact")
@click.argument("channel_id")
@click.pass_context
def channels_compact(ctx: click.Context, channel_id: str) -> None:
    """Roll up a channel's older history into a summary."""
    from switchboard.compaction import Compactor

    cfg = ctx.obj["config"]
    engine, store = _open_store(cfg)
    try:
        compactor = Compactor(
            store,
            keep_recent=cfg.compaction.keep_recent,
            window=cfg.compaction.window,
        )
        result = compactor.compact(channel_id)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        # Let the archive and summary writes land before exiting
        store.close(wait=True)
        engine.dispose()

    if not result.compacted:
        click.echo(f"Nothing to compact in {channel_id}")
        return
    click.echo(f"Compacted {result.turns_covered} turns in {channel_id}")
