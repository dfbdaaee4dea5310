"""Main entry point for clip-actions."""

import asyncio
import re
import sys
from typing import Optional

import click
import structlog
from prometheus_client import start_http_server

from .actions import ActionEngine, ContentEntry
from .actions.base import iter_actions
from .config import AppSettings, ContentType
from .config.settings import ActionSubmenu
from .config.store import ActionConfigStore
from .config.watcher import ConfigWatcher
from .utils import Color, setup_logging

logger = structlog.get_logger(__name__)

_LINK_RE = re.compile(r"^\s*[a-z][a-z0-9+.-]*://\S+\s*$", re.IGNORECASE)
_TYPE_CHOICES = ["auto"] + [t.value for t in ContentType]


def _classify(content: str) -> ContentType:
    """Guess the classification of content read from the command line."""
    if _LINK_RE.match(content):
        return ContentType.LINK
    if Color.parse(content) is not None:
        return ContentType.COLOR
    if len(content) == 1:
        return ContentType.CHARACTER
    return ContentType.TEXT


def _entry(content: str, content_type: str, mime: Optional[str] = None) -> ContentEntry:
    metadata = {"mime": mime} if mime else {}
    if content_type == "auto":
        return ContentEntry(content, _classify(content), metadata)
    return ContentEntry(content, ContentType(content_type), metadata)


def _create_engine(settings: AppSettings, persist: bool = False) -> ActionEngine:
    store = ActionConfigStore(settings.config_path)
    store.load(persist=persist)

    engine = ActionEngine(store, settings)
    engine.connect("copy", lambda text: click.echo(f"copy: {text}"))
    engine.connect("paste", lambda text: click.echo(f"paste: {text}"))
    engine.connect("qr-code", lambda text: click.echo(f"qr-code: {text}"))
    return engine


@click.group()
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Run user-defined actions on clipboard content."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    ctx.obj = settings


@cli.command()
@click.pass_obj
def init(settings: AppSettings) -> None:
    """Write the action config, installing defaults on first run."""
    store = ActionConfigStore(settings.config_path)
    config = store.load(persist=True)
    click.echo(f"{settings.config_path} ({len(list(iter_actions(config)))} actions)")


@cli.command(name="list")
@click.pass_obj
def list_actions(settings: AppSettings) -> None:
    """List every action with its id."""
    store = ActionConfigStore(settings.config_path)
    config = store.load()

    defaults = {}
    for content_type, action_id in config.defaults.items():
        defaults.setdefault(action_id, []).append(content_type.value)

    for item in config.actions:
        if isinstance(item, ActionSubmenu):
            children = [(f"{item.name} / {a.name}", a) for a in item.actions]
        else:
            children = [(item.name, item)]

        for label, action in children:
            line = f"{action.id}\t{action.type}\t{label}"
            if action.id in defaults:
                line += f"\t(default: {', '.join(defaults[action.id])})"
            click.echo(line)


async def _run_once(settings: AppSettings, entry: ContentEntry, action_id: Optional[str]) -> bool:
    engine = _create_engine(settings)
    try:
        if action_id:
            found = engine.activate_action(entry, action_id)
        else:
            found = engine.activate_default_action(entry)
        await engine.join()
        return found
    finally:
        await engine.shutdown()


@cli.command()
@click.argument("content", required=False)
@click.option("--type", "content_type", type=click.Choice(_TYPE_CHOICES), default="auto",
              help="Content classification")
@click.option("--id", "action_id", default=None, help="Run this action instead of the default")
@click.option("--mime", default=None, help="MIME type hint, e.g. text/html")
@click.pass_obj
def run(settings: AppSettings, content: Optional[str], content_type: str,
        action_id: Optional[str], mime: Optional[str]) -> None:
    """Run the default action (or --id) on CONTENT, read from stdin if omitted."""
    if content is None:
        content = sys.stdin.read()

    entry = _entry(content, content_type, mime)
    if not asyncio.run(_run_once(settings, entry, action_id)):
        click.echo("No applicable action", err=True)
        sys.exit(1)


async def _watch(settings: AppSettings, content_type: str) -> None:
    loop = asyncio.get_running_loop()
    engine = _create_engine(settings, persist=True)
    engine.connect("actions-changed", lambda: logger.info("Action config reloaded"))

    watcher = ConfigWatcher(engine.store, loop, settings.reload_debounce_seconds)
    watcher.start()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            entry = _entry(line.rstrip("\n"), content_type)
            if not engine.activate_default_action(entry):
                logger.info("No default action for entry", type=entry.type.value)
        await engine.join()
    finally:
        watcher.stop()
        await engine.shutdown()


@cli.command()
@click.option("--type", "content_type", type=click.Choice(_TYPE_CHOICES), default="auto",
              help="Content classification")
@click.option("--metrics-port", type=click.IntRange(1024, 65535), default=None,
              help="Expose Prometheus metrics on this port")
@click.pass_obj
def watch(settings: AppSettings, content_type: str, metrics_port: Optional[int]) -> None:
    """Run the default action on every line of stdin, reloading the config on change."""
    if metrics_port:
        start_http_server(metrics_port)
        logger.info("Started Prometheus metrics server", port=metrics_port)

    try:
        asyncio.run(_watch(settings, content_type))
    except KeyboardInterrupt:
        pass


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
