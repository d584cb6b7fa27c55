"""ToolDeck CLI - run prompts against the built-in function catalog."""

import asyncio
import logging
import sys
import time
from typing import Optional, Sequence

import click

from .config import ConfigManager, EngineSettings
from .errors import ConfigError, ToolDeckError
from .output import console, render_catalog, render_error, render_log, render_result
from .providers.base import BaseProvider
from .providers.registry import create_provider
from .relevance.index import build_index
from .relevance.selector import Selector
from .session.logsink import LogSink
from .session.orchestrator import SessionOrchestrator
from .session.state import SessionResult
from .tools import build_catalog
from .tools.calls import ExecutionStrategy
from .tools.catalog import Catalog

_STRATEGIES = [s.value for s in ExecutionStrategy]


class ToolDeckApp:
    """Wires configuration, provider, catalog and orchestrator together."""

    def __init__(self, config_path: Optional[str] = None, plugins: Sequence[str] = ()):
        self.config = ConfigManager(config_path)
        self.settings: EngineSettings = self.config.get_engine_settings()
        self.catalog: Catalog = build_catalog(plugins or None)
        self._provider: Optional[BaseProvider] = None

    @property
    def provider(self) -> BaseProvider:
        if self._provider is None:
            provider_config = self.config.get_provider_config()
            if provider_config is None:
                raise ConfigError("No API key configured for the provider")
            self._provider = create_provider(
                self.config.get_provider_name(), provider_config,
            )
        return self._provider

    def selector(self) -> Selector:
        if not self.settings.relevance_enabled:
            return Selector(self.catalog)
        return Selector.from_path(self.catalog, self.settings.embed_path)

    async def run(
        self, prompts: Sequence[str], strategy: ExecutionStrategy,
    ) -> SessionResult:
        provider = self.provider
        sink = LogSink().bind()
        drain = asyncio.create_task(sink.drain(render_log))
        orchestrator = SessionOrchestrator(
            self.catalog,
            provider,
            selector=self.selector(),
            settings=self.settings,
            embedder=provider,
            log_sink=sink,
        )
        try:
            if len(prompts) == 1:
                return await orchestrator.run_prompt(prompts[0], strategy)
            return await orchestrator.run_steps(prompts, strategy)
        finally:
            sink.close()
            await drain


def _run(app: ToolDeckApp, prompts: Sequence[str], strategy: Optional[str]) -> None:
    chosen = ExecutionStrategy(strategy) if strategy else app.settings.strategy
    start = time.monotonic()
    try:
        result = asyncio.run(app.run(prompts, chosen))
    except ToolDeckError as e:
        render_error(str(e))
        sys.exit(1)
    render_result(result)
    console.print(f"Completed in {time.monotonic() - start:.2f} seconds", style="dim")


@click.group()
@click.option("--config", "config_path", help="Path to config.yaml")
@click.option("--plugin", "plugins", multiple=True, help="Only load these plugins")
@click.option("--verbose", "-v", is_flag=True, help="Log diagnostics to stderr")
@click.pass_context
def cli(ctx, config_path, plugins, verbose):
    """ToolDeck - token-aware function calling for chat models."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = ToolDeckApp(config_path, plugins)
    except ToolDeckError as e:
        render_error(str(e))
        sys.exit(1)


@cli.command()
@click.argument("prompt", nargs=-1, required=True)
@click.option("--strategy", type=click.Choice(_STRATEGIES), help="Tool call execution strategy")
@click.pass_obj
def ask(app, prompt, strategy):
    """Send a free-form prompt through the orchestrator."""
    _run(app, [" ".join(prompt)], strategy)


@cli.command()
@click.argument("prompts", nargs=-1, required=True)
@click.option("--strategy", type=click.Choice(_STRATEGIES), help="Tool call execution strategy")
@click.pass_obj
def steps(app, prompts, strategy):
    """Run PROMPTS as dependent steps of one session."""
    _run(app, list(prompts), strategy)


@cli.command()
@click.pass_obj
def catalog(app):
    """List catalog functions and their token costs."""
    render_catalog(app.catalog)
    total = app.catalog.total_token_cost(app.catalog.advertised_names())
    console.print(
        f"{len(app.catalog)} functions, {total} tokens advertised "
        f"(function budget {app.settings.max_function_tokens})",
        style="dim",
    )


@cli.group()
def index():
    """Manage the function embedding archive."""


@index.command("build")
@click.option("--path", "path", help="Archive path (default: from config)")
@click.pass_obj
def index_build(app, path):
    """Embed catalog functions missing from the archive."""
    target = path or app.settings.embed_path
    if not target:
        render_error("No embedding archive path configured")
        sys.exit(1)
    try:
        added = asyncio.run(build_index(app.catalog, app.provider, target))
    except ToolDeckError as e:
        render_error(str(e))
        sys.exit(1)
    if added:
        console.print(f"Embedded {len(added)} function(s) into {target}")
    else:
        console.print(f"{target} is up to date", style="dim")


@cli.command()
@click.pass_obj
def config(app):
    """Show the config path and effective settings."""
    settings = app.settings
    console.print(f"Config: {app.config.config_path}")
    console.print(f"Model: {settings.model}")
    console.print(
        f"Tokens: response {settings.max_response_tokens}, "
        f"request {settings.max_request_tokens}, "
        f"functions {settings.max_function_tokens}"
    )
    console.print(f"Max depth: {settings.max_depth}")
    console.print(f"Strategy: {settings.strategy.value}")
    if settings.relevance_enabled:
        console.print(f"Relevance: {settings.embed_path} ({settings.embed_model})")
    else:
        console.print("Relevance: disabled (advertising the whole catalog)")


if __name__ == "__main__":
    cli()
