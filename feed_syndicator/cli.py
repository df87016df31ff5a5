"""Command line interface for the feed syndicator."""

import time
from typing import Optional

import click
import requests
import structlog

from feed_syndicator.api import create_app, start_api_server
from feed_syndicator.cache import CacheEvictionJob
from feed_syndicator.config import SyndicatorConfig
from feed_syndicator.core.rss import render_rss
from feed_syndicator.errors import SyndicatorError
from feed_syndicator.logging_config import configure_logging
from feed_syndicator.metrics import start_metrics_server
from feed_syndicator.services import build_cache, build_services

logger = structlog.get_logger(__name__)


def load_config(env_file: Optional[str]) -> SyndicatorConfig:
    """Load configuration from the environment, exiting with a message on failure."""
    try:
        config = SyndicatorConfig.from_env(env_file)
    except SyndicatorError as e:
        raise click.ClickException(e.message) from e
    configure_logging(config.log_level)
    return config


@click.group()
@click.option("--env-file", type=click.Path(dir_okay=False), help="Path to a .env file")
@click.pass_context
def cli(ctx, env_file: Optional[str]):
    """Feed Syndicator CLI."""
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file


@cli.command()
@click.option("--host", default=None, help="Interface to bind, overrides HOST")
@click.option("--port", type=int, default=None, help="Port to listen on, overrides PORT")
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]) -> None:
    """Run the HTTP server."""
    config = load_config(ctx.obj["env_file"])

    try:
        app = create_app(services=build_services(config))
    except SyndicatorError as e:
        raise click.ClickException(e.message) from e

    if config.metrics_port:
        start_metrics_server(config.metrics_port)
        logger.info("Metrics server started", port=config.metrics_port)

    server = start_api_server(app, host or config.host, port or config.port)
    click.echo(f"Server started on http://{host or config.host}:{port or config.port}")

    try:
        # Keep the main thread alive
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        click.echo("\nShutting down server...")
        server.shutdown()


@cli.command("evict-cache")
@click.option(
    "--url",
    default=None,
    help="Base URL of a running server to evict through, needed for the memory backend",
)
@click.pass_context
def evict_cache(ctx, url: Optional[str]) -> None:
    """Delete every cached feed in one batch."""
    if url:
        try:
            response = requests.post(f"{url.rstrip('/')}/cache/evict", timeout=30)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise click.ClickException(f"Eviction request failed: {e}") from e
        click.echo(f"Evicted {response.json().get('evicted', 0)} entries")
        return

    config = load_config(ctx.obj["env_file"])
    if config.cache_backend == "memory":
        raise click.ClickException(
            "The memory cache lives in the server process; pass --url to evict through it"
        )
    try:
        evicted = CacheEvictionJob(build_cache(config)).run()
    except SyndicatorError as e:
        raise click.ClickException(e.message) from e
    click.echo(f"Evicted {evicted} entries")


@cli.command()
@click.argument("source", type=click.Choice(["facebook", "twitter"]))
@click.argument("subject")
@click.pass_context
def render(ctx, source: str, subject: str) -> None:
    """Print the RSS document for one subject."""
    config = load_config(ctx.obj["env_file"])

    try:
        services = build_services(config)
        service = services.facebook if source == "facebook" else services.twitter
        feed = service.get_feed(subject)
    except SyndicatorError as e:
        raise click.ClickException(e.message) from e

    click.echo(render_rss(feed))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
