"""CLI interface using typer."""

import asyncio
import json
import logging
import sys

import typer

from .cache import SqliteCache
from .config import settings
from .errors import ConfigurationError, FetchFailure
from .fetcher import DEFAULT_DECOMPRESSOR, ConditionalFetcher
from .log import configure_logging
from .models import FetchResult

app = typer.Typer(
    name="urifetch",
    help="Conditional HTTP fetcher with ETag/Last-Modified caching",
    no_args_is_help=True,
)


async def _fetch(
    url: str,
    cache_path: str | None = None,
    etag: str | None = None,
    last_modified: str | None = None,
    gzip: bool = True,
) -> FetchResult:
    """Run a single fetch, optionally backed by an on-disk cache."""
    options = {}
    if etag:
        options["etag"] = etag
    if last_modified:
        options["last_modified"] = last_modified

    cache = SqliteCache(cache_path) if cache_path else None
    if cache is not None:
        options["cache"] = cache
    try:
        async with ConditionalFetcher(decompressor=DEFAULT_DECOMPRESSOR if gzip else None) as fetcher:
            return await fetcher.fetch(url, **options)
    finally:
        if cache is not None:
            cache.close()


def _to_dict(result: FetchResult) -> dict:
    return {
        "uri": result.uri,
        "status": result.status.name,
        "http_status": result.http_status,
        "etag": result.etag,
        "last_modified": result.last_modified.isoformat() if result.last_modified else None,
        "content_length": len(result.content) if isinstance(result.content, (bytes, str)) else None,
        "content": result.content_text,
    }


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL to fetch"),
    cache: str = typer.Option(settings.cache_path, "--cache", help="SQLite cache file for validators and content"),
    etag: str = typer.Option(None, "--etag", help="Send If-None-Match with this ETag"),
    last_modified: str = typer.Option(None, "--last-modified", help="Send If-Modified-Since (HTTP date)"),
    gzip: bool = typer.Option(True, "--gzip/--no-gzip", help="Advertise gzip transfer"),
    output: str = typer.Option(None, "-o", "--output", help="Output file (JSON)"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only output content"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show debug logs"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    """Fetch a single URL."""
    configure_logging(level=logging.DEBUG if verbose else logging.WARNING, json_format=json_logs)

    try:
        result = asyncio.run(_fetch(url, cache_path=cache, etag=etag, last_modified=last_modified, gzip=gzip))
    except (FetchFailure, ConfigurationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    data = _to_dict(result)
    if output:
        with open(output, "w") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        typer.echo(f"Saved to {output}")
    elif quiet:
        sys.stdout.write(data["content"])
    else:
        typer.echo(f"URI: {data['uri']}")
        typer.echo(f"Status: {data['status']}")
        typer.echo(f"HTTP-Status: {data['http_status']}")
        if data["etag"]:
            typer.echo(f"ETag: {data['etag']}")
        if data["last_modified"]:
            typer.echo(f"Last-Modified: {data['last_modified']}")
        if data["content"]:
            typer.echo("---")
            typer.echo(data["content"][:2000])
            if len(data["content"]) > 2000:
                typer.echo(f"\n... (truncated, {len(data['content'])} chars total)")


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"urifetch {__version__}")


if __name__ == "__main__":
    app()
