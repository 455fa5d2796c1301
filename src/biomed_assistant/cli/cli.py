"""Command-line interface for the biomedical assistant."""

import asyncio
import json
from pathlib import Path

import click
from dotenv import load_dotenv

from biomed_assistant.config import get_settings
from biomed_assistant.utils.cache import ResultCache
from biomed_assistant.utils.log_config import configure_logging


@click.group()
@click.version_option(package_name="biomed-assistant")
def main():
    """Biomedical assistant: literature-enriched chat relay."""
    load_dotenv()


@main.command()
@click.option("--host", default=None, help="Bind address (defaults to HOST setting)")
@click.option("--port", type=int, default=None, help="Port (defaults to PORT setting)")
def serve(host: str | None, port: int | None):
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "biomed_assistant.api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@main.command()
@click.argument("query")
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def lookup(query: str, output: str | None):
    """Run one enrichment lookup and print what the chat would receive."""
    from biomed_assistant.api.main import build_orchestrator

    settings = get_settings()
    configure_logging(settings.log_level)

    async def _run():
        orchestrator = build_orchestrator(settings, ResultCache())
        try:
            return await orchestrator.enrich(query)
        finally:
            await orchestrator.close()

    result = asyncio.run(_run())
    if result is None:
        click.echo("No biomedical data found (both sources failed or timed out).")
        return

    text = json.dumps(result.model_dump(mode="json"), indent=2)
    if output:
        Path(output).write_text(text)
        click.echo(f"Results saved to: {output}")
    else:
        click.echo(text)


if __name__ == "__main__":
    main()
