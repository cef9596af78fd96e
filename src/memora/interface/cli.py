"""memora CLI: server, configuration and one-off grading commands."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from memora.application.config import resolve_config

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="memora: spaced-repetition review engine with cascading answer grading.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage memora configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port.")] = None,
    database_path: Annotated[
        Path | None, typer.Option(help="SQLite database file. In-memory if omitted.")
    ] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on code changes.")] = False,
):
    """[bold green]Serve[/bold green] the review API over HTTP."""
    import uvicorn

    config = resolve_config({"host": host, "port": port, "database_path": database_path})
    logging.getLogger().setLevel(config.log_level)

    if reload:
        # The reloader imports the app by path and resolves config from env/TOML.
        if database_path is not None:
            typer.secho(
                "--database-path cannot be combined with --reload; "
                "set MEMORA_DATABASE_PATH instead.",
                fg="red",
                err=True,
            )
            raise typer.Exit(2)
        target = "memora.server:app"
    else:
        from memora.server import create_app

        target = create_app(config=config)

    uvicorn.run(
        target,
        host=config.host,
        port=config.port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@app.command()
def grade(
    expected: Annotated[str, typer.Argument(help="The expected answer.")],
    answer: Annotated[str, typer.Argument(help="The answer to grade.")],
    question: Annotated[str, typer.Option(help="Question text given to the judge.")] = "",
):
    """Grade one answer with the configured validator and print the result."""
    from memora.application.factory import get_validator
    from memora.application.scheduler import score_to_grade
    from memora.domain.errors import ValidationFailure
    from memora.infrastructure.adapters.openai_backend import OpenAIBackend

    config = resolve_config()
    validator, embedder = get_validator(config)

    async def run():
        try:
            return await validator.validate(expected, answer, question)
        finally:
            if isinstance(embedder, OpenAIBackend):
                await embedder.aclose()

    try:
        outcome = asyncio.run(run())
    except ValidationFailure as e:
        typer.secho(f"Validation failed: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    result = score_to_grade(outcome.score)
    typer.echo(
        json.dumps(
            {
                "score": round(outcome.score, 4),
                "method": outcome.method.value,
                "grade": int(result),
                "grade_name": result.name.title(),
            }
        )
    )


# ---------------------------------------------------------------------------
# Config subcommands
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Print the resolved configuration as JSON (secrets masked)."""
    config = resolve_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, default=str))


def main():
    app()


if __name__ == "__main__":
    main()
