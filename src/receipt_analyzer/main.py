import asyncio
import os
from pathlib import Path
from pprint import pformat

import typer
import uvicorn
from dotenv import load_dotenv

from receipt_analyzer.errors import ReceiptAnalysisError
from receipt_analyzer.integrations.bedrock import create_bedrock_client
from receipt_analyzer.integrations.receipt_extractor import (
    DEFAULT_TEMPLATE,
    ReceiptAnalyzer,
)
from receipt_analyzer.logging_config import setup_logging

load_dotenv()

app = typer.Typer(no_args_is_help=True)


@app.callback(invoke_without_command=True)
def callback(ctx: typer.Context):
    """Receipt analyzer CLI tool."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command()
def analyze(
    image_path: Path = typer.Argument(..., help="Path to the receipt image"),
    template: str = typer.Option(
        DEFAULT_TEMPLATE, "--template", "-t", help="Instruction template to use"
    ),
):
    """Analyze a single receipt image and print the result."""
    setup_logging()

    try:
        image = image_path.read_bytes()
    except OSError as e:
        typer.echo(f"Error: cannot read {image_path}: {e}", err=True)
        raise typer.Exit(code=1) from e

    try:
        model_client = create_bedrock_client()
    except Exception as e:
        typer.echo(f"Failed to initialize Bedrock client: {e}", err=True)
        raise typer.Exit(code=1) from e

    analyzer = ReceiptAnalyzer(model_client, template=template)

    try:
        receipt = asyncio.run(analyzer.analyze(image))
    except ReceiptAnalysisError as e:
        typer.echo(f"Failed to analyze {image_path.name}: {e!r}", err=True)
        if e.__cause__ is not None:
            typer.echo(f"Caused by: {e.__cause__!r}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(pformat(receipt.model_dump(), sort_dicts=False))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
):
    """Serve the HTTP API."""
    setup_logging()
    uvicorn.run(
        "receipt_analyzer.server:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def main():
    app()


if __name__ == "__main__":
    main()
