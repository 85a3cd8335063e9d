"""Command line entry point for generating images into markdown documents."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from app.config import Settings, settings
from genimage.core.errors import GenImageError
from genimage.core.image_generator import ImageGenerator
from genimage.core.insertion import InsertionOutcome, MarkerInserter
from genimage.core.models import Cancelled, PromptTemplate
from genimage.utils.documents import FileDocumentStore
from genimage.utils.log_sanitizer import install_secret_masking
from genimage.utils.prompt_parser import load_prompt_catalog

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

CANCEL_CHOICE = "q"


def configure_logging(config: Settings) -> None:
    """Configure root logging once, with secrets masked on every handler."""
    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if config.log_file:
        log_path = Path(config.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter('[%(asctime)s] [%(levelname)s] %(name)s: %(message)s')
        )
        logging.getLogger().addHandler(file_handler)
    install_secret_masking()


class ConsoleNotifier:
    """Prints notifications to the terminal."""

    def __init__(self, output: Console):
        self.output = output

    def notify(self, message: str) -> None:
        self.output.print(f"[bold cyan]genimage:[/bold cyan] {escape(message)}")


class ConsoleTemplateSelector:
    """Lets the user pick a template by number, or ``q`` to cancel."""

    def __init__(self, output: Console):
        self.output = output

    async def select(self, templates: list[PromptTemplate]) -> Union[PromptTemplate, Cancelled]:
        self.output.print(templates_table(templates))
        choices = [str(i) for i in range(1, len(templates) + 1)] + [CANCEL_CHOICE]
        answer = await asyncio.to_thread(
            Prompt.ask,
            "Select a prompt style",
            choices=choices,
            default=CANCEL_CHOICE,
            console=self.output,
        )
        if answer == CANCEL_CHOICE:
            return Cancelled()
        return templates[int(answer) - 1]


def templates_table(templates: list[PromptTemplate]) -> Table:
    table = Table(title="Prompt templates")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Aspect ratio")
    table.add_column("Image size")
    for i, template in enumerate(templates, 1):
        table.add_row(str(i), template.name, template.aspect_ratio, template.image_size)
    return table


def _document_id(note: Path, root: Path) -> str:
    try:
        return str(note.resolve().relative_to(root.resolve()))
    except ValueError:
        return str(note.resolve())


async def _run_generation(note: Path, selection: Optional[tuple[int, int]]) -> Optional[InsertionOutcome]:
    generation_settings = settings.generation_settings()
    root = generation_settings.storage_root
    store = FileDocumentStore(root)
    generator = ImageGenerator(
        generation_settings,
        selector=ConsoleTemplateSelector(console),
        notifier=ConsoleNotifier(console),
    )
    inserter = MarkerInserter(generator, store)

    editor = store.editor(_document_id(note, root), selection)
    task = inserter.submit(editor)
    if task is None:
        return None
    return await task


@app.command()
def generate(
    note: Path = typer.Argument(..., exists=True, dir_okay=False, help="Markdown document"),
    start: Optional[int] = typer.Option(None, "--start", min=0, help="Selection start offset"),
    end: Optional[int] = typer.Option(None, "--end", min=0, help="Selection end offset"),
):
    """Generate an image from a document (or a selection of it) and insert it."""
    configure_logging(settings)

    selection = None
    if start is not None or end is not None:
        if start is None or end is None or end < start:
            console.print("[bold red]--start and --end must be given together, with start <= end[/bold red]")
            raise typer.Exit(code=2)
        selection = (start, end)

    logger.info(f"Starting generation for {note}")

    outcome = asyncio.run(_run_generation(note, selection))
    if outcome is None:
        console.print("[yellow]Nothing to generate from[/yellow]")
        raise typer.Exit(code=1)
    if outcome.cancelled:
        console.print("[yellow]Cancelled[/yellow]")
        return
    if not outcome.succeeded:
        raise typer.Exit(code=1)
    if not outcome.resolved:
        console.print(f"[yellow]Image saved to {outcome.result.asset.relative_path} but the marker was gone[/yellow]")
        return
    console.print(f"[green]Inserted {outcome.result.asset.relative_path} into {note}[/green]")


@app.command()
def templates():
    """List the available prompt templates."""
    configure_logging(settings)
    generation_settings = settings.generation_settings()
    try:
        settings.validate_paths()
        catalog = load_prompt_catalog(generation_settings.storage_root / generation_settings.prompt_directory)
    except GenImageError as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        raise typer.Exit(code=1)
    console.print(templates_table(catalog))


if __name__ == "__main__":
    app()
