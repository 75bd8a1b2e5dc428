"""
Command-line interface for Lector.
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from lector import __version__
from lector.config import Settings, load_settings
from lector.epub_reader import open_book
from lector.exceptions import (
    EPUBError,
    ExtractionError,
    InvalidSpeedError,
    LectorError,
    NoActiveProcessError,
    SpawnRefusedError,
    StateCorruptedError,
)
from lector.extraction import ContextTag, DocumentContext, Region
from lector.process_controller import SUPPORTS_SUSPEND, ProcessController, ProcessHandle
from lector.speak_service import SpeakService
from lector.state import HandleStore

console = Console()

TEXT_MODES = [ContextTag.PLAIN.value, ContextTag.ARTICLE.value, ContextTag.BANNER.value]


def _confirm_callback(replace: bool | None):
    """Map the --replace/--no-replace flag to a confirm_replace callback."""
    if replace is None:

        def ask(handle: ProcessHandle) -> bool:
            return click.confirm(
                f"Speech process {handle.pid} is still {handle.state.value}. Replace it?",
                default=True,
            )

        return ask
    if replace:
        return lambda handle: True
    return None


def _make_controller(settings: Settings, replace: bool | None = False) -> ProcessController:
    """Build a controller bound to the persisted handle."""
    store = HandleStore()
    options = {
        "executable": settings.executable,
        "default_speed": settings.speed,
        "confirm_replace": _confirm_callback(replace),
    }
    try:
        return ProcessController(store=store, **options)
    except StateCorruptedError as e:
        console.print(f"[yellow]Warning:[/yellow] {e}")
        console.print("[yellow]Discarding saved speech process state[/yellow]")
        store.clear()
        return ProcessController(store=store, **options)


def _report_error(e: LectorError) -> None:
    if isinstance(e, SpawnRefusedError):
        console.print(f"[red]Speech Error:[/red] {e}")
        console.print("[yellow]Hint:[/yellow] Use --replace, or 'lector stop' first")
    elif isinstance(e, NoActiveProcessError):
        console.print(f"[yellow]{e}[/yellow]")
    elif isinstance(e, ExtractionError):
        console.print(f"[red]Extraction Error:[/red] {e}")
    elif isinstance(e, EPUBError):
        console.print(f"[red]EPUB Error:[/red] {e}")
        console.print("[yellow]Hint:[/yellow] Ensure the file is a valid EPUB format")
    else:
        console.print(f"[red]Error:[/red] {e}")


def _speak(settings: Settings, source, speed, replace, force_region=False) -> ProcessHandle:
    service = SpeakService(_make_controller(settings, replace))
    handle = service.speak(source, speed=speed, force_region=force_region)
    delivery = "spill file" if handle.spill_path else "inline text"
    console.print(f"[green]✓[/green] Speaking (pid {handle.pid}, {delivery})")
    return handle


replace_option = click.option(
    "--replace/--no-replace",
    default=None,
    help="Replace a speech process that is still active (default: ask)",
)
speed_option = click.option(
    "--speed",
    "-s",
    type=click.IntRange(min=1),
    default=None,
    help="Engine speed (default: $LECTOR_SPEED or the built-in default)",
)


@click.group()
@click.version_option(version=__version__, prog_name="lector")
@click.option("--executable", "-e", default=None, help="Speech engine executable (default: espeak)")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, executable: str | None, verbose: bool):
    """
    Lector - speak text through an external speech engine

    Links are replaced by a short notice naming their host before speaking.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )

    try:
        settings = load_settings()
    except InvalidSpeedError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        raise click.Abort() from e

    if executable:
        settings.executable = executable
    ctx.obj = settings


@main.command()
@click.argument("file", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--mode",
    "-m",
    type=click.Choice(TEXT_MODES, case_sensitive=False),
    default=ContextTag.PLAIN.value,
    help="Document kind deciding which part is spoken (default: plain)",
)
@click.option("--start", type=click.IntRange(min=0), default=None, help="Region start offset")
@click.option("--end", type=click.IntRange(min=0), default=None, help="Region end offset")
@speed_option
@replace_option
@click.pass_obj
def speak(
    settings: Settings,
    file,
    mode: str,
    start: int | None,
    end: int | None,
    speed: int | None,
    replace: bool | None,
):
    """
    Speak a text file, or standard input.

    Examples:

        lector speak notes.txt

        lector speak message.eml --mode article

        lector speak notes.txt --start 120 --end 480

        echo "See www.example.org" | lector speak
    """
    text = file.read()
    use_region = start is not None or end is not None
    context = DocumentContext(mode=mode.lower(), text=text)
    if use_region or context.mode == ContextTag.PLAIN.value:
        region_start = start if start is not None else 0
        region_end = end if end is not None else len(text)
        context.regions.append(Region(region_start, region_end))

    try:
        _speak(settings, context, speed, replace, force_region=use_region)
    except LectorError as e:
        _report_error(e)
        raise click.Abort() from e

    if use_region and settings.move_point:
        console.print(f"[cyan]Point:[/cyan] {min(context.regions[0].bounds()[1], len(text))}")


@main.command()
@click.argument("words", nargs=-1, required=True)
@speed_option
@replace_option
@click.pass_obj
def say(settings: Settings, words: tuple[str, ...], speed: int | None, replace: bool | None):
    """
    Speak the given words.

    Examples:

        lector say "Build finished, see https://ci.example.com/runs/42"
    """
    try:
        _speak(settings, " ".join(words), speed, replace)
    except LectorError as e:
        _report_error(e)
        raise click.Abort() from e


@main.command()
@click.argument("epub_file", type=click.Path(exists=True))
@click.option("--page", "-p", "page_number", type=int, default=1, help="Page to speak (default: 1)")
@speed_option
@replace_option
@click.pass_obj
def page(settings: Settings, epub_file: str, page_number: int, speed: int | None, replace: bool | None):
    """
    Speak one page of an EPUB book.

    Use "lector inspect" to list the pages.

    Examples:

        lector page mybook.epub --page 3
    """
    try:
        book = open_book(epub_file)
        context = DocumentContext(mode=ContextTag.PAGE, page_source=book.page_source(page_number))
        _speak(settings, context, speed, replace)
    except LectorError as e:
        _report_error(e)
        raise click.Abort() from e


@main.command()
@click.argument("epub_file", type=click.Path(exists=True))
def inspect(epub_file: str):
    """
    Inspect an EPUB file and list all pages.

    Examples:

        lector inspect mybook.epub
    """
    try:
        book = open_book(epub_file)
    except EPUBError as e:
        _report_error(e)
        raise click.Abort() from e

    console.print(f"[green]✓[/green] {book.title} by {book.author}")
    console.print(f"[green]✓[/green] Total pages: {len(book.pages)}\n")

    table = Table(show_header=True, show_edge=False, show_lines=False, box=None)
    table.add_column("Page", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Words", style="yellow", justify="right")

    for item in book.pages:
        table.add_row(str(item.number), item.title, str(len(item.content.split())))

    console.print(table)


@main.command()
@click.option("--quiet", "-q", is_flag=True, default=False, help="Succeed even if nothing is speaking")
@click.pass_obj
def stop(settings: Settings, quiet: bool):
    """Stop the speech process."""
    controller = _make_controller(settings)
    try:
        controller.terminate(missing_ok=quiet)
    except LectorError as e:
        _report_error(e)
        raise click.Abort() from e
    console.print("[green]✓[/green] Stopped")


@main.command()
@click.pass_obj
def status(settings: Settings):
    """Show the speech process status."""
    controller = _make_controller(settings)
    state = controller.refresh()
    handle = controller.handle

    console.print(f"[cyan]State:[/cyan] {state.value}")
    if handle is None:
        return

    console.print(f"[cyan]PID:[/cyan] {handle.pid}")
    console.print(f"[cyan]Started:[/cyan] {handle.started_at}")
    if handle.spill_path:
        console.print(f"[cyan]Spill file:[/cyan] {handle.spill_path}")


if SUPPORTS_SUSPEND:

    @main.command()
    @click.pass_obj
    def pause(settings: Settings):
        """Suspend the speech process."""
        try:
            handle = _make_controller(settings).pause()
        except LectorError as e:
            _report_error(e)
            raise click.Abort() from e
        console.print(f"[yellow]⏸[/yellow] Paused (pid {handle.pid})")

    @main.command()
    @click.pass_obj
    def resume(settings: Settings):
        """Continue a suspended speech process."""
        try:
            handle = _make_controller(settings).resume()
        except LectorError as e:
            _report_error(e)
            raise click.Abort() from e
        console.print(f"[green]▶[/green] Resumed (pid {handle.pid})")

    @main.command()
    @click.pass_obj
    def toggle(settings: Settings):
        """Pause the speech process if running, resume it if paused."""
        try:
            state = _make_controller(settings).toggle()
        except LectorError as e:
            _report_error(e)
            raise click.Abort() from e
        console.print(f"[cyan]State:[/cyan] {state.value}")


if __name__ == "__main__":
    main()
