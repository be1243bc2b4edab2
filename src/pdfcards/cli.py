"""CLI entry point for pdfcards."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click

from .commands import Commands
from .config import Config, load_config
from .exceptions import ConfigError
from .geometry import ClientRect, Overlay, PageBox
from .manager import FlashcardManager
from .models import HIGHLIGHT_COLORS, Notice, NoticeKind
from .review import ReviewSession, SessionStatus
from .storage import Store
from .viewer import Selection, ViewerController


def document_key(pdf_path: str, vault_path: Path) -> str:
    """Vault-relative POSIX path of a document, or its absolute path outside the vault."""
    path = Path(pdf_path).resolve()
    try:
        return path.relative_to(vault_path.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


class SnapshotSurface:
    """A viewer surface backed by a JSON snapshot of selection and page boxes.

    Snapshot format::

        {"text": "...",
         "rects": [{"left": 0, "top": 0, "width": 10, "height": 10}],
         "pages": [{"pageNumber": 1, "left": 0, "top": 0,
                    "width": 600, "height": 800}]}
    """

    def __init__(self, source: str, snapshot: dict):
        self.view_id = f"snapshot:{source}"
        self._source = source
        self._selection = Selection(
            text=str(snapshot.get("text", "")),
            rects=[_client_rect(r) for r in snapshot.get("rects", [])],
        )
        self._pages = [
            PageBox(page_number=int(p.get("pageNumber", 1)), box=_client_rect(p))
            for p in snapshot.get("pages", [])
        ]
        self.overlays: list[Overlay] = []

    def source_path(self) -> Optional[str]:
        return self._source

    def is_mounted(self) -> bool:
        return bool(self._pages)

    def selection(self) -> Optional[Selection]:
        if not self._selection.text.strip() and not self._selection.rects:
            return None
        return self._selection

    def mounted_pages(self) -> list[PageBox]:
        return list(self._pages)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return lambda: None

    def draw_overlays(self, overlays: list[Overlay]) -> None:
        self.overlays = overlays

    def clear_selection(self) -> None:
        self._selection = Selection(text="")


def _client_rect(data: dict) -> ClientRect:
    return ClientRect(
        left=float(data.get("left", 0)),
        top=float(data.get("top", 0)),
        width=float(data.get("width", 0)),
        height=float(data.get("height", 0)),
    )


def _echo_notice(notice: Notice) -> None:
    if notice.kind is NoticeKind.FAILURE:
        click.echo(notice.message, err=True)
    else:
        click.echo(notice.message)


def _finish(notice: Notice) -> None:
    _echo_notice(notice)
    if notice.kind is NoticeKind.FAILURE:
        sys.exit(1)


async def _with_store(config: Config, action):
    store = Store(config.storage_root)
    try:
        return await action(store)
    finally:
        await store.close()


@click.group()
@click.option(
    "--vault-path",
    type=click.Path(file_okay=False),
    default=None,
    help="Vault root (default: current directory or PDFCARDS_VAULT_PATH env var)",
)
@click.option(
    "--storage-folder",
    type=str,
    default=None,
    help="Folder under the vault for highlights, flashcards and progress (default: .flashcards)",
)
@click.option(
    "--provider",
    type=click.Choice(["openai", "claude"]),
    default=None,
    help="LLM provider (default: openai, or PDFCARDS_PROVIDER env var)",
)
@click.option(
    "--model",
    type=str,
    default=None,
    help="LLM model to use (default: gpt-5.1 or claude-sonnet-4-20250514)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx, vault_path, storage_folder, provider, model, verbose):
    """Highlight PDFs, turn highlights into flashcards, and review them."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(
            vault_path=vault_path,
            storage_folder=storage_folder,
            provider=provider,
            model=model,
            verbose=verbose,
        )
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    if verbose:
        click.echo(f"Provider: {config.llm_provider} ({config.default_model})")
        click.echo(f"Storage root: {config.storage_root}")
    ctx.obj = config


@main.command()
@click.argument("pdf", type=click.Path(dir_okay=False))
@click.argument("snapshot", type=click.File("r"))
@click.option(
    "--color",
    type=click.Choice(list(HIGHLIGHT_COLORS)),
    default="yellow",
    show_default=True,
)
@click.pass_obj
def capture(config, pdf, snapshot, color):
    """Save a highlight from a viewer SNAPSHOT (JSON) of PDF."""
    try:
        data = json.load(snapshot)
    except ValueError as e:
        click.echo(f"Invalid snapshot: {e}", err=True)
        sys.exit(2)
    surface = SnapshotSurface(document_key(pdf, config.vault_path), data)

    async def run(store):
        controller = ViewerController(store, surface)
        notice = await controller.capture(color)
        if config.verbose:
            click.echo(f"  {len(surface.overlays)} overlay rect(s) on mounted pages")
        return notice

    _finish(asyncio.run(_with_store(config, run)))


@main.command()
@click.argument("pdf", type=click.Path(dir_okay=False))
@click.pass_obj
def highlights(config, pdf):
    """List the stored highlights of PDF."""
    key = document_key(pdf, config.vault_path)

    async def run(store):
        return await store.load_highlights(key)

    found = asyncio.run(_with_store(config, run))
    if not found:
        click.echo("No highlights.")
        return
    for h in found:
        flag = " [generated]" if h.flashcard_generated else ""
        pages = ", ".join(str(p.page + 1) for p in h.pages)
        click.echo(f"{h.id}  {h.color:<9} p.{pages}{flag}  {h.text[:60]}")


@main.command()
@click.argument("pdf", type=click.Path(dir_okay=False))
@click.pass_obj
def generate(config, pdf):
    """Generate flashcards from PDF's flashcard highlights."""
    key = document_key(pdf, config.vault_path)

    async def run(store):
        return await Commands(config, store, lambda: key).generate_flashcards()

    _finish(asyncio.run(_with_store(config, run)))


@main.command()
@click.argument("pdf", type=click.Path(dir_okay=False))
@click.pass_obj
def export(config, pdf):
    """Export PDF's highlights to '<name> Annotations.md'."""
    key = document_key(pdf, config.vault_path)

    async def run(store):
        return await Commands(config, store, lambda: key).export_annotations()

    _finish(asyncio.run(_with_store(config, run)))


@main.command()
@click.pass_obj
def review(config):
    """Review flashcards interactively."""
    asyncio.run(_with_store(config, _review_loop))


async def _review_loop(store: Store) -> None:
    session = await ReviewSession(store).load()
    while True:
        status = session.status
        if status is SessionStatus.EMPTY:
            click.echo("No flashcards yet. Generate some from PDF highlights.")
            return
        if status is SessionStatus.FINISHED:
            click.echo("Congrats! You finished all flashcards.")
            if not click.confirm("Restart?", default=False):
                return
            await session.reset()
            continue

        label = "A" if session.showing_answer else "Q"
        click.echo(f"\n{session.summary()}")
        click.echo(f"{label}: {session.face()}")
        choice = click.prompt(
            "[s]how/hide, [g]ood, [a]gain, [q]uit",
            type=click.Choice(["s", "g", "a", "q"]),
            show_choices=False,
        )
        if choice == "q":
            return
        if choice == "s":
            session.toggle_reveal()
        else:
            await session.grade(choice == "g")


@main.group()
def cards():
    """Manage flashcards."""


@cards.command("list")
@click.pass_obj
def list_cards(config):
    """List all flashcards."""

    async def run(store):
        return await store.load_all_cards()

    found = asyncio.run(_with_store(config, run))
    if not found:
        click.echo("No flashcards yet.")
        return
    for card in found:
        click.echo(f"{card.id}  Q: {card.question}\n{' ' * len(card.id)}  A: {card.answer}")


@cards.command("add")
@click.argument("question")
@click.argument("answer")
@click.pass_obj
def add_card(config, question, answer):
    """Add a manual flashcard."""

    async def run(store):
        manager = FlashcardManager(store)
        await manager.load()
        return await manager.add(question, answer)

    card = asyncio.run(_with_store(config, run))
    if card is None:
        click.echo("Question and answer are both required.", err=True)
        sys.exit(1)
    click.echo(f"Added {card.id}")


@cards.command("edit")
@click.argument("card_id")
@click.argument("question")
@click.argument("answer")
@click.pass_obj
def edit_card(config, card_id, question, answer):
    """Replace a flashcard's question and answer."""

    async def run(store):
        manager = FlashcardManager(store)
        await manager.load()
        return await manager.edit(card_id, question, answer)

    if asyncio.run(_with_store(config, run)) is None:
        click.echo(f"Not updated: {card_id}", err=True)
        sys.exit(1)
    click.echo(f"Updated {card_id}")


@cards.command("delete")
@click.argument("card_id")
@click.pass_obj
def delete_card(config, card_id):
    """Delete a flashcard and its review progress."""

    async def run(store):
        manager = FlashcardManager(store)
        await manager.load()
        return await manager.delete(card_id)

    if not asyncio.run(_with_store(config, run)):
        click.echo(f"No such flashcard: {card_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {card_id}")
