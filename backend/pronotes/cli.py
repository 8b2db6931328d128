"""
ProNotes command line front end.

Every command is one user action on the board: it runs the action, prints
the resulting board (or the export path), and reports alerts on stderr.
"""

import argparse
import asyncio
import sys
from datetime import date, time

from pronotes.config import Settings, get_settings
from pronotes.core.dependencies import get_note_store
from pronotes.features.notes.board import NoteCard, NotesBoard
from pronotes.features.notes.indicator import SavedIndicator
from pronotes.features.notes.schemas import ImportMode
from pronotes.main import configure_logging


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'")


def _parse_time(value: str) -> time:
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected HH:MM, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pronotes", description="Sticky notes from the terminal.")
    ap.add_argument("--backend", choices=["local", "api"], default=None,
                    help="Note store to use (default: NOTES_BACKEND)")
    ap.add_argument("--store", default=None,
                    help="Local notes file (default: LOCAL_STORE_PATH)")
    ap.add_argument("--api-url", default=None,
                    help="Notes API base URL (default: NOTES_API_URL)")
    ap.add_argument("--log-level", default=None, help="Logging level (default: WARNING, LOG_LEVEL for serve)")

    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="Show notes, pinned first")
    p.add_argument("--search", default="", help="Only notes containing this text")

    p = sub.add_parser("add", help="Add a note")
    p.add_argument("text")
    p.add_argument("--due", type=_parse_date, default=None, help="Due date YYYY-MM-DD")
    p.add_argument("--remind", type=_parse_time, default=None, help="Reminder time HH:MM")

    p = sub.add_parser("edit", help="Replace the text of a note")
    p.add_argument("id")
    p.add_argument("text")

    p = sub.add_parser("pin", help="Pin or unpin a note")
    p.add_argument("id")

    p = sub.add_parser("due", help="Set or clear the due date of a note")
    p.add_argument("id")
    p.add_argument("--date", type=_parse_date, default=None, help="Due date YYYY-MM-DD (omit to clear)")
    p.add_argument("--remind", type=_parse_time, default=None, help="Reminder time HH:MM")

    p = sub.add_parser("delete", help="Delete a note (asks for confirmation)")
    p.add_argument("id")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    p = sub.add_parser("export", help="Export all notes to pronotes_export_<date>.json")
    p.add_argument("--dir", default=".", help="Output directory (default: .)")

    p = sub.add_parser("import", help="Import notes from an export file")
    p.add_argument("file")
    p.add_argument("--mode", choices=[m.value for m in ImportMode], default=ImportMode.MERGE.value,
                   help="merge keeps existing notes, replace discards them (default: merge)")

    p = sub.add_parser("serve", help="Run the notes API server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)

    return ap


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides = {}
    if args.backend:
        overrides["NOTES_BACKEND"] = args.backend
    if args.store:
        overrides["LOCAL_STORE_PATH"] = args.store
    if args.api_url:
        overrides["NOTES_API_URL"] = args.api_url
    return settings.model_copy(update=overrides) if overrides else settings


def format_card(card: NoteCard) -> str:
    pin = "📌 " if card.note.pinned else ""
    line = f"[{card.state.value:<12}] {card.note.id}  {pin}{card.note.text}"
    meta = card.timestamp
    if card.due:
        meta = f"{meta} | {card.due}" if meta else card.due
    return f"{line}\n    {meta}" if meta else line


def _confirm(note_id: str) -> bool:
    try:
        answer = input(f"Delete note {note_id}? This cannot be undone. [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


async def run_command(args: argparse.Namespace, board: NotesBoard) -> bool:
    """Run one board action. Returns False if it failed or was cancelled."""
    command = args.command

    if command == "list":
        await board.search(args.search)
        return True

    # actions on an existing note need the current cards
    await board.render()

    if command == "add":
        return await board.add(args.text, args.due, args.remind) is not None
    if command == "edit":
        return await board.edit_text(args.id, args.text)
    if command == "pin":
        return await board.toggle_pin(args.id)
    if command == "due":
        return await board.set_due(args.id, args.date, args.remind)
    if command == "delete":
        board.request_delete(args.id)
        if not (args.yes or _confirm(args.id)):
            board.cancel_delete()
            return False
        return await board.confirm_delete()
    if command == "export":
        path = await board.export_to(args.dir)
        if path is not None:
            print(path)
        return path is not None
    if command == "import":
        return await board.import_from(args.file, args.mode) is not None

    raise ValueError(f"Unknown command '{command}'")


async def _main_async(args: argparse.Namespace, settings: Settings) -> int:
    indicator = SavedIndicator(delay=settings.SAVED_INDICATOR_SECONDS)
    store = get_note_store(settings, indicator=indicator)
    board = NotesBoard(store)
    try:
        ok = await run_command(args, board)
    finally:
        await store.aclose()

    if args.command != "export":
        for card in board.cards:
            print(format_card(card))
    if board.saved_message:
        print(board.saved_message)
    for alert in board.take_alerts():
        print(alert, file=sys.stderr)
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    # serve logs at LOG_LEVEL; one-shot commands stay quiet unless asked
    configure_logging(args.log_level or (None if args.command == "serve" else "WARNING"))

    if args.command == "serve":
        import uvicorn

        uvicorn.run("pronotes.main:app", host=args.host, port=args.port)
        return 0

    settings = _settings_from_args(args)
    return asyncio.run(_main_async(args, settings))


if __name__ == "__main__":
    sys.exit(main())
