"""Command-line front-end for the notes API.

Examples::

    notes login alice
    notes list --page 2
    notes search "proj ideas"
    notes create "Groceries" --description "milk, eggs"
    notes import notes.json
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from notes_client.app import NotesApp
from notes_client.config import Settings
from notes_client.errors import FormValidationError, NotesClientError, describe
from notes_client.forms import validate_note
from notes_client.models import (
    CreateNoteRequest,
    Note,
    Page,
    RegisterRequest,
    UpdateNoteRequest,
)

logger = logging.getLogger("notes_client.cli")

Command = Callable[[NotesApp, argparse.Namespace], Awaitable[None]]


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_note(note: Note, *, full: bool = False) -> None:
    print(f"[{note.id}] {note.title or 'Untitled'}")
    if full:
        author = note.creator_name or note.creator_username
        print(f"  by {author} (@{note.creator_username})")
        print(f"  created {note.formatted_created_date}")
        print(f"  updated {note.formatted_updated_date}")
        if note.description:
            print()
            print(note.description)


def _print_page(page: Page[Note], number: int) -> None:
    if not page.results:
        print("No notes found.")
        return
    for note in page.results:
        _print_note(note)
    print(f"\nPage {number} of {page.total_pages} ({page.count} notes)")


def _password(value: Optional[str], prompt: str = "Password: ") -> str:
    return value if value is not None else getpass.getpass(prompt)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_login(app: NotesApp, args: argparse.Namespace) -> None:
    await app.session.login(args.username, _password(args.password))
    await app.session.wait_for_background()
    user = app.session.current_user
    print(f"Logged in as {user.display_name if user else args.username}")


async def cmd_logout(app: NotesApp, args: argparse.Namespace) -> None:
    await app.session.logout()
    print("Logged out")


async def cmd_whoami(app: NotesApp, args: argparse.Namespace) -> None:
    user = await app.session.get_user_info()
    print(f"{user.display_name} (@{user.username})")
    if user.email:
        print(user.email)


async def cmd_register(app: NotesApp, args: argparse.Namespace) -> None:
    password = _password(args.password)
    confirm = password if args.password is not None else getpass.getpass("Confirm password: ")
    if password != confirm:
        raise FormValidationError("Passwords do not match")
    user = await app.session.register(
        RegisterRequest(
            username=args.username,
            email=args.email,
            password=password,
            first_name=args.first,
            last_name=args.last,
        )
    )
    print(f"Account created for {user.username}. Please login.")


async def cmd_passwd(app: NotesApp, args: argparse.Namespace) -> None:
    old = _password(args.old, "Current password: ")
    new = _password(args.new, "New password: ")
    confirm = new if args.new is not None else getpass.getpass("Confirm new password: ")
    result = await app.session.change_password(old, new, confirm)
    print(result.detail)


async def cmd_refresh(app: NotesApp, args: argparse.Namespace) -> None:
    await app.session.refresh_access_token()
    print("Access token refreshed")


async def cmd_list(app: NotesApp, args: argparse.Namespace) -> None:
    _print_page(await app.notes.list_notes(page=args.page), args.page)


async def cmd_show(app: NotesApp, args: argparse.Namespace) -> None:
    _print_note(await app.notes.get_note(args.id), full=True)


async def cmd_create(app: NotesApp, args: argparse.Namespace) -> None:
    validate_note(args.title)
    note = await app.notes.create_note(
        CreateNoteRequest(title=args.title, description=args.description)
    )
    _print_note(note)


async def cmd_edit(app: NotesApp, args: argparse.Namespace) -> None:
    validate_note(args.title)
    note = await app.notes.update_note(
        args.id, UpdateNoteRequest(title=args.title, description=args.description)
    )
    _print_note(note)


async def cmd_delete(app: NotesApp, args: argparse.Namespace) -> None:
    result = await app.notes.delete_note(args.id)
    print(result.detail)


async def cmd_import(app: NotesApp, args: argparse.Namespace) -> None:
    try:
        raw = Path(args.file).read_text(encoding="utf-8")
        requests = TypeAdapter(list[CreateNoteRequest]).validate_json(raw)
    except (OSError, ValidationError) as exc:
        raise FormValidationError(f"Cannot read notes from {args.file}: {exc}") from exc
    for request in requests:
        validate_note(request.title)
    notes = await app.notes.bulk_create_notes(requests)
    for note in notes:
        _print_note(note)
    print(f"\nImported {len(notes)} notes")


async def cmd_search(app: NotesApp, args: argparse.Namespace) -> None:
    _print_page(await app.notes.search_notes(args.query, page=args.page), args.page)


async def cmd_filter(app: NotesApp, args: argparse.Namespace) -> None:
    _print_page(await app.notes.filter_notes(title=args.title, page=args.page), args.page)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _page_arg(value: str) -> int:
    page = int(value)
    if page < 1:
        raise argparse.ArgumentTypeError("page must be >= 1")
    return page


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notes", description="Notes API client")
    parser.add_argument("--base-url", help="API base URL (default: NOTES_API_BASE_URL)")
    parser.add_argument("--token-file", type=Path, help="Where tokens are stored")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Sign in and store tokens")
    p.add_argument("username")
    p.add_argument("--password")
    p.set_defaults(handler=cmd_login)

    sub.add_parser("logout", help="Forget stored tokens").set_defaults(handler=cmd_logout)
    sub.add_parser("whoami", help="Show the signed-in user").set_defaults(handler=cmd_whoami)
    sub.add_parser("refresh", help="Refresh the access token").set_defaults(handler=cmd_refresh)

    p = sub.add_parser("register", help="Create an account")
    p.add_argument("username")
    p.add_argument("email")
    p.add_argument("--first")
    p.add_argument("--last")
    p.add_argument("--password")
    p.set_defaults(handler=cmd_register)

    p = sub.add_parser("passwd", help="Change password")
    p.add_argument("--old")
    p.add_argument("--new")
    p.set_defaults(handler=cmd_passwd)

    p = sub.add_parser("list", help="List notes")
    p.add_argument("--page", type=_page_arg, default=1)
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("show", help="Show one note")
    p.add_argument("id", type=int)
    p.set_defaults(handler=cmd_show)

    p = sub.add_parser("create", help="Create a note")
    p.add_argument("title")
    p.add_argument("--description", default="")
    p.set_defaults(handler=cmd_create)

    p = sub.add_parser("edit", help="Replace a note's title and description")
    p.add_argument("id", type=int)
    p.add_argument("title")
    p.add_argument("--description", default="")
    p.set_defaults(handler=cmd_edit)

    p = sub.add_parser("delete", help="Delete a note")
    p.add_argument("id", type=int)
    p.set_defaults(handler=cmd_delete)

    p = sub.add_parser("import", help="Bulk-create notes from a JSON array file")
    p.add_argument("file")
    p.set_defaults(handler=cmd_import)

    p = sub.add_parser("search", help="Search notes")
    p.add_argument("query")
    p.add_argument("--page", type=_page_arg, default=1)
    p.set_defaults(handler=cmd_search)

    p = sub.add_parser("filter", help="Filter notes by title")
    p.add_argument("--title")
    p.add_argument("--page", type=_page_arg, default=1)
    p.set_defaults(handler=cmd_filter)

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.base_url:
        overrides["api_base_url"] = args.base_url
    if args.token_file:
        overrides["token_file"] = args.token_file
    return Settings(**overrides)


async def run(args: argparse.Namespace, app: Optional[NotesApp] = None) -> int:
    """Run one command. Returns the process exit code."""
    handler: Command = args.handler
    try:
        if app is None:
            app = NotesApp(_settings_from_args(args))
        async with app:
            await app.start(fetch_user=False)
            await handler(app, args)
    except NotesClientError as exc:
        logger.debug("Command %s failed: %r", args.command, exc)
        print(f"Error: {describe(exc)}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.debug("Command %s failed: %r", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        level = logging.DEBUG if args.verbose else Settings().log_level.upper()
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
