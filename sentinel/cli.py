"""
Sentinel CLI — entry point for all operations.

Usage:
    sentinel list [--tag FARM]          # Show identities
    sentinel show ID [--reveal-hidden]  # Show one identity (note, hidden, tags)
    sentinel add NAME SECRET            # Create an identity
    sentinel remove ID --yes            # Delete an identity
    sentinel tag ID TAG                 # Toggle a tag
    sentinel note ID TEXT               # Set the identity note
    sentinel hidden ID TEXT             # Set the hidden description
    sentinel copy-hidden ID             # Copy the hidden description
    sentinel vault show ID              # Show recovery slots (masked)
    sentinel vault set ID N TEXT        # Store a code in slot N (1-10)
    sentinel vault paste ID N [TEXT|-]  # Spread several codes from slot N on
    sentinel vault copy ID N            # Copy slot N to the clipboard
    sentinel codes [--watch]            # Current TOTP codes
    sentinel export [--dir DIR]         # Write a .nexus global backup
    sentinel import FILE --yes          # Replace everything from a backup
    sentinel version                    # Show version
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sentinel.errors import SentinelError
from sentinel.models import EMPTY_SLOT, VAULT_SIZE, IdentityDraft
from sentinel.tags import TAG_OPTIONS

MASK = "•" * 8


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sentinel",
        description="Sentinel — TOTP identities with recovery-code vaults.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    # list
    list_parser = subparsers.add_parser("list", help="Show identities")
    list_parser.add_argument("--tag", help="Only identities carrying this tag")

    # show
    show_parser = subparsers.add_parser("show", help="Show one identity")
    show_parser.add_argument("id")
    show_parser.add_argument(
        "--reveal-hidden", action="store_true", help="Show the hidden description unmasked"
    )

    # add
    add_parser = subparsers.add_parser("add", help="Create an identity")
    add_parser.add_argument("name", help="Display name")
    add_parser.add_argument("secret", help="Base32 TOTP secret (spaces allowed)")
    add_parser.add_argument("--note", default="", help="Identity token")
    add_parser.add_argument("--hidden", default="", help="Sensitive pass-phrase")
    add_parser.add_argument(
        "--tag", action="append", default=[], choices=TAG_OPTIONS, help="Tag (repeatable)"
    )

    # remove
    remove_parser = subparsers.add_parser("remove", help="Delete an identity")
    remove_parser.add_argument("id")
    remove_parser.add_argument("--yes", "-y", action="store_true", help="Confirm deletion")

    # tag / note / hidden
    tag_parser = subparsers.add_parser("tag", help="Toggle a tag on an identity")
    tag_parser.add_argument("id")
    tag_parser.add_argument("tag")

    note_parser = subparsers.add_parser("note", help="Set the identity note")
    note_parser.add_argument("id")
    note_parser.add_argument("text")

    hidden_parser = subparsers.add_parser("hidden", help="Set the hidden description")
    hidden_parser.add_argument("id")
    hidden_parser.add_argument("text")

    copy_hidden_parser = subparsers.add_parser(
        "copy-hidden", help="Copy the hidden description to the clipboard"
    )
    copy_hidden_parser.add_argument("id")

    # vault
    vault_parser = subparsers.add_parser("vault", help="Recovery code slots")
    vault_sub = vault_parser.add_subparsers(dest="vault_command")
    vault_show = vault_sub.add_parser("show", help="Show slots (masked)")
    vault_show.add_argument("id")
    vault_show.add_argument("--reveal", type=int, metavar="N", help="Reveal slot N")
    vault_set = vault_sub.add_parser("set", help="Store a code in a slot (blank clears it)")
    vault_set.add_argument("id")
    vault_set.add_argument("slot", type=int)
    vault_set.add_argument("text")
    vault_paste = vault_sub.add_parser("paste", help="Spread several codes over slots")
    vault_paste.add_argument("id")
    vault_paste.add_argument("slot", type=int)
    vault_paste.add_argument("text", nargs="?", default="-", help="Codes, or '-' for stdin")
    vault_copy = vault_sub.add_parser("copy", help="Copy a slot to the clipboard")
    vault_copy.add_argument("id")
    vault_copy.add_argument("slot", type=int)

    # codes
    codes_parser = subparsers.add_parser("codes", help="Show current TOTP codes")
    codes_parser.add_argument("--watch", action="store_true", help="Refresh every tick")

    # export / import
    export_parser = subparsers.add_parser("export", help="Write a global .nexus backup")
    export_parser.add_argument("--dir", help="Target directory (default: backup dir)")
    import_parser = subparsers.add_parser("import", help="Replace everything from a backup")
    import_parser.add_argument("file")
    import_parser.add_argument("--yes", "-y", action="store_true", help="Confirm overwrite")

    # version
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    if args.version or args.command == "version":
        from sentinel import __version__

        print(f"sentinel {__version__}")
        return 0

    handler = _COMMANDS.get(args.command or "")
    if handler is None:
        parser.print_help()
        return 0
    if args.command == "vault" and not args.vault_command:
        vault_parser.print_help()
        return 0

    _setup_logging()

    from sentinel.session import open_session

    session = open_session()
    session.bus.subscribe("notify", _print_notification)
    try:
        return handler(session, args)
    except SentinelError:
        # Already reported through the notification
        return 1
    except OSError as e:
        print(f"Error: {e}")
        return 1


def _setup_logging() -> None:
    from sentinel.config import get_config

    logging.basicConfig(
        level=getattr(logging, get_config().log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_notification(event: dict) -> None:
    payload = event["payload"]
    print(f"[{payload['level']}] {payload['message']}")


def _slot_index(slot: int) -> int:
    if not 1 <= slot <= VAULT_SIZE:
        raise SystemExit(f"Slot must be between 1 and {VAULT_SIZE}")
    return slot - 1


def _cmd_list(session, args: argparse.Namespace) -> int:
    session.set_filter(args.tag)
    records = session.visible()
    if not records:
        print("No identities.")
        return 0
    for r in records:
        tags = ",".join(r.tags) or "-"
        print(f"{r.id}  {r.name:<24} [{tags}]  vault {r.filled_slots()}/{VAULT_SIZE}")
    return 0


def _cmd_show(session, args: argparse.Namespace) -> int:
    session.select(args.id)
    if args.reveal_hidden:
        session.toggle_hidden_reveal()
    record = session.selected()
    print(f"{record.name}  ({record.id})")
    print(f"  tags:   {','.join(record.tags) or '-'}")
    print(f"  note:   {record.note or '-'}")
    print(f"  hidden: {session.hidden_text(MASK) or '-'}")
    print(f"  vault:  {record.filled_slots()}/{VAULT_SIZE}")
    return 0


def _cmd_add(session, args: argparse.Namespace) -> int:
    draft = IdentityDraft(
        name=args.name,
        secret=args.secret,
        note=args.note,
        hidden_description=args.hidden,
    )
    for tag in args.tag:
        if tag not in draft.tags:
            draft.toggle_tag(tag)
    record = session.add_identity(draft)
    print(record.id)
    return 0


def _cmd_remove(session, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to delete without --yes.")
        return 1
    session.delete_identity(args.id, confirmed=True)
    return 0


def _cmd_tag(session, args: argparse.Namespace) -> int:
    record = session.toggle_tag(args.id, args.tag)
    print(f"{record.name}: [{','.join(record.tags) or '-'}]")
    return 0


def _cmd_note(session, args: argparse.Namespace) -> int:
    session.update_note(args.id, args.text)
    return 0


def _cmd_hidden(session, args: argparse.Namespace) -> int:
    session.update_hidden_description(args.id, args.text)
    return 0


def _cmd_copy_hidden(session, args: argparse.Namespace) -> int:
    text = session.copy_hidden(args.id)
    if text is None:
        print("No hidden description.")
        return 1
    return _to_clipboard(text)


def _cmd_vault(session, args: argparse.Namespace) -> int:
    session.select(args.id)
    engine = session.vault

    if args.vault_command == "show":
        if args.reveal is not None:
            engine.click(_slot_index(args.reveal))
        record = session.selected()
        for index, code in enumerate(record.vault):
            if code == EMPTY_SLOT:
                shown = "--"
            elif engine.revealed == index:
                shown = code
            else:
                shown = MASK
            print(f"{index + 1:02d}  {shown}")
        return 0

    if args.vault_command == "set":
        index = _slot_index(args.slot)
        engine.edit(index)
        session.commit_slot(index, args.text)
        return 0

    if args.vault_command == "paste":
        index = _slot_index(args.slot)
        text = sys.stdin.read() if args.text == "-" else args.text
        engine.edit(index)
        written = session.paste_slot(index, text)
        if not written:
            print("Nothing to paste.")
        return 0

    if args.vault_command == "copy":
        code = session.copy_slot(_slot_index(args.slot))
        if code is None:
            print(f"Slot {args.slot} is empty.")
            return 1
        return _to_clipboard(code)

    return 0


def _to_clipboard(text: str) -> int:
    import pyperclip

    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        print(f"Error: clipboard unavailable ({e})")
        return 1
    return 0


def _cmd_codes(session, args: argparse.Namespace) -> int:
    if not len(session.store):
        print("No identities.")
        return 0
    try:
        asyncio.run(_watch_codes(session) if args.watch else _print_codes(session))
    except KeyboardInterrupt:
        pass
    return 0


async def _print_codes(session) -> None:
    codes = await session.refresh_codes()
    for r in session.store.records:
        print(f"{codes.get(r.id, '------')}  {r.name}")
    print(f"({session.ticker.remaining}s remaining)")


async def _watch_codes(session) -> None:
    names = {r.id: r.name for r in session.store.records}

    def _render(event: dict) -> None:
        payload = event["payload"]
        print(f"-- {payload['remaining']}s --")
        for record_id, code in payload["codes"].items():
            print(f"{code}  {names.get(record_id, record_id)}")

    session.bus.subscribe("codes.updated", _render)
    session.ticker.start()
    try:
        await asyncio.Event().wait()
    finally:
        session.ticker.stop()


def _cmd_export(session, args: argparse.Namespace) -> int:
    path = session.export_backup(args.dir)
    print(path)
    return 0


def _cmd_import(session, args: argparse.Namespace) -> int:
    from pathlib import Path

    text = Path(args.file).read_bytes()
    decoded = session.import_backup(text, confirmed=args.yes)
    print(f"Imported {len(decoded.identities)} identities (format v{decoded.version}).")
    return 0


_COMMANDS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "add": _cmd_add,
    "remove": _cmd_remove,
    "tag": _cmd_tag,
    "note": _cmd_note,
    "hidden": _cmd_hidden,
    "copy-hidden": _cmd_copy_hidden,
    "vault": _cmd_vault,
    "codes": _cmd_codes,
    "export": _cmd_export,
    "import": _cmd_import,
}


if __name__ == "__main__":
    sys.exit(main())
