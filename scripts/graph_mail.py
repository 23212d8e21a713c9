"""Command-line access to the Graph mailbox operations."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

# Ensure project root is on sys.path when running as a script
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from graph_mailer.config import Settings
from graph_mailer.errors import GraphMailError
from graph_mailer.graph_client import GraphMailClient
from graph_mailer.models import Attachment

load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Work with an Outlook mailbox through Microsoft Graph.")
    commands = parser.add_subparsers(dest="command", required=True)

    send = commands.add_parser("send", help="Send an HTML message")
    send.add_argument("to", help="Recipient address")
    send.add_argument("subject")
    body = send.add_mutually_exclusive_group(required=True)
    body.add_argument("--body", help="HTML body text")
    body.add_argument("--body-file", type=Path, help="Read the HTML body from a file")
    send.add_argument("--bcc", action="append", default=[], help="Bcc address (repeatable)")
    send.add_argument("--reply-to", action="append", default=[], help="Reply-to address (repeatable)")
    send.add_argument("--attach", action="append", type=Path, default=[], help="File to attach (repeatable)")

    commands.add_parser("list", help="List messages")

    get = commands.add_parser("get", help="Fetch one message")
    get.add_argument("message_id")

    attachments = commands.add_parser("attachments", help="Fetch the attachments of a message")
    attachments.add_argument("message_id")

    move = commands.add_parser("move", help="Move a message into a folder, creating it if needed")
    move.add_argument("message_id")
    move.add_argument("folder", help="Folder display name (case sensitive)")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run(client: GraphMailClient, args: argparse.Namespace):
    if args.command == "send":
        html = args.body if args.body is not None else args.body_file.read_text(encoding="utf-8")
        client.send_email(
            args.to,
            args.subject,
            html,
            attachments=[Attachment.from_path(path) for path in args.attach],
            bcc_addresses=args.bcc,
            reply_to_addresses=args.reply_to,
        )
        return None
    if args.command == "list":
        return client.list_mails()
    if args.command == "get":
        return client.get_mail_by_id(args.message_id)
    if args.command == "attachments":
        return client.get_mail_attachments(args.message_id)
    return client.move_mail_to_folder(args.message_id, args.folder)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    settings = Settings()
    configure_logging(settings.log_level)
    client = GraphMailClient.from_settings(settings)

    try:
        result = run(client, args)
    except GraphMailError as exc:
        raise SystemExit(str(exc)) from exc

    if result is not None:
        print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
