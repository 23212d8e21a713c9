"""Tests for the graph_mail command-line script."""

import importlib.util
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from graph_mailer.errors import GraphMailError
from graph_mailer.models import Attachment

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "graph_mail.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("graph_mail_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def wired(cli, monkeypatch):
    """Patch settings and client construction; return the fake client."""
    client = MagicMock()
    settings = MagicMock(log_level="INFO")
    monkeypatch.setattr(cli, "Settings", MagicMock(return_value=settings))
    monkeypatch.setattr(cli.GraphMailClient, "from_settings", MagicMock(return_value=client))
    monkeypatch.setattr(cli, "configure_logging", MagicMock())
    return client


def test_parser_sub_commands(cli):
    parser = cli.build_parser()

    args = parser.parse_args(
        ["send", "a@x.com", "Hi", "--body", "<p>hi</p>", "--bcc", "b@x.com", "--bcc", "c@x.com"]
    )
    assert (args.command, args.to, args.subject, args.body) == ("send", "a@x.com", "Hi", "<p>hi</p>")
    assert args.bcc == ["b@x.com", "c@x.com"]
    assert args.reply_to == [] and args.attach == []

    args = parser.parse_args(["move", "m1", "Archive"])
    assert (args.command, args.message_id, args.folder) == ("move", "m1", "Archive")

    assert parser.parse_args(["list"]).command == "list"
    assert parser.parse_args(["get", "m1"]).message_id == "m1"
    assert parser.parse_args(["attachments", "m1"]).command == "attachments"


@pytest.mark.parametrize(
    "argv",
    [[], ["send", "a@x.com", "Hi"], ["send", "a@x.com", "Hi", "--body", "x", "--body-file", "f"]],
)
def test_parser_rejects_bad_usage(cli, argv):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(argv)


def test_run_send_reads_attachments_and_body_file(cli, tmp_path):
    body = tmp_path / "body.html"
    body.write_text("<p>from file</p>", encoding="utf-8")
    attachment = tmp_path / "note.txt"
    attachment.write_bytes(b"hello")
    client = MagicMock()
    args = cli.build_parser().parse_args(
        ["send", "a@x.com", "Hi", "--body-file", str(body), "--attach", str(attachment),
         "--reply-to", "r@x.com"]
    )

    assert cli.run(client, args) is None

    client.send_email.assert_called_once_with(
        "a@x.com",
        "Hi",
        "<p>from file</p>",
        attachments=[Attachment("note.txt", "aGVsbG8=")],
        bcc_addresses=[],
        reply_to_addresses=["r@x.com"],
    )


@pytest.mark.parametrize(
    "argv, method, call_args",
    [
        (["list"], "list_mails", ()),
        (["get", "m1"], "get_mail_by_id", ("m1",)),
        (["attachments", "m1"], "get_mail_attachments", ("m1",)),
        (["move", "m1", "Archive"], "move_mail_to_folder", ("m1", "Archive")),
    ],
)
def test_run_dispatches_to_client(cli, argv, method, call_args):
    client = MagicMock()

    result = cli.run(client, cli.build_parser().parse_args(argv))

    getattr(client, method).assert_called_once_with(*call_args)
    assert result is getattr(client, method).return_value


def test_main_prints_json(cli, wired, monkeypatch, capsys):
    wired.list_mails.return_value = [{"id": "m1"}]
    monkeypatch.setattr("sys.argv", ["graph_mail.py", "list"])

    cli.main()

    assert json.loads(capsys.readouterr().out) == [{"id": "m1"}]


def test_main_prints_nothing_after_send(cli, wired, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["graph_mail.py", "send", "a@x.com", "Hi", "--body", "x"])

    cli.main()

    assert capsys.readouterr().out == ""
    wired.send_email.assert_called_once()


def test_main_exits_with_error_message(cli, wired, monkeypatch):
    wired.move_mail_to_folder.side_effect = GraphMailError("folder lookup failed: denied")
    monkeypatch.setattr("sys.argv", ["graph_mail.py", "move", "m1", "Archive"])

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == "folder lookup failed: denied"
