"""Tests for the main.py command-line interface.

Covers:
- create-user prompts for and confirms the password, then stores a hashed user
- mismatched confirmation and invalid input exit non-zero without storing
- list-users prints what create-user stored; storage failures exit non-zero
- no subcommand prints help
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

import main
from auth.errors import StorageError
from auth.store import UserStore


@pytest.fixture
def cli_db(tmp_path, settings, monkeypatch) -> str:
    """Point the CLI at a throwaway SQLite file without touching the settings cache."""
    db_url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(main, "get_settings", lambda: settings.model_copy(update={"database_url": db_url}))
    return db_url


def test_create_user_then_list(cli_db: str, capsys) -> None:
    with patch("main.getpass.getpass", side_effect=["s3cret-pw", "s3cret-pw"]):
        code = main.main(["create-user", "Ada@Example.com", "--first-name", "Ada", "--last-name", "Lovelace"])
    assert code == 0
    assert "ada@example.com" in capsys.readouterr().out

    store = UserStore(cli_db)
    try:
        user = store.find_by_email("ada@example.com")
        assert user.password_hash != "s3cret-pw"
        assert user.password_hash.startswith("$2b$")
    finally:
        store.close()

    assert main.main(["list-users"]) == 0
    out = capsys.readouterr().out
    assert "ada@example.com" in out
    assert "Ada Lovelace" in out
    assert "s3cret-pw" not in out


def test_password_mismatch(cli_db: str, capsys) -> None:
    with patch("main.getpass.getpass", side_effect=["one", "two"]):
        code = main.main(["create-user", "bob@example.com", "--first-name", "Bob", "--last-name", "B"])
    assert code == 1
    assert "do not match" in capsys.readouterr().out


def test_invalid_email_reported(cli_db: str, capsys) -> None:
    with patch("main.getpass.getpass", side_effect=["pw", "pw"]):
        code = main.main(["create-user", "not-an-email", "--first-name", "X", "--last-name", "Y"])
    assert code == 1
    assert "Email address is not valid." in capsys.readouterr().out


def test_duplicate_email_reported(cli_db: str, capsys) -> None:
    args = ["create-user", "dup@example.com", "--first-name", "D", "--last-name", "U"]
    with patch("main.getpass.getpass", side_effect=["pw", "pw", "pw", "pw"]):
        assert main.main(args) == 0
        assert main.main(args) == 1
    assert "already exists" in capsys.readouterr().out


def test_list_users_empty(cli_db: str, capsys) -> None:
    assert main.main(["list-users"]) == 0
    assert "No users." in capsys.readouterr().out


def test_list_users_storage_error_reported(cli_db: str, capsys) -> None:
    with patch("auth.directory.UserDirectory.list_all", side_effect=StorageError()):
        assert main.main(["list-users"]) == 1
    out = capsys.readouterr().out
    assert "[!] User storage is unavailable." in out


def test_no_command_prints_help(capsys) -> None:
    assert main.main([]) == 0
    assert "usage:" in capsys.readouterr().out
