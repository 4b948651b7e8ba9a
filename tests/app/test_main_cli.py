from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003

import pytest

from tests.helpers.quotes import FakeQuoteStore, make_quote
from tyrequote.adapters.memory import InMemoryKeyValueStore
from tyrequote.app import QuoteApp, build_app
from tyrequote.config import SyncConfig
from tyrequote.ui import cli as cli_module

FAST = SyncConfig(background_interval_seconds=60, save_settle_seconds=0, delete_cooldown_seconds=0)


@pytest.fixture
def storage(monkeypatch: pytest.MonkeyPatch) -> InMemoryKeyValueStore:
    shared = InMemoryKeyValueStore()

    def fake_build_app(**kwargs: object) -> QuoteApp:
        return build_app(storage=shared, remote=False, sync_config=FAST)

    monkeypatch.setattr(cli_module, "build_app", fake_build_app)
    return shared


def _login() -> None:
    cli_module.main(["login", "--passcode", "12345"])


def test_commands_are_locked_until_login(storage: InMemoryKeyValueStore) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["list"])

    assert excinfo.value.code == 2


def test_wrong_passcode_is_rejected(storage: InMemoryKeyValueStore) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["login", "--passcode", "00000"])

    assert excinfo.value.code == 2


def test_save_then_list(
    storage: InMemoryKeyValueStore, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _login()
    quote_file = tmp_path / "quote.json"
    quote_file.write_text(
        json.dumps(
            {
                "customerName": "Ravi",
                "date": "2024-01-05",
                "quoteNumber": "Q-1",
                "lineItems": [{"description": "Tyre", "quantity": 2, "unitAmount": 1000}],
            }
        ),
        encoding="utf-8",
    )

    cli_module.main(["save", str(quote_file)])
    cli_module.main(["list", "--search", "rav"])

    output = capsys.readouterr().out
    assert "Saved gen_" in output
    assert "Ravi" in output
    assert "2,000" in output
    assert "1 quotation(s)" in output


def test_save_rejects_invalid_json(storage: InMemoryKeyValueStore, tmp_path: Path) -> None:
    _login()
    quote_file = tmp_path / "broken.json"
    quote_file.write_text("{", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["save", str(quote_file)])

    assert excinfo.value.code == 2


def test_delete_unknown_id_fails(storage: InMemoryKeyValueStore) -> None:
    _login()

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["delete", "nope"])

    assert excinfo.value.code == 2


def test_delete_removes_locally(
    storage: InMemoryKeyValueStore, capsys: pytest.CaptureFixture[str]
) -> None:
    build_app(storage=storage, remote=False).cache.save([make_quote("q-1")])
    _login()

    cli_module.main(["delete", "q-1"])
    cli_module.main(["list"])

    output = capsys.readouterr().out
    assert "Deleted q-1 locally" in output
    assert "0 quotation(s)" in output


def test_backup_and_restore(
    storage: InMemoryKeyValueStore, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    build_app(storage=storage, remote=False).cache.save([make_quote("q-1")])
    _login()

    cli_module.main(["backup", "--output", str(tmp_path)])
    backups = list(tmp_path.glob("tyre_quotation_backup_*.json"))
    assert len(backups) == 1

    build_app(storage=storage, remote=False).cache.save([])
    cli_module.main(["restore", str(backups[0])])
    cli_module.main(["list"])

    output = capsys.readouterr().out
    assert "Restored 1 quotation(s)" in output
    assert "[q-1]" in output


def test_logout_locks_again(storage: InMemoryKeyValueStore) -> None:
    _login()
    cli_module.main(["logout"])

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["list"])

    assert excinfo.value.code == 2


def test_failed_refresh_still_lists_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    shared = InMemoryKeyValueStore()
    store = FakeQuoteStore()
    store.fetch_error = RuntimeError("sheet exploded")

    def fake_build_app(**kwargs: object) -> QuoteApp:
        return build_app(storage=shared, store=store, sync_config=FAST)

    monkeypatch.setattr(cli_module, "build_app", fake_build_app)
    cli_module.main(["login", "--passcode", "12345"])

    cli_module.main(["list"])
    assert store.fetch_started == 1
