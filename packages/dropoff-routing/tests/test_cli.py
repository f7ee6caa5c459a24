from typer.testing import CliRunner

from dropoff_routing.cli.app import app
from dropoff_routing.routing.engine import RoutingEngine
from dropoff_routing.storage.sqlite import SqliteTableStore


def test_stage_routes_and_log_lists_entries(tmp_path) -> None:
    db = str(tmp_path / "book.sqlite")
    runner = CliRunner()

    assert runner.invoke(app, ["init", "--db", db]).exit_code == 0
    assert runner.invoke(
        app, ["rule", "--db", db, "--dest", "ORDERS", "--default"]
    ).exit_code == 0
    assert runner.invoke(
        app, ["rule", "--db", db, "--code", "ACME", "--dest", "ACME_TAB"]
    ).exit_code == 0

    result = runner.invoke(
        app, ["stage", "--db", db, "P1", "BIN", "ACME", "9.5", "2024-03-01", "widget"]
    )
    assert result.exit_code == 0
    assert "routed" in result.output
    assert "ACME_TAB" in result.output

    again = runner.invoke(app, ["route", "--db", db, "--row", "2"])
    assert again.exit_code == 0
    assert "already_routed" in again.output

    log = runner.invoke(app, ["log", "--db", db])
    assert log.exit_code == 0
    assert "ACME_TAB" in log.output

    entries = RoutingEngine(SqliteTableStore(db)).ledger.entries()
    assert [(e.row, e.dest) for e in entries] == [(2, "ACME_TAB")]


def test_stage_rejects_wrong_arity_without_traceback(tmp_path) -> None:
    result = CliRunner().invoke(
        app, ["stage", "--db", str(tmp_path / "book.sqlite"), "P1", "BIN"]
    )

    assert result.exit_code != 0
    assert "expected 6 values" in result.output
    assert "Traceback" not in result.output


def test_show_unknown_table_fails_cleanly(tmp_path) -> None:
    result = CliRunner().invoke(
        app, ["show", "--db", str(tmp_path / "book.sqlite"), "--table", "NOPE"]
    )

    assert result.exit_code == 1
    assert "unknown table" in result.output


def test_rescan_reports_counts(tmp_path) -> None:
    db = str(tmp_path / "book.sqlite")
    runner = CliRunner()
    runner.invoke(app, ["init", "--db", db])
    store = SqliteTableStore(db)
    store.append_row("DROP_OFF", ["P1", "BIN", "ZULU", 3, "2024-03-01", "w"])
    store.append_row("DROP_OFF", ["P2", "BIN", "ZULU", 3, "", "w"])

    result = runner.invoke(app, ["rescan", "--db", db])

    assert result.exit_code == 0
    assert "routed 1 of 2 rows" in result.output


def test_invalid_settings_file_fails_without_traceback(tmp_path) -> None:
    cfg = tmp_path / "cfg.json"
    cfg.write_text('{"lock_timeout_ms": 0}', encoding="utf-8")
    db = str(tmp_path / "book.sqlite")

    for args in (["route", "--db", db, "--row", "2"], ["rescan", "--db", db], ["log", "--db", db]):
        result = CliRunner().invoke(app, ["--config", str(cfg), *args])

        assert result.exit_code == 1
        assert "error:" in result.output
        assert "lock_timeout_ms" in result.output
        assert "Traceback" not in result.output


def test_malformed_settings_json_fails_without_traceback(tmp_path) -> None:
    cfg = tmp_path / "cfg.json"
    cfg.write_text("{not json", encoding="utf-8")

    result = CliRunner().invoke(
        app, ["--config", str(cfg), "init", "--db", str(tmp_path / "book.sqlite")]
    )

    assert result.exit_code == 1
    assert "invalid settings file" in result.output
    assert "Traceback" not in result.output


def test_log_lists_entries_with_hand_edited_when(tmp_path) -> None:
    db = str(tmp_path / "book.sqlite")
    store = SqliteTableStore(db)
    store.create_table("LOG")
    store.write_row("LOG", 1, 1, ["KEY", "WHEN", "DEST", "ROW"])
    store.append_row("LOG", ["k", "3/1/2024 12:00", "ORDERS", 2])

    result = CliRunner().invoke(app, ["log", "--db", db])

    assert result.exit_code == 0
    assert "ORDERS" in result.output
