import sys
from pathlib import Path

import pytest

# Ensure project root (parent of tests/) is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pgn_ingest as cli  # noqa: E402
from pgn_store import GameStore  # noqa: E402


PGN = """\
[Event "one"]
[Result "1-0"]

1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0

[Event "bad"]
[Result "1-0"]

1. d4 d5 0-1

[Event "two"]
[Result "0-1"]

1. f3 e5 2. g4 Qh4# 0-1

[Event "three"]
[Result "*"]

1. c4 *
"""


@pytest.fixture
def pgn_file(tmp_path):
    p = tmp_path / "sample.pgn"
    p.write_text(PGN, encoding="utf-8")
    return p


def test_read_count_reports_rejections_on_stderr(pgn_file, capsys):
    rc = cli.main(["read", str(pgn_file), "--count", "--log-every", "0"])
    assert rc == 0
    cap = capsys.readouterr()
    assert cap.out.strip() == "3"
    assert "invalid pgn: result tag (1-0) != result sentinel (0-1)" in cap.err
    assert "done games=3 rejected=1" in cap.err


def test_read_print_with_start_and_end(pgn_file, capsys):
    rc = cli.main(["read", str(pgn_file), "--print", "--start", "2", "--end", "2", "--log-every", "0"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "sample.3\n\n" in out
    assert '[Event "two"]' in out
    assert '[Event "one"]' not in out
    assert '[Event "three"]' not in out


def test_read_aborts_on_structural_error(tmp_path, capsys):
    p = tmp_path / "broken.pgn"
    p.write_text('1. e4 e5 1-0\n[Result "1-0"]\n', encoding="utf-8")
    rc = cli.main(["read", str(p), "--log-every", "0"])
    assert rc == 1
    assert "Line 1: Unexpected line" in capsys.readouterr().err


def test_missing_input_file(tmp_path, capsys):
    rc = cli.main(["read", str(tmp_path / "missing.pgn")])
    assert rc == 2
    assert "not found" in capsys.readouterr().err


def test_store_upserts_accepted_games(pgn_file, tmp_path, capsys):
    url = f"sqlite:///{tmp_path / 'out.db'}"
    rc = cli.main(["store", str(pgn_file), "--db-url", url, "--table", "games", "--count", "--log-every", "0"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == "3"

    s = GameStore(url, table="games")
    try:
        assert s.count() == 3
        assert s.get("sample.1")["event"] == "one"
        assert s.get("sample.2") is None
        assert s.get("sample.4")["moves"] == "c4"
    finally:
        s.close()

    # Re-running is an upsert, not a duplicate insert.
    assert cli.main(["store", str(pgn_file), "--db-url", url, "--table", "games", "--log-every", "0"]) == 0
    s = GameStore(url, table="games")
    try:
        assert s.count() == 3
    finally:
        s.close()


def test_parse_args_defaults(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["pgn_ingest.py", "store", "games.pgn.bz2"])
    args = cli.parse_args()
    assert args.command == "store"
    assert args.table == "pgn"
    assert args.start == 0
    assert args.end == 0
    assert args.db_url == cli.DEFAULT_DB_URL
