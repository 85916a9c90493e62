import io
import sys
from pathlib import Path

import pytest

# Ensure project root (parent of tests/) is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pgn_store as store_mod  # noqa: E402
from pgn_reader import PgnReader  # noqa: E402
from pgn_record import Game  # noqa: E402


def first_record(pgn: str, prefix: str = "arch"):
    out = PgnReader(io.StringIO(pgn), prefix).read_next()
    assert isinstance(out, Game)
    return out.record


GAME = """\
[Event "Rated Blitz game"]
[Site "https://lichess.org/abc"]
[White "alice"]
[Black "bob"]
[WhiteElo "1850"]
[BlackElo "?"]
[ECO "C20"]
[Result "1-0"]

1. e4 e5 2. Bc4 Nc6 3. Qh5 Nf6 4. Qxf7# 1-0
"""


@pytest.fixture
def store(tmp_path):
    s = store_mod.GameStore(f"sqlite:///{tmp_path / 'games.db'}", table="pgn_test")
    yield s
    s.close()


def test_row_for_maps_tags_and_defaults():
    rec = first_record(GAME)
    row = store_mod.row_for(rec)
    assert row["id"] == "arch.1"
    assert row["event"] == "Rated Blitz game"
    assert row["white"] == "alice"
    assert row["white_elo"] == 1850
    assert row["black_elo"] == 0
    assert row["white_fide"] == 0
    assert row["opening"] == ""
    assert row["moves"] == "e4 e5 Bc4 Nc6 Qh5 Nf6 Qxf7#"
    assert row["tags"] == rec.tags_text


def test_signed64():
    assert store_mod.signed64(0) == 0
    assert store_mod.signed64(2**63 - 1) == 2**63 - 1
    assert store_mod.signed64(2**63) == -(2**63)
    assert store_mod.signed64(2**64 - 1) == -1


def test_upsert_inserts_then_updates(store):
    rec = first_record(GAME)
    store.upsert_game(rec)
    assert store.count() == 1

    row = store.get("arch.1")
    assert row is not None
    assert row["result"] == "1-0"
    assert row["eco"] == "C20"
    assert row["fingerprint"] == store_mod.signed64(rec.fingerprint)

    rec.tags["White"] = "carol"
    store.upsert_game(rec)
    assert store.count() == 1
    assert store.get("arch.1")["white"] == "carol"


def test_distinct_ids_are_distinct_rows(store):
    store.upsert_game(first_record(GAME, "jan"))
    store.upsert_game(first_record(GAME, "feb"))
    assert store.count() == 2
    assert store.get("jan.1")["fingerprint"] == store.get("feb.1")["fingerprint"]


def test_get_missing_returns_none(store):
    assert store.get("nope.1") is None
