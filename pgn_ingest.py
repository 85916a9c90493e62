# pgn_ingest.py
# -----------------------------------------------------------------------------
# Read, validate and store games from PGN archives (plain, .bz2 or .zst).
#
# Usage:
#   python pgn_ingest.py read lichess_db_standard_rated_2013-01.pgn.bz2 --count
#   python pgn_ingest.py read games.pgn --print --start 10 --end 20
#   python pgn_ingest.py store games.pgn.zst --db-url postgresql://localhost/mudfish
#
# Rejected games are reported on stderr and skipped; a read or structural error
# aborts the run with exit code 1.
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import os
import sys
import time
from typing import List, Optional

from pgn_reader import PgnReader
from pgn_record import BadRecord, Error, Game, Record
from pgn_store import DEFAULT_TABLE, GameStore


DEFAULT_DB_URL = os.environ.get("PGN_INGEST_DB", "sqlite:///pgn.db")


def format_record(record: Record) -> str:
    return f"{record.id}\n\n{record.tags_text}\n{record.moves_text}"


def run(reader: PgnReader, args: argparse.Namespace, store: Optional[GameStore] = None) -> int:
    """Drive the reader to the end (or to --end); returns the process exit code."""
    games = 0
    rejected = 0

    t0 = time.time()
    last_log = t0

    for outcome in reader:
        if isinstance(outcome, Error):
            print(f"error: {outcome.message}", file=sys.stderr, flush=True)
            return 1

        if isinstance(outcome, BadRecord):
            rejected += 1
            print(outcome, file=sys.stderr, flush=True)
            continue

        assert isinstance(outcome, Game)
        games += 1
        if games < args.start:
            continue

        if store is not None:
            store.upsert_game(outcome.record)
        elif args.print:
            print(format_record(outcome.record), flush=True)

        now = time.time()
        if args.log_every > 0 and (now - last_log) >= args.log_every:
            print(
                f"progress: games={games} rejected={rejected} line={reader.line_number} "
                f"elapsed={(now - t0):.1f}s",
                file=sys.stderr,
                flush=True,
            )
            last_log = now

        if args.end > 0 and games >= args.end:
            break

    if args.count:
        print(games)
    print(f"done games={games} rejected={rejected}", file=sys.stderr, flush=True)
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("pgnfile", help="Input PGN archive (.pgn, .pgn.bz2 or .pgn.zst).")
    p.add_argument("--start", type=int, default=0, help="Skip accepted games numbered below this.")
    p.add_argument("--end", type=int, default=0, help="Stop after this many accepted games (0 = all).")
    p.add_argument("--count", action="store_true", help="Print the number of accepted games at the end.")
    p.add_argument("--log-every", type=float, default=60.0, help="Seconds between progress logs; 0 disables.")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Validate PGN archives and store the accepted games.")
    sub = ap.add_subparsers(dest="command", required=True)

    rd = sub.add_parser("read", help="Read and validate games.")
    _add_common(rd)
    rd.add_argument("--print", action="store_true", help="Print accepted games to stdout.")

    st = sub.add_parser("store", help="Upsert accepted games into a database table.")
    _add_common(st)
    st.add_argument("--db-url", default=DEFAULT_DB_URL, help="SQLAlchemy database URL (env PGN_INGEST_DB).")
    st.add_argument("--table", default=DEFAULT_TABLE, help="Target table name.")

    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        reader = PgnReader.open(args.pgnfile)
    except FileNotFoundError:
        print(f"Error: File '{args.pgnfile}' not found.", file=sys.stderr)
        return 2

    store: Optional[GameStore] = None
    try:
        if args.command == "store":
            store = GameStore(args.db_url, args.table)
        return run(reader, args, store)
    finally:
        reader.close()
        if store is not None:
            store.close()


if __name__ == "__main__":
    raise SystemExit(main())
