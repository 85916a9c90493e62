# pgn_source.py
# Line source for PGN archives: plain text, .bz2 or .zst, chosen by filename suffix.

from __future__ import annotations

import bz2
import io
from pathlib import Path
from typing import Tuple, Type, Union

import zstandard as zstd


# ----------------------------
# Configuration & Constants
# ----------------------------

ENCODING = "utf-8"

# Exceptions raised by a failing read on any supported source.
READ_ERRORS: Tuple[Type[BaseException], ...] = (OSError, EOFError, zstd.ZstdError)

# Lichess dumps use long-distance matching with large windows.
ZSTD_MAX_WINDOW_SIZE = 2**31


def archive_prefix(path: Union[str, Path]) -> str:
    """File stem truncated at its first dot: 'lichess_2013-01.pgn.bz2' -> 'lichess_2013-01'."""
    return Path(path).stem.split(".")[0]


def compression_for(path: Union[str, Path]) -> str:
    suffix = Path(path).suffix.lower()
    if suffix == ".bz2":
        return "bz2"
    if suffix == ".zst":
        return "zst"
    return "plain"


def open_pgn_text(path: Union[str, Path]) -> io.TextIOBase:
    """Open a PGN archive as a text stream. Raises FileNotFoundError if missing."""
    p = Path(path)
    mode = compression_for(p)

    if mode == "bz2":
        return io.TextIOWrapper(bz2.open(p, "rb"), encoding=ENCODING, errors="replace")

    if mode == "zst":
        fh = open(p, "rb")
        dctx = zstd.ZstdDecompressor(max_window_size=ZSTD_MAX_WINDOW_SIZE)
        # closefd=True closes fh together with the reader.
        reader = dctx.stream_reader(fh, closefd=True)
        return io.TextIOWrapper(reader, encoding=ENCODING, errors="replace")

    return open(p, "r", encoding=ENCODING, errors="replace")
