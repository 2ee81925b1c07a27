"""Bit stream input: ASCII '0'/'1' files or raw binary, as 0/1 uint8 arrays."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import numpy as np

from rank_sts.errors import InvalidInputError

FORMATS = ("ascii", "binary")


def bits_from_bytes(data: bytes | np.ndarray) -> np.ndarray:
    """Unpack bytes MSB first into a 0/1 array."""
    return np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8))


def bits_from_ascii(text: str | bytes) -> np.ndarray:
    """Parse '0'/'1' characters, ignoring whitespace."""
    raw = text.encode("ascii", errors="replace") if isinstance(text, str) else bytes(text)
    arr = np.frombuffer(raw, dtype=np.uint8)
    arr = arr[~np.isin(arr, np.frombuffer(b" \t\r\n\f\v", dtype=np.uint8))]
    bad = ~np.isin(arr, (ord("0"), ord("1")))
    if bad.any():
        pos = int(np.flatnonzero(bad)[0])
        raise InvalidInputError(f"unexpected character {chr(arr[pos])!r} in ASCII bit stream")
    return (arr - ord("0")).astype(np.uint8)


def read_bits(path: str | Path, fmt: str = "ascii") -> np.ndarray:
    """Read a whole file as a bit array."""
    if fmt not in FORMATS:
        raise InvalidInputError(f"unknown input format {fmt!r}; expected one of {FORMATS}")
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise InvalidInputError(f"cannot read bit stream file {path}: {exc}") from exc
    return bits_from_ascii(raw) if fmt == "ascii" else bits_from_bytes(raw)


def split_streams(bits: np.ndarray, length: int, count: int) -> Iterator[np.ndarray]:
    """Yield *count* consecutive streams of *length* bits.

    The last streams come back short (possibly empty) when *bits* runs out.
    """
    for i in range(count):
        yield bits[i * length:(i + 1) * length]
