"""Naming-convention helpers for frame sequences."""
from __future__ import annotations

import re
from pathlib import PurePosixPath

_DIGITS = re.compile(r"(\d+)")
_PADDED_INDEX = re.compile(r"\{index:(0+)\}")


def extract_sequence_index(filename: str) -> int | None:
    """Return the first run of digits in the file stem, or ``None``."""
    match = _DIGITS.search(PurePosixPath(filename).stem)
    return int(match.group(1)) if match else None


def apply_naming_pattern(pattern: str, filename: str, index: int) -> str:
    """Render *pattern* for one file of a sequence.

    ``{index:000}`` zero-pads to the number of zeros, ``{index}`` is the
    bare number and ``{name}`` the original stem.
    """
    stem = PurePosixPath(filename).stem
    result = _PADDED_INDEX.sub(lambda m: str(index).zfill(len(m.group(1))), pattern)
    return result.replace("{index}", str(index)).replace("{name}", stem)


def is_contiguous_sequence(filenames: list[str]) -> bool:
    """True when every file carries an index and the indices form a gapless run."""
    if not filenames:
        return False
    indices = [extract_sequence_index(f) for f in filenames]
    if any(i is None for i in indices):
        return False
    ordered = sorted(indices)
    if len(set(ordered)) != len(ordered):
        return False
    return ordered[-1] - ordered[0] == len(ordered) - 1
