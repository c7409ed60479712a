"""
Helpers for converting between option indices and letter codes, and for
comparing option text.
"""

from collections.abc import Sequence


def index_to_letter(index: int) -> str:
    """
    Convert a 0-based index to a letter (0 -> 'A', 1 -> 'B', etc.).

    Raises:
        ValueError: If index is out of range [0, 25].
    """
    if not (0 <= index <= 25):
        raise ValueError(f"Index must be in [0, 25], got {index}")
    return chr(ord("A") + index)


def letter_to_index(letter: str) -> int | None:
    """
    Convert a letter code to a 0-based index ('A' -> 0, 'b' -> 1, etc.).

    Returns None for anything that is not a single letter A-Z, since raw
    answers come from scanned sheets and may be unreadable.
    """
    code = letter.strip().upper()
    if len(code) != 1 or not ("A" <= code <= "Z"):
        return None
    return ord(code) - ord("A")


def normalize_text(text: str) -> str:
    """Canonical form used whenever option text is compared."""
    return " ".join(text.split()).casefold()


def find_option_index(options: tuple[str, ...], text: str) -> int | None:
    """Index of the first option whose normalized text matches, else None."""
    target = normalize_text(text)
    for i, option in enumerate(options):
        if normalize_text(option) == target:
            return i
    return None


def is_permutation(values: Sequence[int], size: int | None = None) -> bool:
    """True when ``values`` is a bijection over range(len(values))."""
    if size is not None and len(values) != size:
        return False
    return sorted(values) == list(range(len(values)))
