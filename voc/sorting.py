"""
Library fragment ordering.

Customer libraries are conventionally prefixed with a priority number
(``1-core.js``, ``10-late.js``) but most are left unprefixed. The fallback
order puts numbered files first, by numeric value, then everything else
alphabetically. An explicit ``libraryOrder`` from project.json always wins.
"""
import re
import unicodedata
from typing import Iterable, List, Optional, Sequence, Tuple

_LEADING_DIGITS = re.compile(r"^\d+")


def _fallback_key(name: str) -> Tuple[int, int, str, str]:
    match = _LEADING_DIGITS.match(name)
    if match:
        return (0, int(match.group(0)), "", "")
    folded = unicodedata.normalize("NFKD", name).casefold()
    return (1, 0, folded, name)


def sort_library_files(file_names: Iterable[str]) -> List[str]:
    """Numeric-prefixed names first (by value), then the rest alphabetically.

    ``sorted`` is stable, so equal keys keep their enumeration order.
    """
    return sorted(file_names, key=_fallback_key)


def order(file_names: Sequence[str], explicit_order: Optional[Sequence[str]] = None) -> List[str]:
    """Resolve the total order of library fragments.

    Names listed in ``explicit_order`` that exist in ``file_names`` come
    first, in the given sequence; the remainder follow the fallback rule.
    Explicit entries with no matching file are ignored.
    """
    available = list(file_names)
    if not explicit_order:
        return sort_library_files(available)

    present = set(available)
    head: List[str] = []
    for name in explicit_order:
        if name in present and name not in head:
            head.append(name)

    placed = set(head)
    tail = [name for name in available if name not in placed]
    return head + sort_library_files(tail)
