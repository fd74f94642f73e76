from __future__ import annotations

import re


def is_regex_entry(entry: str) -> bool:
    return len(entry) >= 2 and entry.startswith("/") and entry.endswith("/")


def filter_entities(
    names: list[str],
    included: list[str] | None = None,
    ignored: list[str] | None = None,
) -> list[str]:
    """Apply an include list, then exact and ``/regex/`` ignore entries."""
    filtered = list(names)
    if included:
        filtered = [name for name in filtered if name in included]
    if not ignored:
        return filtered

    patterns = [re.compile(entry[1:-1]) for entry in ignored if is_regex_entry(entry)]
    exact = {entry for entry in ignored if not is_regex_entry(entry)}
    return [
        name
        for name in filtered
        if name not in exact and not any(pattern.search(name) for pattern in patterns)
    ]
