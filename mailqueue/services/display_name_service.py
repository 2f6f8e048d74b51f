"""Human-readable names from ``firstname.lastname`` usernames."""

from __future__ import annotations

# Checked in order; the first prefix that matches wins.
NAME_PREFIXES: tuple[str, ...] = ("mc", "mac", "o'", "de", "van", "von", "la", "le")


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def format_name_part(part: str) -> str:
    """Format one name token, normalizing its case.

    Hyphenated tokens are formatted piece by piece. A token starting with a
    known prefix gets the rest capitalized as a new word (``macdonald`` ->
    ``MacDonald``).
    """
    if "-" in part:
        return "-".join(format_name_part(p) for p in part.split("-"))

    lower = part.lower()
    for prefix in NAME_PREFIXES:
        if lower.startswith(prefix) and len(lower) > len(prefix):
            return _capitalize(prefix) + _capitalize(part[len(prefix) :])

    return _capitalize(part)


def format_display_name(username: str | None) -> str | None:
    """Turn ``firstname.lastname`` into ``Firstname Lastname``.

    Segments after the first dot are joined with spaces into the last name.
    Returns ``None`` for ``None`` or empty input.
    """
    if not username:
        return None

    parts = username.split(".")
    if len(parts) >= 2:
        first_name = format_name_part(parts[0])
        last_name = format_name_part(" ".join(parts[1:]))
        return f"{first_name} {last_name}"

    return format_name_part(username)
