LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """Substring pattern for ``ilike`` with ``%`` and ``_`` escaped; pair with ``escape=LIKE_ESCAPE``."""
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
