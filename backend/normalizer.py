import re
from urllib.parse import unquote

# Query values are comma-joined: ?type=montessori,cbse
VALUE_SEPARATOR = re.compile(r',')


def title_case_words(raw: str) -> str:
    """
    Title-cases a value word by word ("day school" -> "Day School").
    All-uppercase values are returned verbatim so acronyms like "IB" or
    "CBSE" survive.
    """
    if raw is None:
        return ""
    text = str(raw)
    if text.upper() == text:
        return text
    return " ".join(w.capitalize() for w in text.split(" "))


def canonicalize_value(raw: str, options) -> str:
    """
    Resolves a raw filter value to its canonical option.
    Handles: 'montessori' -> 'Montessori', 'ib world' -> 'IB World'.
    Falls back to title_case_words() when the category has no options
    (unknown or not yet loaded) or nothing matches.
    """
    text = "" if raw is None else str(raw).strip()
    if not text:
        return ""
    lowered = text.lower()
    for option in options or ():
        if option.lower() == lowered:
            return option
    return title_case_words(text)


def split_query_value(raw_str: str) -> list[str]:
    """Splits a comma-joined query value and URL-decodes each piece."""
    if not raw_str:
        return []
    pieces = []
    for token in VALUE_SEPARATOR.split(str(raw_str)):
        try:
            decoded = unquote(token)
        except (TypeError, ValueError):
            decoded = token
        decoded = decoded.strip()
        if decoded:
            pieces.append(decoded)
    return pieces


def normalize_query_values(raw_str: str, options) -> list[str]:
    """
    Splits, decodes and canonicalizes one query parameter value.

    Returns canonical values in first-seen order, e.g.
      normalize_query_values("montessori,CBSE,cbse", TYPE_OPTIONS)
        -> ["Montessori", "CBSE"]
    """
    values: list[str] = []
    seen: set[str] = set()
    for token in split_query_value(raw_str):
        canonical = canonicalize_value(token, options)
        if not canonical or canonical.casefold() in seen:
            continue  # deduplicate silently
        values.append(canonical)
        seen.add(canonical.casefold())
    return values
