"""Small text helpers shared by the CV parser, blueprint builder and state store."""

import re

_WS_RE = re.compile(r'\s+')
_SLUG_RE = re.compile(r'[^a-z0-9]+')
_SPLIT_LIST_RE = re.compile(r'\r?\n|,')

ELLIPSIS = '…'


def slugify(value) -> str:
    """Lowercase, hyphenated, URL-safe identifier."""
    text = str(value if value is not None else '').strip().lower()
    text = _SLUG_RE.sub('-', text)
    return text.strip('-')


def collapse_whitespace(value) -> str:
    if not isinstance(value, str):
        return ''
    return _WS_RE.sub(' ', value).strip()


def unique_list(values) -> list[str]:
    """De-duplicate strings case-insensitively, keeping first-seen order and casing."""
    seen = set()
    result = []
    for value in values or []:
        if not isinstance(value, str):
            continue
        trimmed = value.strip()
        if not trimmed:
            continue
        key = trimmed.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    return result


def normalise_string_array(value) -> list[str]:
    """Accept a list or a comma/newline separated string; return trimmed non-empty strings."""
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if item is None:
                continue
            text = item.strip() if isinstance(item, str) else str(item).strip()
            if text:
                items.append(text)
        return items
    if isinstance(value, str):
        return [item.strip() for item in _SPLIT_LIST_RE.split(value) if item.strip()]
    return []


def normalise_tags(value) -> list[str]:
    return unique_list([tag.lstrip('#') for tag in normalise_string_array(value)])


def normalise_highlights(value) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if isinstance(value, str):
        return [item.strip() for item in value.split('\n') if item.strip()]
    return []


def summarise_text(value, max_length: int = 220) -> str:
    """Collapse whitespace and cut to max_length, preferring a word boundary past char 40."""
    clean = collapse_whitespace(value)
    if len(clean) <= max_length:
        return clean
    cut = clean[:max_length]
    last_space = cut.rfind(' ')
    if last_space > 40:
        cut = cut[:last_space]
    return f'{cut}{ELLIPSIS}'


def capitalise_title(value) -> str:
    trimmed = value.strip() if isinstance(value, str) else ''
    if not trimmed:
        return 'Untitled entry'
    return trimmed[0].upper() + trimmed[1:]


def unique_slug(base_id: str, taken) -> str:
    """base_id, or base_id-1, base_id-2, ... whichever is not in taken."""
    candidate = base_id
    counter = 1
    while candidate in taken:
        candidate = f'{base_id}-{counter}'
        counter += 1
    return candidate
