"""Read-only projections of the site document for API responses.

None of these mutate the state they are given.
"""

from collections import Counter

UNCATEGORISED = 'Uncategorised'


def with_category_counts(state: dict) -> list[dict]:
    """Categories with an 'items' count of entries filed under each."""
    counts = Counter(entry.get('categoryId') for entry in state.get('entries', []))
    return [{**category, 'items': counts.get(category['id'], 0)}
            for category in state.get('categories', [])]


def enrich_entries(state: dict) -> list[dict]:
    """Entries with the display name of their category."""
    names = {category['id']: category.get('name') for category in state.get('categories', [])}
    return [{**entry, 'categoryName': names.get(entry.get('categoryId')) or UNCATEGORISED}
            for entry in state.get('entries', [])]


def enrich_homepage(state: dict) -> dict:
    """Homepage with each featured slot joined to its entry; dangling slots are dropped."""
    homepage = state.get('homepage') or {}
    lookup = {entry['id']: entry for entry in state.get('entries', [])}
    featured = []
    for slot in homepage.get('featured', []):
        entry = lookup.get(slot.get('entryId'))
        if entry is None:
            continue
        featured.append({**slot, 'entry': entry})
    return {
        'hero': homepage.get('hero') or {'title': '', 'cta': ''},
        'featured': featured,
        'highlights': list(homepage.get('highlights', [])),
    }


def category_options(state: dict) -> list[dict]:
    """{id, name} pairs for category pickers."""
    return [{'id': category['id'], 'name': category.get('name', '')}
            for category in state.get('categories', [])]


def entry_options(state: dict) -> list[dict]:
    """{id, title} pairs for featured-slot pickers."""
    return [{'id': entry['id'], 'title': entry.get('title', '')}
            for entry in state.get('entries', [])]


def site_payload(state: dict) -> dict:
    return {
        'profile': state.get('profile') or {},
        'categories': with_category_counts(state),
        'entries': enrich_entries(state),
        'homepage': enrich_homepage(state),
    }
