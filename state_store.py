"""Load/save contract for the site document.

Whatever is stored, load_state() hands back a document with every field
present and correctly typed. Missing or malformed values fall back to their
defaults instead of failing the request.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date

from content_types import ENTRY_STATUSES, MESSAGE_STATUSES, EntryStatus, MessageStatus, Source
from models import SiteDocument, db
from text_utils import (
    normalise_highlights,
    normalise_string_array,
    normalise_tags,
    slugify,
)

logger = logging.getLogger(__name__)

DOCUMENT_ID = 1

# Serialises read-modify-write cycles within this process. Several worker
# processes writing the same database still need an external lock.
_write_lock = threading.RLock()


def default_profile() -> dict:
    return {
        'headline': '',
        'intent': '',
        'focusAreas': [],
        'bio': '',
        'links': [],
        'cvHighlights': [],
        'location': '',
        'availability': '',
        'avatar': '',
        'skills': [],
    }


def default_state() -> dict:
    return {
        'profile': default_profile(),
        'categories': [],
        'entries': [],
        'homepage': {'hero': {'title': '', 'cta': ''}, 'featured': [], 'highlights': []},
        'messages': [],
    }


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def _text(value) -> str:
    return value if isinstance(value, str) else ''


def _source(item: dict) -> str:
    return Source.of(item).value


def normalise_profile(raw) -> dict:
    profile = raw if isinstance(raw, dict) else {}
    return {
        'headline': _text(profile.get('headline')),
        'intent': _text(profile.get('intent')),
        'focusAreas': normalise_string_array(profile.get('focusAreas')),
        'bio': _text(profile.get('bio')),
        'links': normalise_string_array(profile.get('links')),
        'cvHighlights': normalise_string_array(profile.get('cvHighlights')),
        'location': _text(profile.get('location')),
        'availability': _text(profile.get('availability')),
        'avatar': _text(profile.get('avatar')),
        'skills': normalise_string_array(profile.get('skills')),
    }


def normalise_category(raw: dict, position: int) -> dict:
    name = raw.get('name') if isinstance(raw.get('name'), str) and raw.get('name').strip() else ''
    category_id = raw.get('id') if isinstance(raw.get('id'), str) and raw.get('id') else ''
    return {
        'id': category_id or slugify(name) or f'category-{position + 1}',
        'name': name.strip() or 'Untitled category',
        'description': _text(raw.get('description')),
        'featured': bool(raw.get('featured')),
        'source': _source(raw),
    }


def normalise_entry(raw: dict, position: int) -> dict:
    title = raw.get('title').strip() if isinstance(raw.get('title'), str) else ''
    entry_id = raw.get('id') if isinstance(raw.get('id'), str) and raw.get('id') else ''
    status = raw.get('status')
    category_id = raw.get('categoryId')
    return {
        'id': entry_id or slugify(title) or f'entry-{position + 1}',
        'title': title or 'Untitled entry',
        'categoryId': category_id if isinstance(category_id, str) and category_id else None,
        'status': status if status in ENTRY_STATUSES else EntryStatus.DRAFT.value,
        'featured': bool(raw.get('featured')),
        'updatedAt': _text(raw.get('updatedAt')) or date.today().isoformat(),
        'summary': _text(raw.get('summary')),
        'body': _text(raw.get('body')),
        'link': _text(raw.get('link')),
        'media': _text(raw.get('media')),
        'tags': normalise_tags(raw.get('tags')),
        'source': _source(raw),
    }


def normalise_message(raw: dict) -> dict:
    status = raw.get('status')
    return {
        'id': str(raw.get('id') or ''),
        'sender': _text(raw.get('sender')),
        'email': _text(raw.get('email')),
        'status': status if status in MESSAGE_STATUSES else MessageStatus.NEW.value,
        'receivedAt': _text(raw.get('receivedAt')),
        'body': _text(raw.get('body')),
    }


def _unique_by_id(items: list[dict], kind: str) -> list[dict]:
    seen = set()
    result = []
    for item in items:
        if item['id'] in seen:
            logger.warning('Dropping duplicate %s id %r from stored document', kind, item['id'])
            continue
        seen.add(item['id'])
        result.append(item)
    return result


def normalise_homepage(raw, entry_ids: set) -> dict:
    homepage = raw if isinstance(raw, dict) else {}
    hero = homepage.get('hero') if isinstance(homepage.get('hero'), dict) else {}
    featured = []
    for slot in homepage.get('featured') or []:
        if not isinstance(slot, dict):
            continue
        entry_id = slot.get('entryId')
        if not isinstance(entry_id, str) or entry_id not in entry_ids:
            continue
        featured.append({'slot': _text(slot.get('slot')), 'entryId': entry_id})
    return {
        'hero': {'title': _text(hero.get('title')), 'cta': _text(hero.get('cta'))},
        'featured': featured,
        'highlights': normalise_highlights(homepage.get('highlights')),
    }


def normalise_state(raw) -> dict:
    """Coerce an arbitrary parsed document into the documented shape."""
    document = raw if isinstance(raw, dict) else {}

    raw_categories = document.get('categories')
    categories = _unique_by_id(
        [normalise_category(item, i) for i, item in enumerate(raw_categories)
         if isinstance(item, dict)] if isinstance(raw_categories, list) else [],
        'category')
    category_ids = {category['id'] for category in categories}

    raw_entries = document.get('entries')
    entries = _unique_by_id(
        [normalise_entry(item, i) for i, item in enumerate(raw_entries)
         if isinstance(item, dict)] if isinstance(raw_entries, list) else [],
        'entry')
    for entry in entries:
        if entry['categoryId'] is not None and entry['categoryId'] not in category_ids:
            entry['categoryId'] = None

    raw_messages = document.get('messages')
    messages = [normalise_message(item) for item in raw_messages
                if isinstance(item, dict)] if isinstance(raw_messages, list) else []

    return {
        'profile': normalise_profile(document.get('profile')),
        'categories': categories,
        'entries': entries,
        'homepage': normalise_homepage(document.get('homepage'),
                                       {entry['id'] for entry in entries}),
        'messages': messages,
    }


# ---------------------------------------------------------------------------
# Persistence (requires an application context)
# ---------------------------------------------------------------------------

def _get_or_create_document() -> SiteDocument:
    record = db.session.get(SiteDocument, DOCUMENT_ID)
    if record is None:
        record = SiteDocument(id=DOCUMENT_ID)
        record.set_document(default_state())
        db.session.add(record)
        db.session.commit()
        logger.info('Created default site document')
    return record


def load_state() -> dict:
    record = _get_or_create_document()
    try:
        raw = record.get_document()
    except ValueError as e:
        logger.warning('Stored site document is unreadable, using defaults: %s', e)
        raw = {}
    return normalise_state(raw)


def save_state(state: dict):
    """Replace the stored document with state."""
    record = _get_or_create_document()
    record.set_document(state)
    db.session.commit()


@contextmanager
def state_transaction():
    """Load the document, let the caller mutate it, then save it.

    Nothing is written if the block raises.
    """
    with _write_lock:
        state = load_state()
        yield state
        save_state(state)
