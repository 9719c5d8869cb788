"""Plain CRUD over the site document.

Every function takes the request's state document, mutates it in place and
returns the affected record. Referential rules are kept here: deleting a
category un-files its entries, deleting an entry frees its featured slots.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from content_types import ENTRY_STATUSES, MESSAGE_STATUSES, EntryStatus, MessageStatus, Source
from state_store import normalise_profile
from text_utils import (
    normalise_highlights,
    normalise_tags,
    slugify,
    unique_list,
    unique_slug,
)

logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """Request body is missing required fields or has invalid values."""


class ItemNotFound(LookupError):
    """No record with the requested id."""


def _require_object(body) -> dict:
    if not isinstance(body, dict):
        raise PayloadError('Invalid payload')
    return body


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ''


def _find(items: list[dict], item_id: str, kind: str) -> dict:
    for item in items:
        if item.get('id') == item_id:
            return item
    raise ItemNotFound(f'{kind} {item_id!r} not found')


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

def update_profile(state: dict, body) -> dict:
    """Replace the profile wholesale."""
    profile = normalise_profile(_require_object(body))
    profile['focusAreas'] = unique_list(profile['focusAreas'])
    profile['cvHighlights'] = unique_list(profile['cvHighlights'])
    profile['skills'] = unique_list(profile['skills'])
    state['profile'] = profile
    return profile


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def create_category(state: dict, body) -> dict:
    body = _require_object(body)
    name = _clean(body.get('name'))
    if not name:
        raise PayloadError('Name is required')
    base_id = slugify(body.get('id')) if body.get('id') else slugify(name)
    taken = {category['id'] for category in state['categories']}
    category = {
        'id': unique_slug(base_id or 'category', taken),
        'name': name,
        'description': _clean(body.get('description')),
        'featured': bool(body.get('featured')),
        'source': Source.MANUAL.value,
    }
    state['categories'].append(category)
    logger.info('Created category %s', category['id'])
    return category


def update_category(state: dict, category_id: str, body) -> dict:
    category = _find(state['categories'], category_id, 'Category')
    body = _require_object(body)
    name = _clean(body.get('name'))
    if name:
        category['name'] = name
    if isinstance(body.get('featured'), bool):
        category['featured'] = body['featured']
    if isinstance(body.get('description'), str):
        category['description'] = body['description'].strip()
    return category


def delete_category(state: dict, category_id: str):
    _find(state['categories'], category_id, 'Category')
    state['categories'] = [c for c in state['categories'] if c['id'] != category_id]
    orphaned = 0
    for entry in state['entries']:
        if entry.get('categoryId') == category_id:
            entry['categoryId'] = None
            orphaned += 1
    logger.info('Deleted category %s (%d entries uncategorised)', category_id, orphaned)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

def _resolve_category_id(state: dict, value) -> Optional[str]:
    if isinstance(value, str) and any(c['id'] == value for c in state['categories']):
        return value
    return None


def _entry_status(value, default: Optional[str] = None) -> str:
    status = _clean(value)
    if status in ENTRY_STATUSES:
        return status
    if default is not None and not status:
        return default
    raise PayloadError(f'Status must be one of: {", ".join(ENTRY_STATUSES)}')


def create_entry(state: dict, body) -> dict:
    body = _require_object(body)
    title = _clean(body.get('title'))
    if not title:
        raise PayloadError('Title is required')
    base_id = slugify(body.get('id')) if body.get('id') else slugify(title)
    taken = {entry['id'] for entry in state['entries']}
    entry = {
        'id': unique_slug(base_id or 'entry', taken),
        'title': title,
        'categoryId': _resolve_category_id(state, body.get('categoryId')),
        'status': _entry_status(body.get('status'), default=EntryStatus.DRAFT.value),
        'featured': bool(body.get('featured')),
        'updatedAt': _clean(body.get('updatedAt')) or date.today().isoformat(),
        'summary': _clean(body.get('summary')),
        'body': _clean(body.get('body')),
        'link': _clean(body.get('link')),
        'media': _clean(body.get('media')),
        'tags': normalise_tags(body.get('tags')),
        'source': Source.MANUAL.value,
    }
    state['entries'].append(entry)
    logger.info('Created entry %s', entry['id'])
    return entry


def update_entry(state: dict, entry_id: str, body) -> dict:
    entry = _find(state['entries'], entry_id, 'Entry')
    body = _require_object(body)
    if _clean(body.get('title')):
        entry['title'] = _clean(body['title'])
    if 'categoryId' in body:
        entry['categoryId'] = _resolve_category_id(state, body['categoryId'])
    if _clean(body.get('status')):
        entry['status'] = _entry_status(body['status'])
    if isinstance(body.get('featured'), bool):
        entry['featured'] = body['featured']
    if _clean(body.get('updatedAt')):
        entry['updatedAt'] = _clean(body['updatedAt'])
    for key in ('summary', 'body', 'link', 'media'):
        if isinstance(body.get(key), str):
            entry[key] = body[key].strip()
    if 'tags' in body:
        entry['tags'] = normalise_tags(body['tags'])
    return entry


def delete_entry(state: dict, entry_id: str):
    _find(state['entries'], entry_id, 'Entry')
    state['entries'] = [e for e in state['entries'] if e['id'] != entry_id]
    homepage = state['homepage']
    homepage['featured'] = [slot for slot in homepage['featured'] if slot.get('entryId') != entry_id]
    logger.info('Deleted entry %s', entry_id)


# ---------------------------------------------------------------------------
# Homepage
# ---------------------------------------------------------------------------

def update_homepage(state: dict, body) -> dict:
    body = _require_object(body)
    homepage = state['homepage']
    hero = body.get('hero')
    if isinstance(hero, dict):
        homepage['hero'] = {
            'title': hero['title'] if isinstance(hero.get('title'), str) else homepage['hero']['title'],
            'cta': hero['cta'] if isinstance(hero.get('cta'), str) else homepage['hero']['cta'],
        }
    if isinstance(body.get('featured'), list):
        entry_ids = {entry['id'] for entry in state['entries']}
        homepage['featured'] = [
            {'slot': slot.get('slot') if isinstance(slot.get('slot'), str) else '',
             'entryId': slot['entryId']}
            for slot in body['featured']
            if isinstance(slot, dict) and isinstance(slot.get('entryId'), str)
            and slot['entryId'] in entry_ids
        ]
    if body.get('highlights') is not None:
        homepage['highlights'] = unique_list(normalise_highlights(body['highlights']))
    return homepage


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def list_messages(state: dict) -> list[dict]:
    """Newest first."""
    return sorted(state['messages'], key=lambda m: m.get('receivedAt') or '', reverse=True)


def create_message(state: dict, body, now: Optional[datetime] = None) -> dict:
    body = _require_object(body)
    sender = _clean(body.get('sender'))
    email = _clean(body.get('email'))
    text = _clean(body.get('body'))
    if not sender:
        raise PayloadError('Sender is required')
    if '@' not in email:
        raise PayloadError('Valid email is required')
    if not text:
        raise PayloadError('Message body is required')

    now = now or datetime.now(timezone.utc)
    taken = {message['id'] for message in state['messages']}
    message = {
        'id': unique_slug(f'm-{int(now.timestamp() * 1000)}', taken),
        'sender': sender,
        'email': email,
        'status': MessageStatus.NEW.value,
        'receivedAt': now.isoformat().replace('+00:00', 'Z'),
        'body': text,
    }
    state['messages'].append(message)
    logger.info('Received message %s from %s', message['id'], email)
    return message


def update_message(state: dict, message_id: str, body) -> dict:
    message = _find(state['messages'], message_id, 'Message')
    body = _require_object(body)
    status = _clean(body.get('status'))
    if status:
        if status not in MESSAGE_STATUSES:
            raise PayloadError(f'Status must be one of: {", ".join(MESSAGE_STATUSES)}')
        message['status'] = status
    return message


def delete_message(state: dict, message_id: str):
    _find(state['messages'], message_id, 'Message')
    state['messages'] = [m for m in state['messages'] if m['id'] != message_id]
