"""Turn an onboarding submission plus a CV analysis into site content.

The blueprint owns every category and entry tagged with the onboarding
source: each run discards the previous onboarding set and rebuilds it from
the new analysis and focus areas. Manually authored categories and entries
are carried over untouched, and their ids are never reused.
"""

import logging
from datetime import date
from typing import Optional

from analyzer import MAX_ENTRIES_PER_SECTION, analyze_cv
from content_types import EntryStatus, Source, is_onboarding
from site_views import enrich_entries, enrich_homepage, with_category_counts
from text_utils import (
    capitalise_title,
    normalise_string_array,
    slugify,
    summarise_text,
    unique_list,
    unique_slug,
)

logger = logging.getLogger(__name__)

MAX_TOTAL_ENTRIES = 15
MAX_HIGHLIGHTS = 5
FEATURE_SLOTS = ['Spotlight feature', 'Showcase highlight', 'Story spotlight']
DEFAULT_HERO_TITLE = 'Your new site is ready'

CATEGORY_BLUEPRINTS = {
    'experience': {
        'id': 'experience',
        'name': 'Experience',
        'description': 'Career highlights, leadership roles, and mission-critical contributions.',
        'featured': True,
    },
    'projects': {
        'id': 'projects',
        'name': 'Projects',
        'description': 'Selected builds, experiments, and flagship launches.',
        'featured': True,
    },
    'publications': {
        'id': 'publications',
        'name': 'Publications',
        'description': 'Articles, essays, and research published across platforms.',
        'featured': False,
    },
    'education': {
        'id': 'education',
        'name': 'Education',
        'description': 'Formal studies, certifications, and continued learning.',
        'featured': False,
    },
    'achievements': {
        'id': 'achievements',
        'name': 'Achievements',
        'description': 'Awards, recognition, and milestone wins worth celebrating.',
        'featured': False,
    },
}

# (keywords, call to action), first match wins
_CTA_RULES = [
    (('role', 'job'), 'Invite new opportunities'),
    (('publish', 'writing'), 'Explore latest articles'),
    (('venture', 'startup'), 'Pitch a partnership'),
    (('presence', 'brand'), 'Connect for collaborations'),
]
_EMPTY_INTENT_CTA = 'Connect for collaborations'
_FALLBACK_CTA = 'Reach out to collaborate'


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

def _submitted_text(submission: dict, key: str, fallback) -> str:
    value = submission.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback if isinstance(fallback, str) else ''


def build_profile(submission: dict, existing: dict, analysis: dict,
                  focus_areas: list[str]) -> dict:
    links = normalise_string_array(submission.get('links'))
    if not links:
        links = normalise_string_array(existing.get('links'))

    submitted_highlights = normalise_string_array(submission.get('cvHighlights'))
    if submitted_highlights:
        highlights = unique_list(submitted_highlights + analysis['highlights'])[:MAX_HIGHLIGHTS]
    else:
        highlights = list(analysis['highlights'])

    return {
        'headline': _submitted_text(submission, 'headline', existing.get('headline')),
        'intent': _submitted_text(submission, 'intent', existing.get('intent')),
        'focusAreas': focus_areas,
        'bio': _submitted_text(submission, 'bio', existing.get('bio')),
        'links': links,
        'cvHighlights': highlights,
        # Onboarding never edits these
        'location': existing.get('location') or '',
        'availability': existing.get('availability') or '',
        'avatar': existing.get('avatar') or '',
        'skills': unique_list(analysis['skills']
                              + normalise_string_array(existing.get('skills'))
                              + focus_areas),
    }


# ---------------------------------------------------------------------------
# Categories and entries
# ---------------------------------------------------------------------------

def build_categories(analysis: dict, focus_areas: list[str], retained_ids: set) -> list[dict]:
    categories = []
    taken = set(retained_ids)

    for section in analysis['sections']:
        blueprint = CATEGORY_BLUEPRINTS.get(section['type'])
        if not blueprint or not section['items'] or blueprint['id'] in taken:
            continue
        categories.append({
            'id': blueprint['id'],
            'name': blueprint['name'],
            'description': blueprint['description'],
            'featured': blueprint['featured'],
            'source': Source.ONBOARDING.value,
        })
        taken.add(blueprint['id'])

    for area in focus_areas:
        category_id = slugify(area)
        if not category_id or category_id in taken:
            continue
        categories.append({
            'id': category_id,
            'name': area,
            'description': f'Updates and stories focused on {area.lower()}.',
            'featured': False,
            'source': Source.ONBOARDING.value,
        })
        taken.add(category_id)

    return categories


def derive_tags(text: str, focus_areas: list[str]) -> list[str]:
    """Focus areas with at least one word (over 3 chars) appearing in the text."""
    lower_text = text.lower() if isinstance(text, str) else ''
    tags = []
    for area in focus_areas:
        words = area.lower().split()
        if any(len(word) > 3 and word in lower_text for word in words):
            tags.append(area)
    return unique_list(tags)


def build_entries(analysis: dict, focus_areas: list[str], categories: list[dict],
                  retained_ids: set, today: str) -> list[dict]:
    category_ids = {category['id'] for category in categories}
    taken = set(retained_ids)
    entries = []

    for section in analysis['sections']:
        if len(entries) >= MAX_TOTAL_ENTRIES:
            break
        blueprint = CATEGORY_BLUEPRINTS.get(section['type'])
        if not blueprint or blueprint['id'] not in category_ids:
            continue
        category_id = blueprint['id']

        for index, item in enumerate(section['items'][:MAX_ENTRIES_PER_SECTION]):
            if len(entries) >= MAX_TOTAL_ENTRIES:
                break
            base_id = slugify(f"{category_id}-{item['title']}") or f'{category_id}-{index + 1}'
            entry_id = unique_slug(base_id, taken)
            taken.add(entry_id)
            entries.append({
                'id': entry_id,
                'title': capitalise_title(item['title']),
                'categoryId': category_id,
                'status': EntryStatus.PUBLISHED.value,
                'featured': index == 0,
                'updatedAt': today,
                'summary': summarise_text(item['summary'], 220),
                'body': item['body'],
                'link': '',
                'media': '',
                'tags': derive_tags(item['body'], focus_areas),
                'source': Source.ONBOARDING.value,
            })

    return entries


# ---------------------------------------------------------------------------
# Homepage
# ---------------------------------------------------------------------------

def _date_ordinal(value) -> int:
    try:
        return date.fromisoformat(str(value)[:10]).toordinal()
    except ValueError:
        return 0


def pick_featured_entries(entries: list[dict]) -> list[dict]:
    """Choose up to three entries, featured first and spread across categories.

    Within the same featured-ness the most recently updated entry wins. An
    entry from an already used category is skipped unless only the last slot
    remains; leftovers backfill any slots still empty.
    """
    slot_count = len(FEATURE_SLOTS)
    ordered = sorted(
        (entry for entry in entries if entry.get('id')),
        key=lambda entry: (not entry.get('featured'), -_date_ordinal(entry.get('updatedAt'))),
    )

    selected = []
    used_categories = set()
    for entry in ordered:
        if len(selected) >= slot_count:
            break
        category_id = entry.get('categoryId')
        if category_id and category_id in used_categories and len(selected) < slot_count - 1:
            continue
        selected.append(entry)
        if category_id:
            used_categories.add(category_id)

    if len(selected) < slot_count:
        chosen = {entry['id'] for entry in selected}
        for entry in ordered:
            if len(selected) >= slot_count:
                break
            if entry['id'] in chosen:
                continue
            selected.append(entry)
            chosen.add(entry['id'])

    return selected[:slot_count]


def build_hero_cta(intent) -> str:
    value = intent.lower() if isinstance(intent, str) else ''
    if not value.strip():
        return _EMPTY_INTENT_CTA
    for keywords, cta in _CTA_RULES:
        if any(keyword in value for keyword in keywords):
            return cta
    return _FALLBACK_CTA


def build_homepage_highlights(profile: dict, focus_areas: list[str], featured_entries: list[dict],
                              existing_highlights=None) -> list[str]:
    candidates = list(profile.get('cvHighlights') or [])
    candidates += [f'Spotlighting {area}' for area in focus_areas]
    candidates += [f"New: {entry['title']}" for entry in featured_entries]
    candidates += normalise_string_array(existing_highlights)
    return unique_list(candidates)[:MAX_HIGHLIGHTS]


def build_homepage(profile: dict, entries: list[dict], focus_areas: list[str],
                   existing_highlights=None) -> dict:
    featured_entries = pick_featured_entries(entries)
    return {
        'hero': {
            'title': profile.get('headline') or DEFAULT_HERO_TITLE,
            'cta': build_hero_cta(profile.get('intent')),
        },
        'featured': [
            {
                'slot': FEATURE_SLOTS[index] if index < len(FEATURE_SLOTS) else f'Feature {index + 1}',
                'entryId': entry['id'],
            }
            for index, entry in enumerate(featured_entries)
        ],
        'highlights': build_homepage_highlights(profile, focus_areas, featured_entries,
                                                existing_highlights),
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def apply_blueprint(state: dict, submission: dict, today: Optional[str] = None) -> dict:
    """Merge an onboarding submission into state (in place) and return the API view.

    submission keys (all optional): headline, intent, focusAreas, bio, links,
    cvHighlights, cvText.
    """
    submission = submission if isinstance(submission, dict) else {}
    today = today or date.today().isoformat()
    existing_profile = state.get('profile') or {}

    focus_areas = unique_list(normalise_string_array(submission.get('focusAreas')))
    if not focus_areas:
        focus_areas = unique_list(normalise_string_array(existing_profile.get('focusAreas')))

    cv_text = submission.get('cvText')
    analysis = analyze_cv(cv_text if isinstance(cv_text, str) else '')

    profile = build_profile(submission, existing_profile, analysis, focus_areas)

    categories = state.get('categories') or []
    retained_categories = [category for category in categories if not is_onboarding(category)]
    new_categories = build_categories(
        analysis, focus_areas, {category['id'] for category in retained_categories})
    updated_categories = retained_categories + new_categories

    entries = state.get('entries') or []
    retained_entries = [entry for entry in entries if not is_onboarding(entry)]
    new_entries = build_entries(
        analysis, focus_areas, updated_categories,
        {entry['id'] for entry in retained_entries}, today)
    updated_entries = retained_entries + new_entries

    previous_highlights = (state.get('homepage') or {}).get('highlights')
    homepage = build_homepage(profile, updated_entries, focus_areas, previous_highlights)

    logger.info('Blueprint applied: kept %d/%d categories and %d/%d entries, generated %d categories '
                'and %d entries', len(retained_categories), len(categories), len(retained_entries),
                len(entries), len(new_categories), len(new_entries))

    state['profile'] = profile
    state['categories'] = updated_categories
    state['entries'] = updated_entries
    state['homepage'] = homepage

    return {
        'profile': state['profile'],
        'categories': with_category_counts(state),
        'entries': enrich_entries(state),
        'homepage': enrich_homepage(state),
    }
