import copy

import pytest

from site_service import delete_category
from site_views import (
    category_options,
    enrich_entries,
    enrich_homepage,
    entry_options,
    site_payload,
    with_category_counts,
)


@pytest.fixture
def populated_state(empty_state):
    empty_state['categories'] = [
        {'id': 'experience', 'name': 'Experience', 'description': '', 'featured': True,
         'source': 'onboarding'},
        {'id': 'essays', 'name': 'Essays', 'description': '', 'featured': False, 'source': 'manual'},
    ]
    empty_state['entries'] = [
        {'id': 'role-a', 'title': 'Role A', 'categoryId': 'experience'},
        {'id': 'role-b', 'title': 'Role B', 'categoryId': 'experience'},
        {'id': 'loose', 'title': 'Loose note', 'categoryId': None},
    ]
    empty_state['homepage']['featured'] = [
        {'slot': 'Spotlight feature', 'entryId': 'role-a'},
        {'slot': 'Showcase highlight', 'entryId': 'gone'},
    ]
    empty_state['homepage']['highlights'] = ['Hello']
    return empty_state


def test_with_category_counts(populated_state):
    counts = {c['id']: c['items'] for c in with_category_counts(populated_state)}
    assert counts == {'experience': 2, 'essays': 0}


def test_enrich_entries_names_categories(populated_state):
    names = {e['id']: e['categoryName'] for e in enrich_entries(populated_state)}
    assert names == {'role-a': 'Experience', 'role-b': 'Experience', 'loose': 'Uncategorised'}


def test_enrich_homepage_drops_dangling_slots(populated_state):
    homepage = enrich_homepage(populated_state)
    assert [slot['entryId'] for slot in homepage['featured']] == ['role-a']
    assert homepage['featured'][0]['entry']['title'] == 'Role A'
    assert homepage['highlights'] == ['Hello']


def test_views_do_not_mutate_state(populated_state):
    before = copy.deepcopy(populated_state)
    site_payload(populated_state)
    category_options(populated_state)
    entry_options(populated_state)
    assert populated_state == before


def test_deleting_category_uncategorises_entries(populated_state):
    delete_category(populated_state, 'experience')

    assert [e['categoryId'] for e in populated_state['entries']] == [None, None, None]
    assert category_options(populated_state) == [{'id': 'essays', 'name': 'Essays'}]
    assert {e['categoryName'] for e in enrich_entries(populated_state)} == {'Uncategorised'}


def test_entry_options(populated_state):
    assert entry_options(populated_state)[0] == {'id': 'role-a', 'title': 'Role A'}
