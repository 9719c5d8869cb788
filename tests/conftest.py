"""Pytest fixtures for the site builder.

DATABASE_URL is pointed at a throwaway SQLite file before `app` is imported,
so tests never touch a developer's site.db.
"""

import os
import tempfile

import pytest

_TEST_DB_DIR = tempfile.mkdtemp(prefix='site-builder-tests-')
os.environ['DATABASE_URL'] = 'sqlite:///' + os.path.join(_TEST_DB_DIR, 'site.db')


SCENARIO_CV = (
    'EXPERIENCE\n'
    'Led a team of 5 engineers shipping a payments platform.\n'
    '\n'
    'SKILLS\n'
    'Go, Python, Leadership'
)


@pytest.fixture
def flask_app():
    from app import app
    from state_store import default_state, save_state

    app.config['TESTING'] = True
    with app.app_context():
        save_state(default_state())
    yield app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture
def empty_state():
    from state_store import default_state
    return default_state()


@pytest.fixture
def scenario_cv():
    return SCENARIO_CV
