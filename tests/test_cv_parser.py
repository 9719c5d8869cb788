import pytest

import cv_parser as cp
from cv_parser import (
    HEADING_RULES,
    RuleKind,
    chunk_section_lines,
    create_entry_from_block,
    detect_section_heading,
    format_skill,
    parse_skills_from_section,
    segment_cv,
)


# ------------------------- Heading detection -------------------------

@pytest.mark.parametrize('line, expected', [
    ('EXPERIENCE', 'experience'),
    ('- Professional Experience:', 'experience'),
    ('Work History', 'experience'),
    ('Key Projects', 'projects'),
    ('Publications', 'publications'),
    ('Academics', 'education'),
    ('Awards', 'achievements'),
    ('Technologies', 'skills'),
    ('About', 'summary'),
    ('• SKILLS', 'skills'),
])
def test_detect_section_heading_matches_known_headings(line, expected):
    assert detect_section_heading(line)['type'] == expected


def test_detect_section_heading_keyword_substring():
    heading = detect_section_heading('My work history at Acme')
    assert heading == {'type': 'experience', 'label': 'Experience'}


def test_detect_section_heading_priority_prefers_earlier_definition():
    # "project experience" is a projects keyword, but experience is checked first
    assert detect_section_heading('Project experience')['type'] == 'experience'


def test_detect_section_heading_returns_none_for_plain_text():
    assert detect_section_heading('Python developer in Berlin') is None
    assert detect_section_heading('   ') is None
    assert detect_section_heading('-') is None


def test_heading_rules_are_ordered_by_kind():
    kinds = [rule.kind for rule in HEADING_RULES]
    assert kinds[0] is RuleKind.PATTERN
    assert kinds[1] is RuleKind.PATTERN
    assert kinds[2] is RuleKind.KEYWORD
    assert HEADING_RULES[0].section_type == 'experience'
    # all-caps rules come after every pattern/keyword rule
    first_caps = kinds.index(RuleKind.ALL_CAPS)
    assert all(kind is RuleKind.ALL_CAPS for kind in kinds[first_caps:])
    assert len(kinds) - first_caps == len(cp.SECTION_DEFINITIONS)


def test_all_caps_rule_requires_short_uppercase_text():
    rule = next(r for r in HEADING_RULES if r.kind is RuleKind.ALL_CAPS and r.section_type == 'skills')
    assert rule.matches('CORE SKILLS')
    assert not rule.matches('Core skills')
    assert not rule.matches('SKL')


# ------------------------- Segmentation -------------------------

def test_segment_cv_splits_sections_and_drops_empty_ones():
    text = 'Jane Doe\nBuilder of things\n\nEXPERIENCE\nRole A\n\nSKILLS\n\nEDUCATION\nMIT'
    sections = segment_cv(text)

    assert [s['type'] for s in sections] == ['overview', 'experience', 'education']
    assert sections[0]['label'] == 'Overview'
    assert sections[0]['lines'] == ['Jane Doe', 'Builder of things', '']
    assert sections[1]['lines'] == ['Role A', '']
    assert sections[2]['lines'] == ['MIT']


def test_segment_cv_without_preamble_has_no_overview():
    sections = segment_cv('PROJECTS\r\nAtlas design system\r\n')
    assert [s['type'] for s in sections] == ['projects']
    assert sections[0]['lines'] == ['Atlas design system', '']


@pytest.mark.parametrize('text', ['', '   \n\t\n', None])
def test_segment_cv_blank_input(text):
    assert segment_cv(text) == []


# ------------------------- Chunking -------------------------

def test_chunk_section_lines_groups_blocks_and_strips_bullets():
    lines = ['- First bullet', '* second', '', 'Another block', 'continues', '']
    assert chunk_section_lines(lines) == ['First bullet second', 'Another block continues']


def test_chunk_section_lines_keeps_trailing_block():
    assert chunk_section_lines(['', '', '• only item']) == ['only item']
    assert chunk_section_lines([]) == []


# ------------------------- Entry drafts -------------------------

def test_create_entry_from_block_uses_text_before_separator():
    draft = create_entry_from_block('Senior Engineer - Acme Corp. Built the billing system.')
    assert draft == {
        'title': 'Senior Engineer',
        'summary': 'Senior Engineer - Acme Corp.',
        'body': 'Senior Engineer - Acme Corp. Built the billing system.',
    }


def test_create_entry_from_block_extends_short_title_from_second_sentence():
    draft = create_entry_from_block('CTO: Acme. Scaled the team from 5 to 50 people quickly.')
    assert draft['title'] == 'CTO Scaled the team from'
    assert draft['summary'] == 'CTO: Acme.'


def test_create_entry_from_block_short_title_without_second_sentence():
    assert create_entry_from_block('CTO')['title'] == 'CTO'


def test_create_entry_from_block_truncates_long_title_at_word_boundary():
    block = ' '.join(['alpha'] * 20)
    title = create_entry_from_block(block)['title']
    assert title == ' '.join(['alpha'] * 12) + '…'


def test_create_entry_from_block_hard_cuts_title_without_spaces():
    title = create_entry_from_block('x' * 100)['title']
    assert title == 'x' * 72 + '…'


def test_create_entry_from_block_truncates_summary():
    sentence = ' '.join(['word'] * 60) + '.'
    summary = create_entry_from_block(sentence)['summary']
    assert summary.endswith('…')
    assert len(summary) <= 201
    assert not summary[:-1].endswith(' ')


def test_create_entry_from_block_collapses_whitespace():
    draft = create_entry_from_block('  Shipped\t the   thing.  ')
    assert draft['body'] == 'Shipped the thing.'


@pytest.mark.parametrize('block', ['', '   ', '\n\t'])
def test_create_entry_from_block_empty(block):
    assert create_entry_from_block(block) is None


# ------------------------- Skills -------------------------

@pytest.mark.parametrize('raw, expected', [
    ('go', 'GO'),
    ('python', 'Python'),
    ('UI/UX', 'UI/UX'),
    ('AWS', 'AWS'),
    ('machine learning', 'Machine Learning'),
    ('node js', 'Node JS'),
    ('  ', ''),
])
def test_format_skill(raw, expected):
    assert format_skill(raw) == expected


def test_parse_skills_from_section_scenario():
    assert parse_skills_from_section(['go, Python, UI/UX']) == ['GO', 'Python', 'UI/UX']


def test_parse_skills_from_section_dedupes_case_insensitively():
    lines = ['- Python; python', '• Docker • Kubernetes', '', 'GO, go']
    assert parse_skills_from_section(lines) == ['Python', 'Docker', 'Kubernetes', 'GO']
