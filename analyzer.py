import logging

from cv_parser import (
    OVERVIEW,
    chunk_section_lines,
    create_entry_from_block,
    parse_skills_from_section,
    segment_cv,
)
from text_utils import collapse_whitespace, unique_list

logger = logging.getLogger(__name__)

MAX_ENTRIES_PER_SECTION = 4
MAX_HIGHLIGHTS = 5

# Sections whose first items double as highlight candidates
HIGHLIGHT_SECTION_TYPES = ('experience', 'projects', 'achievements')
_NARRATIVE_TYPES = ('summary', OVERVIEW)


def empty_analysis() -> dict:
    return {'sections': [], 'skills': [], 'highlights': []}


def analyze_cv(cv_text: str) -> dict:
    """Run the full heuristic pipeline. Returns {'sections', 'skills', 'highlights'}."""
    if not isinstance(cv_text, str) or not cv_text.strip():
        return empty_analysis()

    sections = []
    skills = []
    highlight_candidates = []

    for segment in segment_cv(cv_text):
        section_type = segment['type']

        if section_type == 'skills':
            skills.extend(parse_skills_from_section(segment['lines']))
            continue

        if section_type in _NARRATIVE_TYPES:
            overview_text = collapse_whitespace(' '.join(segment['lines']))
            if overview_text:
                highlight_candidates.append(overview_text)
            continue

        items = []
        for block in chunk_section_lines(segment['lines']):
            draft = create_entry_from_block(block)
            if draft:
                items.append(draft)
        # One spare item is kept beyond what the blueprint will publish
        items = items[:MAX_ENTRIES_PER_SECTION + 1]
        if not items:
            continue

        sections.append({'type': section_type, 'label': segment['label'], 'items': items})
        if section_type in HIGHLIGHT_SECTION_TYPES:
            highlight_candidates.extend(item['summary'] for item in items[:2])

    result = {
        'sections': sections,
        'skills': unique_list(skills),
        'highlights': unique_list(highlight_candidates)[:MAX_HIGHLIGHTS],
    }
    logger.debug('CV analysis: %d sections, %d skills, %d highlights',
                 len(result['sections']), len(result['skills']), len(result['highlights']))
    return result
