"""Line-based heuristics for turning free-text CVs into labelled sections.

Provides heading detection (an ordered rule table), section segmentation,
block chunking, entry drafting and skill-list parsing. No NLP models: every
decision is a regex or keyword check so results stay deterministic.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from text_utils import ELLIPSIS, collapse_whitespace, summarise_text, unique_list

logger = logging.getLogger(__name__)

OVERVIEW = 'overview'

_BULLET_RE = re.compile(r'^[-*•]\s*')
_SENTENCE_SPLIT_RE = re.compile(r'(?<=[.!?])\s+')
_TITLE_SPLIT_RE = re.compile(r'[-–—:]')
_SKILL_SPLIT_RE = re.compile(r'[,;•]')
_ALL_CAPS_RE = re.compile(r'^[A-Z\s]{4,40}$')

TITLE_MAX_CHARS = 72
SUMMARY_MAX_CHARS = 200


# ---------------------------------------------------------------------------
# Section definitions (priority order)
# ---------------------------------------------------------------------------

SECTION_DEFINITIONS = [
    {
        'type': 'experience',
        'label': 'Experience',
        'keywords': ['experience', 'work history', 'employment', 'professional experience'],
        'patterns': [r'^\s*(professional\s+)?experience\b[:\-]?\s*$',
                     r'^\s*(work\s+history|employment)\b[:\-]?\s*$'],
    },
    {
        'type': 'projects',
        'label': 'Projects',
        'keywords': ['projects', 'project experience', 'key projects'],
        'patterns': [r'^\s*(key\s+)?projects?\b[:\-]?\s*$'],
    },
    {
        'type': 'publications',
        'label': 'Publications',
        'keywords': ['publications', 'articles', 'writing'],
        'patterns': [r'^\s*(publications?|articles?)\b[:\-]?\s*$'],
    },
    {
        'type': 'education',
        'label': 'Education',
        'keywords': ['education', 'studies', 'academics'],
        'patterns': [r'^\s*(education|academics|studies)\b[:\-]?\s*$'],
    },
    {
        'type': 'achievements',
        'label': 'Achievements',
        'keywords': ['achievements', 'awards', 'recognition'],
        'patterns': [r'^\s*(achievements?|awards?|recognition)\b[:\-]?\s*$'],
    },
    {
        'type': 'skills',
        'label': 'Skills',
        'keywords': ['skills', 'tooling', 'technologies'],
        'patterns': [r'^\s*(skills?|technologies|tooling)\b[:\-]?\s*$'],
    },
    {
        'type': 'summary',
        'label': 'Summary',
        'keywords': ['summary', 'profile', 'about'],
        'patterns': [r'^\s*(summary|profile|about)\b[:\-]?\s*$'],
    },
]

SECTION_TYPES = [OVERVIEW] + [d['type'] for d in SECTION_DEFINITIONS]


# ---------------------------------------------------------------------------
# Heading rule table
# ---------------------------------------------------------------------------

class RuleKind(str, Enum):
    PATTERN = 'pattern'
    KEYWORD = 'keyword'
    ALL_CAPS = 'all_caps'


@dataclass(frozen=True)
class HeadingRule:
    kind: RuleKind
    section_type: str
    label: str
    pattern: Optional[re.Pattern] = None
    keywords: tuple = field(default_factory=tuple)

    def matches(self, text: str) -> bool:
        if self.kind is RuleKind.PATTERN:
            return bool(self.pattern.search(text))
        if self.kind is RuleKind.ALL_CAPS and not _ALL_CAPS_RE.match(text):
            return False
        lower = text.lower()
        return any(keyword in lower for keyword in self.keywords)


def _build_heading_rules(definitions: list[dict]) -> list[HeadingRule]:
    rules = []
    for definition in definitions:
        for pattern in definition['patterns']:
            rules.append(HeadingRule(RuleKind.PATTERN, definition['type'], definition['label'],
                                     pattern=re.compile(pattern, re.IGNORECASE)))
        rules.append(HeadingRule(RuleKind.KEYWORD, definition['type'], definition['label'],
                                 keywords=tuple(definition['keywords'])))
    # Short all-caps lines are only considered once no other rule fired
    for definition in definitions:
        rules.append(HeadingRule(RuleKind.ALL_CAPS, definition['type'], definition['label'],
                                 keywords=tuple(definition['keywords'])))
    return rules


HEADING_RULES = _build_heading_rules(SECTION_DEFINITIONS)


def strip_bullet(line: str) -> str:
    return _BULLET_RE.sub('', line, count=1)


def detect_section_heading(line: str) -> Optional[dict]:
    """Return {'type', 'label'} if the line opens a new section, else None."""
    trimmed = strip_bullet(line.strip()).strip()
    if not trimmed:
        return None
    for rule in HEADING_RULES:
        if rule.matches(trimmed):
            return {'type': rule.section_type, 'label': rule.label}
    return None


# ---------------------------------------------------------------------------
# Segmentation and chunking
# ---------------------------------------------------------------------------

def _has_content(lines: list[str]) -> bool:
    return any(line.strip() for line in lines)


def segment_cv(cv_text: str) -> list[dict]:
    """Split raw CV text into ordered {'type', 'label', 'lines'} sections.

    Text before the first heading lands in an implicit overview section.
    Blank lines are kept so the chunker can see block boundaries.
    """
    if not isinstance(cv_text, str) or not cv_text.strip():
        return []

    sections = []
    current = {'type': OVERVIEW, 'label': 'Overview', 'lines': []}

    for raw_line in re.split(r'\r?\n', cv_text):
        line = raw_line.strip()
        if not line:
            current['lines'].append('')
            continue
        heading = detect_section_heading(line)
        if heading:
            if _has_content(current['lines']):
                sections.append(current)
            current = {'type': heading['type'], 'label': heading['label'], 'lines': []}
            continue
        current['lines'].append(line)

    if _has_content(current['lines']):
        sections.append(current)
    return sections


def chunk_section_lines(lines: list[str]) -> list[str]:
    """Group consecutive non-blank lines into space-joined blocks."""
    chunks = []
    buffer = []
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            if buffer:
                chunks.append(' '.join(buffer))
                buffer = []
            continue
        buffer.append(strip_bullet(trimmed))
    if buffer:
        chunks.append(' '.join(buffer))
    return [chunk for chunk in chunks if chunk]


# ---------------------------------------------------------------------------
# Entry drafts
# ---------------------------------------------------------------------------

def _truncate_title(title: str) -> str:
    if len(title) <= TITLE_MAX_CHARS:
        return title
    cut = title[:TITLE_MAX_CHARS]
    last_space = cut.rfind(' ')
    if last_space > 32:
        cut = cut[:last_space]
    return f'{cut}{ELLIPSIS}'


def create_entry_from_block(block: str) -> Optional[dict]:
    """Draft {'title', 'summary', 'body'} from one text block."""
    clean = collapse_whitespace(block)
    if not clean:
        return None
    sentences = _SENTENCE_SPLIT_RE.split(clean)
    first_sentence = sentences[0] or clean

    title = _TITLE_SPLIT_RE.split(first_sentence, maxsplit=1)[0].strip()
    if len(title) < 8 and len(sentences) > 1:
        extra = ' '.join(sentences[1].split(' ')[:4])
        title = f'{title} {extra}'.strip()
    title = _truncate_title(title)

    return {
        'title': title,
        'summary': summarise_text(first_sentence, SUMMARY_MAX_CHARS),
        'body': clean,
    }


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------

def format_skill(value) -> str:
    trimmed = value.strip() if isinstance(value, str) else ''
    if not trimmed:
        return ''
    if trimmed.upper() == trimmed:
        return trimmed
    words = []
    for part in trimmed.split():
        if len(part) <= 3:
            words.append(part.upper())
        else:
            words.append(part[0].upper() + part[1:])
    return ' '.join(words)


def parse_skills_from_section(lines: list[str]) -> list[str]:
    collected = []
    for line in lines:
        trimmed = strip_bullet(line).strip()
        if not trimmed:
            continue
        for token in _SKILL_SPLIT_RE.split(trimmed):
            skill = format_skill(token)
            if skill:
                collected.append(skill)
    return unique_list(collected)
