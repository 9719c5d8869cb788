"""Enumerations shared by the site document, blueprint builder and API."""

from enum import Enum


class Source(str, Enum):
    """Who produced a category or entry.

    Onboarding content is regenerated wholesale on every onboarding run;
    manual content is never touched by it.
    """
    ONBOARDING = 'onboarding'
    MANUAL = 'manual'

    @classmethod
    def of(cls, item: dict) -> 'Source':
        if isinstance(item, dict) and item.get('source') == cls.ONBOARDING.value:
            return cls.ONBOARDING
        return cls.MANUAL


class EntryStatus(str, Enum):
    DRAFT = 'draft'
    IN_REVIEW = 'in-review'
    SCHEDULED = 'scheduled'
    PUBLISHED = 'published'


class MessageStatus(str, Enum):
    NEW = 'new'
    IN_REVIEW = 'in-review'
    REPLIED = 'replied'
    ARCHIVED = 'archived'


ENTRY_STATUSES = tuple(status.value for status in EntryStatus)
MESSAGE_STATUSES = tuple(status.value for status in MessageStatus)


def is_onboarding(item: dict) -> bool:
    return Source.of(item) is Source.ONBOARDING
