"""
Audit journal infrastructure.
"""

from .event_journal import JOURNAL_COLUMNS, EventJournal

__all__ = ["EventJournal", "JOURNAL_COLUMNS"]
