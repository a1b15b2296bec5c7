"""
SQLAlchemy models for the voice journal service.
"""
from voice_journal.models.journal_entry import JournalEntry

__all__ = [
    "JournalEntry",
]
