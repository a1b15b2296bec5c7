"""
Display helpers for journal entry cards.
"""
from datetime import datetime, timezone

from voice_journal.models.journal_entry import JournalEntry
from voice_journal.schemas.journal_entry import EntryAction, EntryCard

PT_BR_MONTHS = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are always UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def format_entry_date(moment: datetime) -> str:
    """Long Portuguese date, e.g. '05 de outubro, 2026'."""
    moment = _as_utc(moment)
    return f"{moment.day:02d} de {PT_BR_MONTHS[moment.month - 1]}, {moment.year}"


def format_entry_time(moment: datetime) -> str:
    return _as_utc(moment).strftime("%H:%M")


def entry_actions(entry: JournalEntry) -> list[EntryAction]:
    """
    Actions offered for an entry.

    Generating insights is offered exactly when the entry has none yet.
    """
    actions = []
    if entry.insights and entry.insights_audio_path:
        actions.append(EntryAction.PLAY_INSIGHTS)
    if entry.audio_path:
        actions.append(EntryAction.PLAY_RECORDING)
    if not entry.insights:
        actions.append(EntryAction.GENERATE_INSIGHTS)
    actions.append(EntryAction.DELETE)
    return actions


def build_entry_card(entry: JournalEntry) -> EntryCard:
    return EntryCard(
        display_title=entry.title or format_entry_date(entry.created_at),
        display_time=format_entry_time(entry.created_at),
        actions=entry_actions(entry)
    )
