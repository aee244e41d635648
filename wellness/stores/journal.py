# -*- coding: utf-8 -*-
"""Journal — free-text entries with a writing streak."""

from __future__ import annotations

from typing import Any, List, Mapping

from . import aggregates
from .engine import ScopedStore
from .models import JournalEntry


class JournalStore(ScopedStore[JournalEntry]):
    domain = "journalEntries"
    model = JournalEntry
    remote_resource = "journal"

    def add_journal_entry(self, entry: Mapping[str, Any]) -> JournalEntry:
        return self.add(entry)

    def recent_entries(self, count: int) -> List[JournalEntry]:
        ordered = sorted(self._records, key=lambda e: e.timestamp, reverse=True)
        return ordered[: max(count, 0)]

    def total_entries(self) -> int:
        return len(self._records)

    def streak(self) -> int:
        return aggregates.streak(self._records, today=self.today())
