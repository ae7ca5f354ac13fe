"""Append-only record of a verification run."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from src.pactverify.errors import PactFailureError

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class ReportEntry:
    kind: EntryKind
    message: str


class Reporter:
    """Collects info and error entries; create a fresh one per run."""

    def __init__(self) -> None:
        self._entries: list[ReportEntry] = []

    def report_info(self, message: str) -> None:
        self._entries.append(ReportEntry(EntryKind.INFO, message))
        logger.info("%s", message)

    def report_error(self, message: str) -> None:
        self._entries.append(ReportEntry(EntryKind.ERROR, message))
        logger.error("%s", message)

    @property
    def entries(self) -> tuple[ReportEntry, ...]:
        return tuple(self._entries)

    @property
    def errors(self) -> list[str]:
        return [entry.message for entry in self._entries if entry.kind is EntryKind.ERROR]

    @property
    def has_errors(self) -> bool:
        return any(entry.kind is EntryKind.ERROR for entry in self._entries)

    def raise_if_any_errors(self) -> None:
        """Raise one PactFailureError carrying every error recorded so far."""
        if self.has_errors:
            raise PactFailureError(self.errors, reporter=self)
