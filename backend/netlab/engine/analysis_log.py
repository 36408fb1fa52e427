"""AnalysisLog — records every analysis run against the loaded network."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass
class AnalysisRecord:
    """A single analysis record."""

    timestamp: str
    operation: str
    params: dict[str, Any]
    summary: dict[str, Any]


class AnalysisLog:
    """Stores analysis history in chronological order."""

    def __init__(self) -> None:
        self._records: list[AnalysisRecord] = []

    def record(
        self,
        operation: str,
        params: dict[str, Any] | None = None,
        summary: dict[str, Any] | None = None,
    ) -> None:
        """Record an analysis with an auto-generated ISO timestamp."""
        self._records.append(
            AnalysisRecord(
                timestamp=datetime.now(timezone.utc).isoformat(),
                operation=operation,
                params=dict(params or {}),
                summary=dict(summary or {}),
            )
        )

    def get_history(self) -> list[dict[str, Any]]:
        """Return all records as a list of dicts, in chronological order."""
        return [
            {
                "timestamp": r.timestamp,
                "operation": r.operation,
                "params": r.params,
                "summary": r.summary,
            }
            for r in self._records
        ]

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        """Remove all records."""
        self._records.clear()
