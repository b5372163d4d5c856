"""Typed failures raised when records do not satisfy the engine's preconditions."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class RecordIssue:
    record: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.record}.{self.field}: {self.message}"


class InvalidRecordError(ValueError):
    """Raised when any input record fails validation; the whole call is rejected."""

    def __init__(self, issues: Iterable[RecordIssue]):
        self.issues: List[RecordIssue] = list(issues)
        summary = "; ".join(str(issue) for issue in self.issues[:3])
        if len(self.issues) > 3:
            summary += f" (+{len(self.issues) - 3} more)"
        super().__init__(summary or "invalid record")

    def to_dict(self) -> dict:
        return {
            "error": "invalid_record",
            "issues": [asdict(issue) for issue in self.issues],
        }
