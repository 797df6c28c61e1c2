from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class Expense:
    id: str
    amount: float
    category: str
    note: str = ""
    # ISO-8601 timestamp
    date: str = ""

    @property
    def when(self) -> Optional[datetime]:
        if not self.date:
            return None
        try:
            return datetime.fromisoformat(self.date)
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Expense":
        return cls(
            id=str(row["id"]),
            amount=float(row["amount"]),
            category=row.get("category") or "",
            note=row.get("note") or "",
            date=row.get("date") or "",
        )


class SuggesterState(str, Enum):
    IDLE = "idle"
    TYPING = "typing"


@dataclass
class CategoryTotal:
    category: str
    total: float
    count: int = 0
    color: Optional[str] = None


@dataclass
class WeeklyTrend:
    # one row per weekday: {"day": "Mon", "<week label>": total, ...}
    rows: List[Dict[str, Any]] = field(default_factory=list)
    week_labels: List[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return any(
            row.get(label) for row in self.rows for label in self.week_labels
        )
