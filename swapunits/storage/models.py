"""
Data models for history and favorites storage.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from swapunits.pipeline import json_number


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class HistoryItem:
    """A conversion the user copied."""
    category: str = ""
    from_value: float = 0.0
    from_unit: str = ""
    to_value: float = 0.0
    to_unit: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["from_value"] = json_number(self.from_value)
        data["to_value"] = json_number(self.to_value)
        return data


@dataclass
class FavoriteItem:
    """A saved unit pair."""
    category: str = ""
    from_unit: str = ""
    to_unit: str = ""
    name: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)
