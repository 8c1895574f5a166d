from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Optional

from prepump.errors import StoreError
from prepump.utils.time import parse_iso, to_iso

# ---- sampler-level primitives ----

@dataclass(slots=True, frozen=True)
class RawSample:
    """One cycle's raw metrics, before any scoring."""
    primary_move: float          # signed percent
    secondary_move: float        # signed percent
    activity_count: int
    participation_count: int

@dataclass(slots=True, frozen=True)
class Conditions:
    volatility_met: bool = False
    maturity_met: bool = False
    participation_met: bool = False

    def all_met(self) -> bool:
        return self.volatility_met and self.maturity_met and self.participation_met

@dataclass(slots=True, frozen=True)
class Observation:
    """
    Full derived record for one poll cycle. Append-only: built once by the
    evaluator, persisted, and only read back as `previous` afterwards.
    """
    timestamp: datetime
    primary_move: float
    secondary_move: float
    activity_count: int
    participation_count: int
    volatility_streak: int
    conditions: Conditions = field(default_factory=Conditions)
    ready: bool = False

    def to_record(self) -> dict[str, Any]:
        """Persisted row shape (camelCase keys, ISO timestamp)."""
        return {
            "timestamp": to_iso(self.timestamp),
            "primaryMove": self.primary_move,
            "secondaryMove": self.secondary_move,
            "activityCount": self.activity_count,
            "participationCount": self.participation_count,
            "volatilityStreak": self.volatility_streak,
            "conditions": {
                "volatilityMet": self.conditions.volatility_met,
                "maturityMet": self.conditions.maturity_met,
                "participationMet": self.conditions.participation_met,
            },
            "ready": self.ready,
        }

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Observation":
        """
        Parse a persisted row. Rows written by the first monitor generation
        used btcMove/ethMove/pumpingTokens/smartMoneyTokens/frameworkReady;
        those are accepted too.
        """
        conds = row.get("conditions") or {}
        conditions = Conditions(
            volatility_met=bool(_first(conds, "volatilityMet", "volatility", default=False)),
            maturity_met=bool(_first(conds, "maturityMet", "maturity", default=False)),
            participation_met=bool(_first(conds, "participationMet", "smartMoney", default=False)),
        )
        ts = _first(row, "timestamp", "created_at")
        if ts is None:
            raise StoreError("record has neither timestamp nor created_at")
        return cls(
            timestamp=parse_iso(ts) if isinstance(ts, str) else ts,
            primary_move=float(_first(row, "primaryMove", "btcMove", default=0.0)),
            secondary_move=float(_first(row, "secondaryMove", "ethMove", default=0.0)),
            activity_count=int(_first(row, "activityCount", "pumpingTokens", default=0)),
            participation_count=int(_first(row, "participationCount", "smartMoneyTokens", default=0)),
            volatility_streak=int(row.get("volatilityStreak") or 0),
            conditions=conditions,
            ready=bool(_first(row, "ready", "frameworkReady", default=conditions.all_met())),
        )

def _first(m: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        v = m.get(k)
        if v is not None:
            return v
    return default

# ---- alerting domain ----

Priority = Literal["critical", "high", "medium", "low", "info"]
AlertKind = Literal["ready", "streak_building", "cooling", "test", "report"]

@dataclass(slots=True, frozen=True)
class Alert:
    priority: Priority
    title: str
    message: str
    snapshot: Observation
    kind: Optional[AlertKind] = None
