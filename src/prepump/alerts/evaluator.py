from __future__ import annotations

from datetime import datetime
from typing import Optional

from prepump.alerts.rules import Thresholds
from prepump.utils.time import utc_now
from prepump.utils.types import Alert, Conditions, Observation, RawSample


def evaluate(
    raw: RawSample,
    previous: Optional[Observation],
    thresholds: Thresholds,
    now: Optional[datetime] = None,
) -> Observation:
    """
    Score one raw sample against the thresholds.

    The streak carries over from `previous` while both moves stay inside the
    volatility band and drops to 0 the moment either leaves it. No I/O.
    """
    limit = thresholds.volatility_limit
    low_volatility = abs(raw.primary_move) < limit and abs(raw.secondary_move) < limit

    if low_volatility:
        streak = (previous.volatility_streak if previous is not None else 0) + 1
    else:
        streak = 0

    conditions = Conditions(
        volatility_met=streak >= thresholds.streak_required,
        maturity_met=raw.activity_count <= thresholds.maturity_limit,
        participation_met=raw.participation_count >= thresholds.participation_minimum,
    )
    return Observation(
        timestamp=now or utc_now(),
        primary_move=raw.primary_move,
        secondary_move=raw.secondary_move,
        activity_count=raw.activity_count,
        participation_count=raw.participation_count,
        volatility_streak=streak,
        conditions=conditions,
        ready=conditions.all_met(),
    )


def derive_alerts(
    current: Observation,
    previous: Optional[Observation],
    thresholds: Thresholds,
) -> list[Alert]:
    """
    Alerts for this cycle, in dispatch order: readiness, streak building, cooling.
    The readiness alert repeats on every cycle that stays ready.
    """
    alerts: list[Alert] = []
    required = thresholds.streak_required
    streak = current.volatility_streak

    if current.ready:
        alerts.append(Alert(
            priority="critical",
            title="🚨 FRAMEWORK CONDITIONS MET!",
            message=(
                f"All conditions satisfied! Volatility streak: {streak} cycles, "
                f"activity: {current.activity_count}, participation: {current.participation_count}. "
                f"Execute Phase 2 immediately!"
            ),
            snapshot=current,
            kind="ready",
        ))
    elif required - thresholds.streak_warning_window <= streak < required:
        remaining = required - streak
        alerts.append(Alert(
            priority="medium",
            title="📈 Low Volatility Streak Building",
            message=(
                f"Volatility streak: {streak}/{required} cycles. "
                f"{remaining} more {'cycle' if remaining == 1 else 'cycles'} needed "
                f"for framework activation."
            ),
            snapshot=current,
            kind="streak_building",
        ))

    if previous is not None:
        delta = current.activity_count - previous.activity_count
        if delta <= -thresholds.cooling_drop:
            alerts.append(Alert(
                priority="medium",
                title="❄️ Market Cooling Detected",
                message=(
                    f"Activity decreased from {previous.activity_count} to "
                    f"{current.activity_count} ({delta:+d}). Market is cooling down!"
                ),
                snapshot=current,
                kind="cooling",
            ))

    return alerts


class DecisionEngine:
    """
    Binds a Thresholds set to evaluate() + derive_alerts().

        engine = DecisionEngine(Thresholds(streak_required=10))
        obs, alerts = engine.run(sampler.sample(), await store.get_last())
    """
    def __init__(self, thresholds: Optional[Thresholds] = None):
        self.thresholds = thresholds or Thresholds()

    def run(
        self,
        raw: RawSample,
        previous: Optional[Observation],
        now: Optional[datetime] = None,
    ) -> tuple[Observation, list[Alert]]:
        current = evaluate(raw, previous, self.thresholds, now=now)
        return current, derive_alerts(current, previous, self.thresholds)
