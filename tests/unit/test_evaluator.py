import itertools
from datetime import datetime, timezone

import pytest

from prepump.alerts.evaluator import DecisionEngine, derive_alerts, evaluate
from prepump.alerts.rules import Thresholds
from prepump.utils.types import Conditions, Observation, RawSample

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
TH = Thresholds(volatility_limit=3.0, maturity_limit=15, participation_minimum=20, streak_required=10)


def _prev(streak=0, activity=25, participation=25):
    return Observation(
        timestamp=T0,
        primary_move=0.5,
        secondary_move=0.5,
        activity_count=activity,
        participation_count=participation,
        volatility_streak=streak,
    )


def _raw(p=1.0, s=-1.0, activity=10, participation=25):
    return RawSample(primary_move=p, secondary_move=s, activity_count=activity, participation_count=participation)


# --- streak ---

@pytest.mark.parametrize("prev_streak", [0, 1, 6, 9, 42])
def test_quiet_cycle_extends_streak(prev_streak):
    obs = evaluate(_raw(2.99, -2.99), _prev(prev_streak), TH, now=T0)
    assert obs.volatility_streak == prev_streak + 1

def test_quiet_cycle_without_history_starts_at_one():
    assert evaluate(_raw(0.0, 0.0), None, TH, now=T0).volatility_streak == 1

@pytest.mark.parametrize("p,s", [(3.0, 0.0), (0.0, -3.0), (-5.5, 1.0), (0.1, 12.0), (-3.01, -3.01)])
def test_loud_cycle_resets_streak(p, s):
    obs = evaluate(_raw(p, s), _prev(9), TH, now=T0)
    assert obs.volatility_streak == 0
    assert obs.conditions.volatility_met is False

def test_limit_is_exclusive():
    # exactly at the limit is not "low volatility"
    assert evaluate(_raw(3.0, 3.0), _prev(5), TH, now=T0).volatility_streak == 0
    assert evaluate(_raw(2.999, -2.999), _prev(5), TH, now=T0).volatility_streak == 6


# --- conditions & readiness ---

@pytest.mark.parametrize("vol,mat,part", list(itertools.product([True, False], repeat=3)))
def test_ready_iff_all_conditions(vol, mat, part):
    prev = _prev(9 if vol else 0)
    raw = _raw(
        1.0, 1.0,
        activity=10 if mat else 16,
        participation=20 if part else 19,
    )
    obs = evaluate(raw, prev, TH, now=T0)
    assert obs.conditions == Conditions(volatility_met=vol, maturity_met=mat, participation_met=part)
    assert obs.ready is (vol and mat and part)

def test_maturity_and_participation_bounds_are_inclusive():
    obs = evaluate(_raw(activity=15, participation=20), None, TH, now=T0)
    assert obs.conditions.maturity_met
    assert obs.conditions.participation_met

def test_evaluate_is_deterministic():
    a = evaluate(_raw(), None, TH, now=T0)
    b = evaluate(_raw(), None, TH, now=T0)
    assert a == b

def test_evaluate_without_now_stamps_utc():
    obs = evaluate(_raw(), None, TH)
    assert obs.timestamp.tzinfo is not None
    assert obs.timestamp.utcoffset().total_seconds() == 0

def test_extreme_finite_inputs_do_not_raise():
    obs = evaluate(_raw(1e308, -1e308, activity=-5, participation=10**9), _prev(3), TH, now=T0)
    assert obs.volatility_streak == 0
    assert obs.conditions.maturity_met and obs.conditions.participation_met


# --- alerts ---

def test_ready_cycle_with_cooling():
    engine = DecisionEngine(TH)
    obs, alerts = engine.run(_raw(1.0, -1.0, activity=10, participation=25), _prev(9, activity=25), now=T0)

    assert obs.volatility_streak == 10
    assert obs.conditions == Conditions(True, True, True)
    assert obs.ready is True

    assert [a.priority for a in alerts] == ["critical", "medium"]
    assert [a.kind for a in alerts] == ["ready", "cooling"]
    assert "25 to 10" in alerts[1].message
    assert "-15" in alerts[1].message
    assert all(a.snapshot is obs for a in alerts)

def test_streak_building_reports_remaining_cycles():
    obs, alerts = DecisionEngine(TH).run(_raw(activity=30), _prev(6, activity=30), now=T0)
    assert obs.volatility_streak == 7
    assert len(alerts) == 1
    assert alerts[0].priority == "medium"
    assert alerts[0].kind == "streak_building"
    assert "3 more cycles needed" in alerts[0].message

@pytest.mark.parametrize("streak,expected", [(6, False), (7, True), (8, True), (9, True), (10, False)])
def test_streak_building_window(streak, expected):
    current = _prev(streak, activity=99)  # never ready: maturity fails
    kinds = [a.kind for a in derive_alerts(current, None, TH)]
    assert ("streak_building" in kinds) is expected

def test_one_cycle_remaining_is_singular():
    alerts = derive_alerts(_prev(9, activity=99), None, TH)
    assert "1 more cycle needed" in alerts[0].message

def test_ready_suppresses_streak_building():
    th = Thresholds(streak_required=2)
    obs, alerts = DecisionEngine(th).run(_raw(activity=0, participation=50), _prev(1, activity=0), now=T0)
    assert obs.ready
    assert [a.kind for a in alerts] == ["ready"]

def test_ready_refires_every_cycle():
    engine = DecisionEngine(TH)
    prev = _prev(9, activity=10)
    kinds = []
    for _ in range(3):
        prev, alerts = engine.run(_raw(activity=10), prev, now=T0)
        kinds.append([a.kind for a in alerts])
    assert kinds == [["ready"], ["ready"], ["ready"]]

@pytest.mark.parametrize("prev_activity,cur_activity,fires", [(25, 15, True), (25, 16, False), (80, 60, True), (10, 30, False)])
def test_cooling_threshold(prev_activity, cur_activity, fires):
    current = _prev(0, activity=cur_activity)
    kinds = [a.kind for a in derive_alerts(current, _prev(0, activity=prev_activity), TH)]
    assert ("cooling" in kinds) is fires

def test_no_previous_means_no_cooling():
    assert derive_alerts(_prev(0, activity=0), None, TH) == []

def test_quiet_market_emits_nothing():
    _, alerts = DecisionEngine(TH).run(_raw(5.0, 1.0, activity=80), _prev(3, activity=85), now=T0)
    assert alerts == []

def test_custom_warning_window_and_cooling_drop():
    th = Thresholds(streak_required=10, streak_warning_window=5, cooling_drop=3)
    current = _prev(5, activity=22)
    kinds = [a.kind for a in derive_alerts(current, _prev(4, activity=25), th)]
    assert kinds == ["streak_building", "cooling"]
