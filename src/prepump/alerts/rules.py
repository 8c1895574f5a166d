# src/prepump/alerts/rules.py
from __future__ import annotations
from dataclasses import dataclass

@dataclass(slots=True, frozen=True)
class Thresholds:
    """
    Fixed thresholds the framework is scored against.
    - volatility_limit       → max |move| (percent) that counts as a quiet cycle
    - maturity_limit         → max activity count for a mature/quiet market
    - participation_minimum  → min participation count
    - streak_required        → consecutive quiet cycles needed
    """
    volatility_limit: float = 3.0
    maturity_limit: int = 15
    participation_minimum: int = 20
    streak_required: int = 10
    streak_warning_window: int = 3      # "streak building" starts this many cycles early
    cooling_drop: int = 10              # activity drop vs previous cycle that counts as cooling
