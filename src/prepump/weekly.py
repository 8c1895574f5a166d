# src/prepump/weekly.py
import asyncio
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional, Sequence

import numpy as np
import structlog
from dotenv import load_dotenv

from prepump.alerts.notifiers import NotificationDispatcher
from prepump.app import build_dispatcher, build_store, configure_logging, open_session
from prepump.config import AppConfig, load_config
from prepump.storage.history import HistoryStore
from prepump.utils.time import days_ago, to_iso, utc_now
from prepump.utils.types import Alert, Observation

log = structlog.get_logger("weekly")

PERIOD_DAYS = 7


@dataclass(slots=True)
class WeeklyReport:
    timestamp: str
    period: str
    checks: int
    ready: bool
    ready_count: int
    avg_volatility_streak: float
    current_streak: int
    activity_count: int
    recommendation: str


def build_weekly_report(
    observations: Sequence[Observation],
    now: Optional[datetime] = None,
    period_days: int = PERIOD_DAYS,
) -> Optional[WeeklyReport]:
    """Summarise newest-first observations. None when there is nothing to report."""
    if not observations:
        return None
    latest = observations[0]
    streaks = np.array([o.volatility_streak for o in observations], dtype=float)
    return WeeklyReport(
        timestamp=to_iso(now or utc_now()),
        period=f"{period_days} days",
        checks=len(observations),
        ready=latest.ready,
        ready_count=sum(1 for o in observations if o.ready),
        avg_volatility_streak=round(float(streaks.mean()), 1),
        current_streak=latest.volatility_streak,
        activity_count=latest.activity_count,
        recommendation="EXECUTE FRAMEWORK" if latest.ready else "CONTINUE MONITORING",
    )


def report_alert(report: WeeklyReport, latest: Observation) -> Alert:
    return Alert(
        priority="info",
        title="📊 Weekly Framework Report",
        message=(
            f"{report.period}: {report.checks} checks, ready in {report.ready_count}. "
            f"Average volatility streak {report.avg_volatility_streak:.1f}, "
            f"current streak {report.current_streak}. "
            f"Recommendation: {report.recommendation}"
        ),
        snapshot=latest,
        kind="report",
    )


async def run_weekly(
    store: HistoryStore,
    dispatcher: NotificationDispatcher,
    now: Optional[datetime] = None,
) -> Optional[WeeklyReport]:
    if not store.enabled:
        log.info("weekly_report_no_database")
        return None
    now = now or utc_now()
    observations = await store.since(days_ago(PERIOD_DAYS, now))
    report = build_weekly_report(observations, now=now)
    if report is None:
        log.info("weekly_report_no_data")
        return None
    log.info("weekly_report", report=asdict(report))
    await dispatcher.send(report_alert(report, observations[0]))
    return report


async def run(cfg: AppConfig) -> Optional[WeeklyReport]:
    async with open_session(cfg) as session:
        store = build_store(cfg, session)
        try:
            return await run_weekly(store, build_dispatcher(cfg, session))
        finally:
            await store.close()


async def main() -> int:
    load_dotenv()
    try:
        cfg = load_config()
        configure_logging(cfg.log_level)
        await run(cfg)
    except Exception:
        log.exception("weekly_report_failed")
        return 1
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
