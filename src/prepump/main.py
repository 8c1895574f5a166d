# src/prepump/main.py
import asyncio
import json
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from dotenv import load_dotenv

from prepump.alerts.evaluator import DecisionEngine
from prepump.alerts.notifiers import NotificationDispatcher
from prepump.app import (
    build_dispatcher,
    build_sampler,
    build_store,
    configure_logging,
    open_session,
)
from prepump.config import AppConfig, load_config
from prepump.ingest.sampler import MetricSampler
from prepump.storage.history import HistoryStore
from prepump.utils.types import Alert, Observation

log = structlog.get_logger()


@dataclass(slots=True)
class CycleResult:
    observation: Observation
    alerts: list[Alert]
    saved: bool


async def run_cycle(
    engine: DecisionEngine,
    sampler: MetricSampler,
    store: HistoryStore,
    dispatcher: NotificationDispatcher,
    now: Optional[datetime] = None,
) -> CycleResult:
    """
    One poll: sample → score against the previous observation → persist →
    dispatch alerts in order. A failed save never stops dispatch.
    """
    log.info("checking_market_conditions")
    raw = sampler.sample()
    previous = await store.get_last()
    current, alerts = engine.run(raw, previous, now=now)

    saved = await store.append(current)
    await dispatcher.send_all(alerts)

    log.info(
        "cycle_result",
        ready=current.ready,
        streak=current.volatility_streak,
        alerts=[a.kind for a in alerts],
        record=json.dumps(current.to_record()),
    )
    return CycleResult(observation=current, alerts=alerts, saved=saved)


async def run(cfg: AppConfig) -> CycleResult:
    engine = DecisionEngine(cfg.thresholds)
    sampler = build_sampler(cfg)
    async with open_session(cfg) as session:
        store = build_store(cfg, session)
        try:
            return await run_cycle(engine, sampler, store, build_dispatcher(cfg, session))
        finally:
            await store.close()


async def main() -> int:
    load_dotenv()
    try:
        cfg = load_config()
        configure_logging(cfg.log_level)
        await run(cfg)
    except Exception:
        log.exception("monitor_failed")
        return 1
    log.info("monitor_check_completed")
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
