# src/prepump/send_test.py
import asyncio
import sys

import structlog
from dotenv import load_dotenv

from prepump.alerts.notifiers import NotificationDispatcher
from prepump.app import build_dispatcher, configure_logging, open_session
from prepump.config import AppConfig, load_config
from prepump.utils.time import utc_now
from prepump.utils.types import Alert, Conditions, Observation

log = structlog.get_logger("send_test")


def sample_alert() -> Alert:
    """Fixed sample alert for checking webhook configuration."""
    snapshot = Observation(
        timestamp=utc_now(),
        primary_move=1.5,
        secondary_move=-0.8,
        activity_count=42,
        participation_count=28,
        volatility_streak=5,
        conditions=Conditions(volatility_met=False, maturity_met=False, participation_met=True),
        ready=False,
    )
    return Alert(
        priority="info",
        title="🧪 System Test Alert",
        message="This is a test alert to verify your webhook configuration is working correctly.",
        snapshot=snapshot,
        kind="test",
    )


async def send_test_alert(dispatcher: NotificationDispatcher) -> bool:
    log.info("testing_channels", channels=dispatcher.channel_names)
    delivered = await dispatcher.send(sample_alert())
    return all(delivered)


async def run(cfg: AppConfig) -> bool:
    async with open_session(cfg) as session:
        return await send_test_alert(build_dispatcher(cfg, session))


async def main() -> int:
    load_dotenv()
    try:
        cfg = load_config()
        configure_logging(cfg.log_level)
        ok = await run(cfg)
    except Exception:
        log.exception("test_alert_failed")
        return 1
    if not ok:
        log.warning("test_alert_partially_delivered")
        return 1
    log.info("test_completed")
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
