# src/prepump/alerts/notifiers.py
from __future__ import annotations
import asyncio
import structlog
from typing import Callable, Optional, Protocol, Sequence

from prepump.utils.types import Alert

log = structlog.get_logger("notifier")

class Channel(Protocol):
    name: str

    async def send(self, alert: Alert) -> None:
        """Deliver one alert; raise on failure."""
        ...

class ConsoleNotifier:
    name = "console"

    def __init__(self, format_fn: Optional[Callable[[Alert], str]] = None):
        self._format_fn = format_fn

    async def send(self, alert: Alert) -> None:
        if self._format_fn:
            try:
                print(self._format_fn(alert), flush=True)
                return
            except Exception as e:
                log.warning("console_format_failed", err=str(e))
        # fallback (raw)
        print(f"[ALERT] {alert.priority.upper()} {alert.title} msg={alert.message}", flush=True)

class NotificationDispatcher:
    """
    Fans one alert out to every channel at once and waits for all of them to
    settle. A failing channel is logged and never cancels the others.
    """
    def __init__(self, channels: Sequence[Channel]):
        self.channels = list(channels)

    @property
    def channel_names(self) -> list[str]:
        return [c.name for c in self.channels]

    async def send(self, alert: Alert) -> list[bool]:
        log.info("alert", priority=alert.priority, title=alert.title, kind=alert.kind)
        results = await asyncio.gather(
            *(c.send(alert) for c in self.channels),
            return_exceptions=True,
        )
        delivered: list[bool] = []
        for channel, res in zip(self.channels, results):
            if isinstance(res, BaseException):
                log.error("alert_delivery_failed", channel=channel.name, err=str(res))
                delivered.append(False)
            else:
                log.info("alert_delivered", channel=channel.name)
                delivered.append(True)
        return delivered

    async def send_all(self, alerts: Sequence[Alert]) -> None:
        """Dispatch alerts one after another, in the given order."""
        for alert in alerts:
            await self.send(alert)
