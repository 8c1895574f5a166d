from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional

import aiohttp
import structlog

from prepump.alerts.formatting import DisplayLabels, format_telegram_text
from prepump.errors import NotifyError
from prepump.notify.http import maybe_text
from prepump.utils.types import Alert

log = structlog.get_logger("telegram")

API_BASE = "https://api.telegram.org"

# --------- config & client ----------

@dataclass(slots=True)
class TelegramConfig:
    bot_token: str = field(repr=False)
    chat_id: str                # personal chat id or group id
    parse_mode: Optional[str] = "Markdown"  # "HTML" or "MarkdownV2" or None
    tz_name: str = "UTC"        # zone for the trailing timestamp line

class TelegramNotifier:
    """
    Sends one message per alert via the Bot API sendMessage call.
    Single attempt: any network error or non-200 reply raises NotifyError.
    """
    name = "telegram"

    def __init__(
        self,
        cfg: TelegramConfig,
        session: aiohttp.ClientSession,
        labels: DisplayLabels = DisplayLabels(),
        format_fn: Optional[Callable[[Alert], str]] = None,
    ):
        self.cfg = cfg
        self._session = session
        self._format_fn = format_fn or (lambda a: format_telegram_text(a, labels, tz_name=cfg.tz_name))

    @property
    def url(self) -> str:
        return f"{API_BASE}/bot{self.cfg.bot_token}/sendMessage"

    async def send(self, alert: Alert) -> None:
        await self.send_text(self._format_fn(alert))

    async def send_text(self, text: str) -> None:
        payload = {"chat_id": self.cfg.chat_id, "text": text}
        if self.cfg.parse_mode:
            payload["parse_mode"] = self.cfg.parse_mode

        try:
            async with self._session.post(self.url, json=payload) as resp:
                if resp.status == 200:
                    log.info("telegram_sent")
                    return
                detail = await maybe_text(resp)
                log.warning("telegram_send_failed", status=resp.status, body=detail)
                raise NotifyError(self.name, detail, status=resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("telegram_network_error", err=str(e))
            raise NotifyError(self.name, str(e)) from e
