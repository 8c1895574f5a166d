from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import aiohttp
import structlog

from prepump.alerts.formatting import DisplayLabels, build_discord_payload
from prepump.errors import NotifyError
from prepump.notify.http import maybe_text
from prepump.utils.types import Alert

log = structlog.get_logger("discord")

@dataclass(slots=True)
class DiscordConfig:
    webhook_url: str = field(repr=False)

class DiscordNotifier:
    """
    Posts one embed per alert to a Discord webhook.
    Discord answers 204 on success (200 with ?wait=true); anything else raises.
    """
    name = "discord"

    def __init__(
        self,
        cfg: DiscordConfig,
        session: aiohttp.ClientSession,
        labels: DisplayLabels = DisplayLabels(),
    ):
        self.cfg = cfg
        self._session = session
        self._labels = labels

    async def send(self, alert: Alert) -> None:
        await self.send_payload(build_discord_payload(alert, self._labels))

    async def send_payload(self, payload: dict) -> None:
        try:
            async with self._session.post(self.cfg.webhook_url, json=payload) as resp:
                if 200 <= resp.status < 300:
                    log.info("discord_sent")
                    return
                detail = await maybe_text(resp)
                log.warning("discord_send_failed", status=resp.status, body=detail)
                raise NotifyError(self.name, detail, status=resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("discord_network_error", err=str(e))
            raise NotifyError(self.name, str(e)) from e
