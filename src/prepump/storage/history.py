# src/prepump/storage/history.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import aiohttp
import structlog
from redis.asyncio import Redis

from prepump.errors import StoreError
from prepump.utils.time import to_iso
from prepump.utils.types import Observation

log = structlog.get_logger("history")

class HistoryStore:
    """
    Read the previous observation, append the current one.

    Backend failures never escape: reads degrade to "no history" and writes
    are logged and reported as False so the cycle can still dispatch alerts.
    Subclasses implement the _underscored methods and raise on failure.
    """
    backend = "none"

    @property
    def enabled(self) -> bool:
        return self.backend != "none"

    async def get_last(self) -> Optional[Observation]:
        try:
            return await self._get_last()
        except Exception as e:
            log.warning("history_read_failed", backend=self.backend, err=str(e))
            return None

    async def append(self, obs: Observation) -> bool:
        try:
            await self._append(obs)
        except Exception as e:
            log.warning("history_save_failed", backend=self.backend, err=str(e))
            return False
        log.info("history_saved", backend=self.backend)
        return True

    async def since(self, cutoff: datetime) -> list[Observation]:
        """Observations at or after cutoff, newest first."""
        try:
            return await self._since(cutoff)
        except Exception as e:
            log.warning("history_range_failed", backend=self.backend, err=str(e))
            return []

    async def close(self) -> None:
        pass

    # --- backend hooks ---

    async def _get_last(self) -> Optional[Observation]:
        raise NotImplementedError

    async def _append(self, obs: Observation) -> None:
        raise NotImplementedError

    async def _since(self, cutoff: datetime) -> list[Observation]:
        raise NotImplementedError

class NullHistoryStore(HistoryStore):
    """Persistence disabled: nothing to read, writes are skipped."""

    async def _get_last(self) -> Optional[Observation]:
        return None

    async def append(self, obs: Observation) -> bool:
        log.info("history_disabled_skipping_save")
        return False

    async def _since(self, cutoff: datetime) -> list[Observation]:
        return []

# --------- Supabase (PostgREST over HTTP) ----------

@dataclass(slots=True)
class SupabaseConfig:
    url: str
    api_key: str = field(repr=False)
    table: str = "market_checks"
    order_column: str = "created_at"

class SupabaseHistoryStore(HistoryStore):
    backend = "supabase"

    def __init__(self, cfg: SupabaseConfig, session: aiohttp.ClientSession):
        self.cfg = cfg
        self._session = session

    @property
    def endpoint(self) -> str:
        return f"{self.cfg.url.rstrip('/')}/rest/v1/{self.cfg.table}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.cfg.api_key,
            "Authorization": f"Bearer {self.cfg.api_key}",
            "Content-Type": "application/json",
        }

    async def _select(self, params: dict[str, str]) -> list[dict[str, Any]]:
        async with self._session.get(self.endpoint, params=params, headers=self._headers()) as resp:
            if resp.status != 200:
                raise StoreError(f"select failed: HTTP {resp.status} {await resp.text()}")
            return await resp.json()

    async def _get_last(self) -> Optional[Observation]:
        rows = await self._select({
            "select": "*",
            "order": f"{self.cfg.order_column}.desc",
            "limit": "1",
        })
        return Observation.from_record(rows[0]) if rows else None

    async def _append(self, obs: Observation) -> None:
        headers = self._headers() | {"Prefer": "return=minimal"}
        async with self._session.post(self.endpoint, json=[obs.to_record()], headers=headers) as resp:
            if resp.status not in (200, 201, 204):
                raise StoreError(f"insert failed: HTTP {resp.status} {await resp.text()}")

    async def _since(self, cutoff: datetime) -> list[Observation]:
        rows = await self._select({
            "select": "*",
            self.cfg.order_column: f"gte.{to_iso(cutoff)}",
            "order": f"{self.cfg.order_column}.desc",
        })
        return [Observation.from_record(r) for r in rows]

# --------- Redis (JSON records in a list, newest at index 0) ----------

@dataclass(slots=True)
class RedisHistoryConfig:
    url: str
    key: str = "prepump:market_checks"

class RedisHistoryStore(HistoryStore):
    backend = "redis"

    def __init__(self, cfg: RedisHistoryConfig, redis: Optional[Redis] = None):
        self.cfg = cfg
        self._r = redis if redis is not None else Redis.from_url(cfg.url, decode_responses=True)

    async def _get_last(self) -> Optional[Observation]:
        raw = await self._r.lindex(self.cfg.key, 0)
        if raw is None:
            return None
        return Observation.from_record(json.loads(raw))

    async def _append(self, obs: Observation) -> None:
        await self._r.lpush(self.cfg.key, json.dumps(obs.to_record()))

    async def _since(self, cutoff: datetime) -> list[Observation]:
        out: list[Observation] = []
        for raw in await self._r.lrange(self.cfg.key, 0, -1):
            obs = Observation.from_record(json.loads(raw))
            if obs.timestamp < cutoff:
                # list is newest-first; everything after this is older
                break
            out.append(obs)
        return out

    async def close(self) -> None:
        await self._r.aclose()
