from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from prepump.alerts.formatting import DisplayLabels
from prepump.alerts.rules import Thresholds
from prepump.errors import ConfigError
from prepump.notify.discord import DiscordConfig
from prepump.notify.telegram import TelegramConfig
from prepump.storage.history import RedisHistoryConfig, SupabaseConfig

T = TypeVar("T")

@dataclass(slots=True)
class AppConfig:
    """
    Everything the entry points read from the environment, assembled once.
    A None sub-config means that collaborator is switched off.
    """
    thresholds: Thresholds = field(default_factory=Thresholds)
    labels: DisplayLabels = field(default_factory=DisplayLabels)
    supabase: Optional[SupabaseConfig] = None
    redis: Optional[RedisHistoryConfig] = None
    discord: Optional[DiscordConfig] = None
    telegram: Optional[TelegramConfig] = None
    http_timeout_s: float = 8.0
    sampler_seed: Optional[int] = None
    display_tz: str = "UTC"
    log_level: str = "INFO"

    @property
    def persistence(self) -> str:
        if self.supabase is not None:
            return "supabase"
        if self.redis is not None:
            return "redis"
        return "none"

    @property
    def channels(self) -> list[str]:
        out = ["console"]
        if self.discord is not None:
            out.append("discord")
        if self.telegram is not None:
            out.append("telegram")
        return out

def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    v = env.get(name)
    if v is None:
        return None
    v = v.strip()
    return v or None

def _parse(env: Mapping[str, str], name: str, conv: Callable[[str], T], default: T) -> T:
    raw = _get(env, name)
    if raw is None:
        return default
    try:
        return conv(raw)
    except ValueError as e:
        raise ConfigError(f"{name}={raw!r} is not a valid {conv.__name__}") from e

def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = os.environ if env is None else env
    d = Thresholds()
    thresholds = Thresholds(
        volatility_limit=_parse(env, "VOLATILITY_LIMIT", float, d.volatility_limit),
        maturity_limit=_parse(env, "MATURITY_LIMIT", int, d.maturity_limit),
        participation_minimum=_parse(env, "PARTICIPATION_MINIMUM", int, d.participation_minimum),
        streak_required=_parse(env, "STREAK_REQUIRED", int, d.streak_required),
        streak_warning_window=_parse(env, "STREAK_WARNING_WINDOW", int, d.streak_warning_window),
        cooling_drop=_parse(env, "COOLING_DROP", int, d.cooling_drop),
    )

    dl = DisplayLabels()
    labels = DisplayLabels(
        primary=_get(env, "PRIMARY_LABEL") or dl.primary,
        secondary=_get(env, "SECONDARY_LABEL") or dl.secondary,
        activity=_get(env, "ACTIVITY_LABEL") or dl.activity,
        participation=_get(env, "PARTICIPATION_LABEL") or dl.participation,
    )

    display_tz = _get(env, "DISPLAY_TZ") or "UTC"
    try:
        ZoneInfo(display_tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"DISPLAY_TZ={display_tz!r} is not a known time zone") from e

    log_level = (_get(env, "LOG_LEVEL") or "INFO").upper()
    if not isinstance(getattr(logging, log_level, None), int):
        raise ConfigError(f"LOG_LEVEL={log_level!r} is not a logging level")

    supabase = None
    sb_url, sb_key = _get(env, "SUPABASE_URL"), _get(env, "SUPABASE_ANON_KEY")
    if sb_url and sb_key:
        supabase = SupabaseConfig(url=sb_url, api_key=sb_key,
                                  table=_get(env, "SUPABASE_TABLE") or "market_checks")

    redis = None
    redis_url = _get(env, "REDIS_URL")
    if redis_url:
        redis = RedisHistoryConfig(url=redis_url,
                                   key=_get(env, "REDIS_HISTORY_KEY") or "prepump:market_checks")

    discord = None
    if webhook := _get(env, "DISCORD_WEBHOOK"):
        discord = DiscordConfig(webhook_url=webhook)

    telegram = None
    tg_token, tg_chat = _get(env, "TELEGRAM_BOT_TOKEN"), _get(env, "TELEGRAM_CHAT_ID")
    if tg_token and tg_chat:
        telegram = TelegramConfig(bot_token=tg_token, chat_id=tg_chat, tz_name=display_tz)

    return AppConfig(
        thresholds=thresholds,
        labels=labels,
        supabase=supabase,
        redis=redis,
        discord=discord,
        telegram=telegram,
        http_timeout_s=_parse(env, "HTTP_TIMEOUT_S", float, 8.0),
        sampler_seed=_parse(env, "SAMPLER_SEED", int, None),
        display_tz=display_tz,
        log_level=log_level,
    )
