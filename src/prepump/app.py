from __future__ import annotations

import logging

import aiohttp
import structlog

from prepump.alerts.formatting import format_alert_pretty
from prepump.alerts.notifiers import Channel, ConsoleNotifier, NotificationDispatcher
from prepump.config import AppConfig
from prepump.ingest.sampler import SimulatedSampler
from prepump.notify.discord import DiscordNotifier
from prepump.notify.telegram import TelegramNotifier
from prepump.storage.history import (
    HistoryStore,
    NullHistoryStore,
    RedisHistoryStore,
    SupabaseHistoryStore,
)

log = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
    )


def open_session(cfg: AppConfig) -> aiohttp.ClientSession:
    """One session per run, shared by every HTTP collaborator."""
    return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=cfg.http_timeout_s))


def build_store(cfg: AppConfig, session: aiohttp.ClientSession) -> HistoryStore:
    # cfg.persistence prefers Supabase when both backends are configured
    backend = cfg.persistence
    if backend == "supabase":
        store: HistoryStore = SupabaseHistoryStore(cfg.supabase, session)
    elif backend == "redis":
        store = RedisHistoryStore(cfg.redis)
    else:
        store = NullHistoryStore()
    log.info("history_backend", backend=backend)
    return store


def build_dispatcher(cfg: AppConfig, session: aiohttp.ClientSession) -> NotificationDispatcher:
    channels: list[Channel] = []
    for name in cfg.channels:
        if name == "console":
            channels.append(ConsoleNotifier(format_fn=lambda a: format_alert_pretty(a, cfg.labels)))
        elif name == "discord":
            channels.append(DiscordNotifier(cfg.discord, session, labels=cfg.labels))
        elif name == "telegram":
            channels.append(TelegramNotifier(cfg.telegram, session, labels=cfg.labels))
    log.info("channels_enabled", channels=cfg.channels)
    return NotificationDispatcher(channels)


def build_sampler(cfg: AppConfig) -> SimulatedSampler:
    return SimulatedSampler(seed=cfg.sampler_seed)
