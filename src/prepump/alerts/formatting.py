from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

from prepump.utils.time import fmt_local, to_iso, utc_now
from prepump.utils.types import Alert, Observation

DISCORD_COLORS = {
    "critical": 0xFF0000,
    "high":     0xFF6600,
    "medium":   0xFFFF00,
    "low":      0x00FF00,
    "info":     0x3399FF,
}

PRIORITY_EMOJIS = {
    "critical": "🚨",
    "high":     "⚠️",
    "medium":   "🟡",
    "low":      "🟢",
    "info":     "ℹ️",
}

@dataclass(slots=True, frozen=True)
class DisplayLabels:
    primary: str = "BTC"
    secondary: str = "ETH"
    activity: str = "Pumping Tokens"
    participation: str = "Smart Money Tokens"

def signed_pct(v: float) -> str:
    v = v + 0.0  # -0.0 -> 0.0
    return f"{'+' if v >= 0 else ''}{v}%"

TELEGRAM_MARKDOWN_SPECIALS = ("_", "*", "`", "[")

def escape_markdown(text: str) -> str:
    """Escape the characters legacy Telegram Markdown treats as entity markers."""
    for ch in TELEGRAM_MARKDOWN_SPECIALS:
        text = text.replace(ch, "\\" + ch)
    return text

def snapshot_fields(obs: Observation, labels: DisplayLabels = DisplayLabels()) -> list[tuple[str, str]]:
    """(name, value) pairs in the fixed presentation order."""
    return [
        (f"{labels.primary} Move", signed_pct(obs.primary_move)),
        (f"{labels.secondary} Move", signed_pct(obs.secondary_move)),
        ("Volatility Streak", f"{obs.volatility_streak} cycles"),
        (labels.activity, f"{obs.activity_count}"),
        (labels.participation, f"{obs.participation_count}"),
    ]

def format_alert_pretty(alert: Alert, labels: DisplayLabels = DisplayLabels()) -> str:
    """Single-line console rendering."""
    fields = "  |  ".join(f"{k}: {v}" for k, v in snapshot_fields(alert.snapshot, labels))
    return f"[{alert.priority.upper()}] {alert.title} - {alert.message}  ||  {fields}"

def format_telegram_text(
    alert: Alert,
    labels: DisplayLabels = DisplayLabels(),
    tz_name: str = "UTC",
    now: datetime | None = None,
) -> str:
    emoji = PRIORITY_EMOJIS.get(alert.priority, PRIORITY_EMOJIS["medium"])
    lines = [
        f"{emoji} *{escape_markdown(alert.title)}*",
        "",
        escape_markdown(alert.message),
        "",
        "📊 *Market Data:*",
    ]
    for name, value in snapshot_fields(alert.snapshot, labels):
        # "BTC Move" reads better as "BTC" in the compact list
        lines.append(f"- {escape_markdown(name.removesuffix(' Move'))}: {escape_markdown(value)}")
    lines += ["", f"⏰ {fmt_local(now or utc_now(), tz_name)}"]
    return "\n".join(lines)

def build_discord_payload(
    alert: Alert,
    labels: DisplayLabels = DisplayLabels(),
    now: datetime | None = None,
) -> dict:
    embed = {
        "title": alert.title,
        "description": alert.message,
        "color": DISCORD_COLORS.get(alert.priority, DISCORD_COLORS["medium"]),
        "timestamp": to_iso(now or utc_now()),
        "fields": [
            {"name": name, "value": value, "inline": True}
            for name, value in snapshot_fields(alert.snapshot, labels)
        ],
        "footer": {"text": "Pre-Pump Framework Monitor"},
    }
    return {"username": "Pre-Pump Bot", "embeds": [embed]}
