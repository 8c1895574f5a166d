from __future__ import annotations


class PrepumpError(Exception):
    """Base class for monitor errors."""


class ConfigError(PrepumpError):
    """Environment holds a value that cannot be parsed."""


class StoreError(PrepumpError):
    """History backend rejected or failed a read/write."""


class NotifyError(PrepumpError):
    """A notification channel failed to deliver."""

    def __init__(self, channel: str, detail: str, status: int | None = None):
        super().__init__(f"{channel}: {detail}")
        self.channel = channel
        self.detail = detail
        self.status = status
