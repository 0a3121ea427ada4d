from __future__ import annotations

from datetime import datetime, timedelta

from authsvc.domain.entities.user import RefreshTokenEntry


MAX_REFRESH_TOKENS = 5
REFRESH_TOKEN_TTL = timedelta(days=90)


def ledger_cutoff(now: datetime, *, ttl: timedelta = REFRESH_TOKEN_TTL) -> datetime:
    """Entries created at or before the cutoff are expired."""
    return now - ttl


def append_bounded(
    entries: list[RefreshTokenEntry],
    entry: RefreshTokenEntry,
    *,
    max_tokens: int = MAX_REFRESH_TOKENS,
) -> list[RefreshTokenEntry]:
    """Append and keep the newest ``max_tokens`` entries by insertion order.

    Eviction ignores expiry: the oldest entry goes first even if a later one
    is closer to its TTL.
    """
    updated = [*entries, entry]
    if len(updated) > max_tokens:
        updated = updated[-max_tokens:]
    return updated


def without_token(entries: list[RefreshTokenEntry], token: str) -> list[RefreshTokenEntry]:
    return [entry for entry in entries if entry.token != token]


def live_entries(entries: list[RefreshTokenEntry], *, not_before: datetime) -> list[RefreshTokenEntry]:
    return [entry for entry in entries if entry.created_at > not_before]
