from __future__ import annotations

from datetime import datetime, timedelta, timezone

from authsvc.domain.entities.user import RefreshTokenEntry
from authsvc.domain.services.refresh_ledger import (
    MAX_REFRESH_TOKENS,
    append_bounded,
    ledger_cutoff,
    live_entries,
    without_token,
)


def _entry(token: str, *, age_days: int = 0) -> RefreshTokenEntry:
    return RefreshTokenEntry(token=token, created_at=datetime.now(timezone.utc) - timedelta(days=age_days))


def test_append_bounded_evicts_oldest_insertion():
    entries = [_entry(f"t{i}") for i in range(MAX_REFRESH_TOKENS)]

    updated = append_bounded(entries, _entry("t5"), max_tokens=MAX_REFRESH_TOKENS)

    assert [entry.token for entry in updated] == ["t1", "t2", "t3", "t4", "t5"]
    assert updated[-1].device_info == "Unknown Device"


def test_append_bounded_keeps_everything_under_the_cap():
    updated = append_bounded([_entry("t0")], _entry("t1"), max_tokens=MAX_REFRESH_TOKENS)

    assert [entry.token for entry in updated] == ["t0", "t1"]


def test_without_token_and_live_entries():
    now = datetime.now(timezone.utc)
    entries = [_entry("old", age_days=91), _entry("fresh"), _entry("edge", age_days=89)]

    assert [entry.token for entry in without_token(entries, "fresh")] == ["old", "edge"]
    live = live_entries(entries, not_before=ledger_cutoff(now))
    assert [entry.token for entry in live] == ["fresh", "edge"]
