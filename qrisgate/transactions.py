"""Transaction identifiers, expiry and fee helpers for generated payloads."""
from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

DEFAULT_TTL_SECONDS = 300
TRANSACTION_PREFIX = "QRIS"
_BASE36 = string.digits + string.ascii_uppercase

_rng = random.Random()


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    amount: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


def generate_transaction_id(now_ms: int | None = None, rng: random.Random | None = None) -> str:
    """Return ``QRIS`` + last 8 digits of epoch millis + 4 base36 characters.

    Uniqueness is best-effort; callers needing strict uniqueness must enforce it.
    """

    millis = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    suffix = "".join((rng or _rng).choices(_BASE36, k=4))
    return f"{TRANSACTION_PREFIX}{str(millis)[-8:]}{suffix}"


def generate_expiration_time(now: datetime | None = None, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> datetime:
    return (now or datetime.now(timezone.utc)) + timedelta(seconds=ttl_seconds)


def new_transaction(amount: int, ttl_seconds: int = DEFAULT_TTL_SECONDS, now: datetime | None = None) -> TransactionRecord:
    created_at = now or datetime.now(timezone.utc)
    return TransactionRecord(
        id=generate_transaction_id(now_ms=int(created_at.timestamp() * 1000)),
        amount=amount,
        created_at=created_at,
        expires_at=generate_expiration_time(created_at, ttl_seconds),
    )


def unique_fee(fee_min: int, fee_max: int, rng: random.Random | None = None) -> int:
    """Pick a random fee so equal nominal amounts stay distinguishable."""

    if fee_min < 0 or fee_max < fee_min:
        raise ValueError(f"Invalid fee range [{fee_min}, {fee_max}]")
    return (rng or _rng).randint(fee_min, fee_max)
