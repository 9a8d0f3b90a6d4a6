"""Settlement poller matching an expected amount against the mutation feed."""
from __future__ import annotations

import asyncio
import enum
import logging
import re
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from .monitoring import record_settlement_check

logger = logging.getLogger("qrisgate.settlement")

DEFAULT_TIMEOUT_SECONDS = 10.0
_NON_DIGITS = re.compile(r"[^0-9]")


class SettlementStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"


@dataclass(frozen=True, slots=True)
class SettlementResult:
    status: SettlementStatus


def normalize_amount(value: Any) -> str:
    """Strip every non-digit character, e.g. ``"Rp 10.000"`` -> ``"10000"``."""

    if isinstance(value, float) and value.is_integer():
        # JSON numbers like 10000.0 arrive as floats.
        value = int(value)
    return _NON_DIGITS.sub("", str(value))


def find_matching_amount(transactions: list[Any], expected_amount: Any) -> dict[str, Any] | None:
    """Return the first transaction whose normalized amount equals the expected one."""

    expected = normalize_amount(expected_amount)
    # A digitless expected amount would otherwise match any digitless feed amount.
    if not expected:
        return None
    for trx in transactions:
        if not isinstance(trx, dict) or trx.get("amount") is None:
            continue
        if normalize_amount(trx["amount"]) == expected:
            return trx
    return None


class SettlementPoller:
    """Single-shot settlement check against a remote mutation history feed.

    Remote faults never propagate: a failed, slow or malformed response reads
    as ``pending`` so a polling caller simply keeps waiting.
    """

    def __init__(
        self,
        feed_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.feed_url = feed_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def check_settlement(self, merchant_id: str, access_token: str, expected_amount: Any) -> SettlementResult:
        start = time.perf_counter()
        status, reason = await self._check(merchant_id, access_token, expected_amount)
        duration_ms = (time.perf_counter() - start) * 1000
        record_settlement_check(status.value, reason, duration_ms)
        logger.info(
            "settlement checked",
            extra={
                "merchant_id": merchant_id,
                "status": status.value,
                "reason": reason,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return SettlementResult(status=status)

    async def _check(self, merchant_id: str, access_token: str, expected_amount: Any) -> tuple[SettlementStatus, str]:
        try:
            transactions = await asyncio.wait_for(
                self._fetch_mutations(merchant_id, access_token),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("mutation feed timed out", extra={"merchant_id": merchant_id, "timeout": self.timeout})
            return SettlementStatus.PENDING, "timeout"
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "mutation feed returned error status",
                extra={"merchant_id": merchant_id, "status_code": exc.response.status_code},
            )
            return SettlementStatus.PENDING, "http_status"
        except httpx.HTTPError as exc:
            logger.warning("mutation feed request failed", extra={"merchant_id": merchant_id, "error": str(exc)})
            return SettlementStatus.PENDING, "network"
        except ValueError as exc:
            logger.warning("mutation feed returned malformed body", extra={"merchant_id": merchant_id, "error": str(exc)})
            return SettlementStatus.PENDING, "malformed"

        if not transactions:
            return SettlementStatus.PENDING, "empty"
        if find_matching_amount(transactions, expected_amount) is None:
            return SettlementStatus.PENDING, "no_match"
        return SettlementStatus.SUCCESS, "matched"

    async def _fetch_mutations(self, merchant_id: str, access_token: str) -> list[Any]:
        url = f"{self.feed_url}/{quote(merchant_id, safe='')}/{quote(access_token, safe='')}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            body = response.json()

        if not isinstance(body, dict):
            raise ValueError(f"expected a JSON object, got {type(body).__name__}")
        data = body.get("data")
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"expected 'data' to be a list, got {type(data).__name__}")
        return data
