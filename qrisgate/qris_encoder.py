"""QRIS payload encoder turning a static merchant QR into an amount-bound one."""
from __future__ import annotations

from dataclasses import dataclass

from .crc import CRC_HEADER, crc16, verify_crc
from .errors import InvalidAmountError, MalformedPayloadError
from .tlv import TLVItem, find_tag, parse_tlv

AMOUNT_TAG = "54"
COUNTRY_ANCHOR = "5802ID"
STATIC_INITIATION = "010211"
DYNAMIC_INITIATION = "010212"


@dataclass(frozen=True)
class EncodedPayload:
    payload: str
    crc: str


@dataclass(frozen=True)
class PayloadInspection:
    items: list[TLVItem]
    crc_valid: bool
    amount: str | None


def normalize_initiation_method(payload: str) -> str:
    """Switch the point-of-initiation element from static to dynamic."""

    return payload.replace(STATIC_INITIATION, DYNAMIC_INITIATION, 1)


def amount_field(amount: int) -> str:
    """Serialize ``amount`` as the Tag 54 element."""

    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {amount!r}")
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")
    return TLVItem(tag=AMOUNT_TAG, value=str(amount)).serialize()


def strip_crc(static_payload: str) -> str:
    """Remove the checksum digits and, when present, the Tag 63 header."""

    if len(static_payload) <= 4:
        raise MalformedPayloadError("Payload is too short to carry a checksum")
    stripped = static_payload[:-4]
    if stripped.endswith(CRC_HEADER):
        stripped = stripped[: -len(CRC_HEADER)]
    return stripped


def build_payload(static_payload: str, amount: int) -> EncodedPayload:
    """Embed ``amount`` into a static QRIS payload and recompute its CRC.

    The Tag 54 element is inserted right before the first ``5802ID`` anchor.
    Later anchor occurrences are left inside the tail untouched.
    """

    field = amount_field(amount)
    body = normalize_initiation_method(strip_crc(static_payload))
    prefix, anchor, rest = body.partition(COUNTRY_ANCHOR)
    if not anchor:
        raise MalformedPayloadError(f"Payload is missing the {COUNTRY_ANCHOR} country anchor")

    payload_no_crc = f"{prefix}{field}{anchor}{rest}{CRC_HEADER}"
    crc = crc16(payload_no_crc)
    return EncodedPayload(payload=f"{payload_no_crc}{crc}", crc=crc)


def decode_payload(payload: str) -> list[TLVItem]:
    """Parse a complete payload into its top-level elements."""

    if not payload:
        raise MalformedPayloadError("Payload is empty")
    return list(parse_tlv(payload))


def inspect_payload(payload: str) -> PayloadInspection:
    items = decode_payload(payload)
    amount = find_tag(items, AMOUNT_TAG)
    return PayloadInspection(
        items=items,
        crc_valid=verify_crc(payload),
        amount=amount.value if amount else None,
    )
