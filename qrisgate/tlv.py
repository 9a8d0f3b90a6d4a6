"""Utility helpers to build and parse EMV-style TLV payloads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import MalformedPayloadError

MAX_VALUE_LENGTH = 99


def _is_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


@dataclass(frozen=True)
class TLVItem:
    tag: str
    value: str

    @property
    def length(self) -> int:
        return len(self.value)

    def serialize(self) -> str:
        if len(self.tag) != 2 or not _is_digits(self.tag):
            raise MalformedPayloadError(f"Invalid TLV tag {self.tag!r}")
        if self.length > MAX_VALUE_LENGTH:
            raise MalformedPayloadError(f"Tag {self.tag} value exceeds {MAX_VALUE_LENGTH} characters")
        return f"{self.tag}{self.length:02d}{self.value}"


def build_tlv(items: Iterable[TLVItem]) -> str:
    """Serialize iterable of TLV items into EMV string."""

    return "".join(item.serialize() for item in items)


def parse_tlv(payload: str) -> Iterator[TLVItem]:
    """Parse top-level TLV elements; nested templates are returned as raw values."""

    idx = 0
    total = len(payload)
    while idx + 4 <= total:
        tag = payload[idx : idx + 2]
        raw_length = payload[idx + 2 : idx + 4]
        if not (_is_digits(tag) and _is_digits(raw_length)):
            raise MalformedPayloadError(f"Invalid TLV header {payload[idx : idx + 4]!r} at offset {idx}")
        value_start = idx + 4
        value_end = value_start + int(raw_length)
        if value_end > total:
            raise MalformedPayloadError(f"Tag {tag} length exceeds payload at offset {idx}")
        yield TLVItem(tag=tag, value=payload[value_start:value_end])
        idx = value_end
    if idx != total:
        raise MalformedPayloadError("Dangling TLV data detected")


def find_tag(items: Iterable[TLVItem], tag: str) -> TLVItem | None:
    """Return the first item carrying ``tag``."""

    return next((item for item in items if item.tag == tag), None)
