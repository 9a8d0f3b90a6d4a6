"""Errors raised by the QRIS payload codec."""
from __future__ import annotations


class QRISError(ValueError):
    """Base class for payload codec failures."""


class MalformedPayloadError(QRISError):
    """Static payload cannot be parsed or lacks a required element."""


class InvalidAmountError(QRISError):
    """Transaction amount is not a positive integer."""
