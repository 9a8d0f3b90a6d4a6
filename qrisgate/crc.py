"""CRC16/CCITT-FALSE implementation used by EMV QR payloads."""
from __future__ import annotations

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF
CRC_HEADER = "6304"


def crc16(data: str) -> str:
    """Compute CRC16/CCITT-FALSE over the characters of ``data``.

    The input is walked as UTF-16 code units, so a character outside the BMP
    contributes its two surrogates. Only the low byte of a code unit reaches
    the 16-bit accumulator, so the function is total over every string.
    """

    units = data.encode("utf-16-be", "surrogatepass")
    checksum = CRC16_INIT
    for idx in range(0, len(units), 2):
        checksum ^= ((units[idx] << 8) | units[idx + 1]) << 8
        for _ in range(8):
            if checksum & 0x8000:
                checksum = (checksum << 1) ^ CRC16_POLY
            else:
                checksum <<= 1
            checksum &= 0xFFFF
    return f"{checksum:04X}"


def verify_crc(payload: str) -> bool:
    """Return True when the trailing checksum matches the rest of the payload."""

    if len(payload) < len(CRC_HEADER) + 4 or payload[-8:-4] != CRC_HEADER:
        return False
    return payload[-4:].upper() == crc16(payload[:-4])
