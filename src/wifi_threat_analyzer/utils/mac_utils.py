"""
MAC address helpers shared by the vendor directory and detectors.
"""

import re
from typing import Optional

_HEX_DIGITS = re.compile(r'^[0-9A-F]{12}$')


def normalize_mac(mac: str) -> Optional[str]:
    """
    Normalize a MAC address to upper-case colon-hex form.

    Accepts colon, dash, dot (Cisco) and unseparated notations.

    Args:
        mac: MAC address string

    Returns:
        Normalized MAC address, or None if the input is not a MAC
    """
    if not mac:
        return None
    digits = mac.strip().upper().replace(':', '').replace('-', '').replace('.', '')
    if not _HEX_DIGITS.match(digits):
        return None
    return ':'.join(digits[i:i + 2] for i in range(0, 12, 2))


def oui_prefix(mac: str) -> Optional[str]:
    """First three octets, e.g. "00:1F:3F"."""
    normalized = normalize_mac(mac)
    return normalized[:8] if normalized else None


def first_octet(mac: str) -> Optional[int]:
    normalized = normalize_mac(mac)
    if normalized is None:
        return None
    return int(normalized[:2], 16)


def is_locally_administered(mac: str) -> bool:
    """True when the locally-administered bit (0x02) of the first octet is set."""
    octet = first_octet(mac)
    return octet is not None and bool(octet & 0x02)
