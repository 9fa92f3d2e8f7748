"""
Vendor Directory

Static lookup of MAC address prefixes to vendor identity, category and
trust level. Lookup tries the full three-octet OUI first, then the
one-octet locally administered class, then reports the vendor unknown.
All methods are pure functions of the loaded table.
"""

import logging
from collections import Counter
from typing import Dict, Optional

from ...core.config import EngineConfig
from ...core.models import VendorRecord, VendorCategory, TrustLevel
from ...core.reference_data import ReferenceData, default_reference_data
from ...utils.mac_utils import normalize_mac
from ...utils.ssid_utils import contains_any


TRUSTED_CATEGORIES = (
    VendorCategory.ROUTER,
    VendorCategory.ENTERPRISE,
    VendorCategory.ISP,
    VendorCategory.GOVERNMENT,
)


class VendorDirectory:
    """MAC prefix to vendor lookups."""

    def __init__(self, reference: Optional[ReferenceData] = None,
                 config: Optional[EngineConfig] = None):
        self.reference = reference or default_reference_data()
        self.config = config or EngineConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._table: Dict[str, VendorRecord] = dict(self.reference.vendors)

    def lookup_vendor(self, mac: str) -> Optional[VendorRecord]:
        """
        Look up vendor information by MAC address.

        Args:
            mac: MAC address in any common notation

        Returns:
            Matching vendor record, or None if unknown or not a MAC
        """
        normalized = normalize_mac(mac)
        if normalized is None:
            return None

        record = self._table.get(normalized[:8])
        if record is not None:
            return record
        return self._table.get(normalized[:3])

    def is_suspicious_vendor(self, mac: str) -> bool:
        """Unknown vendors count as suspicious."""
        record = self.lookup_vendor(mac)
        if record is None:
            return True
        return (record.trust_level in (TrustLevel.LOW, TrustLevel.CRITICAL)
                or record.category in (VendorCategory.SUSPICIOUS, VendorCategory.MALICIOUS))

    def is_legitimate_router_vendor(self, mac: str) -> bool:
        """Router, enterprise, ISP or government hardware with high trust."""
        record = self.lookup_vendor(mac)
        if record is None:
            return False
        return record.category in TRUSTED_CATEGORIES and record.trust_level == TrustLevel.HIGH

    def is_isp_compatible(self, record: VendorRecord) -> bool:
        if record.category == VendorCategory.ISP:
            return True
        return any(name.lower() in record.vendor_name.lower()
                   for name in self.reference.isp_compatible_vendor_names)

    def is_known_malicious(self, mac: str) -> bool:
        normalized = normalize_mac(mac)
        return normalized is not None and normalized in self.reference.known_malicious_macs

    def matches_suspicious_prefix(self, mac: str) -> bool:
        normalized = normalize_mac(mac)
        if normalized is None:
            return False
        return any(normalized.startswith(prefix) for prefix in self.reference.suspicious_mac_prefixes)

    def ssid_vendor_compatibility(self, mac: str, ssid: str) -> float:
        """
        Score how plausible it is that this vendor's hardware serves this SSID.

        Args:
            mac: BSSID of the access point
            ssid: Network name

        Returns:
            Score in [0, 1]; low when the SSID implies an ISP or government
            affiliation the vendor contradicts, neutral for unknown vendors
        """
        record = self.lookup_vendor(mac)
        if record is None:
            return self.config.unknown_vendor_compatibility

        if contains_any(ssid, self.reference.isp_affiliation_keywords) and not self.is_isp_compatible(record):
            return self.config.contradicting_vendor_compatibility

        if contains_any(ssid, self.reference.government_affiliation_keywords):
            if record.category == VendorCategory.GOVERNMENT:
                return self.config.government_vendor_compatibility
            return self.config.contradicting_vendor_compatibility

        return self.config.trust_compatibility.get(
            record.trust_level.value, self.config.unknown_vendor_compatibility
        )

    def get_database_stats(self) -> Dict[str, int]:
        """Number of table entries per vendor category."""
        counts = Counter(record.category for record in self._table.values())
        return {category.value: counts.get(category, 0) for category in VendorCategory}
