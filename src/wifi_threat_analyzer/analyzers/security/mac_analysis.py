"""
MAC address and vendor analysis.
"""

from typing import List, Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType, TrustLevel


class MACAnalysisDetector(BaseThreatDetector):
    """Flags unknown, suspicious, incompatible or blacklisted hardware."""

    name = "mac_analysis"
    description = "Vendor provenance of the BSSID"
    detection_method = "mac_analysis"
    threat_type = ThreatType.SUSPICIOUS_MAC
    analysis_order = 30

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        if context.vendor_lookup_failed:
            return None

        target = context.observation
        directory = self.vendor_directory
        vendor = context.vendor
        issues: List[str] = []

        if vendor is not None:
            if directory.is_suspicious_vendor(target.bssid):
                issues.append(f'MAC from suspicious vendor: {vendor.vendor_name} ({vendor.category.value})')
            compatibility = directory.ssid_vendor_compatibility(target.bssid, target.ssid)
            if compatibility < self.config.mac_compatibility_threshold:
                issues.append(f'Poor SSID-vendor compatibility: {int(compatibility * 100)}%')
        else:
            issues.append('Unknown MAC vendor - not in database')

        if directory.is_known_malicious(target.bssid):
            issues.append('MAC address found in malicious network database')

        if not issues:
            return None

        severity = (ThreatSeverity.CRITICAL
                    if vendor is not None and vendor.trust_level == TrustLevel.CRITICAL
                    else ThreatSeverity.MEDIUM)
        return self.single_finding(
            context,
            severity,
            'Suspicious MAC address detected',
            issues,
            self.config.mac_analysis_confidence,
            vendor=vendor.vendor_name if vendor else None,
        )
