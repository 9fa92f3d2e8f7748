"""
SSID spoofing detector.

Turns the SSID Pattern Analyzer's verdict into a per-network threat.
Networks confirmed legitimate in the verified table are exempt.
"""

from typing import Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType


class SSIDSpoofingDetector(BaseThreatDetector):
    """Typosquatting, look-alike and impersonating network names."""

    name = "ssid_spoofing"
    description = "Typosquatting, homograph and impersonation checks on the network name"
    detection_method = "ssid_analysis"
    threat_type = ThreatType.EVIL_TWIN
    analysis_order = 5

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        analysis = context.ssid_analysis
        if analysis is None or not analysis.is_detected:
            return None

        observation = context.observation
        if self.reference.is_verified(observation.ssid, observation.bssid):
            self.logger.debug(f"Skipping verified network {observation.ssid!r} ({observation.bssid})")
            return None

        return self.single_finding(
            context,
            ThreatSeverity.HIGH,
            "Suspicious SSID pattern detected",
            analysis.suspicious_factors,
            analysis.confidence_score,
            legitimate_matches=list(analysis.legitimate_matches),
        )
