"""
Government network impersonation gate.

Any SSID carrying a government or agency keyword that is not a verified
(ssid, bssid) pair is reported as a critical Evil Twin immediately.
Government-named networks never get the benefit of the doubt; a
triggered gate also suppresses the regular Evil Twin scoring.
"""

from typing import Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType
from ...utils.ssid_utils import matching_keyword


GATE_EVIDENCE = [
    'Network name mimics government/DICT infrastructure',
    'Not in verified government whitelist',
    'Potential Evil Twin attack targeting government employees',
    'Could be attempting to steal government credentials',
    'May be harvesting sensitive government data',
]


class GovernmentImpersonationDetector(BaseThreatDetector):
    """Critical short-circuit for government-named networks."""

    name = "government_impersonation"
    description = "Unverified networks using government or agency names"
    detection_method = "government_impersonation"
    threat_type = ThreatType.EVIL_TWIN
    analysis_order = 10

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        observation = context.observation
        pattern = matching_keyword(observation.ssid, self.reference.government_gate_keywords)
        if pattern is None:
            return None

        if self.reference.is_verified(observation.ssid, observation.bssid):
            return None

        self.logger.warning(f"Government impersonation detected: {observation.ssid!r} "
                            f"({observation.bssid}) pattern={pattern!r} "
                            f"signal={observation.signal_level} dBm")

        return self.single_finding(
            context,
            ThreatSeverity.CRITICAL,
            f'CRITICAL: Unauthorized network impersonating "{pattern}" government network',
            GATE_EVIDENCE,
            self.config.government_impersonation_confidence,
            impersonated_pattern=pattern,
            signal_strength=observation.signal_level,
            security_type=observation.capabilities,
            impersonation='government',
            severity_reason='Critical government infrastructure mimicking',
        )
