"""
Security configuration analysis.

Flags protocol downgrades against the committed history of the same
access point, and security weaker than the SSID's network class calls
for (government, ISP, enterprise and home names all expect WPA2).
"""

from typing import List, Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType, SecurityType
from ...utils.ssid_utils import contains_any


class SecurityConfigDetector(BaseThreatDetector):
    """Downgrades and under-secured network classes."""

    name = "security_config"
    description = "Security protocol downgrade and SSID/security mismatch"
    detection_method = "security_config"
    threat_type = ThreatType.SECURITY_DOWNGRADE
    analysis_order = 50

    def expected_security(self, ssid: str) -> Optional[SecurityType]:
        """Minimum security implied by the SSID, or None for no expectation."""
        reference = self.reference
        for patterns in (reference.government_patterns, reference.isp_patterns,
                         reference.enterprise_patterns, reference.home_patterns):
            if contains_any(ssid, patterns):
                return SecurityType.WPA2
        return None

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        config = self.config
        target = context.observation
        current = target.security_type
        issues: List[str] = []
        score = 0.0

        previous = {sample.security_type for sample in context.signal_history}
        if SecurityType.WPA3 in previous and current != SecurityType.WPA3:
            issues.append(f'Security downgraded from WPA3 to {current.value.upper()}')
            score += config.wpa3_downgrade_weight
        elif SecurityType.WPA2 in previous and current in (SecurityType.WEP, SecurityType.OPEN):
            issues.append(f'Security downgraded from WPA2 to {current.value.upper()}')
            score += config.wpa2_downgrade_weight

        expected = self.expected_security(target.ssid)
        if expected is not None and current.is_weaker_than(expected):
            issues.append(f'Security weaker than expected for SSID type '
                          f'(expected: {expected.value.upper()}, actual: {current.value.upper()})')
            score += config.expected_security_mismatch_weight

        if current == SecurityType.OPEN and contains_any(target.ssid, self.reference.enterprise_patterns):
            issues.append('Enterprise network without encryption - highly suspicious')
            score += config.enterprise_open_weight

        if current in (SecurityType.OPEN, SecurityType.WEP) and \
                contains_any(target.ssid, self.reference.government_patterns):
            issues.append('Government network with inadequate security')
            score += config.government_weak_security_weight

        if not issues:
            return None

        severity = (ThreatSeverity.HIGH if score > config.security_high_severity_threshold
                    else ThreatSeverity.MEDIUM)
        return self.single_finding(
            context,
            severity,
            'Suspicious security configuration detected',
            issues,
            score,
            security_type=current.value,
            expected_security=expected.value if expected else None,
        )
