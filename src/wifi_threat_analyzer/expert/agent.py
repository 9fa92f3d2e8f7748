"""
Wi-Fi Security Expert Agent - interpretation of assessment results.

This module turns per-network assessments and scan-wide attack patterns
into user-facing recommendations and scan summaries. All output is built
from fixed message templates, so identical inputs always produce
identical text.
"""

import logging
from typing import Dict, List, Any, Sequence

from ..core.models import (
    ScanAnalysisResult,
    SecurityAssessment,
    SecurityThreat,
    ThreatLevel,
    ThreatSeverity,
    ThreatType
)

logger = logging.getLogger(__name__)


LEVEL_RECOMMENDATIONS = {
    ThreatLevel.CRITICAL: [
        "DO NOT CONNECT - High security risk detected",
        "Verify network legitimacy with network administrator",
        "Use mobile data instead of this network",
    ],
    ThreatLevel.HIGH: [
        "DO NOT CONNECT - High security risk detected",
        "Verify network legitimacy with network administrator",
        "Use mobile data instead of this network",
    ],
    ThreatLevel.MEDIUM: [
        "Proceed with caution",
        "Use VPN if you must connect",
        "Avoid accessing sensitive information",
    ],
}

THREAT_TYPE_RECOMMENDATIONS = {
    ThreatType.EVIL_TWIN: "Multiple networks with same name detected - verify correct one",
    ThreatType.SIGNAL_ANOMALY: "Unusual signal patterns detected - verify network location",
    ThreatType.SECURITY_DOWNGRADE: "Security appears downgraded - verify with network owner",
    ThreatType.SUSPICIOUS_MAC: "Network hardware appears suspicious",
    ThreatType.HISTORICAL_ANOMALY: "Network behaves differently than before - confirm it has not been replaced",
}


class WifiSecurityExpertAgent:
    """
    Expert agent for interpreting threat assessments.

    This agent provides:
    - Per-network connection recommendations
    - Scan-wide summaries and risk scoring
    - Prioritized concerns across all networks
    """

    def generate_recommendations(
        self,
        threat_level: ThreatLevel,
        threats: Sequence[SecurityThreat],
        is_known_legitimate: bool
    ) -> List[str]:
        """
        Build recommendations for one network.

        Args:
            threat_level: Classified threat level
            threats: Threats that survived cross-validation
            is_known_legitimate: Whether the network matched a trusted reference

        Returns:
            Ordered, de-duplicated recommendation strings
        """
        recommendations = list(LEVEL_RECOMMENDATIONS.get(threat_level, []))
        if not recommendations:
            if is_known_legitimate:
                recommendations.append("Safe to connect - verified legitimate network")
            else:
                recommendations.append("Network appears safe but unknown")
                recommendations.append("Use standard security precautions")

        for threat in threats:
            message = THREAT_TYPE_RECOMMENDATIONS.get(threat.threat_type)
            if message and message not in recommendations:
                recommendations.append(message)

        return recommendations

    def generate_scan_summary(self, result: ScanAnalysisResult) -> Dict[str, Any]:
        """
        Generate a scan-wide summary.

        Args:
            result: Assessments and pattern analysis for one scan

        Returns:
            Summary dictionary
        """
        assessments = result.assessments
        level_counts = {level.value: len(result.get_assessments_by_level(level)) for level in ThreatLevel}
        risk_score = self._calculate_risk_score(result)

        most_critical = sorted(
            (a for a in assessments if a.has_threats or a.should_avoid_connection),
            key=lambda a: (-a.threat_level.rank, -a.aggregate_confidence, a.ssid, a.bssid or ""),
        )[:5]

        summary = {
            "overall_assessment": self._assess_environment(result),
            "risk_score": risk_score,
            "networks_analyzed": len(assessments),
            "skipped_observations": result.skipped_observations,
            "threat_levels": level_counts,
            "safe_networks": sum(1 for a in assessments if a.is_safe_to_connect),
            "failed_assessments": sum(1 for a in assessments if a.is_error),
            "actionable_threats": sum(1 for a in assessments for t in a.validated_threats if t.is_actionable),
            "most_critical_networks": [
                {
                    "ssid": a.ssid,
                    "bssid": a.bssid,
                    "threat_level": a.threat_level.value,
                    "confidence": round(a.aggregate_confidence, 3),
                    "security_grade": a.security_grade,
                }
                for a in most_critical
            ],
            "key_concerns": self._identify_key_concerns(result),
            "attack_patterns": [p.pattern_type.value for p in result.pattern_analysis.detected_patterns],
            "pattern_threat_score": result.pattern_analysis.overall_threat_score,
        }

        logger.info(f"Scan summary generated: {len(assessments)} networks, risk score {risk_score}")
        return summary

    def _calculate_risk_score(self, result: ScanAnalysisResult) -> int:
        """Calculate risk score from 0-100 based on assessments and patterns."""
        score = 0
        score += len(result.get_assessments_by_level(ThreatLevel.CRITICAL)) * 25
        score += len(result.get_assessments_by_level(ThreatLevel.HIGH)) * 15
        score += len(result.get_assessments_by_level(ThreatLevel.MEDIUM)) * 5
        score += int(round(result.pattern_analysis.overall_threat_score * 30))
        return min(score, 100)

    def _assess_environment(self, result: ScanAnalysisResult) -> str:
        critical = len(result.get_assessments_by_level(ThreatLevel.CRITICAL))
        high = len(result.get_assessments_by_level(ThreatLevel.HIGH))
        patterns = len(result.pattern_analysis.detected_patterns)

        if critical > 0:
            return "DANGEROUS - Critical threats detected among nearby networks"
        elif high > 0 or patterns > 1:
            return "ELEVATED - Suspicious networks or attack patterns present"
        elif patterns > 0:
            return "GUARDED - Unusual activity observed, monitor before connecting"
        else:
            return "NORMAL - No significant threats detected in this scan"

    def _identify_key_concerns(self, result: ScanAnalysisResult) -> List[str]:
        """
        Key concerns across all networks, most severe first.

        Critical threats are always included; others fill the remaining
        slots up to ten.
        """
        threats = []
        for assessment in result.assessments:
            threats.extend(assessment.validated_threats)
        threats.sort(key=lambda t: (-t.priority, t.affected_ssid, t.affected_bssid))

        concerns = [f"{t.affected_ssid} ({t.affected_bssid}): {t.description}"
                    for t in threats if t.severity == ThreatSeverity.CRITICAL]
        for threat in threats:
            if len(concerns) >= 10:
                break
            if threat.severity != ThreatSeverity.CRITICAL:
                concerns.append(f"{threat.affected_ssid} ({threat.affected_bssid}): {threat.description}")

        for pattern in result.pattern_analysis.detected_patterns:
            concerns.append(f"Attack pattern: {pattern.description}")
        return concerns

    def describe_assessment(self, assessment: SecurityAssessment) -> str:
        """One-line human-readable verdict."""
        if assessment.is_error:
            return f"{assessment.ssid}: analysis failed ({assessment.error_message})"
        return (f"{assessment.ssid} ({assessment.bssid}): {assessment.threat_level.display_name}, "
                f"confidence {assessment.aggregate_confidence:.0%}, grade {assessment.security_grade} - "
                f"{assessment.threat_level.security_advice}")
