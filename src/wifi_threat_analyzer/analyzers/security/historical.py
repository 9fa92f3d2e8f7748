"""
Historical comparison detector.

Compares the observation with the committed sightings of its SSID:
a BSSID never seen before while other BSSIDs were recently active, and
a vendor that differs from every vendor previously seen for the name.
"""

from datetime import timedelta
from typing import List, Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType


class HistoricalComparisonDetector(BaseThreatDetector):
    """New BSSIDs and vendor changes for known SSIDs."""

    name = "historical_analysis"
    description = "Behaviour compared with previously committed sightings"
    detection_method = "historical_analysis"
    threat_type = ThreatType.HISTORICAL_ANOMALY
    analysis_order = 60

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        target = context.observation
        sightings = context.ssid_history
        if not target.ssid or not sightings:
            return None

        config = self.config
        issues: List[str] = []
        score = 0.0

        cutoff = context.timestamp - timedelta(hours=config.historical_window_hours)
        recent_bssids = sorted({s.bssid for s in sightings if s.timestamp >= cutoff})
        if len(recent_bssids) >= config.historical_min_recent_bssids and target.bssid not in recent_bssids:
            issues.append('New BSSID appeared for known SSID within 24 hours')
            issues.append(f'Recent BSSIDs: {", ".join(recent_bssids)}')
            issues.append(f'Current BSSID: {target.bssid}')
            score += config.historical_new_bssid_weight

        historical_vendors = sorted({s.vendor_name for s in sightings if s.vendor_name})
        current_vendor = context.vendor.vendor_name if context.vendor else None
        if current_vendor and historical_vendors and current_vendor not in historical_vendors:
            issues.append(f'Different MAC vendor than historical data '
                          f'(was: {", ".join(historical_vendors)}, now: {current_vendor})')
            score += config.historical_vendor_mismatch_weight

        if not issues:
            return None

        severity = (ThreatSeverity.MEDIUM if score > config.historical_medium_severity_threshold
                    else ThreatSeverity.LOW)
        return self.single_finding(
            context,
            severity,
            'Network behavior differs from historical patterns',
            issues,
            score,
            recent_bssids=recent_bssids,
        )
