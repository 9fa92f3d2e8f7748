"""
Signal strength anomaly detector.

Compares the observed level against absolute plausibility bounds and
against the committed history of the same (ssid, bssid) pair.
"""

import statistics
from typing import List, Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType


class SignalAnomalyDetector(BaseThreatDetector):
    """Extreme, implausible, drifting or jumping signal levels."""

    name = "signal_anomaly"
    description = "Signal strength plausibility and history consistency"
    detection_method = "signal_anomaly"
    threat_type = ThreatType.SIGNAL_ANOMALY
    analysis_order = 40

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        config = self.config
        level = context.observation.signal_level
        anomalies: List[str] = []
        score = 0.0

        if level > config.signal_extreme_dbm:
            anomalies.append(f'Extremely strong signal ({level} dBm) - device likely within 1 meter')
            score += config.signal_extreme_weight
        elif level > config.signal_very_strong_dbm:
            anomalies.append(f'Very strong signal ({level} dBm) - unusually close device')
            score += config.signal_very_strong_weight

        history = [sample.signal_level for sample in context.signal_history]
        if len(history) >= config.signal_mean_min_samples:
            deviation = abs(level - statistics.mean(history))
            if deviation > config.signal_mean_deviation_dbm:
                anomalies.append(f'Signal deviates {int(deviation)}dBm from historical average')
                score += config.signal_mean_deviation_weight

        if history:
            jump = abs(level - history[-1])
            if jump > config.signal_jump_dbm:
                anomalies.append(f'Sudden signal jump of {int(jump)}dBm since last scan')
                score += config.signal_jump_weight

        if level > config.signal_implausible_dbm:
            anomalies.append('Implausibly strong signal - possible signal amplification attack')
            score += config.signal_implausible_weight

        if not anomalies:
            return None

        severity = (ThreatSeverity.HIGH if score >= config.signal_high_severity_threshold
                    else ThreatSeverity.MEDIUM)
        return self.single_finding(
            context,
            severity,
            'Signal strength anomaly detected',
            anomalies,
            score,
            signal_level=level,
            history_samples=len(history),
        )
