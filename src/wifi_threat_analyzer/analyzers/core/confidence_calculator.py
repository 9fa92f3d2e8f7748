"""
Confidence Calculator

Fuses weighted, timestamped evidence into a single threat probability:

1. Prior from the SSID text alone, scaled by the location's risk multiplier
2. One Bayesian odds update per evidence item, with the raw posterior
   blended toward the running value by an evidence weight (method
   reliability x freshness x the evidence's own confidence)
3. Environmental adjustment (evidence count, location risk class)
4. Consensus bonus for distinct detection methods plus an agreement
   bonus when evidence confidences have low variance

Every intermediate value is clamped to [0, 1].
"""

import logging
import statistics
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Any, Optional

from ...core.clock import Clock, SystemClock
from ...core.config import EngineConfig
from ...core.models import (
    ThreatEvidence,
    ThreatLevel,
    EnvironmentProfile,
    RiskLevel
)
from ...core.reference_data import ReferenceData, default_reference_data
from ...utils.ssid_utils import contains_any


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp to [low, high]; NaN degrades to low."""
    if value != value:
        return low
    return max(low, min(high, value))


@dataclass
class DetectionMethodStats:
    """Labelled-feedback bookkeeping for one detection method."""
    method: str
    correct_detections: int = 0
    total_detections: int = 0
    total_confidence: float = 0.0

    def add_result(self, was_correct: bool, confidence: float) -> None:
        self.total_detections += 1
        self.total_confidence += confidence
        if was_correct:
            self.correct_detections += 1

    @property
    def accuracy(self) -> float:
        if self.total_detections == 0:
            return 0.5
        return self.correct_detections / self.total_detections

    @property
    def average_confidence(self) -> float:
        if self.total_detections == 0:
            return 0.5
        return self.total_confidence / self.total_detections

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'accuracy': self.accuracy,
            'total_detections': self.total_detections,
            'correct_detections': self.correct_detections,
            'average_confidence': self.average_confidence,
        }


class ConfidenceCalculator:
    """Bayesian-style evidence fusion."""

    def __init__(self, reference: Optional[ReferenceData] = None,
                 config: Optional[EngineConfig] = None,
                 clock: Optional[Clock] = None):
        self.reference = reference or default_reference_data()
        self.config = config or EngineConfig()
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._lock = threading.Lock()
        self._method_accuracy: Dict[str, DetectionMethodStats] = {}
        self._location_profiles: Dict[str, EnvironmentProfile] = dict(self.reference.environment_profiles)
        self.total_calculations = 0

    def threat_confidence(
        self,
        evidence: List[ThreatEvidence],
        network_id: str,
        ssid: str,
        location_tag: Optional[str] = None
    ) -> float:
        """
        Calculate overall threat confidence.

        Args:
            evidence: Evidence items gathered for one network
            network_id: Identifier of the network (for logging)
            ssid: Network name, used for the prior
            location_tag: Optional coarse location ("airport", "home", ...)

        Returns:
            Confidence in [0, 1]; 0.0 for no evidence, the configured
            neutral fallback if the calculation itself fails
        """
        if not evidence:
            return 0.0

        try:
            now = self.clock.now()
            prior = self.prior_probability(ssid, location_tag)

            posterior = prior
            for item in evidence:
                posterior = self._bayesian_update(posterior, item, now)

            posterior = self._apply_environmental_adjustments(posterior, location_tag, len(evidence))
            posterior = self._apply_consensus_bonus(posterior, evidence)
            confidence = clamp(posterior)

            with self._lock:
                self.total_calculations += 1
            self.logger.debug(f"Confidence for {network_id}: {confidence:.3f} "
                              f"({len(evidence)} evidence items, prior {prior:.3f})")
            return confidence

        except Exception as e:
            self.logger.error(f"Confidence calculation failed for {network_id}: {e}")
            return self.config.error_fallback_confidence

    def prior_probability(self, ssid: str, location_tag: Optional[str] = None) -> float:
        """Base threat probability from the SSID text and location."""
        probability = self.config.prior_base

        # Later classes override earlier ones
        if contains_any(ssid, self.reference.prior_government_patterns):
            probability = self.config.prior_government
        if contains_any(ssid, self.reference.prior_generic_patterns):
            probability = self.config.prior_generic
        if contains_any(ssid, self.reference.prior_isp_patterns):
            probability = self.config.prior_isp

        profile = self.get_location_profile(location_tag)
        if profile is not None:
            probability *= profile.risk_multiplier

        return clamp(probability, self.config.prior_min, self.config.prior_max)

    def likelihood_ratio(self, evidence: ThreatEvidence) -> float:
        return self.config.likelihood_ratios[evidence.severity.value]

    def evidence_weight(self, evidence: ThreatEvidence, now: Optional[datetime] = None) -> float:
        """Method reliability x freshness x evidence confidence, clamped."""
        now = now or self.clock.now()
        weight = self.config.method_reliability.get(
            evidence.detection_method, self.config.default_method_reliability
        )

        age_minutes = (now - evidence.timestamp).total_seconds() / 60.0
        if age_minutes > self.config.decay_start_minutes:
            weight *= max(self.config.decay_floor, 1.0 - age_minutes / self.config.decay_horizon_minutes)

        weight *= clamp(evidence.confidence_score)
        return clamp(weight, self.config.evidence_weight_min, self.config.evidence_weight_max)

    def _bayesian_update(self, prior: float, evidence: ThreatEvidence, now: datetime) -> float:
        prior = clamp(prior, 0.0, 0.999999)
        posterior_odds = (prior / (1.0 - prior)) * self.likelihood_ratio(evidence)
        posterior = posterior_odds / (1.0 + posterior_odds)

        weight = self.evidence_weight(evidence, now)
        return clamp(prior + (posterior - prior) * weight)

    def _apply_environmental_adjustments(self, confidence: float, location_tag: Optional[str],
                                         evidence_count: int) -> float:
        adjusted = confidence + min(self.config.evidence_count_bonus_cap,
                                    evidence_count * self.config.evidence_count_bonus)

        profile = self.get_location_profile(location_tag)
        if profile is not None:
            if profile.risk_level == RiskLevel.HIGH:
                adjusted *= self.config.high_risk_location_multiplier
            elif profile.risk_level == RiskLevel.GOVERNMENT:
                adjusted *= self.config.government_location_multiplier

        return clamp(adjusted)

    def _apply_consensus_bonus(self, confidence: float, evidence: List[ThreatEvidence]) -> float:
        if len(evidence) <= 1:
            return confidence

        unique_methods = len({item.detection_method for item in evidence})
        consensus = 0.0
        for method_count, bonus in sorted(self.config.consensus_bonuses.items()):
            if unique_methods >= int(method_count):
                consensus = bonus

        return clamp(confidence + consensus + self._method_agreement(evidence))

    def _method_agreement(self, evidence: List[ThreatEvidence]) -> float:
        if len(evidence) < 2:
            return 0.0
        variance = statistics.pvariance([clamp(item.confidence_score) for item in evidence])
        return max(0.0, self.config.agreement_bonus_max - variance)

    def update_method_accuracy(self, method: str, was_correct: bool, confidence: float) -> None:
        """Record labelled feedback; statistics only, scoring is unaffected."""
        with self._lock:
            stats = self._method_accuracy.setdefault(method, DetectionMethodStats(method))
            stats.add_result(was_correct, confidence)
        self.logger.info(f"Recorded feedback for {method}: correct={was_correct}, confidence={confidence:.2f}")

    def register_location_profile(self, location_tag: str, profile: EnvironmentProfile) -> None:
        with self._lock:
            self._location_profiles[location_tag] = profile
        self.logger.info(f"Registered location profile: {location_tag} ({profile.risk_level.value})")

    def get_location_profile(self, location_tag: Optional[str]) -> Optional[EnvironmentProfile]:
        if location_tag is None:
            return None
        return self._location_profiles.get(location_tag)

    def confidence_threshold(self, threat_level: ThreatLevel) -> float:
        """Minimum confidence expected for a given threat level."""
        return {
            ThreatLevel.LOW: 0.3,
            ThreatLevel.MEDIUM: 0.6,
            ThreatLevel.HIGH: 0.8,
            ThreatLevel.CRITICAL: 0.9,
        }[threat_level]

    def get_calculator_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'method_accuracy': {m: s.to_dict() for m, s in self._method_accuracy.items()},
                'location_profiles': len(self._location_profiles),
                'total_calculations': self.total_calculations,
                'total_feedback': sum(s.total_detections for s in self._method_accuracy.values()),
            }

    def clear_history(self) -> None:
        with self._lock:
            self._method_accuracy.clear()
            self.total_calculations = 0
