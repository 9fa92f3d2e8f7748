"""
Threat Assessment Orchestrator

Per-network pipeline: runs the registered detectors in order over one
observation, fuses their evidence with the Confidence Calculator,
cross-validates the raw threats by severity and classifies the final
threat level.

Assessment only reads committed history. commit_scan() appends a whole
scan once every assessment for it is complete.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Any, Optional, Sequence, Tuple

from .analyzer_registry import DetectorRegistry
from .base_analyzer import BaseThreatDetector, DetectionContext
from .clock import Clock, SystemClock
from .config import EngineConfig
from .history import NetworkHistory, SignalSample
from .models import (
    AccessPointObservation,
    NetworkFingerprint,
    SecurityAssessment,
    SecurityThreat,
    ThreatEvidence,
    ThreatLevel,
    ThreatSeverity,
    VendorRecord
)
from .reference_data import ReferenceData, default_reference_data
from ..analyzers.core.confidence_calculator import ConfidenceCalculator
from ..analyzers.core.ssid_analyzer import SSIDAnalyzer
from ..analyzers.core.vendor_directory import VendorDirectory
from ..expert.agent import WifiSecurityExpertAgent
from ..utils.ssid_utils import matching_keyword


class ThreatAssessor:
    """
    Produces one SecurityAssessment per (ssid, bssid) observation.

    Components are injected; anything not supplied is built from the
    reference data and config.
    """

    def __init__(
        self,
        reference: Optional[ReferenceData] = None,
        config: Optional[EngineConfig] = None,
        clock: Optional[Clock] = None,
        registry: Optional[DetectorRegistry] = None,
        vendor_directory: Optional[VendorDirectory] = None,
        ssid_analyzer: Optional[SSIDAnalyzer] = None,
        confidence_calculator: Optional[ConfidenceCalculator] = None,
        network_history: Optional[NetworkHistory] = None,
        expert_agent: Optional[WifiSecurityExpertAgent] = None
    ):
        self.reference = reference or default_reference_data()
        self.config = config or EngineConfig()
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.registry = registry or DetectorRegistry()
        self.vendor_directory = vendor_directory or VendorDirectory(self.reference, self.config)
        self.ssid_analyzer = ssid_analyzer or SSIDAnalyzer(self.reference, self.config)
        self.confidence_calculator = confidence_calculator or ConfidenceCalculator(
            self.reference, self.config, self.clock
        )
        self.network_history = network_history or NetworkHistory(
            signal_history_size=self.config.signal_history_size,
            ssid_history_size=self.config.ssid_history_size,
            max_tracked_networks=self.config.max_tracked_networks,
        )
        self.expert_agent = expert_agent or WifiSecurityExpertAgent()
        self.detectors: List[BaseThreatDetector] = []
        self.refresh_detectors()

        self._stats_lock = threading.Lock()
        self.total_analyses = 0
        self.threats_detected = 0
        self.failed_analyses = 0

    def refresh_detectors(self) -> None:
        """Rebuild detector instances from the registry's enabled set."""
        self.detectors = self.registry.create_detectors(
            self.reference, self.config, self.vendor_directory
        )
        self.logger.debug(f"Active detectors: {[d.name for d in self.detectors]}")

    def assess(
        self,
        observation: AccessPointObservation,
        scan: Sequence[AccessPointObservation],
        location_tag: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> SecurityAssessment:
        """
        Assess one observation in the context of its scan.

        Args:
            observation: Network being assessed
            scan: Complete scan the observation belongs to
            location_tag: Optional coarse location for the confidence prior
            timestamp: Analysis time (default: the clock's now)

        Returns:
            SecurityAssessment; an error assessment if the pipeline fails
        """
        timestamp = timestamp or self.clock.now()
        try:
            assessment = self._assess(observation, tuple(scan), location_tag, timestamp)
        except Exception as e:
            self.logger.exception(f"Security analysis failed for {observation.ssid!r} ({observation.bssid})")
            with self._stats_lock:
                self.total_analyses += 1
                self.failed_analyses += 1
            return SecurityAssessment.create_error(observation, str(e), timestamp)

        with self._stats_lock:
            self.total_analyses += 1
            if assessment.has_threats:
                self.threats_detected += 1
        return assessment

    def _assess(
        self,
        observation: AccessPointObservation,
        scan: Tuple[AccessPointObservation, ...],
        location_tag: Optional[str],
        timestamp: datetime
    ) -> SecurityAssessment:
        context = self.build_context(observation, scan, location_tag, timestamp)
        threats, evidence = self.collect(context)

        confidence = self.confidence_calculator.threat_confidence(
            evidence, network_id=observation.bssid, ssid=observation.ssid, location_tag=location_tag
        )
        validated = self.cross_validate(threats, len(evidence))
        threat_level = self.classify_threat_level(confidence, validated)
        is_legitimate = self.is_known_legitimate(observation)
        recommendations = self.expert_agent.generate_recommendations(threat_level, validated, is_legitimate)

        self.logger.debug(f"Analysis complete for {observation.ssid!r} ({observation.bssid}): "
                          f"{len(validated)}/{len(threats)} threats, confidence {confidence:.3f}, "
                          f"level {threat_level.value}")

        return SecurityAssessment(
            threat_level=threat_level,
            aggregate_confidence=confidence,
            validated_threats=tuple(validated),
            fingerprint=NetworkFingerprint.from_observation(observation),
            is_known_legitimate=is_legitimate,
            recommendations=tuple(recommendations),
            analysis_timestamp=timestamp,
        )

    def build_context(
        self,
        observation: AccessPointObservation,
        scan: Tuple[AccessPointObservation, ...],
        location_tag: Optional[str],
        timestamp: datetime
    ) -> DetectionContext:
        """
        Gather lookups and committed history for one observation.

        A failed SSID analysis leaves ssid_analysis None and a failed vendor
        lookup sets vendor_lookup_failed; the checks that depend on them
        then report nothing.
        """
        try:
            ssid_analysis = self.ssid_analyzer.analyze(observation.ssid, [o.ssid for o in scan])
        except Exception as e:
            self.logger.error(f"SSID analysis failed for {observation.ssid!r}: {e}")
            ssid_analysis = None

        vendor_lookup_failed = False
        try:
            vendor = self.vendor_directory.lookup_vendor(observation.bssid)
        except Exception as e:
            self.logger.error(f"Vendor lookup failed for {observation.bssid}: {e}")
            vendor, vendor_lookup_failed = None, True

        return DetectionContext(
            observation=observation,
            scan=scan,
            timestamp=timestamp,
            vendor=vendor,
            vendor_lookup_failed=vendor_lookup_failed,
            ssid_analysis=ssid_analysis,
            signal_history=self.network_history.signal_history(observation.ssid, observation.bssid),
            ssid_history=self.network_history.ssid_sightings(observation.ssid) if observation.ssid else (),
            location_tag=location_tag,
        )

    def collect(self, context: DetectionContext) -> Tuple[List[SecurityThreat], List[ThreatEvidence]]:
        """Run the detectors in order and gather raw threats and evidence."""
        threats: List[SecurityThreat] = []
        evidence: List[ThreatEvidence] = []
        fired = set()

        for detector in self.detectors:
            if fired.intersection(detector.suppressed_by):
                self.logger.debug(f"Skipping {detector.name}: suppressed by {sorted(fired)}")
                continue
            result = detector.run(context)
            if result.triggered:
                fired.add(detector.name)
                threats.extend(result.threats)
                evidence.extend(result.evidence)

        return threats, evidence

    def cross_validate(self, threats: Sequence[SecurityThreat], evidence_count: int) -> List[SecurityThreat]:
        """
        Keep only threats that meet the bar for their severity.

        Critical threats need very high confidence or broad evidence,
        high threats high confidence or corroboration; medium and low
        threats need a minimum confidence. Rejected threats are dropped.
        """
        config = self.config
        validated = []
        for threat in threats:
            confidence = threat.confidence_score
            if threat.severity == ThreatSeverity.CRITICAL:
                accepted = confidence >= config.critical_min_confidence or evidence_count >= config.critical_min_evidence
            elif threat.severity == ThreatSeverity.HIGH:
                accepted = confidence >= config.high_min_confidence or evidence_count >= config.high_min_evidence
            elif threat.severity == ThreatSeverity.MEDIUM:
                accepted = confidence >= config.medium_min_confidence
            else:
                accepted = confidence >= config.low_min_confidence

            if accepted:
                validated.append(threat)
            else:
                self.logger.debug(f"Filtered out {threat.threat_type.value} "
                                  f"(severity: {threat.severity.value}, confidence: {confidence:.2f}, "
                                  f"evidence: {evidence_count})")
        return validated

    def classify_threat_level(self, confidence: float, threats: Sequence[SecurityThreat]) -> ThreatLevel:
        config = self.config
        if any(t.severity == ThreatSeverity.CRITICAL for t in threats):
            return ThreatLevel.CRITICAL
        if confidence >= config.threat_level_critical:
            return ThreatLevel.CRITICAL
        if confidence >= config.threat_level_high:
            return ThreatLevel.HIGH
        if confidence >= config.threat_level_medium:
            return ThreatLevel.MEDIUM
        return ThreatLevel.LOW

    def is_known_legitimate(self, observation: AccessPointObservation) -> bool:
        """
        Decide whether a network is known infrastructure.

        Unverified government-named networks never are. An SSID with a
        reference fingerprint must match it: same BSSID if pinned, identical
        security and good vendor compatibility. Any other SSID counts as
        legitimate when its hardware is trusted router, ISP, enterprise or
        government equipment.
        """
        if (matching_keyword(observation.ssid, self.reference.government_gate_keywords) is not None
                and not self.reference.is_verified(observation.ssid, observation.bssid)):
            return False

        try:
            fingerprint = self.reference.reference_fingerprints.get(observation.ssid)
            if fingerprint is not None:
                return (
                    (fingerprint.bssid is None or fingerprint.bssid == observation.bssid)
                    and fingerprint.expected_security_type == observation.security_type
                    and self.vendor_directory.ssid_vendor_compatibility(observation.bssid, observation.ssid)
                    >= self.config.legitimacy_min_compatibility
                )
            return self.vendor_directory.is_legitimate_router_vendor(observation.bssid)
        except Exception as e:
            self.logger.error(f"Legitimacy check failed for {observation.ssid!r} ({observation.bssid}): {e}")
            return False

    def _lookup_vendor(self, bssid: str) -> Optional[VendorRecord]:
        try:
            return self.vendor_directory.lookup_vendor(bssid)
        except Exception as e:
            self.logger.error(f"Vendor lookup failed for {bssid}: {e}")
            return None

    def build_samples(self, observations: Sequence[AccessPointObservation],
                      timestamp: datetime) -> List[SignalSample]:
        samples = []
        for observation in observations:
            vendor = self._lookup_vendor(observation.bssid)
            samples.append(SignalSample(
                ssid=observation.ssid,
                bssid=observation.bssid,
                signal_level=observation.signal_level,
                security_type=observation.security_type,
                vendor_name=vendor.vendor_name if vendor else None,
                timestamp=timestamp,
            ))
        return samples

    def commit_scan(self, observations: Sequence[AccessPointObservation], timestamp: datetime) -> int:
        """Append a fully assessed scan to the network history."""
        committed = self.network_history.commit(self.build_samples(observations, timestamp))
        self.logger.debug(f"Committed {committed} samples to network history")
        return committed

    def clear_history(self) -> None:
        self.network_history.clear()
        self.confidence_calculator.clear_history()
        with self._stats_lock:
            self.total_analyses = 0
            self.threats_detected = 0
            self.failed_analyses = 0

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            total = self.total_analyses
            detected = self.threats_detected
            failed = self.failed_analyses
        return {
            'total_analyses': total,
            'threats_detected': detected,
            'failed_analyses': failed,
            'detection_rate': (detected / total) * 100 if total else 0.0,
            'network_history': self.network_history.get_stats(),
            'detectors': {d.name: d.get_stats() for d in self.detectors},
        }
