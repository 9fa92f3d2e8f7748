"""
Base detector classes for the threat assessment pipeline.

Every per-network check derives from BaseThreatDetector. The orchestrator
hands each detector a DetectionContext describing one observation, the
rest of its scan and the committed history, and collects the threats
and evidence the detector returns.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple

from .config import EngineConfig
from .history import SignalSample
from .models import (
    AccessPointObservation,
    SecurityThreat,
    ThreatEvidence,
    ThreatSeverity,
    ThreatType,
    VendorRecord,
    SSIDAnalysisResult
)
from .reference_data import ReferenceData


@dataclass
class DetectionContext:
    """Everything a detector may read while assessing one observation."""
    observation: AccessPointObservation
    scan: Tuple[AccessPointObservation, ...]
    timestamp: datetime
    vendor: Optional[VendorRecord] = None
    ssid_analysis: Optional[SSIDAnalysisResult] = None
    signal_history: Tuple[SignalSample, ...] = ()
    ssid_history: Tuple[SignalSample, ...] = ()
    location_tag: Optional[str] = None
    vendor_lookup_failed: bool = False

    @property
    def all_ssids(self) -> List[str]:
        return [o.ssid for o in self.scan]

    def same_ssid_peers(self) -> List[AccessPointObservation]:
        """Other observations in the scan sharing the SSID under a different BSSID."""
        target = self.observation
        return [o for o in self.scan if o.ssid == target.ssid and o.bssid != target.bssid]


@dataclass
class DetectionResult:
    """Threats and evidence emitted by one detector for one observation."""
    threats: List[SecurityThreat] = field(default_factory=list)
    evidence: List[ThreatEvidence] = field(default_factory=list)

    @property
    def triggered(self) -> bool:
        return bool(self.threats or self.evidence)


class BaseThreatDetector(ABC):
    """Abstract base class for all per-network threat detectors."""

    name = "base"
    description = ""
    detection_method = "base"
    threat_type = ThreatType.EVIL_TWIN
    analysis_order = 100  # Lower numbers run first
    suppressed_by: Tuple[str, ...] = ()  # Skip when any of these detectors already fired

    def __init__(self, reference: ReferenceData, config: EngineConfig, vendor_directory=None):
        self.reference = reference
        self.config = config
        self.vendor_directory = vendor_directory
        self.enabled = True
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        # Performance tracking
        self.runs = 0
        self.detections = 0
        self.failures = 0
        self.processing_time = 0.0
        self._stats_lock = threading.Lock()

    @abstractmethod
    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        """
        Run the check for one observation.

        Args:
            context: Observation, scan and history to inspect

        Returns:
            DetectionResult if anything was found, otherwise None
        """
        pass

    def run(self, context: DetectionContext) -> DetectionResult:
        """
        Run detect() behind a catch boundary.

        A failing check is logged and treated as "not detected"; it never
        aborts the rest of the pipeline.
        """
        start = time.perf_counter()
        failed = False
        try:
            result = self.detect(context) or DetectionResult()
        except Exception as e:
            failed = True
            self.logger.warning(f"{self.name} failed for {context.observation.ssid!r} "
                                f"({context.observation.bssid}): {e}")
            result = DetectionResult()
        elapsed = time.perf_counter() - start

        with self._stats_lock:
            self.runs += 1
            self.processing_time += elapsed
            if failed:
                self.failures += 1
            elif result.triggered:
                self.detections += 1
        return result

    def create_threat(
        self,
        context: DetectionContext,
        severity: ThreatSeverity,
        description: str,
        evidence_details: List[str],
        confidence: float,
        threat_type: Optional[ThreatType] = None,
        **metadata
    ) -> SecurityThreat:
        """
        Create a threat for the observation in context.

        Args:
            context: Detection context
            severity: Threat severity
            description: Human-readable summary
            evidence_details: Ordered reason strings
            confidence: Confidence score, clamped to [0, 1]
            threat_type: Overrides the detector's default threat type
            **metadata: Additional structured data

        Returns:
            SecurityThreat instance
        """
        return SecurityThreat(
            threat_type=threat_type or self.threat_type,
            severity=severity,
            description=description,
            evidence_details=tuple(evidence_details),
            affected_ssid=context.observation.ssid,
            affected_bssid=context.observation.bssid,
            confidence_score=max(0.0, min(1.0, confidence)),
            metadata=dict(metadata),
        )

    def create_evidence(
        self,
        context: DetectionContext,
        severity: ThreatSeverity,
        confidence: float,
        **details
    ) -> ThreatEvidence:
        return ThreatEvidence(
            detection_method=self.detection_method,
            severity=severity,
            confidence_score=max(0.0, min(1.0, confidence)),
            timestamp=context.timestamp,
            details=dict(details),
        )

    def single_finding(
        self,
        context: DetectionContext,
        severity: ThreatSeverity,
        description: str,
        evidence_details: List[str],
        confidence: float,
        **metadata
    ) -> DetectionResult:
        """One threat plus its matching evidence item."""
        threat = self.create_threat(context, severity, description, evidence_details, confidence, **metadata)
        evidence = self.create_evidence(context, severity, confidence, reasons=list(evidence_details))
        return DetectionResult(threats=[threat], evidence=[evidence])

    def get_stats(self) -> Dict[str, Any]:
        return {
            'runs': self.runs,
            'detections': self.detections,
            'failures': self.failures,
            'processing_time': self.processing_time,
        }
