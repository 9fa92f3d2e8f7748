"""
Core data models for the Wi-Fi threat analysis engine.

This module defines the fundamental data structures used throughout
the engine: scan observations, vendor records, evidence, threats,
per-network assessments and scan-wide attack patterns, plus the
framework's enums and exceptions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple, FrozenSet
import json


class SecurityType(Enum):
    """Security protocol advertised by an access point, weakest first."""
    OPEN = "open"
    WEP = "wep"
    WPA2 = "wpa2"
    WPA3 = "wpa3"

    @property
    def strength(self) -> int:
        return _SECURITY_STRENGTH[self]

    def is_weaker_than(self, other: "SecurityType") -> bool:
        return self.strength < other.strength

    @classmethod
    def from_capabilities(cls, capabilities: Optional[str]) -> "SecurityType":
        """
        Parse a scan capability string (e.g. "[WPA2-PSK-CCMP][ESS]").

        Args:
            capabilities: Raw capability string reported by the scanner

        Returns:
            Parsed security type, OPEN when nothing recognisable is present
        """
        caps = (capabilities or "").upper()
        if "WPA3" in caps or "SAE" in caps:
            return cls.WPA3
        if "WPA2" in caps or "RSN" in caps or "WPA" in caps:
            return cls.WPA2
        if "WEP" in caps:
            return cls.WEP
        return cls.OPEN


_SECURITY_STRENGTH = {
    SecurityType.OPEN: 0,
    SecurityType.WEP: 1,
    SecurityType.WPA2: 2,
    SecurityType.WPA3: 3,
}


class VendorCategory(Enum):
    """Classification of a MAC prefix owner."""
    ROUTER = "router"
    ENTERPRISE = "enterprise"
    ISP = "isp"
    GOVERNMENT = "government"
    MOBILE = "mobile"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"
    RANDOMIZED = "randomized"


class TrustLevel(Enum):
    """How far a vendor's hardware is trusted to run a legitimate AP."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    CRITICAL = "critical"


class ThreatSeverity(Enum):
    """Severity levels for evidence, threats and attack patterns."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    ThreatSeverity.LOW: 1,
    ThreatSeverity.MEDIUM: 2,
    ThreatSeverity.HIGH: 3,
    ThreatSeverity.CRITICAL: 4,
}


class ThreatLevel(Enum):
    """Overall verdict for one network."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _THREAT_LEVEL_INFO[self][0]

    @property
    def display_name(self) -> str:
        return _THREAT_LEVEL_INFO[self][1]

    @property
    def security_advice(self) -> str:
        return _THREAT_LEVEL_INFO[self][2]


_THREAT_LEVEL_INFO = {
    ThreatLevel.LOW: (1, "Low Risk", "Network appears safe to use"),
    ThreatLevel.MEDIUM: (2, "Medium Risk", "Use caution and avoid sensitive activity"),
    ThreatLevel.HIGH: (3, "High Risk", "Avoid connecting to this network"),
    ThreatLevel.CRITICAL: (4, "Critical Risk", "Do not connect under any circumstances"),
}


class ThreatType(Enum):
    """Kinds of validated per-network threats."""
    EVIL_TWIN = "evil_twin"
    SUSPICIOUS_MAC = "suspicious_mac"
    SIGNAL_ANOMALY = "signal_anomaly"
    SECURITY_DOWNGRADE = "security_downgrade"
    HISTORICAL_ANOMALY = "historical_anomaly"


class AttackType(Enum):
    """Scan-wide attack pattern types."""
    COORDINATED_ATTACK = "coordinated_attack"
    TIMING_REPLACEMENT = "timing_replacement"
    BEACON_FLOODING = "beacon_flooding"
    NETWORK_CYCLING = "network_cycling"
    SIGNAL_MANIPULATION = "signal_manipulation"
    MAC_RANDOMIZATION = "mac_randomization"
    HONEYPOT_PATTERN = "honeypot_pattern"


class RiskLevel(Enum):
    """Risk class of a physical environment."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    GOVERNMENT = "government"


@dataclass(frozen=True)
class AccessPointObservation:
    """One access point seen in a scan."""
    ssid: str
    bssid: str
    signal_level: int
    capabilities: str = ""
    frequency_band: Optional[str] = None

    @property
    def security_type(self) -> SecurityType:
        return SecurityType.from_capabilities(self.capabilities)

    @property
    def key(self) -> Tuple[str, str]:
        """History key for this network."""
        return (self.ssid, self.bssid)

    @property
    def is_open(self) -> bool:
        return self.security_type == SecurityType.OPEN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessPointObservation":
        """
        Build an observation from a collaborator-supplied record.

        Accepts both snake_case and camelCase field names.

        Raises:
            InvalidObservationError: If SSID or BSSID is missing or the
                BSSID is not a MAC address
        """
        from ..utils.mac_utils import normalize_mac

        ssid = data.get('ssid')
        bssid = data.get('bssid')
        if ssid is None or not bssid:
            raise InvalidObservationError(f"Observation missing SSID/BSSID: {data!r}")

        normalized = normalize_mac(str(bssid))
        if normalized is None:
            raise InvalidObservationError(f"Invalid BSSID: {bssid!r}")

        signal = data.get('signal_level', data.get('signalLevel', data.get('level', -100)))
        try:
            signal = int(signal)
        except (TypeError, ValueError) as e:
            raise InvalidObservationError(f"Invalid signal level {signal!r}") from e

        return cls(
            ssid=str(ssid),
            bssid=normalized,
            signal_level=signal,
            capabilities=str(data.get('capabilities') or ""),
            frequency_band=data.get('frequency_band', data.get('frequencyBand')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ssid': self.ssid,
            'bssid': self.bssid,
            'signal_level': self.signal_level,
            'capabilities': self.capabilities,
            'security_type': self.security_type.value,
            'frequency_band': self.frequency_band,
        }


@dataclass(frozen=True)
class VendorRecord:
    """Static vendor directory entry keyed by MAC prefix."""
    prefix: str
    vendor_name: str
    category: VendorCategory
    trust_level: TrustLevel
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'prefix': self.prefix,
            'vendor_name': self.vendor_name,
            'category': self.category.value,
            'trust_level': self.trust_level.value,
            'note': self.note,
        }


@dataclass
class ThreatEvidence:
    """One weak signal produced by a detector during a single assessment."""
    detection_method: str
    severity: ThreatSeverity
    confidence_score: float
    timestamp: datetime
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detection_method': self.detection_method,
            'severity': self.severity.value,
            'confidence_score': self.confidence_score,
            'timestamp': self.timestamp.isoformat(),
            'details': self.details,
        }


@dataclass(frozen=True)
class SecurityThreat:
    """A validated per-network finding."""
    threat_type: ThreatType
    severity: ThreatSeverity
    description: str
    evidence_details: Tuple[str, ...]
    affected_ssid: str
    affected_bssid: str
    confidence_score: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def priority(self) -> int:
        """Sort key: severity first, then confidence."""
        return self.severity.rank * 100 + int(round(self.confidence_score * 100))

    @property
    def is_actionable(self) -> bool:
        return self.severity in (ThreatSeverity.HIGH, ThreatSeverity.CRITICAL) and \
            self.confidence_score >= 0.6

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.threat_type.value,
            'severity': self.severity.value,
            'description': self.description,
            'evidence_details': list(self.evidence_details),
            'affected_ssid': self.affected_ssid,
            'affected_bssid': self.affected_bssid,
            'confidence_score': self.confidence_score,
            'metadata': self.metadata,
        }


@dataclass(frozen=True)
class NetworkFingerprint:
    """Reference or observed network signature."""
    ssid: str
    expected_security_type: SecurityType
    typical_signal_level: int
    bssid: Optional[str] = None
    vendor_prefixes: FrozenSet[str] = frozenset()

    @classmethod
    def from_observation(cls, observation: AccessPointObservation) -> "NetworkFingerprint":
        from ..utils.mac_utils import oui_prefix

        prefix = oui_prefix(observation.bssid)
        return cls(
            ssid=observation.ssid,
            bssid=observation.bssid,
            expected_security_type=observation.security_type,
            typical_signal_level=observation.signal_level,
            vendor_prefixes=frozenset([prefix]) if prefix else frozenset(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ssid': self.ssid,
            'bssid': self.bssid,
            'expected_security_type': self.expected_security_type.value,
            'typical_signal_level': self.typical_signal_level,
            'vendor_prefixes': sorted(self.vendor_prefixes),
        }


@dataclass(frozen=True)
class SecurityAssessment:
    """
    Final per-network verdict for one scan.

    A later scan of the same network produces a new assessment; an
    assessment is never updated in place.
    """
    threat_level: ThreatLevel
    aggregate_confidence: float
    validated_threats: Tuple[SecurityThreat, ...]
    fingerprint: NetworkFingerprint
    is_known_legitimate: bool
    recommendations: Tuple[str, ...]
    analysis_timestamp: datetime
    error_message: Optional[str] = None

    @classmethod
    def create_error(
        cls,
        observation: AccessPointObservation,
        error_message: str,
        timestamp: datetime
    ) -> "SecurityAssessment":
        """Minimal assessment emitted when the pipeline itself fails."""
        return cls(
            threat_level=ThreatLevel.MEDIUM,
            aggregate_confidence=0.0,
            validated_threats=(),
            fingerprint=NetworkFingerprint.from_observation(observation),
            is_known_legitimate=False,
            recommendations=(
                "Unable to perform security analysis",
                "Proceed with standard caution",
            ),
            analysis_timestamp=timestamp,
            error_message=error_message,
        )

    @property
    def ssid(self) -> str:
        return self.fingerprint.ssid

    @property
    def bssid(self) -> Optional[str]:
        return self.fingerprint.bssid

    @property
    def is_error(self) -> bool:
        return self.error_message is not None

    @property
    def has_threats(self) -> bool:
        return len(self.validated_threats) > 0

    @property
    def is_safe_to_connect(self) -> bool:
        return (not self.is_error
                and self.threat_level == ThreatLevel.LOW
                and not any(t.severity.rank >= ThreatSeverity.HIGH.rank
                            for t in self.validated_threats))

    @property
    def should_avoid_connection(self) -> bool:
        return self.threat_level in (ThreatLevel.HIGH, ThreatLevel.CRITICAL)

    @property
    def most_critical_threat(self) -> Optional[SecurityThreat]:
        if not self.validated_threats:
            return None
        return max(self.validated_threats, key=lambda t: t.priority)

    @property
    def security_score(self) -> int:
        """0-100, higher is safer."""
        penalties = {
            ThreatSeverity.CRITICAL: 40,
            ThreatSeverity.HIGH: 25,
            ThreatSeverity.MEDIUM: 15,
            ThreatSeverity.LOW: 5,
        }
        score = 100 - sum(penalties[t.severity] for t in self.validated_threats)
        score -= int(round(self.aggregate_confidence * 20))
        return max(0, min(100, score))

    @property
    def security_grade(self) -> str:
        score = self.security_score
        if score >= 90:
            return "A"
        elif score >= 80:
            return "B"
        elif score >= 70:
            return "C"
        elif score >= 60:
            return "D"
        return "F"

    def threat_count_by_severity(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in ThreatSeverity}
        for threat in self.validated_threats:
            counts[threat.severity.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ssid': self.ssid,
            'bssid': self.bssid,
            'threat_level': self.threat_level.value,
            'aggregate_confidence': self.aggregate_confidence,
            'validated_threats': [t.to_dict() for t in self.validated_threats],
            'fingerprint': self.fingerprint.to_dict(),
            'is_known_legitimate': self.is_known_legitimate,
            'recommendations': list(self.recommendations),
            'analysis_timestamp': self.analysis_timestamp.isoformat(),
            'error_message': self.error_message,
            'security_score': self.security_score,
            'security_grade': self.security_grade,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


@dataclass(frozen=True)
class AttackPattern:
    """Scan-wide finding from the historical pattern analyzer."""
    pattern_type: AttackType
    severity: ThreatSeverity
    description: str
    evidence: Tuple[str, ...]
    affected_networks: Tuple[str, ...]
    confidence_score: float
    first_detected: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.pattern_type.value,
            'severity': self.severity.value,
            'description': self.description,
            'evidence': list(self.evidence),
            'affected_networks': list(self.affected_networks),
            'confidence_score': self.confidence_score,
            'first_detected': self.first_detected.isoformat(),
        }


@dataclass(frozen=True)
class ScanSnapshot:
    """Ordered observations of one scan plus capture time."""
    observations: Tuple[AccessPointObservation, ...]
    captured_at: datetime

    @property
    def ssids(self) -> FrozenSet[str]:
        return frozenset(o.ssid for o in self.observations)

    @property
    def bssids(self) -> FrozenSet[str]:
        return frozenset(o.bssid for o in self.observations)

    def __len__(self) -> int:
        return len(self.observations)


@dataclass
class ThreatPatternAnalysis:
    """Result of one scan-wide pattern analysis pass."""
    detected_patterns: List[AttackPattern]
    overall_threat_score: float
    environmental_factors: Dict[str, Any]
    analyzed_at: datetime

    @property
    def has_patterns(self) -> bool:
        return len(self.detected_patterns) > 0

    @property
    def most_severe_pattern(self) -> Optional[AttackPattern]:
        if not self.detected_patterns:
            return None
        return max(self.detected_patterns,
                   key=lambda p: (p.severity.rank, p.confidence_score))

    @property
    def scan_count(self) -> int:
        """Scans in the window this analysis looked at, current one included."""
        return int(self.environmental_factors.get('scan_count', 0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detected_patterns': [p.to_dict() for p in self.detected_patterns],
            'overall_threat_score': self.overall_threat_score,
            'environmental_factors': self.environmental_factors,
            'analyzed_at': self.analyzed_at.isoformat(),
        }


@dataclass
class SSIDAnalysisResult:
    """Outcome of the single-SSID spoofing checks."""
    is_detected: bool
    confidence_score: float
    suspicious_factors: List[str] = field(default_factory=list)
    legitimate_matches: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_detected': self.is_detected,
            'confidence_score': self.confidence_score,
            'suspicious_factors': self.suspicious_factors,
            'legitimate_matches': self.legitimate_matches,
        }


@dataclass(frozen=True)
class EnvironmentProfile:
    """Risk profile of a location tag."""
    location_tag: str
    risk_level: RiskLevel
    risk_multiplier: float
    common_threats: Tuple[str, ...] = ()


@dataclass
class ScanAnalysisResult:
    """Everything the engine produced for one scan."""
    assessments: List[SecurityAssessment]
    pattern_analysis: ThreatPatternAnalysis
    scan_timestamp: datetime
    location_tag: Optional[str] = None
    skipped_observations: int = 0

    def get_assessments_by_level(self, level: ThreatLevel) -> List[SecurityAssessment]:
        return [a for a in self.assessments if a.threat_level == level]

    def get_assessment(self, ssid: str, bssid: str) -> Optional[SecurityAssessment]:
        for assessment in self.assessments:
            if assessment.ssid == ssid and assessment.bssid == bssid:
                return assessment
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scan_timestamp': self.scan_timestamp.isoformat(),
            'location_tag': self.location_tag,
            'skipped_observations': self.skipped_observations,
            'assessments': [a.to_dict() for a in self.assessments],
            'pattern_analysis': self.pattern_analysis.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


# Exception classes for the framework
class AnalysisError(Exception):
    """Base exception for analysis errors."""
    pass


class AnalyzerError(AnalysisError):
    """Exception raised by detectors during analysis."""
    pass


class ConfigurationError(AnalysisError):
    """Exception raised for configuration or reference data issues."""
    pass


class InvalidObservationError(AnalysisError):
    """Exception raised for scan entries that cannot be assessed."""
    pass


class ScanSupersededError(AnalysisError):
    """Raised when a newer scan replaced the one being analyzed."""
    pass
