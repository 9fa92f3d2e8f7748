"""
Historical Pattern Analyzer

Retains a bounded window of past scans and detects scan-wide attack
patterns that no single observation reveals:

- Coordinated attack: several suspicious access points appearing together
- Timing replacement: a network vanishes and a look-alike appears
- Beacon flooding: a sudden surge of open or randomized networks
- Network cycling: an SSID repeatedly appearing and disappearing
- Signal manipulation: large jumps between consecutive readings
- MAC randomization burst: many locally administered BSSIDs
- Honeypot: open, close-range, enticingly named access points

Each detector reads the committed window plus the current scan and
returns at most one AttackPattern. The window is only appended to by
commit(), after the scan has been fully evaluated.
"""

import logging
import threading
from collections import Counter
from datetime import timedelta
from typing import List, Dict, Any, Optional, Sequence, Callable, Tuple

from ...core.clock import Clock, SystemClock
from ...core.config import EngineConfig
from ...core.history import ScanHistory, ScanHistoryView
from ...core.models import (
    AccessPointObservation,
    AttackPattern,
    AttackType,
    ScanSnapshot,
    ThreatPatternAnalysis,
    ThreatSeverity
)
from ...core.reference_data import ReferenceData, default_reference_data
from ...utils.mac_utils import is_locally_administered
from ...utils.ssid_utils import contains_any, ssid_similarity


class HistoricalPatternAnalyzer:
    """Cross-scan and cross-network attack pattern detection."""

    def __init__(self, reference: Optional[ReferenceData] = None,
                 config: Optional[EngineConfig] = None,
                 clock: Optional[Clock] = None):
        self.reference = reference or default_reference_data()
        self.config = config or EngineConfig()
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.history = ScanHistory(
            scan_history_size=self.config.scan_history_size,
            behavior_size=self.config.network_behavior_size,
            behavior_retention=timedelta(minutes=self.config.network_behavior_retention_minutes),
            max_tracked_networks=self.config.max_tracked_networks,
        )
        self._stats_lock = threading.Lock()
        self.pattern_counts: Counter = Counter()
        self.analyses = 0

    def _detectors(self) -> List[Tuple[Callable, float]]:
        config = self.config
        return [
            (self._detect_coordinated_attack, config.coordinated_increment),
            (self._detect_timing_replacement, config.timing_increment),
            (self._detect_beacon_flooding, config.beacon_increment),
            (self._detect_network_cycling, config.cycling_increment),
            (self._detect_signal_manipulation, config.manipulation_increment),
            (self._detect_mac_randomization, config.randomization_increment),
            (self._detect_honeypot, config.honeypot_increment),
        ]

    def snapshot(self, observations: Sequence[AccessPointObservation]) -> ScanSnapshot:
        return ScanSnapshot(observations=tuple(observations), captured_at=self.clock.now())

    def analyze_scan_patterns(self, observations: Sequence[AccessPointObservation]) -> ThreatPatternAnalysis:
        """
        Evaluate a scan and append it to the window.

        Args:
            observations: Complete current scan

        Returns:
            ThreatPatternAnalysis for the scan
        """
        snapshot = self.snapshot(observations)
        analysis = self.evaluate(snapshot)
        self.commit(snapshot, analysis)
        return analysis

    def evaluate(self, snapshot: ScanSnapshot) -> ThreatPatternAnalysis:
        """
        Run every pattern detector against the committed window plus snapshot.

        Never mutates the window. Any internal failure degrades to an empty
        analysis.
        """
        now = snapshot.captured_at
        try:
            view = self.history.view()
            patterns: List[AttackPattern] = []
            score = 0.0

            for detector, increment in self._detectors():
                pattern = detector(snapshot, view)
                if pattern is not None:
                    patterns.append(pattern)
                    score += increment
                    self.logger.warning(f"Attack pattern detected: {pattern.pattern_type.value} - "
                                        f"{pattern.description}")

            return ThreatPatternAnalysis(
                detected_patterns=patterns,
                overall_threat_score=min(1.0, score),
                environmental_factors=self._environmental_factors(snapshot, view),
                analyzed_at=now,
            )

        except Exception as e:
            self.logger.error(f"Pattern analysis failed: {e}")
            return ThreatPatternAnalysis(
                detected_patterns=[],
                overall_threat_score=0.0,
                environmental_factors={},
                analyzed_at=now,
            )

    def commit(self, snapshot: ScanSnapshot, analysis: ThreatPatternAnalysis) -> None:
        """Append the snapshot and record which patterns were reported."""
        reported = [p.pattern_type for p in analysis.detected_patterns]
        self.history.commit(snapshot, reported)
        with self._stats_lock:
            self.analyses += 1
            self.pattern_counts.update(p.value for p in reported)

    # Pattern detectors

    def _is_suspicious(self, ap: AccessPointObservation) -> bool:
        return (ap.is_open
                or is_locally_administered(ap.bssid)
                or ap.signal_level > self.config.coordinated_strong_signal_dbm
                or 'free' in ap.ssid.lower())

    def _detect_coordinated_attack(self, snapshot: ScanSnapshot,
                                   view: ScanHistoryView) -> Optional[AttackPattern]:
        suspicious = [ap for ap in snapshot.observations if self._is_suspicious(ap)]
        if len(suspicious) < self.config.coordinated_min_suspicious:
            return None

        last_reported = view.reported_patterns.get(AttackType.COORDINATED_ATTACK)
        cooldown = timedelta(minutes=self.config.coordinated_cooldown_minutes)
        if last_reported is not None and snapshot.captured_at - last_reported < cooldown:
            self.logger.debug("Coordinated attack already reported within cooldown")
            return None

        names = [ap.ssid for ap in suspicious]
        return AttackPattern(
            pattern_type=AttackType.COORDINATED_ATTACK,
            severity=ThreatSeverity.HIGH,
            description='Multiple suspicious networks appeared simultaneously',
            evidence=(
                f'{len(suspicious)} suspicious networks detected together',
                f'Networks: {", ".join(names)}',
                'Possible multi-vector attack in progress',
            ),
            affected_networks=tuple(names),
            confidence_score=self.config.coordinated_confidence,
            first_detected=snapshot.captured_at,
        )

    def _detect_timing_replacement(self, snapshot: ScanSnapshot,
                                   view: ScanHistoryView) -> Optional[AttackPattern]:
        if len(view.snapshots) + 1 < self.config.timing_min_scans:
            return None

        previous = view.snapshots[-1]
        current_bssids = snapshot.bssids
        previous_bssids = previous.bssids
        disappeared = [ap for ap in previous.observations if ap.bssid not in current_bssids]
        appeared = [ap for ap in snapshot.observations if ap.bssid not in previous_bssids]

        for gone in disappeared:
            for new in appeared:
                if not gone.ssid or not new.ssid:
                    continue
                if ssid_similarity(gone.ssid.lower(), new.ssid.lower()) >= self.config.timing_similarity:
                    return AttackPattern(
                        pattern_type=AttackType.TIMING_REPLACEMENT,
                        severity=ThreatSeverity.HIGH,
                        description='Network replacement detected - possible evil twin timing attack',
                        evidence=(
                            f'Network "{gone.ssid}" ({gone.bssid}) disappeared',
                            f'Similar network "{new.ssid}" ({new.bssid}) appeared immediately',
                            'Timing pattern suggests coordinated replacement attack',
                        ),
                        affected_networks=(gone.ssid, new.ssid),
                        confidence_score=self.config.timing_confidence,
                        first_detected=snapshot.captured_at,
                    )
        return None

    def _detect_beacon_flooding(self, snapshot: ScanSnapshot,
                                view: ScanHistoryView) -> Optional[AttackPattern]:
        config = self.config
        if len(view.snapshots) + 1 < config.beacon_min_scans:
            return None

        recent = view.snapshots[-config.beacon_average_window:]
        average = sum(len(s) for s in recent) / len(recent)
        count = len(snapshot)
        if count <= average * config.beacon_count_ratio or count <= config.beacon_min_networks:
            return None

        open_networks = sum(1 for ap in snapshot.observations if ap.is_open)
        randomized = sum(1 for ap in snapshot.observations if is_locally_administered(ap.bssid))
        if open_networks < count * config.beacon_open_ratio and randomized < count * config.beacon_randomized_ratio:
            return None

        return AttackPattern(
            pattern_type=AttackType.BEACON_FLOODING,
            severity=ThreatSeverity.MEDIUM,
            description='Excessive number of wireless networks detected - possible beacon flooding',
            evidence=(
                f'{count} networks detected ({int(average * config.beacon_count_ratio)}+ threshold)',
                f'{open_networks} open networks ({int(open_networks / count * 100)}%)',
                f'{randomized} randomized MAC addresses ({int(randomized / count * 100)}%)',
                'Pattern suggests beacon flooding attack',
            ),
            affected_networks=('Multiple networks',),
            confidence_score=config.beacon_confidence,
            first_detected=snapshot.captured_at,
        )

    def _detect_network_cycling(self, snapshot: ScanSnapshot,
                                view: ScanHistoryView) -> Optional[AttackPattern]:
        config = self.config
        window = list(view.snapshots[-(config.cycling_window - 1):]) + [snapshot]
        if len(window) < config.cycling_window:
            return None

        presence_sets = [scan.ssids for scan in window]
        candidates = sorted(set().union(*presence_sets) - {""})
        for ssid in candidates:
            presence = [ssid in ssids for ssids in presence_sets]
            changes = sum(1 for a, b in zip(presence, presence[1:]) if a != b)
            if changes >= config.cycling_min_toggles:
                return AttackPattern(
                    pattern_type=AttackType.NETWORK_CYCLING,
                    severity=ThreatSeverity.MEDIUM,
                    description='Network cycling pattern detected - possible attack probe',
                    evidence=(
                        f'Network "{ssid}" appeared/disappeared {changes} times',
                        'Pattern: ' + ' -> '.join('ON' if p else 'OFF' for p in presence),
                        'Cycling behavior suggests automated attack tool',
                    ),
                    affected_networks=(ssid,),
                    confidence_score=config.cycling_confidence,
                    first_detected=snapshot.captured_at,
                )
        return None

    def _detect_signal_manipulation(self, snapshot: ScanSnapshot,
                                    view: ScanHistoryView) -> Optional[AttackPattern]:
        config = self.config
        for ap in snapshot.observations:
            past = [sample.signal_level for sample in view.behavior.get(ap.key, ())]
            readings = (past + [ap.signal_level])[-config.manipulation_window:]
            if len(readings) < config.manipulation_min_readings:
                continue
            for before, after in zip(readings, readings[1:]):
                jump = abs(after - before)
                if jump > config.manipulation_jump_dbm:
                    return AttackPattern(
                        pattern_type=AttackType.SIGNAL_MANIPULATION,
                        severity=ThreatSeverity.MEDIUM,
                        description='Unusual signal strength changes detected',
                        evidence=(
                            f'Network "{ap.ssid}" had {jump}dBm signal jump',
                            'Signal pattern: ' + ' -> '.join(str(r) for r in readings) + ' dBm',
                            'Sudden changes suggest signal manipulation',
                        ),
                        affected_networks=(ap.ssid,),
                        confidence_score=config.manipulation_confidence,
                        first_detected=snapshot.captured_at,
                    )
        return None

    def _detect_mac_randomization(self, snapshot: ScanSnapshot,
                                  view: ScanHistoryView) -> Optional[AttackPattern]:
        total = len(snapshot)
        if total == 0:
            return None

        randomized = sum(1 for ap in snapshot.observations if is_locally_administered(ap.bssid))
        ratio = randomized / total
        if ratio <= self.config.randomization_ratio or randomized <= self.config.randomization_min_count:
            return None

        return AttackPattern(
            pattern_type=AttackType.MAC_RANDOMIZATION,
            severity=ThreatSeverity.LOW,
            description='High percentage of randomized MAC addresses detected',
            evidence=(
                f'{randomized} out of {total} networks have randomized MACs',
                f'{int(ratio * 100)}% randomization rate',
                'May indicate presence of attack tools or privacy-focused devices',
            ),
            affected_networks=('Multiple networks',),
            confidence_score=self.config.randomization_confidence,
            first_detected=snapshot.captured_at,
        )

    def honeypot_score(self, ap: AccessPointObservation) -> Tuple[float, List[str]]:
        """Per-AP honeypot score and the indicators behind it."""
        config = self.config
        indicators = []
        score = 0.0
        if ap.is_open and contains_any(ap.ssid, self.reference.honeypot_enterprise_terms):
            score += config.honeypot_enterprise_weight
            indicators.append('Open network with enterprise-style name')
        if ap.signal_level > config.honeypot_strong_signal_dbm:
            score += config.honeypot_signal_weight
            indicators.append(f'Unusually strong signal ({ap.signal_level} dBm)')
        lowered = ap.ssid.lower()
        if any(term.replace('_', '') in lowered for term in self.reference.honeypot_bait_terms):
            score += config.honeypot_bait_weight
            indicators.append('Enticing network name')
        if is_locally_administered(ap.bssid):
            score += config.honeypot_randomized_weight
            indicators.append('Randomized MAC address')
        return score, indicators

    def _detect_honeypot(self, snapshot: ScanSnapshot,
                         view: ScanHistoryView) -> Optional[AttackPattern]:
        # Tolerate float rounding in the summed weights
        flagged = [ap for ap in snapshot.observations
                   if self.honeypot_score(ap)[0] >= self.config.honeypot_threshold - 1e-9]
        if not flagged:
            return None

        names = [ap.ssid for ap in flagged]
        return AttackPattern(
            pattern_type=AttackType.HONEYPOT_PATTERN,
            severity=ThreatSeverity.HIGH,
            description='Potential honeypot networks detected',
            evidence=(
                f'{len(flagged)} networks show honeypot characteristics',
                f'Networks: {", ".join(names)}',
                'Common indicators: open enterprise networks, strong signals, enticing names',
            ),
            affected_networks=tuple(names),
            confidence_score=self.config.honeypot_confidence,
            first_detected=snapshot.captured_at,
        )

    def _environmental_factors(self, snapshot: ScanSnapshot, view: ScanHistoryView) -> Dict[str, Any]:
        total = len(snapshot)
        open_networks = sum(1 for ap in snapshot.observations if ap.is_open)

        timestamps = [s.captured_at for s in view.snapshots] + [snapshot.captured_at]
        span_minutes = (timestamps[-1] - timestamps[0]).total_seconds() / 60.0
        scan_frequency = len(timestamps) / span_minutes if span_minutes > 0 else 0.0

        return {
            'total_networks': total,
            'open_networks': open_networks,
            'open_percentage': (open_networks / total) * 100 if total else 0.0,
            'scan_frequency': scan_frequency,
            'scan_count': len(timestamps),
            'analysis_time': snapshot.captured_at.isoformat(),
        }

    def clear_history(self) -> None:
        self.history.clear()
        with self._stats_lock:
            self.pattern_counts.clear()
            self.analyses = 0
        self.logger.info("Pattern analyzer history cleared")

    def get_stats(self) -> Dict[str, Any]:
        history = self.history.get_stats()
        with self._stats_lock:
            return {
                'scan_history_size': history['scan_count'],
                'tracked_behaviors': history['tracked_networks'],
                'analyses': self.analyses,
                'detected_patterns': sum(self.pattern_counts.values()),
                'patterns_by_type': dict(self.pattern_counts),
            }
