"""
Main Wi-Fi threat analyzer orchestrator.

Wires the per-network threat assessor and the scan-wide pattern analyzer
into a single engine that is fed one scan at a time.
"""

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Dict, Any, Sequence, Union, Tuple

from jinja2 import Environment, PackageLoader

from .core.analyzer_registry import DetectorRegistry
from .core.clock import Clock, SystemClock
from .core.config import EngineConfig
from .core.models import (
    AccessPointObservation,
    InvalidObservationError,
    ScanAnalysisResult,
    ScanSnapshot,
    ScanSupersededError,
    SecurityAssessment
)
from .core.reference_data import ReferenceData, default_reference_data
from .core.threat_assessor import ThreatAssessor
from .analyzers.core.confidence_calculator import ConfidenceCalculator
from .analyzers.core.ssid_analyzer import SSIDAnalyzer
from .analyzers.core.vendor_directory import VendorDirectory
from .analyzers.patterns.threat_patterns import HistoricalPatternAnalyzer
from .expert.agent import WifiSecurityExpertAgent

ObservationInput = Union[AccessPointObservation, Dict[str, Any]]


class WifiThreatAnalyzer:
    """
    Main analyzer class that orchestrates Wi-Fi threat analysis.

    Each call to analyze_scan() assesses every observation against the
    history committed by earlier scans, then evaluates scan-wide attack
    patterns, and only then appends the scan to history. A scan whose token
    was superseded by begin_scan() is abandoned before that append.
    """

    def __init__(
        self,
        config: Optional[Union[EngineConfig, Dict[str, Any]]] = None,
        reference: Optional[ReferenceData] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the main analyzer.

        Args:
            config: EngineConfig or dictionary of overrides
            reference: Reference tables (default: bundled data)
            clock: Time source (default: system clock)
        """
        if isinstance(config, dict):
            config = EngineConfig.from_dict(config)
        self.config = config or EngineConfig()
        self.reference = reference or default_reference_data()
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(__name__)

        # Initialize components
        self.registry = DetectorRegistry()
        self.vendor_directory = VendorDirectory(self.reference, self.config)
        self.ssid_analyzer = SSIDAnalyzer(self.reference, self.config)
        self.confidence_calculator = ConfidenceCalculator(self.reference, self.config, self.clock)
        self.expert_agent = WifiSecurityExpertAgent()
        self.threat_assessor = ThreatAssessor(
            reference=self.reference,
            config=self.config,
            clock=self.clock,
            registry=self.registry,
            vendor_directory=self.vendor_directory,
            ssid_analyzer=self.ssid_analyzer,
            confidence_calculator=self.confidence_calculator,
            expert_agent=self.expert_agent,
        )
        self.pattern_analyzer = HistoricalPatternAnalyzer(self.reference, self.config, self.clock)

        self._scan_lock = threading.Lock()
        self._scan_generation = 0

        # Performance tracking
        self.analysis_stats = {
            'total_scans': 0,
            'total_networks': 0,
            'skipped_observations': 0,
            'superseded_scans': 0,
            'total_analysis_time': 0.0
        }

    def list_detectors(self) -> List[Dict[str, Any]]:
        """
        Get list of all available detectors with metadata.

        Returns:
            List of detector information dictionaries
        """
        registry_info = self.registry.get_registry_summary()
        detectors_info = []

        for name, info in registry_info['detector_list'].items():
            detectors_info.append({
                'name': name,
                'category': info['category'],
                'description': info['description'],
                'enabled': info['enabled'],
                'analysis_order': info['order'],
                'detection_method': info['method']
            })

        return sorted(detectors_info, key=lambda x: x['analysis_order'])

    def enable_detector(self, name: str) -> bool:
        """
        Enable a specific detector.

        Args:
            name: Detector name

        Returns:
            True if detector was found and enabled
        """
        success = self.registry.enable_detector(name)
        if success:
            self.threat_assessor.refresh_detectors()
            self.logger.info(f"Enabled detector: {name}")
        return success

    def disable_detector(self, name: str) -> bool:
        """
        Disable a specific detector.

        Args:
            name: Detector name

        Returns:
            True if detector was found and disabled
        """
        success = self.registry.disable_detector(name)
        if success:
            self.threat_assessor.refresh_detectors()
            self.logger.info(f"Disabled detector: {name}")
        return success

    def begin_scan(self) -> int:
        """
        Start a new scan cycle and supersede any scan still in flight.

        Returns:
            Token to pass to analyze_scan()
        """
        with self._scan_lock:
            self._scan_generation += 1
            return self._scan_generation

    def _is_current(self, token: int) -> bool:
        with self._scan_lock:
            return token == self._scan_generation

    def _check_current(self, token: int) -> None:
        if not self._is_current(token):
            with self._scan_lock:
                self.analysis_stats['superseded_scans'] += 1
            self.logger.info(f"Scan {token} superseded by a newer scan; discarding")
            raise ScanSupersededError(f"Scan {token} was superseded")

    def parse_observations(
        self,
        observations: Sequence[ObservationInput]
    ) -> Tuple[List[AccessPointObservation], int]:
        """
        Validate scan entries.

        Entries missing an SSID or BSSID are skipped, not assessed.
        Repeated (ssid, bssid) pairs keep their first occurrence.

        Returns:
            Tuple of (valid observations, number skipped)
        """
        valid: List[AccessPointObservation] = []
        seen = set()
        skipped = 0

        for entry in observations:
            try:
                observation = entry if isinstance(entry, AccessPointObservation) \
                    else AccessPointObservation.from_dict(entry)
                if observation.ssid is None or not observation.bssid:
                    raise InvalidObservationError(f"Observation missing SSID/BSSID: {entry!r}")
            except (InvalidObservationError, AttributeError, TypeError) as e:
                self.logger.debug(f"Skipping observation: {e}")
                skipped += 1
                continue

            if observation.key in seen:
                self.logger.debug(f"Duplicate observation in scan: {observation.key}")
                continue
            seen.add(observation.key)
            valid.append(observation)

        if skipped:
            self.logger.warning(f"Skipped {skipped} malformed observations")
        return valid, skipped

    def analyze_scan(
        self,
        observations: Sequence[ObservationInput],
        location_tag: Optional[str] = None,
        token: Optional[int] = None
    ) -> ScanAnalysisResult:
        """
        Analyze one complete scan.

        Args:
            observations: Access point observations (objects or dictionaries)
            location_tag: Optional coarse location for confidence adjustment
            token: Scan token from begin_scan() (default: start a new scan)

        Returns:
            ScanAnalysisResult with one assessment per valid observation,
            in input order, plus the scan-wide pattern analysis

        Raises:
            ScanSupersededError: If a newer scan began before this one committed
        """
        if token is None:
            token = self.begin_scan()

        start_time = time.time()
        timestamp = self.clock.now()
        valid, skipped = self.parse_observations(observations)

        self.logger.info(f"Analyzing scan {token}: {len(valid)} networks"
                         f"{f' at {location_tag}' if location_tag else ''}")

        self._check_current(token)
        assessments = self._assess_all(valid, location_tag, timestamp)

        snapshot = ScanSnapshot(observations=tuple(valid), captured_at=timestamp)
        pattern_analysis = self.pattern_analyzer.evaluate(snapshot)

        # Commit only after every read for this scan is done
        with self._scan_lock:
            if token != self._scan_generation:
                self.analysis_stats['superseded_scans'] += 1
                self.logger.info(f"Scan {token} superseded by a newer scan; discarding")
                raise ScanSupersededError(f"Scan {token} was superseded")
            self.threat_assessor.commit_scan(valid, timestamp)
            self.pattern_analyzer.commit(snapshot, pattern_analysis)

            analysis_time = time.time() - start_time
            self.analysis_stats['total_scans'] += 1
            self.analysis_stats['total_networks'] += len(valid)
            self.analysis_stats['skipped_observations'] += skipped
            self.analysis_stats['total_analysis_time'] += analysis_time

        result = ScanAnalysisResult(
            assessments=assessments,
            pattern_analysis=pattern_analysis,
            scan_timestamp=timestamp,
            location_tag=location_tag,
            skipped_observations=skipped,
        )

        threatened = sum(1 for a in assessments if a.has_threats)
        self.logger.info(f"Scan {token} complete in {analysis_time:.3f}s: "
                         f"{threatened}/{len(assessments)} networks with threats, "
                         f"{len(pattern_analysis.detected_patterns)} attack patterns")
        return result

    def _assess_all(
        self,
        observations: List[AccessPointObservation],
        location_tag: Optional[str],
        timestamp
    ) -> List[SecurityAssessment]:
        if not self.config.parallel_execution or len(observations) < 2:
            return [self.threat_assessor.assess(o, observations, location_tag, timestamp)
                    for o in observations]

        results: List[Optional[SecurityAssessment]] = [None] * len(observations)
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_index = {
                executor.submit(self.threat_assessor.assess, o, observations, location_tag, timestamp): i
                for i, o in enumerate(observations)
            }
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    observation = observations[index]
                    self.logger.error(f"Assessment task failed for {observation.ssid!r}: {e}")
                    results[index] = SecurityAssessment.create_error(observation, str(e), timestamp)
        return results

    def provide_feedback(self, detection_method: str, was_correct: bool, confidence: float) -> None:
        """
        Record user feedback on a past detection.

        Only updates running accuracy statistics; past assessments are
        never changed.
        """
        self.confidence_calculator.update_method_accuracy(detection_method, was_correct, confidence)
        self.logger.info(f"Feedback recorded for {detection_method}: "
                         f"{'correct' if was_correct else 'incorrect'}")

    def summarize(self, result: ScanAnalysisResult) -> Dict[str, Any]:
        return self.expert_agent.generate_scan_summary(result)

    def clear_history(self) -> None:
        """Forget all committed scans, samples and accuracy statistics."""
        self.threat_assessor.clear_history()
        self.pattern_analyzer.clear_history()
        with self._scan_lock:
            for key in self.analysis_stats:
                self.analysis_stats[key] = 0.0 if key == 'total_analysis_time' else 0
        self.logger.info("Analyzer history cleared")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get a statistics snapshot.

        Returns:
            Dictionary of engine, assessor, pattern and calculator statistics
        """
        with self._scan_lock:
            stats = dict(self.analysis_stats)
        scans = stats['total_scans']
        stats['average_analysis_time'] = stats['total_analysis_time'] / scans if scans else 0.0

        return {
            'engine': stats,
            'assessor': self.threat_assessor.get_stats(),
            'patterns': self.pattern_analyzer.get_stats(),
            'confidence': self.confidence_calculator.get_calculator_stats(),
            'vendor_database': self.vendor_directory.get_database_stats(),
            'ssid_analyzer': self.ssid_analyzer.get_stats(),
            'detectors': self.registry.get_registry_summary(),
        }

    def generate_report(
        self,
        result: ScanAnalysisResult,
        output_format: str = 'json',
        include_summary: bool = True
    ) -> str:
        """
        Generate a formatted report of a scan analysis.

        Args:
            result: Result of analyze_scan()
            output_format: Output format ('json', 'markdown', 'text')
            include_summary: Include the expert scan summary (json only;
                markdown and text always include it)

        Returns:
            Formatted report string
        """
        fmt = output_format.lower()
        if fmt in ('markdown', 'md'):
            return self._generate_markdown_report(result)
        elif fmt in ('text', 'txt'):
            return self._generate_text_report(result)

        payload = result.to_dict()
        if include_summary:
            try:
                payload['summary'] = self.summarize(result)
            except Exception as e:
                self.logger.error(f"Scan summary failed: {e}")
                payload['summary'] = {'error': f'Scan summary failed: {e}'}
        # Default to JSON for unknown formats
        return json.dumps(payload, indent=2, default=str)

    def _generate_markdown_report(self, result: ScanAnalysisResult) -> str:
        """Generate a markdown report."""
        env = Environment(
            loader=PackageLoader("wifi_threat_analyzer", "templates"),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        template = env.get_template("report.md.j2")
        return template.render(
            result=result,
            summary=self.summarize(result),
            assessments=self.ordered_assessments(result),
            generated=self.clock.now().strftime('%Y-%m-%d %H:%M:%S'),
        )

    def _generate_text_report(self, result: ScanAnalysisResult) -> str:
        """Generate a plain text report."""
        summary = self.summarize(result)
        generated = self.clock.now().strftime('%Y-%m-%d %H:%M:%S')
        levels = summary['threat_levels']

        text = f"""
========================================================================
                  WI-FI THREAT ANALYSIS REPORT
========================================================================

Scan time: {result.scan_timestamp.strftime('%Y-%m-%d %H:%M:%S')}
Location: {result.location_tag or 'unknown'}
Generated: {generated}

EXECUTIVE SUMMARY
=================

Overall Assessment: {summary['overall_assessment']}
Risk Score: {summary['risk_score']}/100
Networks Analyzed: {summary['networks_analyzed']} (skipped: {summary['skipped_observations']})
Threat Levels: Critical {levels['critical']}, High {levels['high']}, Medium {levels['medium']}, Low {levels['low']}

"""

        if summary['key_concerns']:
            text += "KEY CONCERNS\n============\n\n"
            for concern in summary['key_concerns'][:10]:
                text += f"  * {concern}\n"
            text += "\n"

        text += "NETWORKS\n========\n\n"
        for assessment in self.ordered_assessments(result):
            text += f"  {self.expert_agent.describe_assessment(assessment)}\n"
            for threat in assessment.validated_threats:
                text += (f"      [{threat.severity.value.upper()}] {threat.threat_type.value}: "
                         f"{threat.description} ({threat.confidence_score:.2f})\n")
        text += "\n"

        text += f"""
========================================================================
Generated by Wi-Fi Threat Analyzer | {generated}
========================================================================
"""
        return text

    def ordered_assessments(self, result: ScanAnalysisResult) -> List[SecurityAssessment]:
        return sorted(result.assessments,
                      key=lambda a: (-a.threat_level.rank, -a.aggregate_confidence, a.ssid, a.bssid or ""))
