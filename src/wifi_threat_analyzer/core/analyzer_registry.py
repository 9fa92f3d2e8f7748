"""
Detector Registry

This module provides a centralized registry of the per-network threat
detectors, their execution order and enabled state.
"""

import logging
from typing import Dict, List, Any, Type
from dataclasses import dataclass

from .base_analyzer import BaseThreatDetector
from .config import EngineConfig
from .models import AnalyzerError
from .reference_data import ReferenceData
from ..analyzers.security.ssid_spoofing import SSIDSpoofingDetector
from ..analyzers.security.government_impersonation import GovernmentImpersonationDetector
from ..analyzers.security.evil_twin import EvilTwinDetector
from ..analyzers.security.mac_analysis import MACAnalysisDetector
from ..analyzers.security.signal_anomaly import SignalAnomalyDetector
from ..analyzers.security.security_config import SecurityConfigDetector
from ..analyzers.security.historical import HistoricalComparisonDetector


@dataclass
class DetectorEntry:
    """A registered detector class and its scheduling metadata."""
    name: str
    category: str
    detector_class: Type[BaseThreatDetector]
    description: str
    enabled: bool = True
    analysis_order: int = 100


class DetectorRegistry:
    """
    Registry for managing per-network detectors.

    Detectors run in ascending analysis_order; a detector whose
    suppressed_by names a detector that already fired for the same
    observation is skipped.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._entries: Dict[str, DetectorEntry] = {}
        self._initialize_detectors()

    def _initialize_detectors(self):
        """Register the built-in detectors."""

        self.logger.debug("Initializing detectors...")

        self._register(SSIDSpoofingDetector, "naming")
        self._register(GovernmentImpersonationDetector, "impersonation")
        self._register(EvilTwinDetector, "impersonation")
        self._register(MACAnalysisDetector, "hardware")
        self._register(SignalAnomalyDetector, "radio")
        self._register(SecurityConfigDetector, "security")
        self._register(HistoricalComparisonDetector, "history")

        self.logger.debug(f"Registered {len(self._entries)} detectors")

    def _register(
        self,
        detector_class: Type[BaseThreatDetector],
        category: str,
        enabled: bool = True
    ):
        """Register a detector class under its own name and order."""
        entry = DetectorEntry(
            name=detector_class.name,
            category=category,
            detector_class=detector_class,
            description=detector_class.description,
            enabled=enabled,
            analysis_order=detector_class.analysis_order
        )
        self._entries[entry.name] = entry

    def register_detector(self, detector_class: Type[BaseThreatDetector], category: str = "custom") -> None:
        """
        Register an additional detector class.

        Raises:
            AnalyzerError: If the class is not a named BaseThreatDetector subclass
        """
        if not (isinstance(detector_class, type) and issubclass(detector_class, BaseThreatDetector)):
            raise AnalyzerError(f"Not a threat detector: {detector_class!r}")
        if detector_class.name == BaseThreatDetector.name:
            raise AnalyzerError(f"Detector {detector_class.__name__} must define its own name")
        if detector_class.name in self._entries:
            self.logger.warning(f"Replacing registered detector: {detector_class.name}")
        self._register(detector_class, category)
        self.logger.info(f"Registered detector: {detector_class.name}")

    def get_entries(self, enabled_only: bool = True) -> Dict[str, DetectorEntry]:
        """Get registered detectors in execution order."""
        entries = sorted(self._entries.values(), key=lambda e: (e.analysis_order, e.name))
        return {e.name: e for e in entries if e.enabled or not enabled_only}

    def create_detectors(
        self,
        reference: ReferenceData,
        config: EngineConfig,
        vendor_directory=None,
        enabled_only: bool = True
    ) -> List[BaseThreatDetector]:
        """Create instances of the registered detectors, in execution order."""
        detectors = []
        for name, entry in self.get_entries(enabled_only).items():
            try:
                detectors.append(entry.detector_class(reference, config, vendor_directory))
                self.logger.debug(f"Created detector: {name}")
            except Exception as e:
                self.logger.error(f"Failed to create detector {name}: {e}")
        return detectors

    def enable_detector(self, name: str) -> bool:
        """Enable a specific detector."""
        if name in self._entries:
            self._entries[name].enabled = True
            self.logger.info(f"Enabled detector: {name}")
            return True
        return False

    def disable_detector(self, name: str) -> bool:
        """Disable a specific detector."""
        if name in self._entries:
            self._entries[name].enabled = False
            self.logger.info(f"Disabled detector: {name}")
            return True
        return False

    def get_registry_summary(self) -> Dict[str, Any]:
        """Get summary of the detector registry."""
        entries = self.get_entries(enabled_only=False)

        categories = {}
        for entry in entries.values():
            if entry.category not in categories:
                categories[entry.category] = {"total": 0, "enabled": 0}
            categories[entry.category]["total"] += 1
            if entry.enabled:
                categories[entry.category]["enabled"] += 1

        return {
            "total_detectors": len(entries),
            "enabled_detectors": sum(1 for e in entries.values() if e.enabled),
            "categories": categories,
            "detector_list": {
                name: {
                    "category": entry.category,
                    "description": entry.description,
                    "enabled": entry.enabled,
                    "order": entry.analysis_order,
                    "method": entry.detector_class.detection_method,
                }
                for name, entry in entries.items()
            }
        }
