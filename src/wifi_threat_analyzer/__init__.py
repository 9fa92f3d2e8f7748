"""
Wi-Fi Threat Analyzer

Detects evil twins, rogue access points and scan-wide attack patterns
from ordinary Wi-Fi scan results.
"""

__version__ = "0.1.0"

from .main import WifiThreatAnalyzer
from .core.config import EngineConfig, load_config
from .core.clock import FixedClock, SystemClock
from .core.models import (
    AccessPointObservation,
    AttackPattern,
    ScanAnalysisResult,
    SecurityAssessment,
    SecurityThreat,
    ThreatLevel,
    ThreatSeverity,
    ThreatType
)
from .core.reference_data import load_reference_data

__all__ = [
    'WifiThreatAnalyzer',
    'EngineConfig',
    'load_config',
    'FixedClock',
    'SystemClock',
    'AccessPointObservation',
    'AttackPattern',
    'ScanAnalysisResult',
    'SecurityAssessment',
    'SecurityThreat',
    'ThreatLevel',
    'ThreatSeverity',
    'ThreatType',
    'load_reference_data'
]
