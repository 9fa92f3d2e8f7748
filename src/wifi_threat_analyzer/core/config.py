"""
Engine configuration.

Every weight and threshold used by the detectors lives here as a named,
overridable parameter. None of these values has been calibrated against
a labelled threat dataset; they are defaults to be tuned, not truths.
"""

import json
import logging
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Dict, Any, Union

import yaml

from .models import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Named weights and thresholds for the whole engine."""

    # SSID pattern analysis
    typosquatting_similarity: float = 0.8
    typosquatting_weight: float = 0.6
    substitution_weight: float = 0.5
    homograph_weight: float = 0.7
    whitespace_weight: float = 0.3
    intra_scan_similarity: float = 0.85
    intra_scan_weight: float = 0.4
    government_impersonation_weight: float = 0.8
    generic_pattern_weight: float = 0.2
    ssid_detection_threshold: float = 0.5
    legitimate_match_similarity: float = 0.7
    max_ssid_length: int = 32

    # Confidence calculation
    prior_base: float = 0.05
    prior_government: float = 0.02
    prior_generic: float = 0.15
    prior_isp: float = 0.08
    prior_min: float = 0.01
    prior_max: float = 0.30
    likelihood_ratios: Dict[str, float] = field(default_factory=lambda: {
        'critical': 8.0,
        'high': 4.0,
        'medium': 2.0,
        'low': 1.2,
    })
    method_reliability: Dict[str, float] = field(default_factory=lambda: {
        'evil_twin': 0.9,
        'government_impersonation': 0.95,
        'signal_anomaly': 0.7,
        'mac_analysis': 0.6,
        'security_config': 0.8,
    })
    default_method_reliability: float = 0.5
    decay_start_minutes: float = 5.0
    decay_horizon_minutes: float = 60.0
    decay_floor: float = 0.5
    evidence_weight_min: float = 0.1
    evidence_weight_max: float = 1.0
    evidence_count_bonus: float = 0.05
    evidence_count_bonus_cap: float = 0.2
    high_risk_location_multiplier: float = 1.2
    government_location_multiplier: float = 0.8
    consensus_bonuses: Dict[int, float] = field(default_factory=lambda: {
        2: 0.15,
        3: 0.25,
        4: 0.35,
    })
    agreement_bonus_max: float = 0.2
    error_fallback_confidence: float = 0.5

    # Vendor / SSID compatibility
    trust_compatibility: Dict[str, float] = field(default_factory=lambda: {
        'high': 0.8,
        'medium': 0.6,
        'low': 0.3,
        'critical': 0.1,
    })
    unknown_vendor_compatibility: float = 0.5
    contradicting_vendor_compatibility: float = 0.1
    government_vendor_compatibility: float = 0.9

    # Government impersonation gate
    government_impersonation_confidence: float = 0.95

    # Evil twin scoring
    evil_twin_threshold: float = 0.6
    evil_twin_critical_score: float = 0.6
    evil_twin_strong_signal_dbm: int = -30
    evil_twin_strong_signal_weight: float = 0.3
    evil_twin_open_vs_encrypted_weight: float = 0.4
    evil_twin_suspicious_mac_weight: float = 0.2
    evil_twin_fingerprint_deviation_dbm: int = 20
    evil_twin_fingerprint_deviation_weight: float = 0.1
    evil_twin_low_compatibility: float = 0.5
    evil_twin_low_compatibility_weight: float = 0.3
    whitelist_similarity: float = 0.8

    # MAC / vendor analysis
    mac_analysis_confidence: float = 0.7
    mac_compatibility_threshold: float = 0.3

    # Signal anomaly
    signal_implausible_dbm: int = -10
    signal_implausible_weight: float = 0.5
    signal_extreme_dbm: int = -20
    signal_extreme_weight: float = 0.4
    signal_very_strong_dbm: int = -30
    signal_very_strong_weight: float = 0.2
    signal_mean_deviation_dbm: float = 25.0
    signal_mean_deviation_weight: float = 0.3
    signal_mean_min_samples: int = 3
    signal_jump_dbm: float = 15.0
    signal_jump_weight: float = 0.2
    signal_high_severity_threshold: float = 0.6

    # Security configuration
    wpa3_downgrade_weight: float = 0.8
    wpa2_downgrade_weight: float = 0.6
    expected_security_mismatch_weight: float = 0.4
    enterprise_open_weight: float = 0.7
    government_weak_security_weight: float = 0.9
    security_high_severity_threshold: float = 0.7

    # Historical comparison
    historical_window_hours: float = 24.0
    historical_min_recent_bssids: int = 2
    historical_new_bssid_weight: float = 0.5
    historical_vendor_mismatch_weight: float = 0.3
    historical_medium_severity_threshold: float = 0.6

    # Cross-validation and threat level
    critical_min_confidence: float = 0.9
    critical_min_evidence: int = 3
    high_min_confidence: float = 0.7
    high_min_evidence: int = 2
    medium_min_confidence: float = 0.6
    low_min_confidence: float = 0.4
    threat_level_critical: float = 0.9
    threat_level_high: float = 0.7
    threat_level_medium: float = 0.5
    legitimacy_min_compatibility: float = 0.7

    # History retention
    scan_history_size: int = 50
    signal_history_size: int = 100
    ssid_history_size: int = 100
    max_tracked_networks: int = 1000
    network_behavior_size: int = 20
    network_behavior_retention_minutes: float = 60.0

    # Scan-wide pattern detectors
    coordinated_min_suspicious: int = 3
    coordinated_strong_signal_dbm: int = -25
    coordinated_cooldown_minutes: float = 5.0
    coordinated_increment: float = 0.4
    coordinated_confidence: float = 0.8
    timing_min_scans: int = 3
    timing_similarity: float = 0.8
    timing_increment: float = 0.3
    timing_confidence: float = 0.85
    beacon_min_scans: int = 5
    beacon_average_window: int = 10
    beacon_count_ratio: float = 2.5
    beacon_min_networks: int = 20
    beacon_open_ratio: float = 0.7
    beacon_randomized_ratio: float = 0.5
    beacon_increment: float = 0.5
    beacon_confidence: float = 0.7
    cycling_window: int = 6
    cycling_min_toggles: int = 3
    cycling_increment: float = 0.3
    cycling_confidence: float = 0.6
    manipulation_window: int = 4
    manipulation_min_readings: int = 3
    manipulation_jump_dbm: float = 30.0
    manipulation_increment: float = 0.4
    manipulation_confidence: float = 0.7
    randomization_ratio: float = 0.4
    randomization_min_count: int = 3
    randomization_increment: float = 0.2
    randomization_confidence: float = 0.5
    honeypot_threshold: float = 0.6
    honeypot_enterprise_weight: float = 0.4
    honeypot_signal_weight: float = 0.3
    honeypot_bait_weight: float = 0.2
    honeypot_randomized_weight: float = 0.1
    honeypot_strong_signal_dbm: int = -30
    honeypot_increment: float = 0.6
    honeypot_confidence: float = 0.75

    # Execution
    parallel_execution: bool = False
    max_workers: int = 4

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """
        Build a config from a (possibly partial) dictionary.

        Raises:
            ConfigurationError: On unknown keys or badly typed values
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        config = cls()
        for key, value in data.items():
            default = getattr(config, key)
            if isinstance(default, dict):
                if not isinstance(value, dict):
                    raise ConfigurationError(f"Configuration key '{key}' must be a mapping")
                merged = dict(default)
                merged.update(value)
                value = merged
            elif isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ConfigurationError(f"Configuration key '{key}' must be true or false, got {value!r}")
            elif isinstance(default, (int, float)):
                if not isinstance(value, (int, float)) or isinstance(value, bool):
                    raise ConfigurationError(f"Configuration key '{key}' must be numeric, got {value!r}")
                value = type(default)(value)
            setattr(config, key, value)
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load an engine config from a YAML or JSON file.

    Args:
        path: Path to the config file

    Returns:
        EngineConfig with file values over defaults

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config file {path}: {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    logger.info(f"Loaded configuration from {path} ({len(data)} overrides)")
    return EngineConfig.from_dict(data)
