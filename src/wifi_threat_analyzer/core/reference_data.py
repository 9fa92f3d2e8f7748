"""
Static reference tables.

The vendor prefix table, legitimate network names and fingerprints,
keyword lists and environment profiles are data, not code: they ship
as data/reference_data.yaml and can be replaced with a calibrated copy.
Components receive a ReferenceData instance at construction time.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Any, Optional, Set, Tuple, Union

import yaml

from .models import (
    VendorRecord,
    VendorCategory,
    TrustLevel,
    NetworkFingerprint,
    SecurityType,
    EnvironmentProfile,
    RiskLevel,
    ConfigurationError
)
from ..utils.mac_utils import normalize_mac

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = Path(__file__).resolve().parent.parent / "data" / "reference_data.yaml"


@dataclass
class ReferenceData:
    """Read-only lookup tables shared by all detectors."""
    vendors: Dict[str, VendorRecord] = field(default_factory=dict)
    legitimate_networks: List[str] = field(default_factory=list)
    reference_fingerprints: Dict[str, NetworkFingerprint] = field(default_factory=dict)
    verified_networks: Set[Tuple[str, str]] = field(default_factory=set)
    typosquatting_patterns: Dict[str, List[str]] = field(default_factory=dict)
    character_substitutions: Dict[str, List[str]] = field(default_factory=dict)
    homograph_characters: Dict[str, str] = field(default_factory=dict)
    suspicious_whitespace: Dict[str, str] = field(default_factory=dict)
    government_gate_keywords: List[str] = field(default_factory=list)
    government_patterns: List[str] = field(default_factory=list)
    isp_patterns: List[str] = field(default_factory=list)
    enterprise_patterns: List[str] = field(default_factory=list)
    home_patterns: List[str] = field(default_factory=list)
    prior_government_patterns: List[str] = field(default_factory=list)
    prior_generic_patterns: List[str] = field(default_factory=list)
    prior_isp_patterns: List[str] = field(default_factory=list)
    generic_names: List[str] = field(default_factory=list)
    marketing_terms: List[str] = field(default_factory=list)
    honeypot_enterprise_terms: List[str] = field(default_factory=list)
    honeypot_bait_terms: List[str] = field(default_factory=list)
    known_malicious_macs: Set[str] = field(default_factory=set)
    suspicious_mac_prefixes: List[str] = field(default_factory=list)
    environment_profiles: Dict[str, EnvironmentProfile] = field(default_factory=dict)
    isp_affiliation_keywords: List[str] = field(default_factory=list)
    isp_compatible_vendor_names: List[str] = field(default_factory=list)
    government_affiliation_keywords: List[str] = field(default_factory=list)
    source: Optional[str] = None

    def is_legitimate_name(self, ssid: str) -> bool:
        """Exact (case-insensitive) match against the legitimate network list."""
        lowered = ssid.lower()
        return any(name.lower() == lowered for name in self.legitimate_networks)

    def is_verified(self, ssid: str, bssid: str) -> bool:
        return (ssid, bssid) in self.verified_networks

    def get_stats(self) -> Dict[str, int]:
        return {
            'vendors': len(self.vendors),
            'legitimate_networks': len(self.legitimate_networks),
            'reference_fingerprints': len(self.reference_fingerprints),
            'verified_networks': len(self.verified_networks),
            'typosquatting_patterns': len(self.typosquatting_patterns),
            'character_substitutions': len(self.character_substitutions),
            'known_malicious_macs': len(self.known_malicious_macs),
            'environment_profiles': len(self.environment_profiles),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "ReferenceData":
        """
        Parse the raw YAML structure.

        Raises:
            ConfigurationError: On unknown enum values or malformed entries
        """
        try:
            vendors = {}
            for prefix, entry in (data.get('vendors') or {}).items():
                prefix = str(prefix).upper()
                vendors[prefix] = VendorRecord(
                    prefix=prefix,
                    vendor_name=str(entry['vendor']),
                    category=VendorCategory(entry['category']),
                    trust_level=TrustLevel(entry['trust']),
                    note=entry.get('note'),
                )

            fingerprints = {}
            for entry in data.get('reference_fingerprints') or []:
                fingerprint = NetworkFingerprint(
                    ssid=str(entry['ssid']),
                    bssid=normalize_mac(entry['bssid']) if entry.get('bssid') else None,
                    expected_security_type=SecurityType(entry['expected_security']),
                    typical_signal_level=int(entry['typical_signal']),
                    vendor_prefixes=frozenset(str(p).upper() for p in entry.get('vendor_prefixes') or []),
                )
                fingerprints[fingerprint.ssid] = fingerprint

            verified = set()
            for entry in data.get('verified_networks') or []:
                bssid = normalize_mac(str(entry['bssid']))
                if bssid is None:
                    raise ConfigurationError(f"Invalid BSSID in verified_networks: {entry['bssid']!r}")
                verified.add((str(entry['ssid']), bssid))

            profiles = {}
            for tag, entry in (data.get('environment_profiles') or {}).items():
                profiles[tag] = EnvironmentProfile(
                    location_tag=tag,
                    risk_level=RiskLevel(entry['risk_level']),
                    risk_multiplier=float(entry['risk_multiplier']),
                    common_threats=tuple(entry.get('common_threats') or ()),
                )

            malicious = set()
            for mac in data.get('known_malicious_macs') or []:
                normalized = normalize_mac(str(mac))
                if normalized is None:
                    raise ConfigurationError(f"Invalid MAC in known_malicious_macs: {mac!r}")
                malicious.add(normalized)

        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Malformed reference data: {e}") from e

        def str_list(key: str) -> List[str]:
            return [str(v) for v in data.get(key) or []]

        return cls(
            vendors=vendors,
            legitimate_networks=str_list('legitimate_networks'),
            reference_fingerprints=fingerprints,
            verified_networks=verified,
            typosquatting_patterns={
                str(k): [str(v) for v in values]
                for k, values in (data.get('typosquatting_patterns') or {}).items()
            },
            character_substitutions={
                str(k): [str(v) for v in values]
                for k, values in (data.get('character_substitutions') or {}).items()
            },
            homograph_characters={
                str(k): str(v) for k, v in (data.get('homograph_characters') or {}).items()
            },
            suspicious_whitespace={
                str(k): str(v) for k, v in (data.get('suspicious_whitespace') or {}).items()
            },
            government_gate_keywords=str_list('government_gate_keywords'),
            government_patterns=str_list('government_patterns'),
            isp_patterns=str_list('isp_patterns'),
            enterprise_patterns=str_list('enterprise_patterns'),
            home_patterns=str_list('home_patterns'),
            prior_government_patterns=str_list('prior_government_patterns'),
            prior_generic_patterns=str_list('prior_generic_patterns'),
            prior_isp_patterns=str_list('prior_isp_patterns'),
            generic_names=str_list('generic_names'),
            marketing_terms=str_list('marketing_terms'),
            honeypot_enterprise_terms=str_list('honeypot_enterprise_terms'),
            honeypot_bait_terms=str_list('honeypot_bait_terms'),
            known_malicious_macs=malicious,
            suspicious_mac_prefixes=[str(p).upper() for p in data.get('suspicious_mac_prefixes') or []],
            environment_profiles=profiles,
            isp_affiliation_keywords=str_list('isp_affiliation_keywords'),
            isp_compatible_vendor_names=str_list('isp_compatible_vendor_names'),
            government_affiliation_keywords=str_list('government_affiliation_keywords'),
            source=source,
        )


def load_reference_data(path: Optional[Union[str, Path]] = None) -> ReferenceData:
    """
    Load reference tables from YAML.

    Args:
        path: YAML file to load (default: the packaged table)

    Returns:
        Parsed ReferenceData

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    path = Path(path) if path else DEFAULT_REFERENCE_PATH
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load reference data {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Reference data {path} must contain a mapping")

    reference = ReferenceData.from_dict(data, source=str(path))
    logger.debug(f"Loaded reference data from {path}: {reference.get_stats()}")
    return reference


@lru_cache(maxsize=1)
def default_reference_data() -> ReferenceData:
    """Packaged reference tables, parsed once per process."""
    return load_reference_data()
