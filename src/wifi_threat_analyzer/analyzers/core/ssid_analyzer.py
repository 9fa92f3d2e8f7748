"""
SSID Pattern Analyzer

Detects spoofed network names in a single SSID:
- Typosquatting against the legitimate network list
- Look-alike character substitution
- Homograph (mixed script) attacks
- Whitespace and zero-width character manipulation
- Near-duplicates of other SSIDs in the same scan
- Government network impersonation
- Generic and marketing bait names

Every check runs unconditionally and adds its weight to a suspicion
score capped at 1.0; reason strings from all triggered checks are kept.
"""

import logging
import re
from typing import List, Dict, Any, Optional, Iterable

from ...core.config import EngineConfig
from ...core.models import SSIDAnalysisResult
from ...core.reference_data import ReferenceData, default_reference_data
from ...utils.ssid_utils import ssid_similarity

_DIGIT = re.compile(r'[0-9]')
_LOWER = re.compile(r'[a-z]')


class SSIDAnalyzer:
    """Single-SSID spoofing checks."""

    def __init__(self, reference: Optional[ReferenceData] = None,
                 config: Optional[EngineConfig] = None):
        self.reference = reference or default_reference_data()
        self.config = config or EngineConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        # Only typo patterns whose keyword occurs in some legitimate name apply
        legit_upper = [name.upper() for name in self.reference.legitimate_networks]
        self._typo_targets = {
            keyword: typos
            for keyword, typos in self.reference.typosquatting_patterns.items()
            if any(keyword in name for name in legit_upper)
        }
        self._legit_lower = {name.lower(): name for name in self.reference.legitimate_networks}

    def analyze(self, target_ssid: str, all_ssids: Iterable[str]) -> SSIDAnalysisResult:
        """
        Analyze an SSID for spoofing patterns.

        Args:
            target_ssid: SSID being assessed
            all_ssids: Every SSID in the same scan (may include the target)

        Returns:
            SSIDAnalysisResult with score, reasons and close legitimate names
        """
        all_ssids = list(all_ssids)
        checks = [
            (self._detect_typosquatting, self.config.typosquatting_weight),
            (self._detect_character_substitution, self.config.substitution_weight),
            (self._detect_homograph_attack, self.config.homograph_weight),
            (self._detect_whitespace_manipulation, self.config.whitespace_weight),
            (lambda s: self._detect_similar_ssids(s, all_ssids), self.config.intra_scan_weight),
            (self._detect_government_impersonation, self.config.government_impersonation_weight),
            (self._detect_generic_patterns, self.config.generic_pattern_weight),
        ]

        suspicious_factors: List[str] = []
        score = 0.0
        for check, weight in checks:
            try:
                evidence = check(target_ssid)
            except Exception as e:
                self.logger.debug(f"SSID check failed for {target_ssid!r}: {e}")
                continue
            if evidence:
                suspicious_factors.extend(evidence)
                score += weight

        confidence = min(1.0, score)
        result = SSIDAnalysisResult(
            is_detected=confidence >= self.config.ssid_detection_threshold,
            confidence_score=confidence,
            suspicious_factors=suspicious_factors,
            legitimate_matches=self.find_legitimate_matches(target_ssid),
        )
        self.logger.debug(f"SSID analysis for {target_ssid!r}: score={confidence:.2f}, "
                          f"factors={len(suspicious_factors)}")
        return result

    def find_legitimate_matches(self, ssid: str) -> List[str]:
        """Legitimate names at least `legitimate_match_similarity` similar."""
        lowered = ssid.lower()
        return [
            name for name in self.reference.legitimate_networks
            if ssid_similarity(lowered, name.lower()) >= self.config.legitimate_match_similarity
        ]

    def _detect_typosquatting(self, ssid: str) -> List[str]:
        evidence = []
        lowered = ssid.lower()
        if lowered in self._legit_lower:
            return evidence

        for legitimate in self.reference.legitimate_networks:
            similarity = ssid_similarity(lowered, legitimate.lower())
            if similarity >= self.config.typosquatting_similarity:
                evidence.append(f'Similar to legitimate network "{legitimate}" '
                                f'({int(similarity * 100)}% match)')

        for keyword, typos in self._typo_targets.items():
            for typo in typos:
                if typo in ssid:
                    evidence.append(f'Contains known typosquatting pattern "{typo}" targeting "{keyword}"')
        return evidence

    def _detect_character_substitution(self, ssid: str) -> List[str]:
        evidence = []
        for original, substitutes in self.reference.character_substitutions.items():
            for substitute in substitutes:
                if substitute not in ssid:
                    continue
                reconstructed = ssid.replace(substitute, original).lower()
                legitimate = self._legit_lower.get(reconstructed)
                if legitimate is not None and reconstructed != ssid.lower():
                    evidence.append(f'Character substitution detected: "{substitute}" -> "{original}" '
                                    f'(targeting "{legitimate}")')
        return evidence

    def _detect_homograph_attack(self, ssid: str) -> List[str]:
        evidence = []
        has_latin = has_cyrillic = has_greek = False
        for char in ssid:
            code = ord(char)
            if 0x41 <= code <= 0x5A or 0x61 <= code <= 0x7A:
                has_latin = True
            elif 0x0400 <= code <= 0x04FF:
                has_cyrillic = True
            elif 0x0370 <= code <= 0x03FF:
                has_greek = True

        if has_latin and (has_cyrillic or has_greek):
            evidence.append('Mixed character scripts detected - possible homograph attack')

        for char, looks_like in self.reference.homograph_characters.items():
            if char in ssid:
                evidence.append(f'Homograph character detected: U+{ord(char):04X} (looks like "{looks_like}")')
        return evidence

    def _detect_whitespace_manipulation(self, ssid: str) -> List[str]:
        evidence = []
        if ssid != ssid.strip():
            evidence.append('Leading or trailing whitespace detected')
        for char, description in self.reference.suspicious_whitespace.items():
            if char in ssid:
                evidence.append(f'{description} character detected')
        return evidence

    def _detect_similar_ssids(self, target: str, all_ssids: List[str]) -> List[str]:
        evidence = []
        lowered = target.lower()
        for other in dict.fromkeys(all_ssids):
            if other == target:
                continue
            similarity = ssid_similarity(lowered, other.lower())
            if similarity >= self.config.intra_scan_similarity:
                evidence.append(f'Very similar to nearby network "{other}" ({int(similarity * 100)}% match)')
        return evidence

    def _detect_government_impersonation(self, ssid: str) -> List[str]:
        lowered = ssid.lower()
        if lowered in self._legit_lower:
            return []
        return [
            f'Contains government pattern "{pattern}" but not in legitimate database'
            for pattern in self.reference.government_patterns
            if pattern in lowered
        ]

    def _detect_generic_patterns(self, ssid: str) -> List[str]:
        evidence = []
        lowered = ssid.lower()

        if lowered in self.reference.generic_names:
            evidence.append(f'Generic network name "{lowered}" - commonly used by attackers')

        for term in self.reference.marketing_terms:
            if term.replace('_', '') in lowered:
                evidence.append(f'Contains marketing term "{term}" - common in malicious hotspots')

        if len(ssid) > self.config.max_ssid_length:
            evidence.append(f'Unusually long SSID ({len(ssid)} characters)')

        if len(ssid) > 8 and ssid == ssid.upper() and _DIGIT.search(ssid) and not _LOWER.search(ssid):
            evidence.append('All caps with numbers pattern - common in cheap/malicious devices')
        return evidence

    def get_stats(self) -> Dict[str, Any]:
        return {
            'legitimate_networks': len(self.reference.legitimate_networks),
            'typosquatting_patterns': len(self.reference.typosquatting_patterns),
            'character_substitutions': len(self.reference.character_substitutions),
        }
