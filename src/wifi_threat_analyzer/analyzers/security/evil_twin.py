"""
Evil Twin detector.

Looks for other access points in the same scan broadcasting the same
SSID under a different BSSID and scores how likely the observed one is
the impostor:

- Unusually strong signal, only when the network is open or its name is
  close to a whitelisted one
- Open security while a same-SSID peer is encrypted
- MAC address matching a suspicious prefix
- Signal far from the known reference fingerprint
- Poor vendor/SSID compatibility

The cutoff is deliberately strict to keep false positives down.
"""

from typing import List, Optional

from ...core.base_analyzer import BaseThreatDetector, DetectionContext, DetectionResult
from ...core.models import ThreatSeverity, ThreatType, SecurityType
from ...utils.ssid_utils import ssid_similarity


class EvilTwinDetector(BaseThreatDetector):
    """Same-SSID, different-BSSID impostor scoring."""

    name = "evil_twin"
    description = "Multiple access points sharing an SSID with impostor characteristics"
    detection_method = "evil_twin"
    threat_type = ThreatType.EVIL_TWIN
    analysis_order = 20
    suppressed_by = ("government_impersonation",)

    def detect(self, context: DetectionContext) -> Optional[DetectionResult]:
        target = context.observation
        if not target.ssid:
            return None

        peers = context.same_ssid_peers()
        if not peers:
            return None

        self.logger.debug(f"Found {len(peers)} other networks with SSID {target.ssid!r}")

        factors: List[str] = []
        score = 0.0
        config = self.config

        target_is_open = target.is_open
        similar_to_whitelisted = self._has_similar_whitelisted_name(target.ssid)
        if target.signal_level > config.evil_twin_strong_signal_dbm and (target_is_open or similar_to_whitelisted):
            kind = "open" if target_is_open else "similar"
            factors.append(f'Unusually strong signal for {kind} network ({target.signal_level} dBm)')
            score += config.evil_twin_strong_signal_weight

        if target_is_open and any(peer.security_type != SecurityType.OPEN for peer in peers):
            factors.append('Open security while legitimate network is encrypted')
            score += config.evil_twin_open_vs_encrypted_weight

        if self.vendor_directory.matches_suspicious_prefix(target.bssid):
            factors.append('Suspicious MAC address pattern')
            score += config.evil_twin_suspicious_mac_weight

        reference = self.reference.reference_fingerprints.get(target.ssid)
        if reference is not None:
            deviation = abs(target.signal_level - reference.typical_signal_level)
            if deviation > config.evil_twin_fingerprint_deviation_dbm:
                factors.append('Signal strength differs significantly from known legitimate network')
                score += config.evil_twin_fingerprint_deviation_weight

        compatibility = self.vendor_directory.ssid_vendor_compatibility(target.bssid, target.ssid)
        if compatibility < config.evil_twin_low_compatibility:
            factors.append(f'MAC vendor incompatible with SSID type ({int(compatibility * 100)}% compatibility)')
            score += config.evil_twin_low_compatibility_weight

        if score < config.evil_twin_threshold:
            return None

        severity = ThreatSeverity.CRITICAL if score >= config.evil_twin_critical_score else ThreatSeverity.HIGH
        return self.single_finding(
            context,
            severity,
            'Potential Evil Twin attack detected - multiple networks with same SSID',
            factors,
            score,
            suspicion_score=round(score, 4),
            peer_bssids=[peer.bssid for peer in peers],
        )

    def _has_similar_whitelisted_name(self, ssid: str) -> bool:
        lowered = ssid.lower()
        for name in self.reference.legitimate_networks:
            legit = name.lower()
            if legit != lowered and ssid_similarity(lowered, legit) >= self.config.whitelist_similarity:
                return True
        return False
