#!/usr/bin/env python3
"""
Tests for the individual per-network detectors.
"""

from datetime import datetime, timedelta

import pytest

from wifi_threat_analyzer.analyzers.core.ssid_analyzer import SSIDAnalyzer
from wifi_threat_analyzer.analyzers.core.vendor_directory import VendorDirectory
from wifi_threat_analyzer.analyzers.security import (
    EvilTwinDetector,
    GovernmentImpersonationDetector,
    HistoricalComparisonDetector,
    MACAnalysisDetector,
    SecurityConfigDetector,
    SignalAnomalyDetector,
    SSIDSpoofingDetector
)
from wifi_threat_analyzer.analyzers.security.government_impersonation import GATE_EVIDENCE
from wifi_threat_analyzer.core.base_analyzer import BaseThreatDetector, DetectionContext
from wifi_threat_analyzer.core.config import EngineConfig
from wifi_threat_analyzer.core.history import SignalSample
from wifi_threat_analyzer.core.models import SecurityType, ThreatSeverity, ThreatType

from conftest import OPEN, WEP, WPA2, WPA3, NETGEAR, TP_LINK, PINEAPPLE, UNKNOWN, RANDOMIZED

T0 = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def directory(reference, config):
    return VendorDirectory(reference, config)


@pytest.fixture
def build(reference, config, directory):
    def _build(detector_class, engine_config=None):
        return detector_class(reference, engine_config or config, directory)
    return _build


@pytest.fixture
def context(directory):
    def _context(ap, scan=None, ssid_analysis=None, signal_history=(), ssid_history=()):
        return DetectionContext(
            observation=ap,
            scan=tuple(scan if scan is not None else [ap]),
            timestamp=T0,
            vendor=directory.lookup_vendor(ap.bssid),
            ssid_analysis=ssid_analysis,
            signal_history=tuple(signal_history),
            ssid_history=tuple(ssid_history),
        )
    return _context


def sighting(ssid, bssid, level=-60, security=SecurityType.WPA2, vendor="NETGEAR", hours_ago=1.0):
    return SignalSample(ssid, bssid, level, security, vendor, T0 - timedelta(hours=hours_ago))


def test_same_ssid_peers(make_ap, context):
    target = make_ap("CafeNet", NETGEAR)
    twin = make_ap("CafeNet", TP_LINK)
    other = make_ap("Library", UNKNOWN)

    ctx = context(target, [target, twin, other])
    assert ctx.same_ssid_peers() == [twin]
    assert ctx.all_ssids == ["CafeNet", "CafeNet", "Library"]


# SSID spoofing

def test_ssid_spoofing_reports_detected_pattern(reference, config, build, context, make_ap):
    ap = make_ap("D1CT-CALABARZON", TP_LINK)
    analysis = SSIDAnalyzer(reference, config).analyze(ap.ssid, [ap.ssid])

    result = build(SSIDSpoofingDetector).detect(context(ap, ssid_analysis=analysis))

    threat = result.threats[0]
    assert threat.threat_type == ThreatType.EVIL_TWIN
    assert threat.severity == ThreatSeverity.HIGH
    assert threat.confidence_score == pytest.approx(analysis.confidence_score)
    assert result.evidence[0].detection_method == "ssid_analysis"


def test_ssid_spoofing_skips_verified_and_clean(reference, config, build, context, make_ap):
    analyzer = SSIDAnalyzer(reference, config)
    spoof = make_ap("D1CT-CALABARZON", TP_LINK)
    reference.verified_networks.add((spoof.ssid, spoof.bssid))
    detector = build(SSIDSpoofingDetector)

    assert detector.detect(context(spoof, ssid_analysis=analyzer.analyze(spoof.ssid, []))) is None

    clean = make_ap("PLDT_HOME", TP_LINK)
    assert detector.detect(context(clean, ssid_analysis=analyzer.analyze(clean.ssid, []))) is None
    assert detector.detect(context(clean)) is None


# Government impersonation gate

def test_government_gate(build, context, make_ap):
    ap = make_ap("DICT-Free-WiFi", TP_LINK, -55)

    result = build(GovernmentImpersonationDetector).detect(context(ap))

    threat = result.threats[0]
    assert threat.severity == ThreatSeverity.CRITICAL
    assert threat.threat_type == ThreatType.EVIL_TWIN
    assert threat.confidence_score == pytest.approx(0.95)
    assert list(threat.evidence_details) == GATE_EVIDENCE
    assert threat.metadata["impersonated_pattern"] == "dict"
    assert threat.metadata["signal_strength"] == -55


def test_government_gate_ignores_other_names_and_verified_pairs(reference, build, context, make_ap):
    detector = build(GovernmentImpersonationDetector)
    assert detector.detect(context(make_ap("CafeNet"))) is None

    verified = make_ap("DICT-CALABARZON", NETGEAR)
    reference.verified_networks.add((verified.ssid, verified.bssid))
    assert detector.detect(context(verified)) is None
    # Same name from another radio is still gated
    assert detector.detect(context(make_ap("DICT-CALABARZON", TP_LINK))) is not None


# Evil twin

def test_evil_twin_flags_open_impostor(build, context, make_ap):
    legit = make_ap("CoffeeShop", NETGEAR, -60, WPA2)
    rogue = make_ap("CoffeeShop", RANDOMIZED, -25, OPEN)
    scan = [legit, rogue]
    detector = build(EvilTwinDetector)

    result = detector.detect(context(rogue, scan))

    threat = result.threats[0]
    assert threat.severity == ThreatSeverity.CRITICAL
    assert threat.metadata["suspicion_score"] >= 0.6
    assert threat.metadata["peer_bssids"] == [NETGEAR]
    assert threat.confidence_score == 1.0
    assert "Open security while legitimate network is encrypted" in threat.evidence_details

    assert detector.detect(context(legit, scan)) is None


def test_evil_twin_needs_a_peer(build, context, make_ap):
    detector = build(EvilTwinDetector)
    rogue = make_ap("CoffeeShop", RANDOMIZED, -25, OPEN)
    assert detector.detect(context(rogue)) is None

    hidden = make_ap("", RANDOMIZED, -25, OPEN)
    assert detector.detect(context(hidden, [hidden, make_ap("", NETGEAR)])) is None


def test_evil_twin_below_threshold(build, context, make_ap):
    # Open but weak signal from a known vendor: 0.4 only
    legit = make_ap("CoffeeShop", NETGEAR, -60, WPA2)
    other = make_ap("CoffeeShop", TP_LINK, -70, OPEN)
    assert build(EvilTwinDetector).detect(context(other, [legit, other])) is None


def test_evil_twin_high_below_critical_score(build, context, make_ap):
    detector = build(EvilTwinDetector, EngineConfig(evil_twin_critical_score=1.5))
    legit = make_ap("CoffeeShop", NETGEAR, -60, WPA2)
    rogue = make_ap("CoffeeShop", RANDOMIZED, -25, OPEN)

    result = detector.detect(context(rogue, [legit, rogue]))
    assert result.threats[0].severity == ThreatSeverity.HIGH


def test_evil_twin_is_suppressed_by_gate():
    assert "government_impersonation" in EvilTwinDetector.suppressed_by


# MAC analysis

def test_mac_analysis_unknown_vendor(build, context, make_ap):
    result = build(MACAnalysisDetector).detect(context(make_ap("CafeNet", UNKNOWN)))

    threat = result.threats[0]
    assert threat.threat_type == ThreatType.SUSPICIOUS_MAC
    assert threat.severity == ThreatSeverity.MEDIUM
    assert threat.confidence_score == pytest.approx(0.7)
    assert threat.evidence_details == ("Unknown MAC vendor - not in database",)


def test_mac_analysis_attack_hardware_is_critical(build, context, make_ap):
    result = build(MACAnalysisDetector).detect(context(make_ap("CafeNet", PINEAPPLE)))

    threat = result.threats[0]
    assert threat.severity == ThreatSeverity.CRITICAL
    assert "MAC address found in malicious network database" in threat.evidence_details
    assert threat.metadata["vendor"] == "WiFi Pineapple"


def test_mac_analysis_vendor_ssid_mismatch(build, context, make_ap):
    detector = build(MACAnalysisDetector)
    assert detector.detect(context(make_ap("CafeNet", NETGEAR))) is None

    result = detector.detect(context(make_ap("PLDT_HOME", NETGEAR)))
    assert result.threats[0].evidence_details == ("Poor SSID-vendor compatibility: 10%",)


# Signal anomaly

def test_signal_anomaly_absolute_levels(build, context, make_ap):
    detector = build(SignalAnomalyDetector)

    assert detector.detect(context(make_ap("CafeNet", signal_level=-60))) is None

    strong = detector.detect(context(make_ap("CafeNet", signal_level=-15)))
    assert strong.threats[0].severity == ThreatSeverity.MEDIUM
    assert strong.threats[0].confidence_score == pytest.approx(0.4)

    implausible = detector.detect(context(make_ap("CafeNet", signal_level=-5)))
    assert implausible.threats[0].severity == ThreatSeverity.HIGH
    assert implausible.threats[0].confidence_score == pytest.approx(0.9)


def test_signal_anomaly_against_history(build, context, make_ap):
    detector = build(SignalAnomalyDetector)
    history = [sighting("CafeNet", NETGEAR, level) for level in (-70, -72, -71)]

    result = detector.detect(context(make_ap("CafeNet", signal_level=-25), signal_history=history))

    threat = result.threats[0]
    assert threat.severity == ThreatSeverity.HIGH
    assert len(threat.evidence_details) == 3
    assert threat.metadata["history_samples"] == 3

    steady = [sighting("CafeNet", NETGEAR, level) for level in (-60, -62, -61)]
    assert detector.detect(context(make_ap("CafeNet", signal_level=-61), signal_history=steady)) is None


# Security configuration

def test_security_downgrade_from_wpa3(build, context, make_ap):
    history = [sighting("CafeNet", NETGEAR, security=SecurityType.WPA3)]

    result = build(SecurityConfigDetector).detect(
        context(make_ap("CafeNet", capabilities=WPA2), signal_history=history))

    threat = result.threats[0]
    assert threat.threat_type == ThreatType.SECURITY_DOWNGRADE
    assert threat.severity == ThreatSeverity.HIGH
    assert threat.evidence_details == ("Security downgraded from WPA3 to WPA2",)


def test_security_open_enterprise_and_weak_government(build, context, make_ap):
    detector = build(SecurityConfigDetector)

    enterprise = detector.detect(context(make_ap("Company-Net", capabilities=OPEN)))
    assert enterprise.threats[0].confidence_score == 1.0
    assert "Enterprise network without encryption - highly suspicious" in enterprise.threats[0].evidence_details

    government = detector.detect(context(make_ap("DILG-Annex", capabilities=WEP)))
    assert "Government network with inadequate security" in government.threats[0].evidence_details


def test_security_expected_type(build, context, make_ap):
    detector = build(SecurityConfigDetector)
    assert detector.expected_security("PLDT_HOME") == SecurityType.WPA2
    assert detector.expected_security("CafeNet") is None

    weak_home = detector.detect(context(make_ap("HOME-WIFI", capabilities=WEP)))
    assert weak_home.threats[0].severity == ThreatSeverity.MEDIUM

    assert detector.detect(context(make_ap("CafeNet", capabilities=WPA3))) is None


# Historical comparison

def test_historical_new_bssid_and_vendor(build, context, make_ap):
    sightings = [
        sighting("CafeNet", NETGEAR),
        sighting("CafeNet", "00:1F:3F:00:00:02"),
    ]

    result = build(HistoricalComparisonDetector).detect(
        context(make_ap("CafeNet", TP_LINK), ssid_history=sightings))

    threat = result.threats[0]
    assert threat.threat_type == ThreatType.HISTORICAL_ANOMALY
    assert threat.severity == ThreatSeverity.MEDIUM
    assert threat.confidence_score == pytest.approx(0.8)
    assert threat.evidence_details[0] == "New BSSID appeared for known SSID within 24 hours"


def test_historical_stale_sightings(build, context, make_ap):
    sightings = [
        sighting("CafeNet", NETGEAR, hours_ago=30),
        sighting("CafeNet", "00:1F:3F:00:00:02", hours_ago=30),
    ]

    result = build(HistoricalComparisonDetector).detect(
        context(make_ap("CafeNet", TP_LINK), ssid_history=sightings))

    assert result.threats[0].severity == ThreatSeverity.LOW
    assert len(result.threats[0].evidence_details) == 1


def test_historical_without_sightings(build, context, make_ap):
    detector = build(HistoricalComparisonDetector)
    assert detector.detect(context(make_ap("CafeNet"))) is None
    assert detector.detect(context(make_ap("CafeNet"), ssid_history=[sighting("CafeNet", NETGEAR)])) is None


# Catch boundary

class ExplodingDetector(BaseThreatDetector):
    name = "exploding"

    def detect(self, context):
        raise RuntimeError("sensor offline")


def test_run_contains_failures(build, context, make_ap):
    detector = build(ExplodingDetector)

    result = detector.run(context(make_ap("CafeNet")))

    assert not result.triggered
    stats = detector.get_stats()
    assert stats["runs"] == 1
    assert stats["failures"] == 1
    assert stats["detections"] == 0


def test_run_counts_detections(build, context, make_ap):
    detector = build(MACAnalysisDetector)
    detector.run(context(make_ap("CafeNet", UNKNOWN)))
    detector.run(context(make_ap("CafeNet", NETGEAR)))

    stats = detector.get_stats()
    assert stats["runs"] == 2
    assert stats["detections"] == 1
