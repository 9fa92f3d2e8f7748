#!/usr/bin/env python3
"""
Tests for scan-wide attack pattern detection.
"""

import pytest

from wifi_threat_analyzer.analyzers.patterns.threat_patterns import HistoricalPatternAnalyzer
from wifi_threat_analyzer.core.models import AttackType, ThreatSeverity

from conftest import OPEN, WPA2, NETGEAR, TP_LINK


@pytest.fixture
def analyzer(reference, config, clock):
    return HistoricalPatternAnalyzer(reference, config, clock)


def pattern_types(analysis):
    return {p.pattern_type for p in analysis.detected_patterns}


def run_scans(analyzer, clock, scans, minutes=1):
    analysis = None
    for scan in scans:
        analysis = analyzer.analyze_scan_patterns(scan)
        clock.advance(minutes=minutes)
    return analysis


def bssid(i, first="00:1F:3F"):
    return f"{first}:00:00:{i:02X}"


def test_quiet_scan_has_no_patterns(analyzer, make_ap):
    analysis = analyzer.analyze_scan_patterns([make_ap("CafeNet"), make_ap("Library", TP_LINK)])

    assert not analysis.has_patterns
    assert analysis.overall_threat_score == 0.0
    assert analysis.most_severe_pattern is None
    assert analysis.environmental_factors["total_networks"] == 2
    assert analysis.scan_count == 1


def test_empty_scan(analyzer):
    analysis = analyzer.analyze_scan_patterns([])
    assert not analysis.has_patterns
    assert analysis.environmental_factors["open_percentage"] == 0.0


def test_coordinated_attack_with_cooldown(analyzer, clock, make_ap):
    scan = [make_ap(name, bssid(i), -70, OPEN) for i, name in enumerate(["NetA", "NetB", "NetC"])]

    first = analyzer.analyze_scan_patterns(scan)
    assert AttackType.COORDINATED_ATTACK in pattern_types(first)
    coordinated = first.detected_patterns[0]
    assert coordinated.severity == ThreatSeverity.HIGH
    assert coordinated.confidence_score == pytest.approx(0.8)
    assert set(coordinated.affected_networks) == {"NetA", "NetB", "NetC"}

    clock.advance(minutes=2)
    assert AttackType.COORDINATED_ATTACK not in pattern_types(analyzer.analyze_scan_patterns(scan))

    clock.advance(minutes=6)
    assert AttackType.COORDINATED_ATTACK in pattern_types(analyzer.analyze_scan_patterns(scan))


def test_timing_replacement(analyzer, clock, make_ap):
    original = [make_ap("CafeNet", NETGEAR)]
    replaced = [make_ap("CafeNet", TP_LINK)]

    analysis = run_scans(analyzer, clock, [original, original, replaced])

    assert AttackType.TIMING_REPLACEMENT in pattern_types(analysis)
    pattern = next(p for p in analysis.detected_patterns if p.pattern_type == AttackType.TIMING_REPLACEMENT)
    assert pattern.confidence_score == pytest.approx(0.85)


def test_timing_replacement_needs_history(analyzer, clock, make_ap):
    analysis = run_scans(analyzer, clock, [[make_ap("CafeNet", NETGEAR)], [make_ap("CafeNet", TP_LINK)]])
    assert AttackType.TIMING_REPLACEMENT not in pattern_types(analysis)


def test_beacon_flooding(analyzer, clock, make_ap):
    quiet = [make_ap("CafeNet", NETGEAR), make_ap("Library", TP_LINK)]
    flood = [make_ap(f"Spam{i}", bssid(i, "00:27:19"), -70, OPEN) for i in range(25)]

    analysis = run_scans(analyzer, clock, [quiet] * 4 + [flood])

    assert AttackType.BEACON_FLOODING in pattern_types(analysis)
    assert analysis.environmental_factors["open_percentage"] == pytest.approx(100.0)


def test_network_cycling(analyzer, clock, make_ap):
    stable = make_ap("Library", TP_LINK)
    blinking = make_ap("Blinky", NETGEAR)
    scans = [[stable, blinking] if i % 2 == 0 else [stable] for i in range(6)]

    analysis = run_scans(analyzer, clock, scans)

    assert AttackType.NETWORK_CYCLING in pattern_types(analysis)
    pattern = next(p for p in analysis.detected_patterns if p.pattern_type == AttackType.NETWORK_CYCLING)
    assert pattern.affected_networks == ("Blinky",)


def test_signal_manipulation(analyzer, clock, make_ap):
    scans = [[make_ap("CafeNet", NETGEAR, level)] for level in (-80, -78, -40)]

    analysis = run_scans(analyzer, clock, scans)

    assert AttackType.SIGNAL_MANIPULATION in pattern_types(analysis)


def test_steady_signal_is_not_manipulation(analyzer, clock, make_ap):
    scans = [[make_ap("CafeNet", NETGEAR, level)] for level in (-80, -78, -75, -79)]
    assert AttackType.SIGNAL_MANIPULATION not in pattern_types(run_scans(analyzer, clock, scans))


def test_mac_randomization(analyzer, make_ap):
    scan = [make_ap(f"Phone{i}", bssid(i, "0A:00:00")) for i in range(5)] + [make_ap("CafeNet", NETGEAR)]

    analysis = analyzer.analyze_scan_patterns(scan)

    assert AttackType.MAC_RANDOMIZATION in pattern_types(analysis)


def test_honeypot(analyzer, make_ap):
    bait = make_ap("Company-Guest", NETGEAR, -25, OPEN)

    score, indicators = analyzer.honeypot_score(bait)
    assert score == pytest.approx(0.7)
    assert len(indicators) == 2

    analysis = analyzer.analyze_scan_patterns([bait, make_ap("Library", TP_LINK)])
    assert AttackType.HONEYPOT_PATTERN in pattern_types(analysis)


def test_overall_score_is_capped(analyzer, make_ap):
    scan = [make_ap(f"Free Office {i}", bssid(i, "02:00:00"), -25, OPEN) for i in range(6)]

    analysis = analyzer.analyze_scan_patterns(scan)

    assert len(analysis.detected_patterns) >= 3
    assert analysis.overall_threat_score == 1.0


def test_evaluate_does_not_commit(analyzer, make_ap):
    snap = analyzer.snapshot([make_ap("CafeNet", NETGEAR, -60, WPA2)])
    analyzer.evaluate(snap)
    analyzer.evaluate(snap)
    assert len(analyzer.history) == 0

    analyzer.commit(snap, analyzer.evaluate(snap))
    assert len(analyzer.history) == 1


def test_pattern_failure_degrades_to_empty(analyzer, make_ap, monkeypatch):
    def broken(snapshot, view):
        raise RuntimeError("boom")

    monkeypatch.setattr(analyzer, "_detect_honeypot", broken)
    analysis = analyzer.analyze_scan_patterns([make_ap("Company-Guest", NETGEAR, -25, OPEN)])

    assert analysis.detected_patterns == []
    assert analysis.overall_threat_score == 0.0


def test_stats_and_clear(analyzer, make_ap):
    analyzer.analyze_scan_patterns([make_ap("Company-Guest", NETGEAR, -25, OPEN)])

    stats = analyzer.get_stats()
    assert stats["analyses"] == 1
    assert stats["patterns_by_type"]["honeypot_pattern"] == 1

    analyzer.clear_history()
    assert analyzer.get_stats()["scan_history_size"] == 0
