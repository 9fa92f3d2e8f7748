#!/usr/bin/env python3
"""
Tests for SSID spoofing pattern analysis.
"""

import pytest

from wifi_threat_analyzer.analyzers.core.ssid_analyzer import SSIDAnalyzer
from wifi_threat_analyzer.utils.ssid_utils import (
    levenshtein_distance,
    ssid_similarity,
    matching_keyword
)


@pytest.fixture
def analyzer(reference, config):
    return SSIDAnalyzer(reference, config)


def test_typosquatting_detected(analyzer):
    result = analyzer.analyze("D1CT-CALABARZON", ["D1CT-CALABARZON"])

    assert result.is_detected
    assert result.confidence_score > 0.5
    assert "DICT-CALABARZON" in result.legitimate_matches
    assert any('"D1CT"' in factor for factor in result.suspicious_factors)
    assert any("Character substitution" in factor for factor in result.suspicious_factors)


def test_legitimate_name_is_clean(analyzer):
    result = analyzer.analyze("PLDT_HOME", ["PLDT_HOME", "Globe_Broadband"])

    assert not result.is_detected
    assert result.confidence_score == 0.0
    assert result.suspicious_factors == []


def test_homograph_attack(analyzer):
    result = analyzer.analyze("\u0421onverge", [])

    assert result.is_detected
    assert any("Mixed character scripts" in factor for factor in result.suspicious_factors)
    assert any("U+0421" in factor for factor in result.suspicious_factors)


def test_zero_width_characters(analyzer):
    result = analyzer.analyze("HOME-WIFI\u200b", [])

    assert "Zero-width space character detected" in result.suspicious_factors
    assert result.is_detected


def test_similar_ssids_in_scan(analyzer):
    result = analyzer.analyze("CoffeeShop2", ["CoffeeShop", "CoffeeShop2"])

    assert any('nearby network "CoffeeShop"' in factor for factor in result.suspicious_factors)
    assert result.confidence_score == pytest.approx(0.4)
    assert not result.is_detected


def test_government_impersonation_pattern(analyzer):
    result = analyzer.analyze("DILG-Guest", [])

    assert any('government pattern "dilg"' in factor for factor in result.suspicious_factors)
    assert result.is_detected


def test_generic_name(analyzer):
    result = analyzer.analyze("free", [])

    assert any("Generic network name" in factor for factor in result.suspicious_factors)
    assert result.confidence_score == pytest.approx(0.2)


def test_score_is_capped(analyzer):
    result = analyzer.analyze("D1CT-CALABARZON FREE_WIFI", ["D1CT-CALABARZON FREE_WIFI"])
    assert result.confidence_score <= 1.0


def test_empty_ssid(analyzer):
    result = analyzer.analyze("", ["", "CafeNet"])
    assert not result.is_detected


def test_string_helpers():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert ssid_similarity("", "") == 1.0
    assert ssid_similarity("DICT", "D1CT") == pytest.approx(0.75)
    assert matching_keyword("My-DICT-Net", ["gov", "dict"]) == "dict"
    assert matching_keyword("CafeNet", ["gov", "dict"]) is None
