#!/usr/bin/env python3
"""
Tests for MAC prefix lookups and vendor/SSID compatibility.
"""

import pytest

from wifi_threat_analyzer.analyzers.core.vendor_directory import VendorDirectory
from wifi_threat_analyzer.core.models import VendorCategory, TrustLevel
from wifi_threat_analyzer.utils.mac_utils import (
    normalize_mac,
    is_locally_administered,
    oui_prefix
)

from conftest import NETGEAR, ZYXEL, BUFFALO, PINEAPPLE, UNKNOWN, RANDOMIZED


@pytest.fixture
def directory(reference, config):
    return VendorDirectory(reference, config)


def test_lookup_known_oui(directory):
    record = directory.lookup_vendor(NETGEAR)
    assert record is not None
    assert record.vendor_name == "NETGEAR"
    assert record.category == VendorCategory.ROUTER
    assert record.trust_level == TrustLevel.HIGH


def test_lookup_accepts_other_notations(directory):
    assert directory.lookup_vendor("00-1f-3f-aa-bb-cc").vendor_name == "NETGEAR"
    assert directory.lookup_vendor("001f.3faa.bbcc").vendor_name == "NETGEAR"
    assert directory.lookup_vendor("not-a-mac") is None


def test_lookup_falls_back_to_locally_administered_class(directory):
    record = directory.lookup_vendor(RANDOMIZED)
    assert record is not None
    assert record.category == VendorCategory.RANDOMIZED


def test_unknown_vendor(directory):
    assert directory.lookup_vendor(UNKNOWN) is None
    assert directory.is_suspicious_vendor(UNKNOWN)
    assert not directory.is_legitimate_router_vendor(UNKNOWN)


def test_locally_administered_suspicious_vendor(directory):
    mac = "02:00:00:12:34:56"
    assert is_locally_administered(mac)
    assert directory.is_suspicious_vendor(mac)
    assert directory.lookup_vendor(mac).trust_level == TrustLevel.LOW


def test_trusted_infrastructure_vendors(directory):
    assert directory.is_legitimate_router_vendor(NETGEAR)
    assert directory.is_legitimate_router_vendor(ZYXEL)
    assert directory.is_legitimate_router_vendor(BUFFALO)
    # Phone hotspots are medium trust
    assert not directory.is_legitimate_router_vendor("3C:07:71:00:00:01")


def test_known_malicious_and_prefixes(directory):
    assert directory.is_known_malicious(PINEAPPLE)
    assert directory.is_known_malicious("00:13:37:00:00:00".lower())
    assert not directory.is_known_malicious(NETGEAR)
    assert directory.matches_suspicious_prefix("0A:11:22:33:44:55")
    assert not directory.matches_suspicious_prefix(NETGEAR)


def test_compatibility_isp_ssid(directory):
    assert directory.ssid_vendor_compatibility(ZYXEL, "PLDT_HOME") == pytest.approx(0.8)
    assert directory.ssid_vendor_compatibility(NETGEAR, "PLDT_HOME") == pytest.approx(0.1)


def test_compatibility_government_ssid(directory):
    assert directory.ssid_vendor_compatibility(BUFFALO, "DICT-Office") == pytest.approx(0.9)
    assert directory.ssid_vendor_compatibility(NETGEAR, "DICT-Office") == pytest.approx(0.1)


def test_compatibility_by_trust(directory):
    assert directory.ssid_vendor_compatibility(NETGEAR, "CafeNet") == pytest.approx(0.8)
    assert directory.ssid_vendor_compatibility(RANDOMIZED, "CafeNet") == pytest.approx(0.3)
    assert directory.ssid_vendor_compatibility(PINEAPPLE, "CafeNet") == pytest.approx(0.1)
    assert directory.ssid_vendor_compatibility(UNKNOWN, "CafeNet") == pytest.approx(0.5)


def test_database_stats(directory, reference):
    stats = directory.get_database_stats()
    assert stats["router"] == 10
    assert stats["malicious"] == 1
    assert sum(stats.values()) == len(reference.vendors)


def test_mac_helpers():
    assert normalize_mac("aa:bb:cc:dd:ee:ff") == "AA:BB:CC:DD:EE:FF"
    assert normalize_mac("AABBCCDDEEFF") == "AA:BB:CC:DD:EE:FF"
    assert normalize_mac("") is None
    assert normalize_mac("GG:BB:CC:DD:EE:FF") is None
    assert oui_prefix("00-1f-3f-aa-bb-cc") == "00:1F:3F"
    assert not is_locally_administered(NETGEAR)
