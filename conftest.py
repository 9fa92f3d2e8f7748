"""
Shared pytest fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from wifi_threat_analyzer.core.clock import FixedClock
from wifi_threat_analyzer.core.config import EngineConfig
from wifi_threat_analyzer.core.models import AccessPointObservation
from wifi_threat_analyzer.core.reference_data import load_reference_data

WPA2 = "[WPA2-PSK-CCMP][ESS]"
WPA3 = "[WPA3-SAE-CCMP][ESS]"
WEP = "[WEP][ESS]"
OPEN = "[ESS]"

NETGEAR = "00:1F:3F:AA:BB:CC"
TP_LINK = "00:1B:2F:11:22:33"
ZYXEL = "00:1E:58:44:55:66"
BUFFALO = "00:04:75:77:88:99"
PINEAPPLE = "00:13:37:00:00:00"
UNKNOWN = "5C:AA:BB:11:22:33"
RANDOMIZED = "02:11:22:33:44:55"


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def reference():
    """Freshly parsed tables, safe to mutate within a test."""
    return load_reference_data()


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def make_ap():
    """Factory for access point observations."""
    def _make(ssid, bssid=NETGEAR, signal_level=-60, capabilities=WPA2):
        return AccessPointObservation(
            ssid=ssid,
            bssid=bssid,
            signal_level=signal_level,
            capabilities=capabilities,
        )
    return _make
