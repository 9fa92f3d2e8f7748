#!/usr/bin/env python3
"""
Tests for the bounded history buffers.
"""

from datetime import datetime, timedelta

import pytest

from wifi_threat_analyzer.core.history import (
    NetworkHistory,
    RingBuffer,
    ScanHistory,
    SignalSample
)
from wifi_threat_analyzer.core.models import (
    AccessPointObservation,
    AttackType,
    ScanSnapshot,
    SecurityType
)

T0 = datetime(2024, 1, 1, 12, 0, 0)


def sample(ssid="CafeNet", bssid="00:1F:3F:AA:BB:CC", level=-60, minutes=0):
    return SignalSample(
        ssid=ssid,
        bssid=bssid,
        signal_level=level,
        security_type=SecurityType.WPA2,
        vendor_name="NETGEAR",
        timestamp=T0 + timedelta(minutes=minutes),
    )


def snapshot(*observations, minutes=0):
    return ScanSnapshot(observations=tuple(observations), captured_at=T0 + timedelta(minutes=minutes))


def test_ring_buffer_evicts_oldest():
    ring = RingBuffer(3)
    for i in range(3):
        assert ring.append(i) is None
    assert ring.append(3) == 0
    assert ring.append(4) == 1

    assert ring.snapshot() == (2, 3, 4)
    assert ring.last() == 4
    assert ring.latest(2) == (3, 4)
    assert len(ring) == 3
    assert ring.capacity == 3


def test_ring_buffer_clear_and_empty():
    ring = RingBuffer(2)
    assert ring.last() is None
    assert ring.latest(0) == ()
    ring.append("a")
    ring.clear()
    assert len(ring) == 0
    assert list(ring) == []


def test_ring_buffer_rejects_zero_capacity():
    with pytest.raises(ValueError):
        RingBuffer(0)


def test_network_history_reads_are_immutable_copies():
    history = NetworkHistory(signal_history_size=5)
    history.commit([sample(level=-60)])

    before = history.signal_history("CafeNet", "00:1F:3F:AA:BB:CC")
    history.commit([sample(level=-50, minutes=1)])

    assert isinstance(before, tuple)
    assert [s.signal_level for s in before] == [-60]
    assert [s.signal_level for s in history.signal_history("CafeNet", "00:1F:3F:AA:BB:CC")] == [-60, -50]


def test_network_history_per_ssid_sightings():
    history = NetworkHistory()
    history.commit([
        sample(bssid="00:1F:3F:AA:BB:CC"),
        sample(bssid="00:1B:2F:11:22:33"),
        sample(ssid="Other"),
    ])

    assert len(history.ssid_sightings("CafeNet")) == 2
    assert history.ssid_sightings("Missing") == ()
    stats = history.get_stats()
    assert stats["tracked_networks"] == 3
    assert stats["tracked_ssids"] == 2
    assert stats["commits"] == 1


def test_network_history_bounds():
    history = NetworkHistory(signal_history_size=3, ssid_history_size=3, max_tracked_networks=2)
    history.commit([sample(level=-60 - i, minutes=i) for i in range(5)])
    assert [s.signal_level for s in history.signal_history("CafeNet", "00:1F:3F:AA:BB:CC")] == [-62, -63, -64]

    history.commit([sample(ssid="A"), sample(ssid="B")])
    # Least recently used network is dropped
    assert history.signal_history("CafeNet", "00:1F:3F:AA:BB:CC") == ()
    assert history.get_stats()["tracked_networks"] == 2

    history.clear()
    assert history.get_stats()["signal_samples"] == 0


def test_scan_history_commit_and_view():
    history = ScanHistory(scan_history_size=2)
    ap = AccessPointObservation("CafeNet", "00:1F:3F:AA:BB:CC", -60, "[WPA2]")

    view = history.view()
    assert view.snapshots == ()

    history.commit(snapshot(ap), [AttackType.HONEYPOT_PATTERN])
    history.commit(snapshot(ap, minutes=1))
    history.commit(snapshot(ap, minutes=2))

    view = history.view()
    assert len(view.snapshots) == 2
    assert view.snapshots[-1].captured_at == T0 + timedelta(minutes=2)
    assert [b.signal_level for b in view.behavior[ap.key]] == [-60, -60, -60]
    assert view.reported_patterns[AttackType.HONEYPOT_PATTERN] == T0
    assert history.get_stats() == {'scan_count': 2, 'scan_capacity': 2, 'tracked_networks': 1}


def test_scan_history_prunes_stale_behavior():
    history = ScanHistory(behavior_retention=timedelta(minutes=10))
    old = AccessPointObservation("Gone", "00:1F:3F:AA:BB:CC", -60)
    new = AccessPointObservation("Here", "00:1B:2F:11:22:33", -60)

    history.commit(snapshot(old))
    history.commit(snapshot(new, minutes=30))

    assert old.key not in history.view().behavior
    assert new.key in history.view().behavior

    history.clear()
    assert len(history) == 0
