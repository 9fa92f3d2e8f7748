"""
Bounded history buffers.

All retained history lives in fixed-capacity ring buffers with FIFO
eviction. Readers receive immutable tuples; the only writers are the
commit methods, which the engine calls once per scan after every read
for that scan has completed.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional, Tuple, Iterable, Iterator, Generic, TypeVar

from .models import SecurityType, ScanSnapshot, AttackType

T = TypeVar('T')


class RingBuffer(Generic[T]):
    """Fixed-capacity arena with a head index; appends evict the oldest entry."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"Ring buffer capacity must be positive, got {capacity}")
        self._arena: List[Optional[T]] = [None] * capacity
        self._head = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._arena)

    def append(self, item: T) -> Optional[T]:
        """Append an item, returning the evicted one when full."""
        capacity = len(self._arena)
        if self._size < capacity:
            self._arena[(self._head + self._size) % capacity] = item
            self._size += 1
            return None
        evicted = self._arena[self._head]
        self._arena[self._head] = item
        self._head = (self._head + 1) % capacity
        return evicted

    def clear(self) -> None:
        self._arena = [None] * len(self._arena)
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        capacity = len(self._arena)
        for offset in range(self._size):
            yield self._arena[(self._head + offset) % capacity]

    def snapshot(self) -> Tuple[T, ...]:
        """Oldest-to-newest copy of the contents."""
        return tuple(self)

    def latest(self, count: int) -> Tuple[T, ...]:
        items = self.snapshot()
        return items[-count:] if count > 0 else ()

    def last(self) -> Optional[T]:
        if self._size == 0:
            return None
        return self._arena[(self._head + self._size - 1) % len(self._arena)]


@dataclass(frozen=True)
class SignalSample:
    """One past sighting of a network."""
    ssid: str
    bssid: str
    signal_level: int
    security_type: SecurityType
    vendor_name: Optional[str]
    timestamp: datetime


class _BucketMap:
    """Keyed ring buffers with a cap on the number of tracked keys."""

    def __init__(self, bucket_size: int, max_keys: int):
        self.bucket_size = bucket_size
        self.max_keys = max_keys
        self._buckets: "OrderedDict[Any, RingBuffer[SignalSample]]" = OrderedDict()

    def get(self, key) -> Tuple[SignalSample, ...]:
        bucket = self._buckets.get(key)
        return bucket.snapshot() if bucket else ()

    def append(self, key, sample: SignalSample) -> None:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = RingBuffer(self.bucket_size)
            self._buckets[key] = bucket
            while len(self._buckets) > self.max_keys:
                self._buckets.popitem(last=False)
        else:
            self._buckets.move_to_end(key)
        bucket.append(sample)

    def clear(self) -> None:
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)

    def total_samples(self) -> int:
        return sum(len(b) for b in self._buckets.values())


class NetworkHistory:
    """
    Per-network sighting history used by the per-network detectors.

    Keeps a ring per (ssid, bssid) pair for signal trend analysis and a
    ring per SSID for cross-BSSID comparisons, behind a single lock.
    """

    def __init__(self, signal_history_size: int = 100, ssid_history_size: int = 100,
                 max_tracked_networks: int = 1000):
        self._lock = threading.RLock()
        self._by_network = _BucketMap(signal_history_size, max_tracked_networks)
        self._by_ssid = _BucketMap(ssid_history_size, max_tracked_networks)
        self.commits = 0

    def signal_history(self, ssid: str, bssid: str) -> Tuple[SignalSample, ...]:
        with self._lock:
            return self._by_network.get((ssid, bssid))

    def ssid_sightings(self, ssid: str) -> Tuple[SignalSample, ...]:
        with self._lock:
            return self._by_ssid.get(ssid)

    def commit(self, samples: Iterable[SignalSample]) -> int:
        """Append a whole scan's samples atomically."""
        samples = list(samples)
        with self._lock:
            for sample in samples:
                self._by_network.append((sample.ssid, sample.bssid), sample)
                self._by_ssid.append(sample.ssid, sample)
            self.commits += 1
        return len(samples)

    def clear(self) -> None:
        with self._lock:
            self._by_network.clear()
            self._by_ssid.clear()
            self.commits = 0

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'tracked_networks': len(self._by_network),
                'tracked_ssids': len(self._by_ssid),
                'signal_samples': self._by_network.total_samples(),
                'commits': self.commits,
            }


@dataclass(frozen=True)
class BehaviorSample:
    signal_level: int
    timestamp: datetime


@dataclass(frozen=True)
class ScanHistoryView:
    """Consistent read-only copy of the scan history."""
    snapshots: Tuple[ScanSnapshot, ...]
    behavior: Dict[Tuple[str, str], Tuple[BehaviorSample, ...]]
    reported_patterns: Dict[AttackType, datetime]


class ScanHistory:
    """
    Scan-wide history used by the pattern analyzer.

    Holds the last N scan snapshots, a short per-network signal
    behaviour ring, and when each pattern type was last reported.
    """

    def __init__(self, scan_history_size: int = 50, behavior_size: int = 20,
                 behavior_retention: timedelta = timedelta(hours=1),
                 max_tracked_networks: int = 1000):
        self._lock = threading.RLock()
        self._snapshots: RingBuffer[ScanSnapshot] = RingBuffer(scan_history_size)
        self._behavior: "OrderedDict[Tuple[str, str], RingBuffer[BehaviorSample]]" = OrderedDict()
        self._behavior_size = behavior_size
        self._behavior_retention = behavior_retention
        self._max_tracked_networks = max_tracked_networks
        self._reported: Dict[AttackType, datetime] = {}

    def view(self) -> ScanHistoryView:
        with self._lock:
            return ScanHistoryView(
                snapshots=self._snapshots.snapshot(),
                behavior={key: ring.snapshot() for key, ring in self._behavior.items()},
                reported_patterns=dict(self._reported),
            )

    def commit(self, snapshot: ScanSnapshot, reported: Iterable[AttackType] = ()) -> None:
        """Append one scan and the patterns reported for it."""
        with self._lock:
            self._snapshots.append(snapshot)
            for observation in snapshot.observations:
                ring = self._behavior.get(observation.key)
                if ring is None:
                    ring = RingBuffer(self._behavior_size)
                    self._behavior[observation.key] = ring
                else:
                    self._behavior.move_to_end(observation.key)
                ring.append(BehaviorSample(observation.signal_level, snapshot.captured_at))
            for pattern_type in reported:
                self._reported[pattern_type] = snapshot.captured_at
            self._prune(snapshot.captured_at)

    def _prune(self, now: datetime) -> None:
        cutoff = now - self._behavior_retention
        stale = [key for key, ring in self._behavior.items()
                 if ring.last() is None or ring.last().timestamp < cutoff]
        for key in stale:
            del self._behavior[key]
        while len(self._behavior) > self._max_tracked_networks:
            self._behavior.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()
            self._behavior.clear()
            self._reported.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'scan_count': len(self._snapshots),
                'scan_capacity': self._snapshots.capacity,
                'tracked_networks': len(self._behavior),
            }
