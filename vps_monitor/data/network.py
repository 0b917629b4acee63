"""Network throughput collection."""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, Tuple

import psutil

from vps_monitor.models import NetworkInterfaceRate

_PREV_NET_COUNTERS: Dict[str, Tuple[float, Any]] = {}
_COUNTERS_LOCK = threading.Lock()
_clock = time.monotonic


def _compute_rates(name: str, counters: Any, timestamp: float) -> tuple[float, float]:
    previous = _PREV_NET_COUNTERS.get(name)
    _PREV_NET_COUNTERS[name] = (timestamp, counters)
    if not previous:
        return 0.0, 0.0
    prev_time, prev = previous
    delta_t = timestamp - prev_time
    if delta_t <= 0:
        return 0.0, 0.0
    # counters wrap or reset when an interface is recreated
    recv_rate = max(0.0, (counters.bytes_recv - prev.bytes_recv) / delta_t)
    sent_rate = max(0.0, (counters.bytes_sent - prev.bytes_sent) / delta_t)
    return recv_rate, sent_rate


def collect_network_rates() -> tuple[NetworkInterfaceRate, ...]:
    """Per-interface receive/transmit rates for every interface that is up."""

    stats = psutil.net_if_stats()
    counters = psutil.net_io_counters(pernic=True)

    interfaces: list[NetworkInterfaceRate] = []
    with _COUNTERS_LOCK:
        timestamp = _clock()
        for gone in set(_PREV_NET_COUNTERS) - set(counters):
            del _PREV_NET_COUNTERS[gone]
        for name, iface_counters in counters.items():
            iface_stats = stats.get(name)
            if iface_stats is not None and not iface_stats.isup:
                continue
            recv_rate, sent_rate = _compute_rates(name, iface_counters, timestamp)
            interfaces.append(
                NetworkInterfaceRate(
                    name=name,
                    rx_bytes_per_sec=recv_rate,
                    tx_bytes_per_sec=sent_rate,
                )
            )

    return tuple(interfaces)
