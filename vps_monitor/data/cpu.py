"""CPU data collection utilities."""

from __future__ import annotations

import platform
from pathlib import Path

import psutil

from vps_monitor.models import CPUIdentity

_CPUINFO_PATH = Path("/proc/cpuinfo")

_VENDORS = {
    "GenuineIntel": "Intel",
    "AuthenticAMD": "AMD",
    "CentaurHauls": "VIA",
    "HygonGenuine": "Hygon",
}


def _read_cpuinfo() -> dict[str, str]:
    fields: dict[str, str] = {}
    if not _CPUINFO_PATH.exists():
        return fields
    try:
        text = _CPUINFO_PATH.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return fields
    for line in text.splitlines():
        if not line.strip():
            # Solo nos interesa el primer procesador
            if fields:
                break
            continue
        key, _, value = line.partition(":")
        fields.setdefault(key.strip(), value.strip())
    return fields


def _split_brand(model_name: str, vendor: str) -> str:
    brand = model_name
    for prefix in (vendor, "(R)", "(TM)"):
        if prefix and brand.startswith(prefix):
            brand = brand[len(prefix):].strip()
    return brand or model_name


def collect_cpu_identity() -> CPUIdentity:
    """Return the static CPU identity (vendor, model, clock, cores)."""

    # primes cpu_percent: its first call always returns 0.0
    psutil.cpu_percent(interval=None)
    info = _read_cpuinfo()
    vendor_id = info.get("vendor_id") or info.get("CPU implementer") or ""
    manufacturer = _VENDORS.get(vendor_id, vendor_id)
    model_name = info.get("model name") or info.get("Model") or platform.processor() or ""
    speed_ghz = 0.0
    freq = psutil.cpu_freq()
    if freq:
        speed_ghz = round(float(freq.max or freq.current) / 1000.0, 2)
    return CPUIdentity(
        manufacturer=manufacturer,
        brand=_split_brand(model_name, manufacturer),
        speed_ghz=speed_ghz,
        cores=psutil.cpu_count(logical=True) or 0,
    )


def collect_cpu_load() -> float:
    """System-wide CPU load since the previous call."""

    return float(psutil.cpu_percent(interval=None))

