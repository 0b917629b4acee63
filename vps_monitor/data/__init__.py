"""Data provider package."""

from .cpu import collect_cpu_identity, collect_cpu_load
from .disk import collect_filesystems
from .memory import collect_memory
from .network import collect_network_rates
from .system import collect_uptime

DEFAULT_PROVIDERS = {
    "cpu_identity": collect_cpu_identity,
    "cpu_load": collect_cpu_load,
    "memory": collect_memory,
    "uptime": collect_uptime,
    "network": collect_network_rates,
    "disk": collect_filesystems,
}

__all__ = [
    "DEFAULT_PROVIDERS",
    "collect_cpu_identity",
    "collect_cpu_load",
    "collect_filesystems",
    "collect_memory",
    "collect_network_rates",
    "collect_uptime",
]
