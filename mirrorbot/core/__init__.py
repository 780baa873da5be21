"""Core mirroring engine."""

from .caches import MirrorState
from .propagator import EditDeletePropagator
from .proxy_endpoints import ProxyEndpointManager
from .relay_engine import RelayEngine
from .routing_table import RoutingTable

__all__ = [
    "MirrorState",
    "EditDeletePropagator",
    "ProxyEndpointManager",
    "RelayEngine",
    "RoutingTable",
]
