"""Push channel: endpoints, connections and liveness probes."""

from .connection import (
    PushConnection,
    connect_to_endpoints,
    endpoint_address,
    parse_frame,
)
from .endpoints import EndpointClient, IEndpointClient, session_authorization
from .prober import IProbeTarget, wait_for_ack

__all__ = [
    "PushConnection",
    "connect_to_endpoints",
    "endpoint_address",
    "parse_frame",
    "EndpointClient",
    "IEndpointClient",
    "session_authorization",
    "IProbeTarget",
    "wait_for_ack",
]
