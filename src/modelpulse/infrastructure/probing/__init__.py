from .http_prober import HttpEndpointProber, classify_status
from .monitor import EndpointMonitor, apply_outcome

__all__ = [
    "EndpointMonitor",
    "HttpEndpointProber",
    "apply_outcome",
    "classify_status",
]
