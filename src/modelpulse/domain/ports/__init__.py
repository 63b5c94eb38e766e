from .prober import EndpointProberPort

__all__ = ["EndpointProberPort"]
