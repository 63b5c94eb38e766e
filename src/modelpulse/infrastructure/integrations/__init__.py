from .openclaw import OpenClawIntegration, PatchReport
from .opencode import OpenCodeIntegration

__all__ = ["OpenClawIntegration", "OpenCodeIntegration", "PatchReport"]
