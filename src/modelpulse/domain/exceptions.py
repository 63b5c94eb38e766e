"""Application exceptions.

The scoring engine never raises; these cover the I/O seams around it.
"""

from __future__ import annotations


class ModelPulseError(Exception):
    """Base class for all modelpulse errors."""


class SettingsError(ModelPulseError):
    """Raised when persisted settings cannot be interpreted."""


class IntegrationError(ModelPulseError):
    """Raised when a third-party tool configuration cannot be written or launched."""


class NoEndpointAvailableError(ModelPulseError):
    """Raised when a selection is requested but no endpoint is known."""
