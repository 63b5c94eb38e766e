from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .endpoint import EndpointSnapshot


@dataclass(frozen=True)
class EndpointSelection:
    """What an integration receives when the operator picks an endpoint."""

    provider_key: str
    model_id: str
    display_label: str
    capability_tier: str

    @property
    def id(self) -> str:
        return f"{self.provider_key}/{self.model_id}"

    @classmethod
    def from_snapshot(cls, endpoint: EndpointSnapshot) -> EndpointSelection:
        return cls(
            provider_key=endpoint.provider_key,
            model_id=endpoint.model_id,
            display_label=endpoint.display_label,
            capability_tier=endpoint.capability_tier,
        )


@dataclass(frozen=True)
class HandoffResult:
    """Outcome of writing a third-party tool configuration."""

    tool: str  # "opencode", "openclaw"
    model_ref: str  # "<provider>/<model_id>"
    config_path: Path
    backup_path: Path | None = None
    changed: bool = True
    detail: str | None = None
