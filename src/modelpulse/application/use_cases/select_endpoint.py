"""Hand the endpoint chosen in the dashboard to an external tool."""

from __future__ import annotations

from typing import Protocol

import structlog

from modelpulse.domain.entities import EndpointSelection, EndpointSnapshot, HandoffResult

log = structlog.get_logger(__name__)


class HandoffTarget(Protocol):
    """Writes a selection into some tool's configuration."""

    def __call__(self, selection: EndpointSelection) -> HandoffResult: ...


class SelectEndpointUseCase:
    """Turns a dashboard row into a tool configuration change."""

    def __init__(self, target: HandoffTarget) -> None:
        self._target = target

    def execute(self, endpoint: EndpointSnapshot) -> HandoffResult:
        selection = EndpointSelection.from_snapshot(endpoint)
        result = self._target(selection)
        log.info(
            "endpoint_selected",
            endpoint=selection.id,
            tool=result.tool,
            config_path=str(result.config_path),
            changed=result.changed,
        )
        return result
