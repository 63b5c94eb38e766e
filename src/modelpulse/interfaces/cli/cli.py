from __future__ import annotations

import asyncio
import math
import sys
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError
from rich.console import Console

from modelpulse.application.use_cases import (
    BestPick,
    FindBestEndpointUseCase,
    SelectEndpointUseCase,
)
from modelpulse.domain.entities import EndpointState, HandoffResult
from modelpulse.domain.exceptions import ModelPulseError, NoEndpointAvailableError
from modelpulse.infrastructure.catalog.sources import PROVIDERS
from modelpulse.infrastructure.config import AppConfig, load_config
from modelpulse.infrastructure.integrations import (
    OpenClawIntegration,
    OpenCodeIntegration,
)
from modelpulse.infrastructure.logging.setup import configure_logging, shutdown_logging
from modelpulse.infrastructure.persistence.settings_store import (
    Settings,
    SettingsStore,
    TelemetrySettings,
    get_profile,
    set_api_key,
    toggle_favorite,
)
from modelpulse.interfaces.cli.options import (
    CliOptions,
    parse_options,
    validate_tier_letter,
)
from modelpulse.interfaces.composition import (
    CLI_CREDENTIAL_PROVIDER,
    probing_session,
    resolve_credentials,
    select_endpoints,
)
from modelpulse.interfaces.tui.dashboard import Dashboard
from modelpulse.interfaces.tui.render import DashboardView, format_latency

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

USAGE = (
    "usage: modelpulse [API_KEY] [--best] [--fiable] [--tier S|A|B|C]\n"
    "                  [--opencode | --opencode-desktop | --openclaw]\n"
    "                  [--no-telemetry] [--profile NAME] [--config PATH]\n"
    "                  [--dotenv PATH] [--log-level LEVEL]"
)


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _load(options: CliOptions) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if options.log_level:
        cli_overrides["log_level"] = options.log_level
    return load_config(
        config_path=Path(options.config_path) if options.config_path else None,
        dotenv_path=Path(options.dotenv_path) if options.dotenv_path else None,
        cli_overrides=cli_overrides,
    )


def _update_settings(
    store: SettingsStore, settings: Settings, options: CliOptions
) -> Settings:
    """Persist the command-line credential and telemetry opt-out."""
    changed = settings
    if options.credential:
        changed = set_api_key(changed, CLI_CREDENTIAL_PROVIDER, options.credential)
    if options.no_telemetry:
        changed = changed.model_copy(
            update={"telemetry": TelemetrySettings(enabled=False)}
        )
    if changed != settings:
        store.save(changed)
    return changed


def _initial_view(settings: Settings, options: CliOptions) -> DashboardView:
    view = DashboardView(
        tier_letter=options.tier_letter,
        favorites=frozenset(settings.favorites),
    )
    if options.profile:
        profile = get_profile(settings, options.profile)
        if profile is None:
            log.warning("profile_not_found", profile=options.profile)
            _err(f"Profile '{options.profile}' not found, using defaults.")
        else:
            view.sort_column = profile.sort_column
            view.sort_direction = profile.sort_direction
            view.favorites_only = profile.favorites_only
            view.tier_letter = options.tier_letter or validate_tier_letter(
                profile.tier_letter
            )
    return view


def _handoff(options: CliOptions, config: AppConfig) -> SelectEndpointUseCase:
    if options.open_claw_mode:
        openclaw = OpenClawIntegration(config.openclaw_models_path, PROVIDERS)
        return SelectEndpointUseCase(openclaw.register)
    opencode = OpenCodeIntegration(config.opencode_config_path, PROVIDERS)
    return SelectEndpointUseCase(opencode.set_default_model)


def _describe_pick(pick: BestPick) -> str:
    stability = "—" if pick.stability < 0 else str(pick.stability)
    return (
        f"{pick.endpoint.display_label} [{pick.endpoint.capability_tier}] "
        f"avg {format_latency(pick.average_latency)} · "
        f"up {pick.uptime}% · stability {stability}"
    )


def _describe_handoff(result: HandoffResult) -> str:
    lines = [f"{result.tool}: {result.model_ref} -> {result.config_path}"]
    if result.backup_path is not None:
        lines.append(f"  backup: {result.backup_path}")
    if result.detail:
        lines.append(f"  {result.detail}")
    return "\n".join(lines)


async def _run_fiable(
    config: AppConfig,
    endpoints: Sequence[EndpointState],
    credentials: Mapping[str, str | None],
) -> int:
    async with probing_session(config, endpoints, PROVIDERS, credentials) as monitor:
        use_case = FindBestEndpointUseCase(
            monitor,
            observe_seconds=config.probe_observe_seconds,
            interval_seconds=config.probe_interval_seconds,
        )
        try:
            pick = await use_case.execute()
        except NoEndpointAvailableError as exc:
            _err(str(exc))
            return EXIT_FAILURE

    if math.isinf(pick.average_latency):
        _err("No endpoint answered during the observation window.")
        return EXIT_FAILURE
    print(pick.endpoint.id)
    _err(_describe_pick(pick))
    return EXIT_OK


async def _run_dashboard(
    config: AppConfig,
    options: CliOptions,
    store: SettingsStore,
    settings: Settings,
    endpoints: Sequence[EndpointState],
    credentials: Mapping[str, str | None],
) -> int:
    current = settings

    def _toggle_favorite(endpoint_id: str) -> frozenset[str]:
        nonlocal current
        current = toggle_favorite(current, endpoint_id)
        store.save(current)
        return frozenset(current.favorites)

    async with probing_session(config, endpoints, PROVIDERS, credentials) as monitor:
        dashboard = Dashboard(
            monitor,
            _initial_view(settings, options),
            fps=config.ui_fps,
            interval_seconds=config.probe_interval_seconds,
            provider_names={key: p.name for key, p in PROVIDERS.items()},
            on_toggle_favorite=_toggle_favorite,
            console=Console(),
        )
        chosen = await dashboard.run()

    if chosen is None:
        return EXIT_OK

    result = _handoff(options, config).execute(chosen)
    print(_describe_handoff(result))

    if options.open_code_mode and not options.open_claw_mode:
        opencode = OpenCodeIntegration(config.opencode_config_path, PROVIDERS)
        return opencode.launch()
    if options.open_code_desktop_mode:
        print(f"Restart OpenCode Desktop to use {chosen.id}.")
    return EXIT_OK


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Config is loaded exactly once here, then handed down to every component.
    """
    if argv is None:
        argv = sys.argv[1:]

    options = parse_options(list(argv))

    if options.tier_letter is not None and validate_tier_letter(
        options.tier_letter
    ) is None:
        _err(f"Invalid --tier value: {options.tier_letter} (expected S, A, B or C)")
        _err(USAGE)
        return EXIT_USAGE

    try:
        config = _load(options)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        _err(f"Invalid configuration: {exc}")
        return EXIT_USAGE

    configure_logging(config)
    try:
        store = SettingsStore(config.settings_path)
        settings = _update_settings(store, store.load(), options)
        credentials = resolve_credentials(settings, PROVIDERS, options.credential)
        endpoints = select_endpoints(
            settings,
            PROVIDERS,
            tier_letter=options.tier_letter,
            best_mode=options.best_mode,
        )

        if options.fiable_mode:
            return asyncio.run(_run_fiable(config, endpoints, credentials))
        if not endpoints:
            _err("No endpoints match the selected filters.")
            return EXIT_FAILURE
        return asyncio.run(
            _run_dashboard(config, options, store, settings, endpoints, credentials)
        )
    except KeyboardInterrupt:
        return EXIT_OK
    except ModelPulseError as exc:
        log.error("command_failed", error=str(exc))
        _err(str(exc))
        return EXIT_FAILURE
    finally:
        shutdown_logging()


if __name__ == "__main__":
    raise SystemExit(start())
