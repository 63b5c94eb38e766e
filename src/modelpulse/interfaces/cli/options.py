"""Command-line token parsing.

A hand-written parser rather than argparse: flags are case-insensitive,
a value flag followed by another flag simply has no value, and the first
free token is an API key rather than a positional argument.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from modelpulse.domain.entities import TIER_LETTER_MAP

FLAG_PREFIX = "--"

# flag -> CliOptions field
_BOOLEAN_FLAGS: dict[str, str] = {
    "--best": "best_mode",
    "--fiable": "fiable_mode",
    "--opencode": "open_code_mode",
    "--opencode-desktop": "open_code_desktop_mode",
    "--openclaw": "open_claw_mode",
    "--no-telemetry": "no_telemetry",
}

# Config wiring flags (no business logic).
_VALUE_FLAGS: dict[str, str] = {
    "--tier": "tier_letter",
    "--config": "config_path",
    "--dotenv": "dotenv_path",
    "--log-level": "log_level",
    "--profile": "profile",
}

_UPPERCASED = frozenset({"tier_letter", "log_level"})


@dataclass(frozen=True)
class CliOptions:
    credential: str | None = None
    best_mode: bool = False
    fiable_mode: bool = False
    open_code_mode: bool = False
    open_code_desktop_mode: bool = False
    open_claw_mode: bool = False
    no_telemetry: bool = False
    tier_letter: str | None = None
    config_path: str | None = None
    dotenv_path: str | None = None
    log_level: str | None = None
    profile: str | None = None


def _is_flag(token: str) -> bool:
    return token.startswith(FLAG_PREFIX)


def parse_options(tokens: Sequence[str]) -> CliOptions:
    """Parse *tokens* (``sys.argv[1:]``) into :class:`CliOptions`.

    - Boolean flags are matched case-insensitively; unknown flags are ignored.
    - A value flag takes the next token unless that token is itself a flag,
      in which case the value stays ``None``.
    - The first token that is neither a flag nor a consumed value becomes
      the credential; later free tokens are ignored.
    """
    values: dict[str, object] = {}
    credential: str | None = None
    consumed: set[int] = set()

    for i, token in enumerate(tokens):
        if i in consumed:
            continue
        if not _is_flag(token):
            if credential is None:
                credential = token
            continue

        flag = token.lower()
        if flag in _BOOLEAN_FLAGS:
            values[_BOOLEAN_FLAGS[flag]] = True
        elif flag in _VALUE_FLAGS:
            field = _VALUE_FLAGS[flag]
            nxt = tokens[i + 1] if i + 1 < len(tokens) else None
            if nxt is not None and not _is_flag(nxt):
                values[field] = nxt.upper() if field in _UPPERCASED else nxt
                consumed.add(i + 1)
            else:
                values[field] = None

    return CliOptions(credential=credential, **values)


def validate_tier_letter(letter: str | None) -> str | None:
    """Return *letter* (uppercased) if it names a tier family, else ``None``."""
    if letter is None:
        return None
    upper = letter.upper()
    return upper if upper in TIER_LETTER_MAP else None
