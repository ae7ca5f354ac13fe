"""Environment-driven verifier settings."""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from src.pactverify.errors import ConfigurationError

DEFAULT_PROVIDER_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class VerifierSettings:
    provider_base_url: str = DEFAULT_PROVIDER_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    provider_states_setup_url: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings(environ: Mapping[str, str] | None = None) -> VerifierSettings:
    """Read ``PACTVERIFY_*`` variables, falling back to the defaults."""
    env = os.environ if environ is None else environ

    raw_timeout = env.get("PACTVERIFY_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise ConfigurationError(f"PACTVERIFY_TIMEOUT must be a number, got {raw_timeout!r}") from None
    if timeout <= 0:
        raise ConfigurationError(f"PACTVERIFY_TIMEOUT must be positive, got {timeout}")

    return VerifierSettings(
        provider_base_url=env.get("PACTVERIFY_PROVIDER_BASE_URL", DEFAULT_PROVIDER_BASE_URL),
        timeout=timeout,
        provider_states_setup_url=env.get("PACTVERIFY_PROVIDER_STATES_SETUP_URL") or None,
        log_level=env.get("PACTVERIFY_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )
