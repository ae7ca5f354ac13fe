"""Command-line provider verification.

Usage:
    python -m src.pactverify.cli pacts/consumer-provider.json \
        --provider-base-url http://localhost:8000 \
        --provider-states-setup-url http://localhost:8000/_pact/provider-states

Exit status: 0 when every pact verified, 1 when any interaction failed,
2 when a pact file or the configuration is unusable.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Optional

from src.pactverify.config import VerifierSettings, load_settings
from src.pactverify.errors import ConfigurationError, ContractLoadError, PactFailureError, ProviderStateError
from src.pactverify.loader import load_contract
from src.pactverify.states import ProviderStates, RemoteProviderStates
from src.pactverify.transport import HttpxTransport
from src.pactverify.verifier import PactVerifier

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIGURATION = 2


def _parse_args(argv: Optional[Sequence[str]], settings: VerifierSettings) -> argparse.Namespace:
    """Parse CLI arguments; defaults come from PACTVERIFY_* settings."""
    parser = argparse.ArgumentParser(
        description="Verify consumer pact files against a running provider"
    )
    parser.add_argument("pact_files", nargs="+", help="Pact JSON files to verify, in order")
    parser.add_argument(
        "--provider-base-url",
        default=settings.provider_base_url,
        help="Base URL of the provider under test",
    )
    parser.add_argument(
        "--provider-states-setup-url",
        default=settings.provider_states_setup_url,
        help="Provider endpoint that sets up and tears down provider states. Empty to skip.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.timeout,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    args = _parse_args(argv, settings)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    exit_code = EXIT_OK
    with HttpxTransport(args.provider_base_url, timeout=args.timeout) as transport:
        verifier = PactVerifier(transport)
        for pact_file in args.pact_files:
            try:
                contract = load_contract(pact_file)
                if args.provider_states_setup_url:
                    states: ProviderStates = RemoteProviderStates(
                        args.provider_states_setup_url,
                        transport.client,
                        consumer_name=contract.consumer_name,
                    )
                else:
                    states = ProviderStates()
                verifier.verify(contract, states)
            except (ContractLoadError, ConfigurationError, ProviderStateError) as exc:
                print(f"{pact_file}: ERROR {exc}", file=sys.stderr)
                return EXIT_CONFIGURATION
            except PactFailureError as exc:
                print(f"{pact_file}: FAILED ({len(exc.errors)} error(s))")
                for error in exc.errors:
                    print(f"  - {error}")
                exit_code = EXIT_FAILED
            else:
                print(f"{pact_file}: OK ({len(contract.interactions)} interaction(s))")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
