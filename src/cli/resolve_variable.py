#!/usr/bin/env python3
"""
Resolve a GTM function call request locally, the way the tag would at runtime.

Example:
    resolve_variable.py action=fetch_variable variable_name=timestamp
    resolve_variable.py action=enforce_default current_value=undefined default_none
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import Sequence

SRC_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from providers.environment import BuildConfig, Environment  # noqa: E402
from providers.variable_provider import AnalyticsVariableProvider  # noqa: E402
from utils.config import DEFAULT_PROVIDER_CONFIG, load_provider_settings  # noqa: E402
from utils.log import configure_logging  # noqa: E402


def parse_request_pairs(pairs: Sequence[str]) -> dict[str, str]:
    """Turn `KEY=VALUE` arguments into a request; a bare `KEY` maps to ""."""
    request: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid request pair {pair!r}; expected KEY=VALUE or KEY.")
        request[key] = value if sep else ""
    return request


def build_provider(config_path: str | None, environment: str | None) -> AnalyticsVariableProvider:
    """Create a provider from config, optionally forcing the environment."""
    settings = load_provider_settings(config_path)
    build = settings.build
    if environment:
        build = BuildConfig(
            debug=Environment(environment) is Environment.TEST,
            version_name=build.version_name,
        )
    return AnalyticsVariableProvider(build, app_state=settings.app_state)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve a GTM function call variable request with the analytics variable provider.",
    )
    parser.add_argument(
        "pairs",
        nargs="+",
        metavar="KEY=VALUE",
        help="Request key-value pairs, e.g. action=fetch_variable variable_name=environment.",
    )
    parser.add_argument(
        "--config-path",
        help=f"Path to the provider configuration YAML. Defaults to {DEFAULT_PROVIDER_CONFIG} if present.",
    )
    parser.add_argument(
        "--environment",
        choices=[e.value for e in Environment],
        help="Override the configured environment.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for diagnostics on stderr (e.g. DEBUG). Default: WARNING",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        request = parse_request_pairs(args.pairs)
        provider = build_provider(args.config_path, args.environment)
        value = provider.resolve(request)
        print(json.dumps({"request": request, "value": value}, indent=2, ensure_ascii=False))
    except Exception as error:
        print(f"Error: {error}")
        raise


if __name__ == "__main__":
    main()
