#!/usr/bin/env python3
"""Create or update the GTM Function Call variables declared in the provider config.

Runs as a dry run unless --apply is given.
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import Any, Sequence

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

SRC_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from managers.container_manager import ContainerManager  # noqa: E402
from managers.function_call_variables import (  # noqa: E402
    parse_definitions,
    sync_function_call_variables,
)
from managers.variable_manager import VariableManager  # noqa: E402
from utils.auth import AUTH_METHODS, EDIT_SCOPES, READONLY_SCOPES, get_credentials  # noqa: E402
from utils.config import (  # noqa: E402
    DEFAULT_PROVIDER_CONFIG,
    GtmTarget,
    load_provider_settings,
    resolve_gtm_target,
)
from utils.log import configure_logging  # noqa: E402


def run_sync(
    service: Any,
    target: GtmTarget,
    raw_definitions: list[dict[str, Any]],
    *,
    apply: bool,
    delete_missing: bool,
) -> dict[str, Any]:
    """Sync definitions into the target workspace and return the summary."""
    definitions = parse_definitions(raw_definitions)
    if not definitions and not delete_missing:
        raise ValueError("No function_call_variables defined in the provider config.")

    containers = ContainerManager(service)
    workspace = containers.find_workspace(
        target.account_id, target.container_id, target.workspace_name
    )
    if workspace is None and apply:
        workspace = containers.get_or_create_workspace(
            target.account_id, target.container_id, target.workspace_name
        )
    # A dry run never creates the workspace; a missing one plans every variable as created.
    workspace_path = (
        containers.workspace_path_from_payload(target.account_id, target.container_id, workspace)
        if workspace
        else None
    )

    return sync_function_call_variables(
        VariableManager(service),
        workspace_path,
        definitions,
        class_name=target.class_name,
        variable_type=target.variable_type,
        dry_run=not apply,
        delete_missing=delete_missing,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync GTM Function Call variables that call the analytics variable provider.",
    )
    parser.add_argument("--account-id", help="GTM Account ID (e.g., 2824463661)")
    parser.add_argument("--container-id", help="GTM Container ID (e.g., 51955729)")
    parser.add_argument("--workspace-name", help="Workspace to sync into (created on --apply).")
    parser.add_argument(
        "--class-name",
        help=(
            "Class GTM calls, e.g. com.example.app.AnalyticsVariableProvider (Android) "
            "or MyModule.AnalyticsVariableProvider (iOS)."
        ),
    )
    parser.add_argument(
        "--variable-type",
        help="GTM variable type used for Function Call variables. Defaults to the configured value.",
    )
    parser.add_argument(
        "--config-path",
        help=f"Path to the provider configuration YAML. Defaults to {DEFAULT_PROVIDER_CONFIG}.",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Write changes. Without it, only the planned changes are printed.",
    )
    parser.add_argument(
        "--delete-missing",
        action="store_true",
        help="Delete Function Call variables that are not in the config.",
    )
    parser.add_argument(
        "--output",
        help="Optional path to write the summary as JSON. Defaults to printing to stdout.",
    )
    parser.add_argument(
        "--auth",
        choices=list(AUTH_METHODS),
        default="adc",
        help="Auth method: service (Service Account), user (OAuth), or adc (gcloud / ADC). Default: adc",
    )
    parser.add_argument(
        "--credentials",
        help=(
            "Path to Service Account JSON (for --auth service) or OAuth client_secrets.json "
            "(for --auth user). Not required for --auth adc."
        ),
    )
    parser.add_argument("--log-level", default="INFO", help="Log level. Default: INFO")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_provider_settings(args.config_path)
        target = resolve_gtm_target(
            settings,
            account_id=args.account_id,
            container_id=args.container_id,
            workspace_name=args.workspace_name,
            class_name=args.class_name,
            variable_type=args.variable_type,
        )
        scopes = EDIT_SCOPES if args.apply else READONLY_SCOPES
        credentials = get_credentials(args.auth, args.credentials, scopes)
        service = build("tagmanager", "v2", credentials=credentials, cache_discovery=False)

        summary = run_sync(
            service,
            target,
            settings.function_call_variables,
            apply=args.apply,
            delete_missing=args.delete_missing,
        )

        output = json.dumps(summary, indent=2, ensure_ascii=False)
        if args.output:
            output_path = pathlib.Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(output, encoding="utf-8")
            print(f"Wrote sync summary to {args.output}")
        else:
            print(output)
    except HttpError as error:
        print(f"GTM API error: {error}")
        raise
    except Exception as error:
        print(f"Error: {error}")
        raise


if __name__ == "__main__":
    main()
