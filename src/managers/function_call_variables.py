"""Provision GTM "Function Call" variables that call the analytics variable provider.

Each Function Call variable references the provider class and passes the
key-value pairs the provider understands (`action`, `variable_name`,
`current_value`, `default_value`, `default_none`). Definitions are kept in the
provider config and synced into a workspace idempotently by name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from managers.variable_manager import VariableManager
from providers.keys import Action, GtmKey, VariableName

# GTM needs some value for a key-only argument; the provider only checks presence.
DEFAULT_NONE_ARGUMENT_VALUE = "true"

_DYNAMIC_FIELDS = {
    "accountId",
    "containerId",
    "workspaceId",
    "variableId",
    "path",
    "fingerprint",
    "tagManagerUrl",
    "parentFolderId",
}


@dataclass(frozen=True)
class FunctionCallVariableDefinition:
    """Desired Function Call variable, as declared in the provider config."""

    name: str
    action: Action
    variable_name: VariableName | None = None
    current_value: str | None = None
    default_value: str | None = None
    default_none: bool = False
    notes: str | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> "FunctionCallVariableDefinition":
        """Validate a config entry.

        Raises:
            ValueError: If the entry cannot produce a request the provider accepts.
        """
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ValueError("Function call variable entries require a 'name'.")

        raw_action = raw.get(GtmKey.ACTION)
        try:
            action = Action(raw_action)
        except ValueError as exc:
            allowed = ", ".join(a.value for a in Action)
            raise ValueError(
                f"Function call variable '{name}': '{GtmKey.ACTION}' must be one of: "
                f"{allowed} (got {raw_action!r}).",
            ) from exc

        variable_name: VariableName | None = None
        current_value = raw.get(GtmKey.CURRENT_VALUE)
        if action is Action.FETCH_VARIABLE:
            raw_variable_name = raw.get(GtmKey.VARIABLE_NAME)
            try:
                variable_name = VariableName(raw_variable_name)
            except ValueError as exc:
                allowed = ", ".join(v.value for v in VariableName)
                raise ValueError(
                    f"Function call variable '{name}': '{GtmKey.VARIABLE_NAME}' must be one "
                    f"of: {allowed} (got {raw_variable_name!r}).",
                ) from exc
        elif current_value in (None, ""):
            raise ValueError(
                f"Function call variable '{name}': '{GtmKey.CURRENT_VALUE}' is required "
                f"for {Action.ENFORCE_DEFAULT.value}.",
            )

        default_value = raw.get(GtmKey.DEFAULT_VALUE)
        default_none = bool(raw.get(GtmKey.DEFAULT_NONE, False))
        if default_none and default_value is not None:
            raise ValueError(
                f"Function call variable '{name}': '{GtmKey.DEFAULT_VALUE}' and "
                f"'{GtmKey.DEFAULT_NONE}' are mutually exclusive.",
            )

        notes = raw.get("notes")
        return cls(
            name=name,
            action=action,
            variable_name=variable_name,
            current_value=str(current_value) if current_value not in (None, "") else None,
            default_value=str(default_value) if default_value is not None else None,
            default_none=default_none,
            notes=str(notes) if notes else None,
        )

    def arguments(self) -> list[tuple[str, str]]:
        """Key-value pairs GTM will pass to the provider, in a stable order."""
        args = [(GtmKey.ACTION, self.action.value)]
        if self.variable_name is not None:
            args.append((GtmKey.VARIABLE_NAME, self.variable_name.value))
        if self.current_value is not None:
            args.append((GtmKey.CURRENT_VALUE, self.current_value))
        if self.default_value is not None:
            args.append((GtmKey.DEFAULT_VALUE, self.default_value))
        if self.default_none:
            args.append((GtmKey.DEFAULT_NONE, DEFAULT_NONE_ARGUMENT_VALUE))
        return args


def parse_definitions(raw_entries: Iterable[dict[str, Any]]) -> list[FunctionCallVariableDefinition]:
    """Validate config entries and reject duplicate names (case-insensitive)."""
    definitions: list[FunctionCallVariableDefinition] = []
    seen: set[str] = set()
    for raw in raw_entries:
        definition = FunctionCallVariableDefinition.from_mapping(raw)
        key = _lower(definition.name)
        if key in seen:
            raise ValueError(f"Duplicate function call variable name: '{definition.name}'.")
        seen.add(key)
        definitions.append(definition)
    return definitions


def _template(key: str, value: str) -> dict[str, Any]:
    return {"type": "template", "key": key, "value": value}


def build_function_call_variable(
    definition: FunctionCallVariableDefinition,
    *,
    class_name: str,
    variable_type: str,
) -> dict[str, Any]:
    """Return the Tag Manager API body for a Function Call variable."""
    arguments = [
        {
            "type": "map",
            "map": [_template("key", key), _template("value", value)],
        }
        for key, value in definition.arguments()
    ]
    body: dict[str, Any] = {
        "name": definition.name,
        "type": variable_type,
        "parameter": [
            _template("className", class_name),
            {"type": "list", "key": "functionArgument", "list": arguments},
        ],
    }
    if definition.notes:
        body["notes"] = definition.notes
    return body


def _lower(s: str) -> str:
    return s.strip().lower()


def strip_dynamic_fields(value: Any) -> Any:
    """Drop server-generated fields from a variable payload recursively."""
    if isinstance(value, list):
        return [strip_dynamic_fields(v) for v in value]
    if not isinstance(value, dict):
        return value
    return {k: strip_dynamic_fields(v) for k, v in value.items() if k not in _DYNAMIC_FIELDS}


def normalize_for_diff(entity: dict[str, Any]) -> dict[str, Any]:
    """Comparable form of a variable: dynamic fields removed, keys sorted."""

    def _stable(value: Any) -> Any:
        if isinstance(value, list):
            return [_stable(v) for v in value]
        if isinstance(value, dict):
            return {k: _stable(value[k]) for k in sorted(value)}
        return value

    stable = _stable(strip_dynamic_fields(entity))
    return stable if isinstance(stable, dict) else {}


def _index_by_name(entities: Iterable[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for entity in entities:
        name = entity.get("name")
        if isinstance(name, str) and name.strip():
            out[_lower(name)] = entity
    return out


def _entity_path(workspace_path: str, entity: dict[str, Any]) -> str | None:
    path = entity.get("path")
    if isinstance(path, str) and path.strip():
        return path
    variable_id = entity.get("variableId")
    if isinstance(variable_id, str) and variable_id.strip():
        return f"{workspace_path}/variables/{variable_id}"
    return None


def sync_function_call_variables(
    variables: VariableManager,
    workspace_path: str | None,
    definitions: list[FunctionCallVariableDefinition],
    *,
    class_name: str,
    variable_type: str,
    dry_run: bool = True,
    delete_missing: bool = False,
) -> dict[str, Any]:
    """Create/update Function Call variables in a workspace (idempotent by name).

    Args:
        variables: Variable manager bound to an API service.
        workspace_path: Target workspace, or None for a dry run against a
            workspace that does not exist yet.
        definitions: Desired variables.
        class_name: Provider class GTM should call.
        variable_type: GTM variable type of Function Call variables.
        dry_run: Report the plan without writing.
        delete_missing: Also delete Function Call variables (of `variable_type`)
            that are not in `definitions`.

    Returns:
        Summary with sorted name lists under created/updated/deleted/skipped.

    Raises:
        ValueError: If a write is requested without a workspace, a name is
            already used by a variable of another type, or an existing variable
            has no path.
    """
    if workspace_path is None and not dry_run:
        raise ValueError("A workspace path is required unless dry_run is set.")

    summary: dict[str, Any] = {
        "workspacePath": workspace_path,
        "dryRun": dry_run,
        "deleteMissing": delete_missing,
        "created": [],
        "updated": [],
        "deleted": [],
        "skipped": [],
    }

    current = variables.list_variables(workspace_path) if workspace_path else []
    current_by_name = _index_by_name(current)
    desired_names: set[str] = set()

    for definition in definitions:
        name_lower = _lower(definition.name)
        desired_names.add(name_lower)
        body = build_function_call_variable(
            definition, class_name=class_name, variable_type=variable_type
        )
        existing = current_by_name.get(name_lower)

        if not existing:
            summary["created"].append(definition.name)
            if not dry_run:
                variables.create_variable(workspace_path, body)
            continue

        if existing.get("type") != variable_type:
            raise ValueError(
                f"Variable '{definition.name}' already exists with type "
                f"'{existing.get('type')}', not a function call variable.",
            )

        if normalize_for_diff(body) == normalize_for_diff(existing):
            summary["skipped"].append(definition.name)
            continue

        summary["updated"].append(definition.name)
        if not dry_run:
            path = _entity_path(workspace_path, existing)
            if not path:
                raise ValueError(
                    f"Cannot update variable '{definition.name}' (missing path/variableId)."
                )
            variables.update_variable(path, body, fingerprint=existing.get("fingerprint"))

    if delete_missing:
        for name_lower, existing in current_by_name.items():
            if name_lower in desired_names or existing.get("type") != variable_type:
                continue
            summary["deleted"].append(str(existing.get("name") or name_lower))
            if dry_run:
                continue
            path = _entity_path(workspace_path, existing)
            if path:
                variables.delete_variable(path)

    for key in ("created", "updated", "deleted", "skipped"):
        summary[key] = sorted(summary[key], key=lambda x: x.lower())
    return summary
