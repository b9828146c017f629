from __future__ import annotations

import pytest

from managers.function_call_variables import (
    FunctionCallVariableDefinition,
    build_function_call_variable,
    normalize_for_diff,
    parse_definitions,
    sync_function_call_variables,
)
from providers.keys import Action, VariableName

WORKSPACE = "accounts/1/containers/2/workspaces/3"
CLASS_NAME = "com.example.app.AnalyticsVariableProvider"


class _FakeVariableManager:
    def __init__(self, existing: list[dict] | None = None):
        self._next_id = 100
        self.by_name: dict[str, dict] = {}
        self.created: list[dict] = []
        self.updated: list[tuple[str, dict, str | None]] = []
        self.deleted: list[str] = []
        for variable in existing or []:
            self.by_name[variable["name"].strip().lower()] = variable

    def list_variables(self, _workspace_path: str) -> list[dict]:
        return list(self.by_name.values())

    def create_variable(self, workspace_path: str, variable: dict) -> dict:
        self._next_id += 1
        created = {
            **variable,
            "variableId": str(self._next_id),
            "path": f"{workspace_path}/variables/{self._next_id}",
            "fingerprint": "fp",
        }
        self.by_name[variable["name"].strip().lower()] = created
        self.created.append(variable)
        return created

    def update_variable(self, variable_path: str, variable: dict, *, fingerprint=None) -> dict:
        self.updated.append((variable_path, variable, fingerprint))
        key = variable["name"].strip().lower()
        self.by_name[key] = {**self.by_name[key], **variable, "fingerprint": "fp2"}
        return self.by_name[key]

    def delete_variable(self, variable_path: str) -> None:
        self.deleted.append(variable_path)
        for key, value in list(self.by_name.items()):
            if value.get("path") == variable_path:
                del self.by_name[key]


ENVIRONMENT_ENTRY = {
    "name": "FC - Environment",
    "action": "fetch_variable",
    "variable_name": "environment",
}
TIER_ENTRY = {
    "name": "FC - Member Tier",
    "action": "enforce_default",
    "current_value": "{{User Property - member_tier}}",
    "default_none": True,
    "notes": "Unset for anonymous users.",
}


def _sync(manager, entries, **kwargs):
    return sync_function_call_variables(
        manager,
        WORKSPACE,
        parse_definitions(entries),
        class_name=CLASS_NAME,
        variable_type="fc",
        **kwargs,
    )


def test_definition_from_mapping_and_arguments() -> None:
    definition = FunctionCallVariableDefinition.from_mapping(
        {**ENVIRONMENT_ENTRY, "default_value": "unknown"}
    )
    assert definition.action is Action.FETCH_VARIABLE
    assert definition.variable_name is VariableName.ENVIRONMENT
    assert definition.arguments() == [
        ("action", "fetch_variable"),
        ("variable_name", "environment"),
        ("default_value", "unknown"),
    ]

    tier = FunctionCallVariableDefinition.from_mapping(TIER_ENTRY)
    assert tier.arguments() == [
        ("action", "enforce_default"),
        ("current_value", "{{User Property - member_tier}}"),
        ("default_none", "true"),
    ]


@pytest.mark.parametrize(
    ("entry", "message"),
    [
        ({"action": "fetch_variable", "variable_name": "environment"}, "name"),
        ({"name": "X", "action": "explode"}, "action"),
        ({"name": "X", "action": "fetch_variable", "variable_name": "xyz"}, "variable_name"),
        ({"name": "X", "action": "fetch_variable"}, "variable_name"),
        ({"name": "X", "action": "enforce_default"}, "current_value"),
        (
            {
                "name": "X",
                "action": "enforce_default",
                "current_value": "{{v}}",
                "default_value": "a",
                "default_none": True,
            },
            "mutually exclusive",
        ),
    ],
)
def test_definition_validation(entry: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        FunctionCallVariableDefinition.from_mapping(entry)


def test_parse_definitions_rejects_duplicate_names() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        parse_definitions([ENVIRONMENT_ENTRY, {**ENVIRONMENT_ENTRY, "name": "fc - environment "}])


def test_build_function_call_variable_body() -> None:
    body = build_function_call_variable(
        FunctionCallVariableDefinition.from_mapping(TIER_ENTRY),
        class_name=CLASS_NAME,
        variable_type="fc",
    )
    assert body["name"] == "FC - Member Tier"
    assert body["type"] == "fc"
    assert body["notes"] == "Unset for anonymous users."
    class_param, args_param = body["parameter"]
    assert class_param == {"type": "template", "key": "className", "value": CLASS_NAME}
    assert args_param["key"] == "functionArgument"
    assert args_param["list"][0] == {
        "type": "map",
        "map": [
            {"type": "template", "key": "key", "value": "action"},
            {"type": "template", "key": "value", "value": "enforce_default"},
        ],
    }
    assert len(args_param["list"]) == 3


def test_normalize_for_diff_ignores_server_fields() -> None:
    body = {"name": "A", "type": "fc", "parameter": []}
    server = {**body, "variableId": "7", "path": "p", "fingerprint": "f", "accountId": "1"}
    assert normalize_for_diff(body) == normalize_for_diff(server)


def test_sync_creates_then_is_idempotent() -> None:
    manager = _FakeVariableManager()

    first = _sync(manager, [ENVIRONMENT_ENTRY, TIER_ENTRY], dry_run=False)
    assert first["created"] == ["FC - Environment", "FC - Member Tier"]
    assert len(manager.created) == 2

    second = _sync(manager, [ENVIRONMENT_ENTRY, TIER_ENTRY], dry_run=False)
    assert second["created"] == []
    assert second["skipped"] == ["FC - Environment", "FC - Member Tier"]
    assert manager.updated == []


def test_sync_updates_changed_variable_with_fingerprint() -> None:
    manager = _FakeVariableManager()
    _sync(manager, [ENVIRONMENT_ENTRY], dry_run=False)

    summary = _sync(manager, [{**ENVIRONMENT_ENTRY, "default_value": "unknown"}], dry_run=False)
    assert summary["updated"] == ["FC - Environment"]
    path, body, fingerprint = manager.updated[0]
    assert path == f"{WORKSPACE}/variables/101"
    assert fingerprint == "fp"
    assert len(body["parameter"][1]["list"]) == 3


def test_sync_dry_run_writes_nothing() -> None:
    manager = _FakeVariableManager(
        existing=[
            {"name": "Legacy FC", "type": "fc", "path": f"{WORKSPACE}/variables/5"},
            {"name": "DLV - Item", "type": "v", "path": f"{WORKSPACE}/variables/6"},
        ]
    )

    summary = _sync(manager, [ENVIRONMENT_ENTRY], dry_run=True, delete_missing=True)
    assert summary["dryRun"] is True
    assert summary["created"] == ["FC - Environment"]
    assert summary["deleted"] == ["Legacy FC"]
    assert manager.created == []
    assert manager.deleted == []


def test_sync_delete_missing_only_touches_function_call_variables() -> None:
    manager = _FakeVariableManager(
        existing=[
            {"name": "Legacy FC", "type": "fc", "variableId": "5"},
            {"name": "DLV - Item", "type": "v", "path": f"{WORKSPACE}/variables/6"},
        ]
    )

    summary = _sync(manager, [ENVIRONMENT_ENTRY], dry_run=False, delete_missing=True)
    assert summary["deleted"] == ["Legacy FC"]
    assert manager.deleted == [f"{WORKSPACE}/variables/5"]


def test_sync_refuses_to_overwrite_other_variable_types() -> None:
    manager = _FakeVariableManager(existing=[{"name": "FC - Environment", "type": "v"}])
    with pytest.raises(ValueError, match="already exists"):
        _sync(manager, [ENVIRONMENT_ENTRY], dry_run=True)


def test_sync_without_workspace_requires_dry_run() -> None:
    definitions = parse_definitions([ENVIRONMENT_ENTRY])
    manager = _FakeVariableManager()

    planned = sync_function_call_variables(
        manager, None, definitions, class_name=CLASS_NAME, variable_type="fc"
    )
    assert planned["workspacePath"] is None
    assert planned["created"] == ["FC - Environment"]

    with pytest.raises(ValueError):
        sync_function_call_variables(
            manager, None, definitions, class_name=CLASS_NAME, variable_type="fc", dry_run=False
        )
