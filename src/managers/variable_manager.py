"""Tag Manager API operations on workspace variables."""

from __future__ import annotations

from typing import Any

from utils.google_api import execute_with_retry, list_all_pages


class VariableManager:
    """Variable operations (list/create/update/delete) for one API service."""

    def __init__(self, service: Any):
        self.service = service

    def _variables(self) -> Any:
        return self.service.accounts().containers().workspaces().variables()

    def list_variables(self, workspace_path: str) -> list[dict[str, Any]]:
        """Return all variables in a workspace (paginated)."""

        def fetch_page(page_token: str | None) -> dict[str, Any]:
            req = self._variables().list(parent=workspace_path, pageToken=page_token)
            return execute_with_retry(req.execute)

        return list_all_pages(fetch_page, items_field="variable")

    def list_variables_of_type(self, workspace_path: str, variable_type: str) -> list[dict[str, Any]]:
        """Return workspace variables whose GTM `type` equals `variable_type`."""
        return [v for v in self.list_variables(workspace_path) if v.get("type") == variable_type]

    def create_variable(self, workspace_path: str, variable: dict[str, Any]) -> dict[str, Any]:
        """Create a variable in a workspace."""
        req = self._variables().create(parent=workspace_path, body=variable)
        return execute_with_retry(req.execute)

    def update_variable(
        self,
        variable_path: str,
        variable: dict[str, Any],
        *,
        fingerprint: str | None = None,
    ) -> dict[str, Any]:
        """Update a variable by API path, guarded by its fingerprint when known."""
        kwargs: dict[str, Any] = {"path": variable_path, "body": variable}
        if fingerprint:
            kwargs["fingerprint"] = fingerprint
        req = self._variables().update(**kwargs)
        return execute_with_retry(req.execute)

    def delete_variable(self, variable_path: str) -> None:
        """Delete a variable by API path."""
        req = self._variables().delete(path=variable_path)
        execute_with_retry(req.execute)

    def find_variable_by_name(self, workspace_path: str, name: str) -> dict[str, Any] | None:
        """Find a variable by name (case-insensitive)."""
        wanted = name.strip().lower()
        for variable in self.list_variables(workspace_path):
            if (variable.get("name") or "").strip().lower() == wanted:
                return variable
        return None
