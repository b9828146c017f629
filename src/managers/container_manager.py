"""Tag Manager API operations on container workspaces."""

from __future__ import annotations

from typing import Any

from utils.google_api import execute_with_retry, list_all_pages


class ContainerManager:
    """Workspace lookup and creation for a container."""

    def __init__(self, service: Any):
        self.service = service

    @staticmethod
    def container_path(account_id: str, container_id: str) -> str:
        return f"accounts/{account_id}/containers/{container_id}"

    @classmethod
    def workspace_path(cls, account_id: str, container_id: str, workspace_id: str) -> str:
        return f"{cls.container_path(account_id, container_id)}/workspaces/{workspace_id}"

    def _workspaces(self) -> Any:
        return self.service.accounts().containers().workspaces()

    def list_workspaces(self, account_id: str, container_id: str) -> list[dict[str, Any]]:
        """Return all workspaces of a container (paginated)."""
        parent = self.container_path(account_id, container_id)

        def fetch_page(page_token: str | None) -> dict[str, Any]:
            req = self._workspaces().list(parent=parent, pageToken=page_token)
            return execute_with_retry(req.execute)

        return list_all_pages(fetch_page, items_field="workspace")

    def find_workspace(
        self, account_id: str, container_id: str, workspace_name: str
    ) -> dict[str, Any] | None:
        """Find a workspace by name (case-insensitive)."""
        wanted = workspace_name.strip().lower()
        for workspace in self.list_workspaces(account_id, container_id):
            if (workspace.get("name") or "").strip().lower() == wanted:
                return workspace
        return None

    def get_or_create_workspace(
        self,
        account_id: str,
        container_id: str,
        workspace_name: str,
        *,
        create_if_missing: bool = True,
    ) -> dict[str, Any]:
        """Return the named workspace, creating it when allowed.

        Raises:
            ValueError: If the workspace does not exist and `create_if_missing` is False.
        """
        existing = self.find_workspace(account_id, container_id, workspace_name)
        if existing:
            return existing
        if not create_if_missing:
            raise ValueError(
                f"Workspace '{workspace_name}' not found in "
                f"{self.container_path(account_id, container_id)}.",
            )
        req = self._workspaces().create(
            parent=self.container_path(account_id, container_id),
            body={"name": workspace_name},
        )
        return execute_with_retry(req.execute)

    @classmethod
    def workspace_path_from_payload(
        cls, account_id: str, container_id: str, workspace: dict[str, Any]
    ) -> str:
        """Return a workspace's `path`, or build it from `workspaceId`."""
        path = workspace.get("path")
        if isinstance(path, str) and path.strip():
            return path
        workspace_id = workspace.get("workspaceId")
        if workspace_id:
            return cls.workspace_path(account_id, container_id, str(workspace_id))
        raise ValueError("Workspace response missing path/workspaceId.")
