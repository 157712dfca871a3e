"""Authenticated GraphQL access to the platform's public API."""

from __future__ import annotations

from typing import Any

import requests

PROJECT_QUERY = """query project($id: String!) {
  project(id: $id) {
    id
    name
    description
    environments {
      edges {
        node {
          id
          name
        }
      }
    }
    services {
      edges {
        node {
          id
          name
          serviceInstances {
            edges {
              node {
                environmentId
              }
            }
          }
        }
      }
    }
  }
}"""

ENVIRONMENT_QUERY = """query environment($id: String!) {
  environment(id: $id) {
    projectId
  }
}"""

STREAM_ENVIRONMENT_LOGS_QUERY = """subscription streamEnvironmentLogs(
  $environmentId: String!
  $filter: String
  $beforeLimit: Int!
  $beforeDate: String
  $anchorDate: String
  $afterDate: String
  $afterLimit: Int
) {
  environmentLogs(
    environmentId: $environmentId
    filter: $filter
    beforeDate: $beforeDate
    anchorDate: $anchorDate
    afterDate: $afterDate
    beforeLimit: $beforeLimit
    afterLimit: $afterLimit
  ) {
    timestamp
    message
    severity
    tags {
      projectId
      environmentId
      pluginId
      serviceId
      deploymentId
      deploymentInstanceId
      snapshotId
    }
    attributes {
      key
      value
    }
  }
}"""


class RailwayError(Exception):
    """Raised when the platform API cannot be reached or reports an error."""


def _edges(container: Any) -> list[dict[str, Any]]:
    if not isinstance(container, dict):
        return []
    return [edge.get("node") or {} for edge in container.get("edges") or []]


class GraphQLClient:
    """A GraphQL client that sends the bearer token with every request."""

    def __init__(
        self,
        auth_token: str,
        base_url: str = "",
        base_subscription_url: str = "",
        session: requests.Session | None = None,
    ) -> None:
        if not auth_token:
            raise RailwayError("auth token must not be empty")
        self.auth_token = auth_token
        self.base_url = base_url
        self.base_subscription_url = base_subscription_url
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {auth_token}",
                "Content-Type": "application/json",
            }
        )

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query and return its ``data`` object."""
        if not self.base_url:
            raise RailwayError("client is nil")

        try:
            response = self.session.post(
                self.base_url, json={"query": query, "variables": variables or {}}
            )
        except requests.RequestException as exc:
            raise RailwayError(str(exc)) from exc

        if response.status_code != 200:
            raise RailwayError(f"{response.status_code} {response.text}".strip())

        try:
            body = response.json()
        except ValueError as exc:
            raise RailwayError(f"invalid response body: {exc}") from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            messages = [
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            ]
            raise RailwayError("; ".join(messages))

        data = body.get("data") if isinstance(body, dict) else None
        return data or {}

    def get_all_services_in_environment(
        self, project_id: str, environment_id: str
    ) -> list[str]:
        """Return the ids of the project's services that run in the environment."""
        if not self.base_url:
            raise RailwayError("client is nil")

        try:
            data = self.execute(PROJECT_QUERY, {"id": project_id})
        except RailwayError as exc:
            raise RailwayError(f"error fetching project: {exc}") from exc

        project = data.get("project") or {}
        return [
            service.get("id") or ""
            for service in _edges(project.get("services"))
            if any(
                instance.get("environmentId") == environment_id
                for instance in _edges(service.get("serviceInstances"))
            )
        ]