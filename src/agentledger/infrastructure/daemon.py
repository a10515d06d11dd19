"""
HTTP client for the container control daemon.

The daemon runs agent tasks in containers and reports on them.
Every non-2xx response or transport failure becomes a ContainerDaemonError.
"""

import logging
from typing import Any

import httpx

from agentledger.domain.exceptions import ContainerDaemonError
from agentledger.domain.interfaces import ContainerDaemonInterface

logger = logging.getLogger(__name__)

DEFAULT_DAEMON_URL = "http://localhost:9092"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ContainerDaemonClient(ContainerDaemonInterface):
    """
    REST client for the container daemon.

    Example usage:
        with ContainerDaemonClient("http://localhost:9092", token="s3cret") as client:
            container = client.spawn("org/repo", "fix lint errors")
            print(client.logs(container["id"], tail=50))
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Daemon root URL (default: http://localhost:9092)
            token: Bearer token; no Authorization header when empty
            timeout: Request timeout in seconds (default: 30)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self._base_url = (base_url or DEFAULT_DAEMON_URL).rstrip("/")
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(DEFAULT_TIMEOUT_SECONDS if timeout is None else timeout),
            headers=headers,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")

    def is_reachable(self) -> bool:
        try:
            self.health()
        except ContainerDaemonError:
            return False
        return True

    def list_containers(self, status: str | None = None) -> list[dict[str, Any]]:
        params = {"status": status} if status else None
        result = self._request("GET", "/containers", params=params)
        if isinstance(result, dict):
            return result.get("containers", [])
        return result

    def get(self, container_id: str) -> dict[str, Any]:
        return self._request("GET", f"/containers/{container_id}")

    def spawn(
        self,
        repo: str,
        task: str,
        branch: str | None = None,
        timeout: int | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"repo": repo, "task": task}
        if branch is not None:
            body["branch"] = branch
        if timeout is not None:
            body["timeout"] = timeout
        return self._request("POST", "/containers", json=body)

    def kill(self, container_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/containers/{container_id}")

    def logs(self, container_id: str, tail: int | None = None) -> str:
        params = {"tail": tail} if tail is not None else None
        response = self._request("GET", f"/containers/{container_id}/logs", params=params)
        return response.get("logs", "")

    def exec_command(self, container_id: str, command: str) -> dict[str, Any]:
        """Run a command inside a container; returns exit_code, stdout, stderr."""
        return self._request(
            "POST", f"/containers/{container_id}/exec", json={"command": command}
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ContainerDaemonClient":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("Container daemon unreachable at %s: %s", self._base_url, e)
            raise ContainerDaemonError.connection_failed(self._base_url) from e

        body = self._decode(response)
        if response.is_success:
            return body if body is not None else {}

        logger.warning("Container daemon %s %s -> HTTP %d", method, path, response.status_code)
        if response.status_code == 401:
            raise ContainerDaemonError.authentication_failed()
        if response.status_code == 404:
            raise ContainerDaemonError.not_found(path)
        raise ContainerDaemonError.from_response(
            response.status_code, body if isinstance(body, dict) else {}
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None
