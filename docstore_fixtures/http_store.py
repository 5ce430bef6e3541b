# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Store driver for Elasticsearch-compatible REST endpoints."""

import logging
import subprocess
from dataclasses import dataclass
from typing import Any

import requests

from .store import IndexNotFoundError, StoreConnectionError, StoreDriver, StoreError

logger = logging.getLogger(__name__)

_HEALTHY_STATUSES = ("green", "yellow")


@dataclass
class HttpHandle:
    """Handle of a store reached over HTTP.

    Attributes:
        url: Base URL of the store
        session: HTTP session used for all requests
        process: Store process launched by the driver, if any
        name: Instance name
    """

    url: str
    session: requests.Session
    process: subprocess.Popen | None = None
    name: str = "http"
    stopped: bool = False


class HttpStoreDriver(StoreDriver):
    """REST store driver implementation.

    When the configuration carries a command line, ``start`` launches the store
    process and ``stop`` terminates it; otherwise the driver attaches to the
    store already listening on the configured URL and ``stop`` only closes the
    HTTP session.
    """

    def __init__(self, request_timeout_seconds: float = 10.0, shutdown_timeout_seconds: float = 30.0):
        self.request_timeout_seconds = request_timeout_seconds
        self.shutdown_timeout_seconds = shutdown_timeout_seconds

    @classmethod
    def from_config(cls, config: Any) -> "HttpStoreDriver":
        """Create an HttpStoreDriver from a FixtureConfig.

        Recognized driver options: ``shutdown_timeout_seconds``.
        """
        options = getattr(config, "driver_options", None) or {}
        return cls(
            request_timeout_seconds=float(getattr(config, "request_timeout_seconds", 10.0)),
            shutdown_timeout_seconds=float(options.get("shutdown_timeout_seconds", 30.0)),
        )

    def _request(self, handle: HttpHandle, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{handle.url}/{path.lstrip('/')}"
        kwargs.setdefault("timeout", self.request_timeout_seconds)
        try:
            return handle.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise StoreConnectionError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response, index_name: str) -> None:
        if response.status_code == 404:
            raise IndexNotFoundError(f"Index '{index_name}' not found")
        if response.status_code >= 400:
            raise StoreError(
                f"Store rejected request for index '{index_name}' "
                f"(HTTP {response.status_code}): {response.text}"
            )

    def start(self, config: Any) -> HttpHandle:
        url = str(getattr(config, "url", "http://localhost:9200")).rstrip("/")
        name = getattr(config, "instance_name", None) or "http"
        command = getattr(config, "command", None)

        process = None
        if command:
            try:
                process = subprocess.Popen(
                    list(command),
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                logger.error("HttpStoreDriver: failed to launch %s - %s", command, e, exc_info=True)
                raise StoreConnectionError(f"Failed to launch store process: {e}") from e
            logger.info("HttpStoreDriver: launched store process %s for %s", process.pid, url)
        else:
            logger.info("HttpStoreDriver: attaching to store at %s", url)

        return HttpHandle(url=url, session=requests.Session(), process=process, name=name)

    def stop(self, handle: HttpHandle) -> None:
        if handle.stopped:
            return
        handle.stopped = True
        handle.session.close()

        process = handle.process
        if process is None or process.poll() is not None:
            return

        process.terminate()
        try:
            process.wait(timeout=self.shutdown_timeout_seconds)
        except subprocess.TimeoutExpired:
            logger.warning("HttpStoreDriver: store process %s did not exit, killing it", process.pid)
            process.kill()
            process.wait()
        logger.info("HttpStoreDriver: stopped store process %s", process.pid)

    def is_ready(self, handle: HttpHandle) -> bool:
        if handle.stopped:
            return False
        if handle.process is not None and handle.process.poll() is not None:
            logger.warning(
                "HttpStoreDriver: store process exited with code %s", handle.process.returncode
            )
            return False

        try:
            response = self._request(handle, "GET", "_cluster/health")
        except StoreConnectionError as e:
            logger.debug("HttpStoreDriver: store not reachable yet - %s", e)
            return False

        if response.status_code != 200:
            return False
        try:
            status = response.json().get("status")
        except ValueError:
            return False
        return status in _HEALTHY_STATUSES

    def index_exists(self, handle: HttpHandle, index_name: str) -> bool:
        response = self._request(handle, "HEAD", index_name)
        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise StoreError(f"Unexpected status {response.status_code} checking index '{index_name}'")

    def create_index(self, handle: HttpHandle, index_name: str, settings: dict[str, Any] | None = None) -> None:
        body = {"settings": settings} if settings else None
        response = self._request(handle, "PUT", index_name, json=body)
        self._raise_for_status(response, index_name)
        logger.debug("HttpStoreDriver: created index %s", index_name)

    def put_mapping(self, handle: HttpHandle, index_name: str, type_name: str, mapping: dict[str, Any]) -> None:
        response = self._request(handle, "PUT", f"{index_name}/{type_name}/_mapping", json={type_name: mapping})
        self._raise_for_status(response, index_name)
        logger.debug("HttpStoreDriver: put mapping %s/%s", index_name, type_name)

    def delete_index(self, handle: HttpHandle, index_name: str) -> None:
        response = self._request(handle, "DELETE", index_name)
        self._raise_for_status(response, index_name)
        logger.debug("HttpStoreDriver: deleted index %s", index_name)

    def get_mapping(self, handle: HttpHandle, index_name: str, type_name: str) -> dict[str, Any] | None:
        response = self._request(handle, "GET", f"{index_name}/{type_name}/_mapping")
        if response.status_code == 404:
            # Missing index and missing type both answer 404
            if not self.index_exists(handle, index_name):
                raise IndexNotFoundError(f"Index '{index_name}' not found")
            return None
        self._raise_for_status(response, index_name)
        return extract_type_mapping(response.json(), index_name, type_name)


def extract_type_mapping(payload: dict[str, Any], index_name: str, type_name: str) -> dict[str, Any] | None:
    """Extract one type mapping from a get-mapping response.

    Depending on the store version the mapping is returned as
    ``{type: {...}}``, ``{index: {type: {...}}}`` or
    ``{index: {"mappings": {type: {...}}}}``.
    """
    if not payload:
        return None

    if type_name in payload and index_name not in payload:
        return payload[type_name]

    per_index = payload.get(index_name)
    if not isinstance(per_index, dict):
        return None
    if "mappings" in per_index and isinstance(per_index["mappings"], dict):
        per_index = per_index["mappings"]
    return per_index.get(type_name)
