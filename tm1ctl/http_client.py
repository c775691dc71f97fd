"""HTTP access to the TM1 management, instance and database APIs."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any

import requests

from tm1ctl.settings import (
    ConfigError,
    Settings,
    root_client_id_from_host_config,
    root_client_secret_from_host_config,
    service_root_url_from_host_config,
)

_JSON = "application/json"


class ApiError(Exception):
    """Raised when a request fails or the service answers with an error."""


def basic_authorization(name, secret):
    """Return a Basic authorization header value for a name and secret."""
    raw = f"{name}:{secret}".encode("utf-8")
    return "Basic " + base64.urlsafe_b64encode(raw).decode("ascii")


class ApiClient:
    """Sends authenticated requests to a TM1 service using the configured hosts and users."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session if session is not None else requests.Session()

    # Authorization

    def root_authorization(self, host, config):
        """Return the authorization header value for the host's root client."""
        client_id = root_client_id_from_host_config(host, config)
        client_secret = root_client_secret_from_host_config(host, config)
        return basic_authorization(client_id, client_secret)

    def user_authorization(self, user, password):
        """Return the authorization header value for a configured or ad-hoc user.

        A configured user supplies its login name and password; a password given
        here takes precedence. An unknown user is used as the login name as is.
        """
        user = self.settings.user_name(user)
        raw = self.settings.get_map("users").get(user)
        if raw is None:
            return basic_authorization(user, password or "")
        if not isinstance(raw, dict):
            raise ConfigError(f"invalid configuration for user '{user}', format invalid")

        configured_name = raw.get("name")
        if configured_name is not None and not isinstance(configured_name, str):
            raise ConfigError(f"invalid configuration for user '{user}', format invalid")
        login = configured_name or user

        if password:
            secret = password
        else:
            stored = raw.get("password")
            if stored is not None and not isinstance(stored, str):
                raise ConfigError(f"invalid configuration for user '{user}', format invalid")
            secret = stored or ""
        return basic_authorization(login, secret)

    # Raw requests

    def _send(self, method, url, authorization, **kwargs) -> requests.Response:
        headers = kwargs.pop("headers", {})
        if authorization:
            headers["Authorization"] = authorization
        headers["Accept"] = _JSON
        try:
            response = self.session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"request failed: {exc}") from exc
        if response.status_code >= 400:
            raise ApiError(f"error response: {response.text}")
        return response

    @staticmethod
    def _decode(response: requests.Response) -> dict[str, Any]:
        try:
            result = response.json()
        except ValueError as exc:
            raise ApiError(f"failed to decode JSON: {exc}") from exc
        if not isinstance(result, dict):
            raise ApiError("failed to decode JSON: expected an object")
        return result

    def get(self, url, authorization):
        """GET a URL and return the decoded JSON object."""
        return self._decode(self._send("GET", url, authorization))

    def post(self, url, authorization, payload):
        """POST a JSON payload and return the decoded reply, or None for 204 No Content."""
        response = self._send(
            "POST", url, authorization, json=payload, headers={"Content-Type": _JSON}
        )
        if response.status_code == 204:
            return None
        return self._decode(response)

    def put_file(self, url, authorization, file):
        """PUT the contents of a file as an octet stream."""
        try:
            data = Path(file).read_bytes()
        except OSError as exc:
            raise ApiError(f"unable to open backupset '{file}' due to: {exc}") from exc
        self._send(
            "PUT",
            url,
            authorization,
            data=data,
            headers={"Content-Type": "application/octet-stream"},
        )

    def delete(self, url, authorization):
        """DELETE a URL."""
        self._send("DELETE", url, authorization)

    # Management API (root client credentials)

    def _manage_target(self, host, path):
        config = self.settings.host_configuration(host)
        root = service_root_url_from_host_config(host, config)
        url = f"{root}/manage/v1/{path}"
        return url, self.root_authorization(host, config)

    def manage_get(self, host, path):
        """GET a resource from the host's management API."""
        return self.get(*self._manage_target(host, path))

    def manage_post(self, host, path, payload):
        """POST to the host's management API."""
        url, authorization = self._manage_target(host, path)
        return self.post(url, authorization, payload)

    def manage_delete(self, host, path):
        """DELETE a resource from the host's management API."""
        self.delete(*self._manage_target(host, path))

    # Instance API (user credentials)

    def _instance_target(self, host, instance, user, password, path):
        root = self.settings.instance_root_url(host, instance)
        return f"{root}/{path}", self.user_authorization(user, password)

    def instance_get(self, host, instance, user, password, path):
        """GET a resource from an instance's API."""
        return self.get(*self._instance_target(host, instance, user, password, path))

    def instance_post(self, host, instance, user, password, path, payload):
        """POST to an instance's API."""
        url, authorization = self._instance_target(host, instance, user, password, path)
        return self.post(url, authorization, payload)

    def instance_delete(self, host, instance, user, password, path):
        """DELETE a resource from an instance's API."""
        self.delete(*self._instance_target(host, instance, user, password, path))

    # Database API (user credentials)

    def _database_target(self, host, instance, database, user, password, path):
        root = self.settings.database_root_url(host, instance, database)
        return f"{root}/{path}", self.user_authorization(user, password)

    def database_get(self, host, instance, database, user, password, path):
        """GET a resource from a database's API."""
        return self.get(
            *self._database_target(host, instance, database, user, password, path)
        )

    def database_post(self, host, instance, database, user, password, path, payload):
        """POST to a database's API."""
        url, authorization = self._database_target(
            host, instance, database, user, password, path
        )
        return self.post(url, authorization, payload)

    def database_delete(self, host, instance, database, user, password, path):
        """DELETE a resource from a database's API."""
        self.delete(*self._database_target(host, instance, database, user, password, path))

    def database_put_file(self, host, instance, database, user, password, path, file):
        """Upload a file to a database resource."""
        url, authorization = self._database_target(
            host, instance, database, user, password, path
        )
        self.put_file(url, authorization, file)