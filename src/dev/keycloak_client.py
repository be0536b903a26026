"""Keycloak Admin REST API client."""

import time
from typing import Any

import requests


class KeycloakClient:
    """Low-level Keycloak Admin REST API client.

    Only the handful of admin calls the development bootstrap needs: realm,
    client and user creation plus reading back a client's secret.
    """

    def __init__(self, base_url: str = "http://localhost:8080", timeout: int = 30):
        """Initialize the Keycloak client.

        Args:
            base_url: Base URL of the Keycloak server
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.access_token: str | None = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def wait_until_ready(self, attempts: int = 60, interval: float = 2.0) -> bool:
        """Poll Keycloak until it answers, for up to ``attempts * interval`` seconds."""
        for _ in range(attempts):
            try:
                response = requests.get(
                    self._url("/realms/master"), timeout=self.timeout
                )
                if response.ok:
                    return True
            except requests.RequestException:
                pass
            time.sleep(interval)
        return False

    def authenticate(self, username: str = "admin", password: str = "admin") -> str:
        """Authenticate against the master realm and keep the admin access token.

        Raises:
            requests.RequestException: If authentication fails
        """
        data = {
            "grant_type": "password",
            "client_id": "admin-cli",
            "username": username,
            "password": password,
        }
        response = requests.post(
            self._url("/realms/master/protocol/openid-connect/token"),
            data=data,
            timeout=self.timeout,
        )
        response.raise_for_status()

        self.access_token = response.json().get("access_token")
        if not self.access_token:
            raise ValueError("Failed to obtain access token from Keycloak")
        return self.access_token

    def _get_headers(self) -> dict[str, str]:
        if not self.access_token:
            raise ValueError("Not authenticated. Call authenticate() first.")

        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    # Realm Management
    def create_realm(self, realm_config: dict[str, Any]) -> bool:
        """Create a realm.

        Returns:
            True if created, False if it already existed (409)

        Raises:
            requests.HTTPError: On any other failure
        """
        response = requests.post(
            self._url("/admin/realms"),
            json=realm_config,
            headers=self._get_headers(),
            timeout=self.timeout,
        )
        if response.status_code == 409:
            return False
        response.raise_for_status()
        return True

    # Client Management
    def get_client_by_id(
        self, realm_name: str, client_id: str
    ) -> dict[str, Any] | None:
        """Look up a client by its public client ID."""
        response = requests.get(
            self._url(f"/admin/realms/{realm_name}/clients"),
            headers=self._get_headers(),
            params={"clientId": client_id},
            timeout=self.timeout,
        )
        response.raise_for_status()
        clients = response.json()
        return clients[0] if clients else None

    def create_client(self, realm_name: str, client_config: dict[str, Any]) -> bool:
        """Create a client; False if one with the same client ID exists."""
        response = requests.post(
            self._url(f"/admin/realms/{realm_name}/clients"),
            json=client_config,
            headers=self._get_headers(),
            timeout=self.timeout,
        )
        if response.status_code == 409:
            return False
        response.raise_for_status()
        return True

    def get_client_secret(self, realm_name: str, client_uuid: str) -> str | None:
        response = requests.get(
            self._url(f"/admin/realms/{realm_name}/clients/{client_uuid}/client-secret"),
            headers=self._get_headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json().get("value")

    # User Management
    def get_user_by_username(
        self, realm_name: str, username: str
    ) -> dict[str, Any] | None:
        response = requests.get(
            self._url(f"/admin/realms/{realm_name}/users"),
            headers=self._get_headers(),
            params={"username": username, "exact": "true"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        users = response.json()
        return users[0] if users else None

    def create_user(self, realm_name: str, user_data: dict[str, Any]) -> bool:
        """Create a user; False if the username or email is taken."""
        response = requests.post(
            self._url(f"/admin/realms/{realm_name}/users"),
            json=user_data,
            headers=self._get_headers(),
            timeout=self.timeout,
        )
        if response.status_code == 409:
            return False
        response.raise_for_status()
        return True
