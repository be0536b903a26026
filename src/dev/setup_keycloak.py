"""Keycloak bootstrap for the development environment."""

from dataclasses import dataclass

import requests
from rich.console import Console

from .keycloak_client import KeycloakClient

console = Console()


@dataclass
class KeycloakSetupResult:
    issuer: str
    client_id: str
    client_secret: str | None


class KeycloakSetup:
    """Creates the realm, backend client and test user the API expects.

    Every step is idempotent: anything that already exists is left as is.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        realm_name: str = "murasaki-poc",
        client_id: str = "murasaki-backend",
    ):
        self.client = KeycloakClient(base_url)
        self.base_url = base_url.rstrip("/")
        self.realm_name = realm_name
        self.client_id = client_id

    def create_realm(self) -> None:
        realm_config = {
            "realm": self.realm_name,
            "enabled": True,
            "loginWithEmailAllowed": True,
            "duplicateEmailsAllowed": False,
        }
        if self.client.create_realm(realm_config):
            console.print(f"[green]Created realm '{self.realm_name}'[/green]")
        else:
            console.print(f"[yellow]Realm '{self.realm_name}' already exists[/yellow]")

    def create_backend_client(self) -> str | None:
        """Create the confidential client used for the password grant.

        Returns:
            The client secret Keycloak generated for it
        """
        client_config = {
            "clientId": self.client_id,
            "enabled": True,
            "protocol": "openid-connect",
            "publicClient": False,
            "directAccessGrantsEnabled": True,  # Resource Owner Password Credentials
            "serviceAccountsEnabled": True,
            "standardFlowEnabled": True,
        }
        if self.client.create_client(self.realm_name, client_config):
            console.print(f"[green]Created client '{self.client_id}'[/green]")
        else:
            console.print(f"[yellow]Client '{self.client_id}' already exists[/yellow]")

        client = self.client.get_client_by_id(self.realm_name, self.client_id)
        if client is None:
            raise RuntimeError(f"Client '{self.client_id}' not found after creation")
        return self.client.get_client_secret(self.realm_name, client["id"])

    def create_test_user(
        self, username: str = "testuser", password: str = "password"
    ) -> None:
        if self.client.get_user_by_username(self.realm_name, username):
            console.print(f"[yellow]User '{username}' already exists[/yellow]")
            return

        user = {
            "username": username,
            "email": f"{username}@example.com",
            "firstName": "Test",
            "lastName": "User",
            "enabled": True,
            "emailVerified": True,
            "credentials": [
                {"type": "password", "value": password, "temporary": False}
            ],
        }
        if self.client.create_user(self.realm_name, user):
            console.print(f"[green]Created user '{username}'[/green]")
        else:
            console.print(f"[yellow]User '{username}' already exists[/yellow]")

    def setup_all(
        self, admin_username: str = "admin", admin_password: str = "admin"
    ) -> KeycloakSetupResult:
        """Run the complete bootstrap.

        Raises:
            RuntimeError: If Keycloak never becomes reachable
            requests.RequestException: If an admin call fails
        """
        console.print("Waiting for Keycloak to be ready...")
        if not self.client.wait_until_ready():
            raise RuntimeError(f"Keycloak at {self.base_url} did not become ready")

        console.print("Authenticating as admin...")
        self.client.authenticate(admin_username, admin_password)

        self.create_realm()
        client_secret = self.create_backend_client()
        self.create_test_user()

        return KeycloakSetupResult(
            issuer=f"{self.base_url}/realms/{self.realm_name}",
            client_id=self.client_id,
            client_secret=client_secret,
        )


def print_env(result: KeycloakSetupResult, realm_name: str) -> None:
    """Print the .env lines that point the API at the bootstrapped realm."""
    console.print("\n[bold]Environment variables for .env:[/bold]")
    console.print(f"KEYCLOAK_ISSUER_URL={result.issuer}")
    console.print(f"KEYCLOAK_REALM={realm_name}")
    console.print(f"KEYCLOAK_CLIENT_ID={result.client_id}")
    console.print(f"KEYCLOAK_CLIENT_SECRET={result.client_secret or ''}")


def main() -> None:
    setup = KeycloakSetup()
    try:
        result = setup.setup_all()
    except (requests.RequestException, RuntimeError) as e:
        console.print(f"[red]Keycloak setup failed: {e}[/red]")
        raise SystemExit(1) from e
    print_env(result, setup.realm_name)
    console.print("\n[green]Keycloak setup complete.[/green]")


if __name__ == "__main__":
    main()
