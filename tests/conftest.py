"""Test configuration.

Configuration is loaded once, at import of ``src.murasaki``, from config.yaml
and the environment, so the environment is pinned here before anything from
the application is imported. The test client serves requests on its own
thread, where context overrides made in a test are not visible.
"""

import os
from pathlib import Path

os.environ["MURASAKI_CONFIG_FILE"] = str(
    Path(__file__).resolve().parent.parent / "config.yaml"
)
os.environ["APP_ENVIRONMENT"] = "test"
os.environ["KEYCLOAK_ISSUER_URL"] = "https://keycloak.test/realms/murasaki-poc"
os.environ["KEYCLOAK_REALM"] = "murasaki-poc"
os.environ["KEYCLOAK_CLIENT_ID"] = "murasaki-backend"
os.environ["KEYCLOAK_CLIENT_SECRET"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FILE"] = ""

from tests.fixtures import *  # noqa: E402,F401,F403
