"""End-to-end smoke test against a running API and Keycloak."""

from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any

import httpx


class FlowCheckFailed(Exception):
    """A step of the smoke test did not behave as expected."""


@dataclass
class FlowReport:
    steps: list[str] = field(default_factory=list)
    post: dict[str, Any] | None = None


def verify_flow(
    api_url: str = "http://localhost:5556",
    email: str = "testuser@example.com",
    password: str = "password",
    timeout: float = 10.0,
    client: httpx.Client | None = None,
) -> FlowReport:
    """Log in, create a post with the token, then check an anonymous create is refused.

    Raises:
        FlowCheckFailed: On the first step that misbehaves
        httpx.HTTPError: If the API cannot be reached
    """
    report = FlowReport()

    http = (
        httpx.Client(base_url=api_url.rstrip("/"), timeout=timeout)
        if client is None
        else nullcontext(client)
    )
    with http as api:
        login = api.post("/auth/login", json={"email": email, "password": password})
        if login.status_code != 200:
            raise FlowCheckFailed(f"Login failed ({login.status_code}): {login.text}")
        access_token = login.json().get("access_token")
        if not access_token:
            raise FlowCheckFailed("Login response has no access_token")
        report.steps.append("login")

        created = api.post(
            "/posts",
            json={
                "title": "Hello World from Verification Script",
                "content": "This post was created via automated testing.",
            },
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if created.status_code != 201:
            raise FlowCheckFailed(
                f"Create post failed ({created.status_code}): {created.text}"
            )
        report.post = created.json()
        report.steps.append("create-post")

        anonymous = api.post("/posts", json={"title": "Should fail"})
        if anonymous.status_code != 401:
            raise FlowCheckFailed(
                f"Expected 401 for anonymous create, got {anonymous.status_code}"
            )
        report.steps.append("unauthorized-blocked")

    return report
