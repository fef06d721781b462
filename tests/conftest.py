"""Pytest configuration and fixtures for test isolation."""

import logging
from typing import Optional

import pytest

from samlgroups.auth.role_lister import RoleListError
from samlgroups.config_store import ConfigStore
from samlgroups.models import RoleGrant


class FakeRoleLister:
    """In-memory role lister returning a fixed pool of grants."""

    def __init__(self, grants: Optional[list[RoleGrant]] = None, error: Optional[str] = None):
        self.grants = list(grants or [])
        self.error = error
        self.calls = 0

    def list_roles(self) -> list[RoleGrant]:
        self.calls += 1
        if self.error is not None:
            raise RoleListError(self.error)
        return list(self.grants)


@pytest.fixture(scope="function", autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Automatically isolate each test from the host environment.

    Clears variables that would point the tool at a developer's real
    configuration or saml2aws setup, and resets logging handlers installed
    by CLI invocations.
    """
    env_vars_to_clear = [
        "SAML2AWS_GROUPS_CONFIG_DIR",
        "SAML2AWS_GROUPS_PROFILE",
        "SAML2AWS_BIN",
        "SAML2AWS_IDP_ACCOUNT",
        "SAML2AWS_TIMEOUT",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "BUILD_VERSION",
    ]

    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)

    yield

    logging.getLogger().handlers.clear()


@pytest.fixture
def role_grants():
    """Role grants as saml2aws would report them for a small organisation."""
    return [
        RoleGrant(name="sales-prod", id="111111111111", arn="arn:aws:iam::111111111111:role/Admin"),
        RoleGrant(name="sales-prod", id="111111111111", arn="arn:aws:iam::111111111111:role/ReadOnly"),
        RoleGrant(name="sales-dev", id="222222222222", arn="arn:aws:iam::222222222222:role/Admin"),
        RoleGrant(name="billing", id="333333333333", arn="arn:aws:iam::333333333333:role/Admin"),
        RoleGrant(name="billing", id="333333333333", arn="arn:aws:iam::333333333333:role/SuperAdmin"),
        RoleGrant(name="audit", id="444444444444", arn="arn:aws:iam::444444444444:role/ReadOnly"),
    ]


@pytest.fixture
def fake_lister(role_grants):
    return FakeRoleLister(role_grants)


@pytest.fixture
def failing_lister():
    return FakeRoleLister(error="Error authenticating to IdP: MFA token expired")


@pytest.fixture
def store(tmp_path):
    return ConfigStore(base_dir=tmp_path / "config")
