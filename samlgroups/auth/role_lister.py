"""SAML role listing for group resolution.

This module defines the role-listing capability used to resolve groups and a
concrete implementation backed by the ``saml2aws`` command line tool.
"""

import re
import subprocess
from typing import Optional, Protocol

import structlog

from ..models import RoleGrant

logger = structlog.get_logger(__name__)

ACCOUNT_HEADER_RE = re.compile(r"^Account:\s*(?:(?P<name>.+?)\s+\((?P<id>[^()]+)\)|(?P<only_id>\S+))\s*$")


class RoleListError(Exception):
    """Raised when the available roles cannot be listed."""

    def __init__(self, description: str):
        super().__init__(description)
        self.description = description


class RoleLister(Protocol):
    """Anything that can list the roles the current identity may assume."""

    def list_roles(self) -> list[RoleGrant]: ...


def parse_list_roles_output(output: str) -> list[RoleGrant]:
    """Parse the text printed by ``saml2aws list-roles``.

    The output is a sequence of blocks, one per account:

        Account: prod-core (123456789012)
        arn:aws:iam::123456789012:role/Admin
        arn:aws:iam::123456789012:role/ReadOnly

    Accounts without an alias are printed as ``Account: 123456789012``; the id
    doubles as the name in that case.

    Args:
        output: Raw stdout of the command

    Returns:
        Role grants in the order they were printed
    """
    grants: list[RoleGrant] = []
    name: Optional[str] = None
    account_id: Optional[str] = None

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        match = ACCOUNT_HEADER_RE.match(line)
        if match:
            if match.group("only_id"):
                name = account_id = match.group("only_id")
            else:
                name = match.group("name")
                account_id = match.group("id").strip()
            continue

        if line.startswith("arn:") and name is not None and account_id is not None:
            grants.append(RoleGrant(name=name, id=account_id, arn=line))

    return grants


class Saml2AwsRoleLister:
    """Lists assumable roles by running ``saml2aws list-roles``.

    Authentication is left entirely to saml2aws; this class only passes the
    MFA token and optional password through and parses the result. There is
    no retry and no caching.

    Usage:
        lister = Saml2AwsRoleLister(mfa_token="123456")
        grants = lister.list_roles()
    """

    def __init__(
        self,
        mfa_token: str,
        password: Optional[str] = None,
        binary: str = "saml2aws",
        idp_account: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.mfa_token = mfa_token
        self.password = password
        self.binary = binary
        self.idp_account = idp_account
        self.timeout = timeout

    def build_command(self) -> list[str]:
        cmd = [self.binary, "list-roles", "--skip-prompt", "--mfa-token", self.mfa_token]
        if self.password:
            cmd.extend(["--password", self.password])
        if self.idp_account:
            cmd.extend(["--idp-account", self.idp_account])
        return cmd

    def list_roles(self) -> list[RoleGrant]:
        """List every role the authenticated identity may assume.

        Returns:
            Role grants in the order saml2aws reported them

        Raises:
            RoleListError: If saml2aws is missing, times out or exits non-zero
        """
        logger.debug("Listing roles", binary=self.binary, idp_account=self.idp_account)

        try:
            result = subprocess.run(
                self.build_command(),
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            logger.error("saml2aws binary not found", binary=self.binary, error=str(e))
            raise RoleListError(f"saml2aws binary not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            logger.error("Listing roles timed out", timeout=self.timeout)
            raise RoleListError(f"saml2aws list-roles timed out after {self.timeout} seconds") from e
        except OSError as e:
            logger.error("Failed to run saml2aws", error=str(e), error_type=type(e).__name__)
            raise RoleListError(str(e)) from e

        if result.returncode != 0:
            description = result.stderr.strip() or result.stdout.strip() or f"exit status {result.returncode}"
            logger.error("saml2aws list-roles failed", returncode=result.returncode, error=description)
            raise RoleListError(description)

        grants = parse_list_roles_output(result.stdout)
        logger.info("Roles listed", count=len(grants))
        return grants
