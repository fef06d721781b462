"""Runtime settings read from the environment and an optional .env file."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .config_store import DEFAULT_PROFILE


@dataclass
class Settings:
    """Runtime settings for the CLI.

    Values come from environment variables (a .env file in the working
    directory is loaded first). Command line flags override them.

    Environment variables:
        - SAML2AWS_GROUPS_CONFIG_DIR: Base directory of the group store
        - SAML2AWS_GROUPS_PROFILE: Store profile (default: default)
        - SAML2AWS_BIN: saml2aws executable (default: saml2aws)
        - SAML2AWS_IDP_ACCOUNT: saml2aws --idp-account value (optional)
        - SAML2AWS_TIMEOUT: Seconds to wait for list-roles (optional)
        - LOG_LEVEL: Logging level (default: WARNING)
        - LOG_FORMAT: "console" or "json" (default: console)
    """

    config_dir: Optional[Path] = None
    profile: str = DEFAULT_PROFILE
    saml2aws_bin: str = "saml2aws"
    idp_account: Optional[str] = None
    list_roles_timeout: Optional[float] = None
    log_level: str = "WARNING"
    json_logs: bool = False

    def __post_init__(self):
        if config_dir := os.getenv("SAML2AWS_GROUPS_CONFIG_DIR"):
            self.config_dir = Path(config_dir).expanduser()
        self.profile = os.getenv("SAML2AWS_GROUPS_PROFILE", self.profile)
        self.saml2aws_bin = os.getenv("SAML2AWS_BIN", self.saml2aws_bin)
        self.idp_account = os.getenv("SAML2AWS_IDP_ACCOUNT") or self.idp_account
        self.list_roles_timeout = _parse_timeout(os.getenv("SAML2AWS_TIMEOUT"), self.list_roles_timeout)
        self.log_level = os.getenv("LOG_LEVEL", self.log_level).upper()
        self.json_logs = os.getenv("LOG_FORMAT", "console").lower() == "json"


def _parse_timeout(value: Optional[str], default: Optional[float]) -> Optional[float]:
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        return default
    return timeout if timeout > 0 else default


def get_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    return Settings()
