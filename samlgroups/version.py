"""Version utility to read from environment, package metadata or pyproject.toml"""

import os
import tomllib
from importlib import metadata
from pathlib import Path

DISTRIBUTION_NAME = "saml2aws-groups"


def get_version() -> str:
    """
    Resolve the tool version.

    Priority:
    1. BUILD_VERSION environment variable (set by release builds)
    2. Installed distribution metadata
    3. pyproject.toml project.version (source checkout)
    4. "unknown" as fallback

    Returns:
        str: Version string (e.g., "0.3.0")
    """
    if build_version := os.getenv("BUILD_VERSION"):
        return build_version

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass

    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
            return data.get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"


__version__ = get_version()
