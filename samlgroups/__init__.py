"""Named groups of SAML-federated AWS account roles."""

from .version import __version__

__all__ = ["__version__"]
