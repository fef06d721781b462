"""SAML role listing.

This module provides the role-listing capability used to resolve groups.
"""

from .role_lister import RoleLister, RoleListError, Saml2AwsRoleLister, parse_list_roles_output

__all__ = ["RoleLister", "RoleListError", "Saml2AwsRoleLister", "parse_list_roles_output"]
