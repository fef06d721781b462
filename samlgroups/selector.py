"""Account selection for group resolution.

Turns a selection request (business unit prefix or explicit account names)
and a role name into the ordered list of accounts that belong in a group.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

import structlog

from .auth.role_lister import RoleLister
from .models import Account, RoleGrant

logger = structlog.get_logger(__name__)


class SelectionConflictError(Exception):
    """Raised when not exactly one selection mode is given."""


@dataclass(frozen=True)
class BusinessUnitSelection:
    """Select accounts whose name starts with a business unit prefix."""

    business_unit: str


@dataclass(frozen=True)
class AccountNamesSelection:
    """Select accounts by exact name."""

    account_names: frozenset[str]


Selection = Union[BusinessUnitSelection, AccountNamesSelection]


def build_selection(business_unit: Optional[str], account_names: Optional[Iterable[str]]) -> Selection:
    """
    Build a selection from the two mutually exclusive options

    Args:
        business_unit: Business unit name prefix, or None
        account_names: Account names, or None/empty

    Returns:
        The matching selection variant

    Raises:
        SelectionConflictError: If both or neither option is given
    """
    names = frozenset(account_names or ())

    if business_unit is not None and names:
        raise SelectionConflictError("Cannot specify both --accounts and --business-unit")
    if business_unit is None and not names:
        raise SelectionConflictError("Must specify either --business-unit or --accounts flag")

    if business_unit is not None:
        return BusinessUnitSelection(business_unit=business_unit)
    return AccountNamesSelection(account_names=names)


def role_suffix(role: str) -> str:
    return f"role/{role}"


def select_by_business_unit(grants: Sequence[RoleGrant], business_unit: str, role: str) -> list[Account]:
    suffix = role_suffix(role)
    return [g.to_account() for g in grants if g.name.startswith(business_unit) and g.arn.endswith(suffix)]


def select_by_names(grants: Sequence[RoleGrant], account_names: Iterable[str], role: str) -> list[Account]:
    names = frozenset(account_names)
    suffix = role_suffix(role)
    return [g.to_account() for g in grants if g.name in names and g.arn.endswith(suffix)]


def select_accounts(selection: Selection, role: str, lister: RoleLister) -> list[Account]:
    """
    Resolve a selection into accounts using the role lister

    The lister is called exactly once. Its errors propagate unchanged.

    Args:
        selection: Business unit or account names selection
        role: Required role name; grants must end with "role/<role>"
        lister: Role listing capability

    Returns:
        Matching accounts in lister order (possibly empty)
    """
    grants = lister.list_roles()

    if isinstance(selection, BusinessUnitSelection):
        accounts = select_by_business_unit(grants, selection.business_unit, role)
    elif isinstance(selection, AccountNamesSelection):
        accounts = select_by_names(grants, selection.account_names, role)
    else:
        raise TypeError(f"Unknown selection type: {type(selection).__name__}")

    logger.info(
        "Accounts selected",
        mode=type(selection).__name__,
        role=role,
        available=len(grants),
        selected=len(accounts),
    )
    return accounts
