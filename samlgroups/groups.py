"""Group store mutation.

Pure functions operate on an explicit GroupConfig value; GroupManager wraps
them in the load, mutate, save cycle against a ConfigStore.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import structlog

from .config_store import ConfigStore
from .models import DEFAULT_SESSION_DURATION, Account, Group, GroupConfig

logger = structlog.get_logger(__name__)


class GroupNotFoundError(Exception):
    """Raised when a named group does not exist."""

    def __init__(self, name: str):
        super().__init__(f"The specified group does not exist: {name}")
        self.name = name


def parse_session_duration(value: Union[str, int, None]) -> int:
    """Parse a session duration in seconds.

    Missing or unparsable values fall back to the default of 3600 seconds.
    """
    if value is None:
        return DEFAULT_SESSION_DURATION
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid session duration, using default", value=value, default=DEFAULT_SESSION_DURATION)
        return DEFAULT_SESSION_DURATION


def upsert_group(config: GroupConfig, name: str, session_duration: int, accounts: Sequence[Account]) -> bool:
    """Create or replace a group.

    An existing group has its accounts and session duration overwritten;
    accounts are never merged.

    Returns:
        True if an existing group was replaced, False if a new one was added
    """
    new_accounts = [account.model_copy() for account in accounts]

    group = config.groups.get(name)
    if group is not None:
        group.accounts = new_accounts
        group.session_duration = session_duration
        return True

    config.groups[name] = Group(accounts=new_accounts, session_duration=session_duration)
    return False


def remove_group(config: GroupConfig, name: str) -> Group:
    """Remove a group and return it.

    Raises:
        GroupNotFoundError: If no group has that name; the config is untouched
    """
    if name not in config.groups:
        raise GroupNotFoundError(name)
    return config.groups.pop(name)


@dataclass
class UpsertResult:
    name: str
    group: Group
    replaced: bool


class GroupManager:
    """Runs group operations against a ConfigStore.

    Every operation loads its own snapshot of the configuration, and every
    mutating operation saves the whole configuration before returning.

    Usage:
        manager = GroupManager(ConfigStore())
        result = manager.add("prod", 3600, accounts)
        manager.delete("prod")
    """

    def __init__(self, store: ConfigStore, backup: bool = True):
        self.store = store
        self.backup = backup

    def load(self) -> GroupConfig:
        return self.store.load_or_default()

    def add(self, name: str, session_duration: Optional[int], accounts: Sequence[Account]) -> UpsertResult:
        """Create or replace a group and persist the configuration.

        Args:
            name: Group name
            session_duration: Session duration in seconds (None means the default)
            accounts: Resolved accounts, in order

        Returns:
            The stored group and whether it replaced an existing one

        Raises:
            ConfigLoadError: If the stored configuration cannot be read
            ConfigSaveError: If the configuration cannot be written
        """
        if session_duration is None:
            session_duration = DEFAULT_SESSION_DURATION

        config = self.store.load_or_default()
        replaced = upsert_group(config, name, session_duration, accounts)

        if replaced:
            logger.info("Group exists, replacing accounts", group=name, accounts=len(accounts))
        else:
            logger.info("Adding group", group=name, accounts=len(accounts))

        self.store.save(config, backup=self.backup)
        return UpsertResult(name=name, group=config.groups[name], replaced=replaced)

    def delete(self, name: str) -> Group:
        """Delete a group and persist the configuration.

        Raises:
            GroupNotFoundError: If the group does not exist; nothing is written
            ConfigLoadError: If the stored configuration cannot be read
            ConfigSaveError: If the configuration cannot be written
        """
        config = self.store.load_or_default()
        group = remove_group(config, name)
        self.store.save(config, backup=self.backup)
        logger.info("Group deleted", group=name)
        return group
