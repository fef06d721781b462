"""Tests for group mutation and the load/mutate/save cycle."""

from unittest.mock import MagicMock

import pytest

from samlgroups.config_store import ConfigSaveError
from samlgroups.groups import (
    GroupManager,
    GroupNotFoundError,
    parse_session_duration,
    remove_group,
    upsert_group,
)
from samlgroups.models import Account, Group, GroupConfig


def make_account(name: str, account_id: str, role: str = "Admin") -> Account:
    return Account(name=name, id=account_id, arn=f"arn:aws:iam::{account_id}:role/{role}")


@pytest.fixture
def accounts_a():
    return [make_account("sales-prod", "111111111111"), make_account("sales-dev", "222222222222")]


@pytest.fixture
def accounts_b():
    return [make_account("billing", "333333333333")]


class TestParseSessionDuration:
    """Test session duration parsing and fallback."""

    def test_missing_value(self):
        assert parse_session_duration(None) == 3600

    def test_valid_string(self):
        assert parse_session_duration("7200") == 7200

    def test_integer(self):
        assert parse_session_duration(900) == 900

    @pytest.mark.parametrize("value", ["abc", "", "1.5h", "12.5"])
    def test_unparsable_falls_back(self, value):
        assert parse_session_duration(value) == 3600


class TestUpsertGroup:
    """Test create-or-replace semantics."""

    def test_insert_new_group(self, accounts_a):
        config = GroupConfig()

        replaced = upsert_group(config, "sales", 7200, accounts_a)

        assert replaced is False
        assert config.groups["sales"].accounts == accounts_a
        assert config.groups["sales"].session_duration == 7200

    def test_replace_overwrites_without_merging(self, accounts_a, accounts_b):
        config = GroupConfig()
        upsert_group(config, "g", 7200, accounts_a)

        replaced = upsert_group(config, "g", 3600, accounts_b)

        assert replaced is True
        assert list(config.groups) == ["g"]
        assert config.groups["g"].accounts == accounts_b
        assert config.groups["g"].session_duration == 3600

    def test_idempotent_on_repeat(self, accounts_a):
        config = GroupConfig()
        upsert_group(config, "g", 3600, accounts_a)
        first = config.model_dump()

        upsert_group(config, "g", 3600, accounts_a)

        assert config.model_dump() == first

    def test_preserves_account_order(self, accounts_a, accounts_b):
        config = GroupConfig()
        accounts = accounts_b + accounts_a

        upsert_group(config, "g", 3600, accounts)

        assert [a.name for a in config.groups["g"].accounts] == ["billing", "sales-prod", "sales-dev"]

    def test_empty_accounts(self):
        config = GroupConfig()

        upsert_group(config, "empty", 3600, [])

        assert config.groups["empty"].accounts == []

    def test_other_groups_untouched(self, accounts_a, accounts_b):
        config = GroupConfig(groups={"other": Group(accounts=accounts_b, session_duration=900)})

        upsert_group(config, "g", 3600, accounts_a)

        assert config.groups["other"].accounts == accounts_b
        assert config.groups["other"].session_duration == 900

    def test_stored_accounts_are_copies(self, accounts_a):
        config = GroupConfig()
        upsert_group(config, "g", 3600, accounts_a)

        accounts_a[0].name = "changed"

        assert config.groups["g"].accounts[0].name == "sales-prod"


class TestRemoveGroup:
    """Test group removal."""

    def test_remove_existing(self, accounts_a, accounts_b):
        config = GroupConfig(groups={"a": Group(accounts=accounts_a), "b": Group(accounts=accounts_b)})

        removed = remove_group(config, "a")

        assert removed.accounts == accounts_a
        assert list(config.groups) == ["b"]

    def test_remove_missing(self, accounts_a):
        config = GroupConfig(groups={"a": Group(accounts=accounts_a)})

        with pytest.raises(GroupNotFoundError) as exc_info:
            remove_group(config, "missing")

        assert exc_info.value.name == "missing"
        assert list(config.groups) == ["a"]


class TestGroupManager:
    """Test the persisted add/delete cycle."""

    def test_add_persists(self, store, accounts_a):
        result = GroupManager(store).add("sales", 7200, accounts_a)

        assert result.replaced is False
        assert store.load_or_default().groups["sales"].accounts == accounts_a

    def test_add_default_duration(self, store, accounts_a):
        GroupManager(store).add("sales", None, accounts_a)

        assert store.load_or_default().groups["sales"].session_duration == 3600

    def test_add_replaces(self, store, accounts_a, accounts_b):
        manager = GroupManager(store)
        manager.add("g", 7200, accounts_a)

        result = manager.add("g", 3600, accounts_b)

        assert result.replaced is True
        groups = store.load_or_default().groups
        assert list(groups) == ["g"]
        assert groups["g"].accounts == accounts_b
        assert groups["g"].session_duration == 3600

    def test_delete_persists(self, store, accounts_a, accounts_b):
        manager = GroupManager(store)
        manager.add("a", 3600, accounts_a)
        manager.add("b", 3600, accounts_b)

        manager.delete("a")

        assert list(store.load_or_default().groups) == ["b"]

    def test_delete_missing_does_not_write(self, accounts_a):
        store = MagicMock()
        store.load_or_default.return_value = GroupConfig(groups={"a": Group(accounts=accounts_a)})

        with pytest.raises(GroupNotFoundError):
            GroupManager(store).delete("missing")

        store.save.assert_not_called()

    def test_save_failure_propagates(self, accounts_a):
        store = MagicMock()
        store.load_or_default.return_value = GroupConfig()
        store.save.side_effect = ConfigSaveError("Failed to write configuration file", path=MagicMock())

        with pytest.raises(ConfigSaveError):
            GroupManager(store).add("g", 3600, accounts_a)

    def test_backup_flag_is_passed_to_store(self, accounts_a):
        store = MagicMock()
        store.load_or_default.return_value = GroupConfig()

        GroupManager(store, backup=False).add("g", 3600, accounts_a)

        assert store.save.call_args.kwargs["backup"] is False
