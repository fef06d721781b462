"""
Group Configuration Models

Pydantic models for the persisted group configuration:
- Account: one resolved account/role grant with optional session expiry
- Group: a named bundle of accounts plus a session duration policy
- GroupConfig: the aggregate of all groups, stored as a single JSON document

Field names are snake_case in Python and camelCase on disk.

Module: models
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SESSION_DURATION = 3600


@dataclass(frozen=True)
class RoleGrant:
    """One assumable role returned by a role lister"""

    name: str
    id: str
    arn: str

    def to_account(self) -> "Account":
        return Account(name=self.name, id=self.id, arn=self.arn)


class Account(BaseModel):
    """A resolved cloud account/role grant"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Business name of the account")
    id: str = Field(..., description="Account identifier, embedded verbatim in the ARN")
    arn: str = Field(..., description="Role ARN for this account")
    valid_until: Optional[datetime] = Field(
        None, alias="validUntil", description="Expiry of the current session, if any"
    )

    def arn_parts(self) -> Optional[tuple[str, str, str]]:
        """
        Split the ARN around the first occurrence of the account id

        Returns:
            (prefix, id, suffix), or None if the id does not occur in the ARN
        """
        if not self.id:
            return None
        prefix, sep, suffix = self.arn.partition(self.id)
        if not sep:
            return None
        return prefix, sep, suffix


class Group(BaseModel):
    """A named bundle of accounts sharing a session duration policy"""

    model_config = ConfigDict(populate_by_name=True)

    accounts: List[Account] = Field(default_factory=list, description="Accounts in insertion order")
    session_duration: int = Field(
        DEFAULT_SESSION_DURATION,
        alias="sessionDuration",
        description="Duration in seconds requested for credentials issued under this group",
    )


class ConfigMetadata(BaseModel):
    """Configuration metadata tracking provenance and versioning"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    saved_at: Optional[str] = Field(None, alias="savedAt", description="ISO timestamp when configuration was saved")
    source: Optional[str] = Field(None, description="Source of configuration (e.g., 'cli')")
    version: Optional[str] = Field(None, description="Version of the tool that wrote the file")


class GroupConfig(BaseModel):
    """
    Group Configuration

    All groups known to the tool, keyed by group name.
    """

    model_config = ConfigDict(populate_by_name=True)

    groups: Dict[str, Group] = Field(default_factory=dict, description="Group name to group mapping")
    metadata: Optional[ConfigMetadata] = Field(None, alias="_metadata", description="Configuration metadata")

    @field_validator("groups", mode="before")
    @classmethod
    def validate_groups(cls, v):
        """Treat an explicit null as an empty mapping"""
        if v is None:
            return {}
        return v

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
