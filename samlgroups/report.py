"""Read-only reporting of stored groups.

Derives per-account session status and renders ARNs with the account id
highlighted. Nothing in this module writes to the configuration store.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .models import Account, Group, GroupConfig

Highlighter = Callable[[str], str]


def _identity(text: str) -> str:
    return text


@dataclass
class SessionStatus:
    """Session state of one account at a given instant.

    elapsed_seconds is (now - valid_until); elapsed_minutes is the same span in
    whole minutes, truncated toward zero. Both are negative while the session
    is still valid. Expiry is decided from elapsed_seconds.
    """

    valid_until: Optional[datetime]
    elapsed_minutes: Optional[int]
    elapsed_seconds: Optional[float] = None

    @property
    def has_session(self) -> bool:
        return self.elapsed_minutes is not None

    @property
    def expired(self) -> bool:
        return self.elapsed_seconds is not None and self.elapsed_seconds >= 0

    @property
    def minutes_left(self) -> Optional[int]:
        if self.elapsed_minutes is None:
            return None
        return -self.elapsed_minutes

    def describe(self) -> str:
        if self.elapsed_minutes is None:
            return "no valid session"
        if self.expired:
            return f"expired {self.elapsed_minutes} minutes ago"
        return f"{self.minutes_left} minutes left"


def _whole_minutes(seconds: float) -> int:
    return int(seconds / 60)


def session_status(account: Account, now: Optional[datetime] = None) -> SessionStatus:
    """Compute the session status of an account.

    Args:
        account: Account to inspect
        now: Reference instant (defaults to the current time in valid_until's timezone)
    """
    if account.valid_until is None:
        return SessionStatus(valid_until=None, elapsed_minutes=None)

    if now is None:
        now = datetime.now(account.valid_until.tzinfo)

    elapsed = (now - account.valid_until).total_seconds()
    return SessionStatus(
        valid_until=account.valid_until,
        elapsed_minutes=_whole_minutes(elapsed),
        elapsed_seconds=elapsed,
    )


def render_arn(account: Account, highlight: Optional[Highlighter] = None) -> str:
    """Render the ARN with the first occurrence of the account id highlighted.

    If the id does not occur in the ARN, the ARN is returned unchanged.
    """
    parts = account.arn_parts()
    if parts is None:
        return account.arn

    prefix, account_id, suffix = parts
    return prefix + (highlight or _identity)(account_id) + suffix


@dataclass
class AccountView:
    account: Account
    status: SessionStatus


@dataclass
class GroupView:
    name: str
    session_duration: int
    accounts: list[AccountView]


def build_group_view(name: str, group: Group, now: Optional[datetime] = None) -> GroupView:
    return GroupView(
        name=name,
        session_duration=group.session_duration,
        accounts=[AccountView(account=a, status=session_status(a, now)) for a in group.accounts],
    )


def build_report(config: GroupConfig, now: Optional[datetime] = None) -> list[GroupView]:
    """Build a view of every group, in stored order."""
    return [build_group_view(name, group, now) for name, group in config.groups.items()]


@dataclass
class ReportStyle:
    """Text decorations applied when formatting a report.

    Each field wraps a piece of text; the defaults leave text unchanged.
    """

    group_name: Highlighter = _identity
    value: Highlighter = _identity
    active: Highlighter = _identity
    inactive: Highlighter = _identity
    account_id: Highlighter = _identity


def format_status(status: SessionStatus, style: Optional[ReportStyle] = None) -> str:
    style = style or ReportStyle()
    text = status.describe()
    if status.has_session and not status.expired:
        return style.active(text)
    return style.inactive(text)


def format_arns(view: GroupView, style: Optional[ReportStyle] = None) -> list[str]:
    style = style or ReportStyle()
    return [f"\t{a.account.name}: {render_arn(a.account, style.account_id)}" for a in view.accounts]


def format_group(view: GroupView, style: Optional[ReportStyle] = None) -> list[str]:
    """Format one group as report lines.

    Layout:

        <name>:
            Session Duration: <n> seconds

            Sessions
            <account>: <status>

            ARNs
            <account>: <arn>
    """
    style = style or ReportStyle()
    lines = [
        "",
        f"{style.group_name(view.name)}:",
        f"\tSession Duration: {style.value(f'{view.session_duration} seconds')}",
        "",
        "\tSessions",
    ]
    lines.extend(f"\t{a.account.name}: {format_status(a.status, style)}" for a in view.accounts)
    lines.extend(["", "\tARNs"])
    lines.extend(format_arns(view, style))
    lines.append("")
    return lines
