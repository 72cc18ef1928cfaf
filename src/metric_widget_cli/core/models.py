from enum import Enum
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional


class Slot(str, Enum):
    ACCOUNT_ID = "ACCOUNT_ID"
    REGION = "REGION"
    NAMESPACE = "NAMESPACE"
    TITLE = "TITLE"
    PERIOD = "PERIOD"
    PERIOD_START = "PERIOD_START"
    PERIOD_END = "PERIOD_END"

    @property
    def token(self) -> str:
        return "{{" + self.value + "}}"


@dataclass(frozen=True)
class AccountDescriptor:
    namespace: str
    account_id: str
    region: str
    role_arn: Optional[str] = None

    def resolve_role_arn(self, role_name: Optional[str] = None) -> Optional[str]:
        """Explicit role ARN wins; otherwise derive one from the role name, if any."""
        if self.role_arn:
            return self.role_arn
        if role_name:
            return f"arn:aws:iam::{self.account_id}:role/{role_name}"
        return None


@dataclass(frozen=True)
class FetchOptions:
    period: int
    start_offset: timedelta
    end_offset: timedelta = timedelta(0)
    pattern: Optional[str] = None
    title: str = "metric"
    region: Optional[str] = None
    output_dir: Path = Path(".")


@dataclass
class FetchResult:
    account: AccountDescriptor
    path: Optional[Path] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FetchReport:
    results: list[FetchResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[FetchResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[FetchResult]:
        return [r for r in self.results if not r.ok]

    @property
    def has_failures(self) -> bool:
        return any(not r.ok for r in self.results)


@dataclass
class AlarmDetails:
    program_name: str
    alarm_name: str
    alarm_arn: str
    alarm_description: str
    dimensions: list[str]
    actions_enabled: bool
    period: int
    threshold: float
    comparison_operator: str
    treat_missing_data: str
    statistic: str
