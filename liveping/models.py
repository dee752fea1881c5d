"""Data models for the event bot"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Instruction:
    """A single UI action suggested by the oracle"""
    action: str  # click|type
    selector: str
    value: Optional[str] = None

    def describe(self) -> str:
        if self.action == "type":
            return f'{self.action} {self.selector} value="{self.value}"'
        return f"{self.action} {self.selector}"


@dataclass(frozen=True)
class PageState:
    """Snapshot of the page taken right before an escalation"""
    url: str
    dom: str
    screenshot: bytes


class StepStatus(Enum):
    SUCCESS = "success"
    INCONCLUSIVE = "inconclusive"  # no candidate matched within budget
    ERROR = "error"  # the driver raised


@dataclass(frozen=True)
class StepResult:
    """Outcome of one workflow step"""
    status: StepStatus
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.SUCCESS

    @classmethod
    def success(cls, detail: str = "") -> "StepResult":
        return cls(StepStatus.SUCCESS, detail)

    @classmethod
    def inconclusive(cls, detail: str) -> "StepResult":
        return cls(StepStatus.INCONCLUSIVE, detail)

    @classmethod
    def error(cls, detail: str) -> "StepResult":
        return cls(StepStatus.ERROR, detail)


@dataclass(frozen=True)
class GuardReport:
    """What one guard cycle saw and did"""
    reasons: tuple
    executed: bool = False

    @property
    def diverged(self) -> bool:
        return bool(self.reasons)

    @property
    def reason(self) -> str:
        return "; ".join(self.reasons)


class RunStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    NOT_YET = "not_yet"


EXIT_CODES = {
    RunStatus.SUCCESS: 0,
    RunStatus.FAILED: 1,
    RunStatus.NOT_YET: 3,
}


@dataclass(frozen=True)
class RunOutcome:
    """Terminal state of one run"""
    status: RunStatus
    step: Optional[str] = None
    cause: str = ""

    @classmethod
    def success(cls) -> "RunOutcome":
        return cls(RunStatus.SUCCESS)

    @classmethod
    def failed(cls, step: str, cause: str) -> "RunOutcome":
        return cls(RunStatus.FAILED, step, cause)

    @classmethod
    def not_yet(cls, cause: str) -> "RunOutcome":
        return cls(RunStatus.NOT_YET, cause=cause)

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.status]

    @property
    def message(self) -> str:
        if self.status is RunStatus.SUCCESS:
            return "🎉 Bought successfully"
        if self.status is RunStatus.NOT_YET:
            return f"⏳ {self.cause}"
        return f"❌ Purchase failed at {self.step}: {self.cause}"
