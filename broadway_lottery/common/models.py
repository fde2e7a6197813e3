"""
Data models for the Broadway lottery bot
"""
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class LotteryReason(str, Enum):
    CLOSED = "closed"
    NO_ENTRIES = "no_entries"
    SUBMITTED = "submitted"
    FAILED = "failed"
    ERROR = "error"


class DateOfBirth(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str
    day: str
    year: str


class UserInfo(BaseModel):
    """Personal details typed into every lottery form"""
    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str
    email: str
    zip: str
    number_of_tickets: str = "2"
    date_of_birth: DateOfBirth
    country_of_residence: str = "United States"


class LoginCredentials(BaseModel):
    """Email/password pair for a login-gated lottery site"""
    email: str
    password: str


class ShowConfig(BaseModel):
    """One entry of a showsToEnter JSON list"""
    name: str
    url: Optional[str] = None
    num_tickets: Optional[int] = Field(default=None, ge=0)
    enabled: Optional[bool] = None

    def tickets_for(self, default: int | str) -> int:
        """Ticket count for this show, falling back to the user's default"""
        if self.num_tickets is not None:
            return self.num_tickets
        try:
            return int(default)
        except (TypeError, ValueError):
            return 0

    def is_enabled(self, default_tickets: int | str = 2) -> bool:
        # num_tickets == 0 always means skip
        if self.enabled is False:
            return False
        return self.tickets_for(default_tickets) > 0

    def to_json(self) -> dict:
        return self.model_dump(exclude_none=True)


class LotteryResult(BaseModel):
    """Outcome of one driver invocation"""
    success: bool
    message: str
    reason: LotteryReason

    @classmethod
    def closed(cls, message: str = "No lotteries available at this time") -> "LotteryResult":
        return cls(success=False, message=message, reason=LotteryReason.CLOSED)

    @classmethod
    def failed(cls, message: str) -> "LotteryResult":
        return cls(success=False, message=message, reason=LotteryReason.FAILED)

    @classmethod
    def error(cls, exc: BaseException | str) -> "LotteryResult":
        return cls(success=False, message=f"Error: {exc}", reason=LotteryReason.ERROR)

    @classmethod
    def submitted(cls, message: str) -> "LotteryResult":
        return cls(success=True, message=message, reason=LotteryReason.SUBMITTED)


class ShowEntryResult(BaseModel):
    """Per-show outcome inside a multi-show run"""
    show: str
    success: bool
    message: str


def aggregate_results(
    results: List[ShowEntryResult],
    empty_message: str = "No shows processed",
) -> LotteryResult:
    """
    Fold per-show outcomes into a single LotteryResult.

    Any single success makes the whole run a success.
    """
    if not results:
        return LotteryResult.closed(empty_message)

    success_count = sum(1 for r in results if r.success)
    total = len(results)
    summary = ", ".join(f"{r.show} ({'✓' if r.success else '✗'})" for r in results)

    if success_count == total:
        return LotteryResult.submitted(f"Entered {success_count}/{total} lotteries: {summary}")
    if success_count > 0:
        return LotteryResult.submitted(
            f"Entered {success_count}/{total} lotteries (some failed): {summary}"
        )
    return LotteryResult.failed(f"Entered 0/{total} lotteries: {summary}")
