from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from enum import Enum

if TYPE_CHECKING:
    from loadspeed.ledger import ResourceLedger

class LoadStatus(Enum):
    SUCCESS = "success"
    FAIL = "fail"
    EXCEPTION = "exception"

class OutcomeKind(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    FAULT = "fault"

class NavigationState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    FAULTED = "faulted"
    SETTLING = "settling"
    DONE = "done"

@dataclass(frozen=True)
class TraceFrame:
    """One stack frame attached to a page script error or engine fault."""
    file: str
    line: Optional[int] = None
    function: Optional[str] = None

@dataclass(frozen=True)
class EngineSettings:
    """Browser configuration issued once, before navigation."""
    user_agent: str
    viewport_width: int
    viewport_height: int
    resource_timeout_ms: int

@dataclass
class ResourceEntry:
    """
    Timing and outcome of one network resource.
    Invariant: created once by the request event; later events only fill fields.
    """
    resource_id: Any
    method: str
    url: str
    request_time: datetime
    response_time: Optional[datetime] = None
    response_status: Optional[int] = None
    duration: Optional[int] = None
    error_code: Optional[Any] = None
    error_string: Optional[str] = None
    timed_out: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "method": self.method,
            "url": self.url,
            "requestTime": self.request_time,
        }
        if self.response_time is not None:
            data["responseTime"] = self.response_time
            data["responseStatus"] = self.response_status
            data["duration"] = self.duration
        if self.error_code is not None or self.error_string is not None:
            data["resourceErrorCode"] = self.error_code
            data["resourceErrorString"] = self.error_string
        if self.timed_out:
            data["resourceTimeout"] = True
        return data

@dataclass(frozen=True)
class NavigationOutcome:
    """Explicit result of the navigation: Success(duration), Failed(duration) or Fault(name, message)."""
    kind: OutcomeKind
    duration: Optional[int] = None
    error_name: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def success(cls, duration: int) -> "NavigationOutcome":
        return cls(OutcomeKind.SUCCESS, duration=duration)

    @classmethod
    def failed(cls, duration: int) -> "NavigationOutcome":
        return cls(OutcomeKind.FAILED, duration=duration)

    @classmethod
    def fault(cls, name: str, message: str) -> "NavigationOutcome":
        return cls(OutcomeKind.FAULT, error_name=name, error_message=message)

    @property
    def status(self) -> LoadStatus:
        return {
            OutcomeKind.SUCCESS: LoadStatus.SUCCESS,
            OutcomeKind.FAILED: LoadStatus.FAIL,
            OutcomeKind.FAULT: LoadStatus.EXCEPTION,
        }[self.kind]

@dataclass
class Report:
    """
    Root timing record, one per invocation.
    Populated by the correlator and the navigation controller; serialized once.
    """
    resources: "ResourceLedger"
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    status: Optional[LoadStatus] = None
    error_name: Optional[str] = None
    error_message: Optional[str] = None
    page_load_errors: List[str] = field(default_factory=list)
    engine_error: Optional[str] = None

    def apply(self, outcome: NavigationOutcome, end_time: datetime):
        self.end_time = end_time
        self.status = outcome.status
        if outcome.kind is OutcomeKind.FAULT:
            self.error_name = outcome.error_name
            self.error_message = outcome.error_message
        else:
            self.duration = outcome.duration

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "startTime": self.start_time,
        }
        if self.end_time is not None:
            data["endTime"] = self.end_time
        if self.duration is not None:
            data["duration"] = self.duration
        data["status"] = self.status.value if self.status else None
        if self.status is LoadStatus.EXCEPTION:
            data["errorName"] = self.error_name
            data["errorMessage"] = self.error_message
        if self.page_load_errors:
            data["pageLoadErrors"] = list(self.page_load_errors)
        if self.engine_error is not None:
            data["phantomEngineError"] = self.engine_error
        data["resources"] = self.resources.to_dict()
        return data
