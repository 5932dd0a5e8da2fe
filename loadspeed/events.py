from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Tuple

from loadspeed.models import EngineSettings, TraceFrame

# ------------------------------------------------------------
# Browser events
# ------------------------------------------------------------

@dataclass(frozen=True)
class LoadStarted:
    pass

@dataclass(frozen=True)
class ResourceRequested:
    resource_id: Any
    method: str
    url: str
    time: datetime

@dataclass(frozen=True)
class ResourceReceived:
    resource_id: Any
    time: datetime
    status: Optional[int]

@dataclass(frozen=True)
class ResourceError:
    resource_id: Any
    error_code: Any
    error_string: Optional[str]

@dataclass(frozen=True)
class ResourceTimeout:
    resource_id: Any

@dataclass(frozen=True)
class PageScriptError:
    message: str
    trace: Tuple[TraceFrame, ...] = ()

@dataclass(frozen=True)
class EngineFault:
    message: str
    trace: Tuple[TraceFrame, ...] = ()

@dataclass(frozen=True)
class LoadFinished:
    status: str


EventHandler = Callable[[Any], None]


# ------------------------------------------------------------
# Engine contract
# ------------------------------------------------------------

class BrowserEngine(ABC):
    """
    Abstraction for the underlying browser driver.
    Contractual Requirements for Implementers:
    - MUST deliver every event to the subscribed handler on the calling thread.
    - MUST emit ResourceRequested for an id before any other event for that id.
    - MUST emit exactly one LoadFinished per navigate() call when the load ends.
    - MUST keep delivering events while wait() is in progress.
    """

    @abstractmethod
    def configure(self, settings: EngineSettings) -> None:
        """Apply user agent, viewport and per-resource timeout. Called once, before navigate()."""
        pass

    @abstractmethod
    def subscribe(self, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Load url, emitting events while loading and LoadFinished at the end."""
        pass

    @abstractmethod
    def wait(self, ms: int) -> None:
        """Block for ms milliseconds while still delivering events."""
        pass

    def close(self) -> None:
        pass
