class LoadSpeedError(Exception):
    """Base probe exception."""
    pass

class UnknownResourceError(LoadSpeedError):
    """Raised when an event references a resource id that was never requested."""

    def __init__(self, resource_id, event: str):
        self.resource_id = resource_id
        self.event = event
        super().__init__(f"{event} for unknown resource id {resource_id!r} (no prior request)")

class MissingStartTimeError(LoadSpeedError):
    """Raised when load finished but load started was never observed."""
    pass

class NavigationStateError(LoadSpeedError):
    """Raised on an illegal navigation state transition."""
    pass

class EngineError(LoadSpeedError):
    """Raised when the browser engine is used before it is ready."""
    pass
