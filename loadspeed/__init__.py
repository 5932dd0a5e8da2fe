from loadspeed.models import (
    EngineSettings,
    LoadStatus,
    NavigationOutcome,
    NavigationState,
    Report,
    ResourceEntry,
    TraceFrame,
)
from loadspeed.ledger import ResourceLedger
from loadspeed.correlator import EventCorrelator
from loadspeed.navigation import NavigationController
from loadspeed.errors import (
    LoadSpeedError,
    UnknownResourceError,
    MissingStartTimeError,
    NavigationStateError,
    EngineError,
)
