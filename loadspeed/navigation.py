"""
Navigation Controller.

State machine: idle -> loading -> {succeeded | failed | faulted} -> settling -> done

FLOW: Configures the engine -> Issues the single navigate command -> Routes LoadFinished to
outcome capture and every other event to the correlator -> Converts any timing fault into an
exception outcome -> Always settles exactly once -> Seals the correlator -> Emits the report.
"""

from datetime import datetime
from typing import Callable, Optional

from loadspeed import serializer
from loadspeed.core import SETTLE_DELAY_MS, setup_logger
from loadspeed.correlator import EventCorrelator, utc_now
from loadspeed.errors import MissingStartTimeError, NavigationStateError
from loadspeed.events import BrowserEngine, LoadFinished
from loadspeed.ledger import elapsed_ms, truncate_ms
from loadspeed.models import (
    EngineSettings,
    NavigationOutcome,
    NavigationState,
    OutcomeKind,
    Report,
)
from loadspeed.summary import log_summary

logger = setup_logger("loadspeed.navigation")

_TRANSITIONS = {
    NavigationState.IDLE: {NavigationState.LOADING},
    NavigationState.LOADING: {
        NavigationState.SUCCEEDED,
        NavigationState.FAILED,
        NavigationState.FAULTED,
        NavigationState.SETTLING,
    },
    NavigationState.SUCCEEDED: {NavigationState.SETTLING},
    NavigationState.FAILED: {NavigationState.SETTLING},
    NavigationState.FAULTED: {NavigationState.SETTLING},
    NavigationState.SETTLING: {NavigationState.DONE},
    NavigationState.DONE: set(),
}

_OUTCOME_STATES = {
    OutcomeKind.SUCCESS: NavigationState.SUCCEEDED,
    OutcomeKind.FAILED: NavigationState.FAILED,
    OutcomeKind.FAULT: NavigationState.FAULTED,
}


class NavigationController:

    def __init__(
        self,
        engine: BrowserEngine,
        correlator: EventCorrelator,
        settings: Optional[EngineSettings] = None,
        settle_delay_ms: int = SETTLE_DELAY_MS,
        clock: Callable[[], datetime] = utc_now,
        stream=None,
    ):
        self.engine = engine
        self.correlator = correlator
        self.report: Report = correlator.report
        self.settings = settings
        self.settle_delay_ms = settle_delay_ms
        self.outcome: Optional[NavigationOutcome] = None
        self.state = NavigationState.IDLE
        self._clock = clock
        self._stream = stream
        engine.subscribe(self.on_event)

    def _transition(self, target: NavigationState):
        if target not in _TRANSITIONS[self.state]:
            raise NavigationStateError(f"Illegal navigation transition {self.state.value} -> {target.value}")
        logger.debug(f"[NAV] {self.state.value} -> {target.value}")
        self.state = target

    # === ENGINE EVENTS ===

    def on_event(self, event):
        if isinstance(event, LoadFinished):
            self.on_load_finished(event.status)
        else:
            self.correlator.dispatch(event)

    def on_load_finished(self, status: str):
        if self.state is not NavigationState.LOADING:
            logger.warning(f"[NAV] Ignoring load finished ({status}) in state {self.state.value}.")
            return

        now = truncate_ms(self._clock())
        try:
            outcome = self._measure(status, now)
        except Exception as e:
            logger.error(f"[NAV] Could not compute load timing: {e}")
            outcome = NavigationOutcome.fault(type(e).__name__, str(e))
        self._finish(outcome, now)

    def _measure(self, status: str, now: datetime) -> NavigationOutcome:
        if self.report.start_time is None:
            raise MissingStartTimeError("Load finished before load start was observed")
        duration = elapsed_ms(self.report.start_time, now)
        if status == "success":
            return NavigationOutcome.success(duration)
        return NavigationOutcome.failed(duration)

    def _finish(self, outcome: NavigationOutcome, now: datetime):
        self.outcome = outcome
        self.report.apply(outcome, now)
        self._transition(_OUTCOME_STATES[outcome.kind])
        logger.info(f"[NAV] Navigation {self.state.value} (status={self.report.status.value}, duration={self.report.duration}).")

    # === PUBLIC API ===

    def run(self, url: str) -> Report:
        """Load url once and return the serialized report."""
        if not url:
            raise ValueError("A target URL is required")
        if self.state is not NavigationState.IDLE:
            raise NavigationStateError("A controller navigates only once")

        self._transition(NavigationState.LOADING)
        logger.info(f"[NAV] Navigating to {url}")
        try:
            if self.settings is not None:
                self.engine.configure(self.settings)
            self.engine.navigate(url)
        except Exception as e:
            logger.error(f"[NAV] Navigation raised {type(e).__name__}: {e}")
            if self.state is NavigationState.LOADING:
                self._finish(NavigationOutcome.fault(type(e).__name__, str(e)), truncate_ms(self._clock()))
        finally:
            self._settle()
        return self.report

    def _settle(self):
        if self.state is NavigationState.LOADING:
            logger.warning("[NAV] Engine never reported load finished; report will carry no status.")
        self._transition(NavigationState.SETTLING)
        try:
            self.engine.wait(self.settle_delay_ms)
        except Exception as e:
            logger.error(f"[NAV] Settle wait interrupted: {e}")
        finally:
            self.correlator.seal()
            self._transition(NavigationState.DONE)
            serializer.emit(self.report, self._stream)
            log_summary(self.report)
