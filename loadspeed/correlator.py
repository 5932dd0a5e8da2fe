"""
Event Correlator.

FLOW: Receives one typed browser event -> Looks up its handler in the dispatch table ->
Applies exactly one mutation to the Report or its Resource Ledger.
Errors raised while handling an event are recorded as an engine fault instead of
escaping into the engine. Once sealed, every further event is dropped.
"""

import traceback
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from loadspeed.core import MAX_URL_LENGTH, setup_logger
from loadspeed.ledger import truncate_ms
from loadspeed.events import (
    EngineFault,
    LoadStarted,
    PageScriptError,
    ResourceError,
    ResourceReceived,
    ResourceRequested,
    ResourceTimeout,
)
from loadspeed.models import Report, TraceFrame

logger = setup_logger("loadspeed.correlator")

PAGE_ERROR_PREFIX = "ERROR: "
ENGINE_ERROR_PREFIX = "PHANTOM ERROR: "


def utc_now() -> datetime:
    return truncate_ms(datetime.now(timezone.utc))


def format_error(prefix: str, message: str, trace: Optional[Iterable[TraceFrame]] = None) -> str:
    lines = [prefix + str(message)]
    frames = list(trace or ())
    if frames:
        lines.append("TRACE:")
        for frame in frames:
            line = f" -> {frame.file}: {frame.line}"
            if frame.function:
                line += f" (in function \"{frame.function}\")"
            lines.append(line)
    return "\n".join(lines)


def frames_from_exception(exc: BaseException):
    return tuple(
        TraceFrame(file=fs.filename, line=fs.lineno, function=fs.name)
        for fs in traceback.extract_tb(exc.__traceback__)
    )


class EventCorrelator:

    def __init__(self, report: Report, clock: Callable[[], datetime] = utc_now):
        self.report = report
        self._clock = clock
        self._sealed = False
        self._dropped = 0
        self._handlers = {
            LoadStarted: self._on_load_started,
            ResourceRequested: self._on_resource_requested,
            ResourceReceived: self._on_resource_received,
            ResourceError: self._on_resource_error,
            ResourceTimeout: self._on_resource_timeout,
            PageScriptError: self._on_page_script_error,
            EngineFault: self._on_engine_fault,
        }

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def dropped(self) -> int:
        return self._dropped

    def handles(self, event) -> bool:
        return type(event) in self._handlers

    def seal(self):
        """Freeze the report. Events delivered after this point are dropped."""
        self._sealed = True

    def dispatch(self, event):
        if self._sealed:
            self._dropped += 1
            logger.debug(f"[CORRELATOR] Dropping {type(event).__name__} received after report snapshot.")
            return

        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug(f"[CORRELATOR] No handler for {type(event).__name__}.")
            return

        try:
            handler(event)
        except Exception as e:
            logger.error(f"[CORRELATOR] {type(event).__name__} handling failed: {e}")
            self._record_engine_fault(f"{type(e).__name__}: {e}", frames_from_exception(e))

    # === HANDLERS ===

    def _on_load_started(self, event: LoadStarted):
        if self.report.start_time is not None:
            # Redirects refire the load start; the first one wins.
            logger.debug("[CORRELATOR] Load started again, keeping first start time.")
            return
        self.report.start_time = truncate_ms(self._clock())
        logger.info("[CORRELATOR] Page load started.")

    def _on_resource_requested(self, event: ResourceRequested):
        self.report.resources.create(
            event.resource_id,
            event.method,
            event.url[:MAX_URL_LENGTH],
            event.time,
        )

    def _on_resource_received(self, event: ResourceReceived):
        self.report.resources.record_response(event.resource_id, event.time, event.status)

    def _on_resource_error(self, event: ResourceError):
        self.report.resources.record_error(event.resource_id, event.error_code, event.error_string)
        logger.warning(f"[CORRELATOR] Resource {event.resource_id} failed: {event.error_string}")

    def _on_resource_timeout(self, event: ResourceTimeout):
        self.report.resources.record_timeout(event.resource_id)
        logger.warning(f"[CORRELATOR] Resource {event.resource_id} timed out.")

    def _on_page_script_error(self, event: PageScriptError):
        self.report.page_load_errors.append(format_error(PAGE_ERROR_PREFIX, event.message, event.trace))

    def _on_engine_fault(self, event: EngineFault):
        self._record_engine_fault(event.message, event.trace)

    def _record_engine_fault(self, message: str, trace=None):
        # Only the most recent engine fault is kept.
        self.report.engine_error = format_error(ENGINE_ERROR_PREFIX, message, trace)
