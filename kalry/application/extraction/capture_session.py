"""
Capture session.

State machine for one capture-and-analyze interaction:

    IDLE -> CAPTURING -> SUBMITTED -> PIPELINING -> SUCCEEDED | FAILED

Retries are user-initiated: reset() a terminal session and capture again.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

import structlog

from kalry.application.extraction.pipeline import NutritionPipeline
from kalry.domain.extraction.models import (
    CapturedInput,
    ErrorCategory,
    PipelinePurpose,
    PipelineResult,
)
from kalry.domain.shared.errors import InvalidTransitionError

logger = structlog.get_logger(__name__)


class CaptureState(str, Enum):
    IDLE = "IDLE"
    CAPTURING = "CAPTURING"
    SUBMITTED = "SUBMITTED"
    PIPELINING = "PIPELINING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


_TERMINAL = (CaptureState.SUCCEEDED, CaptureState.FAILED)


class CaptureSession:
    """
    One user's capture interaction.

    Abandoning during PIPELINING cancels the run; its late result is
    never published.

    Example:
        >>> session = CaptureSession(pipeline, PipelinePurpose.ANALYZE)
        >>> session.start_capture()
        >>> session.submit(CapturedInput.from_audio(recording))
        >>> result = await session.process()
        >>> session.state
        <CaptureState.SUCCEEDED: 'SUCCEEDED'>
    """

    def __init__(
        self,
        pipeline: NutritionPipeline,
        purpose: PipelinePurpose = PipelinePurpose.ANALYZE,
    ):
        self.pipeline = pipeline
        self.purpose = purpose
        self.state = CaptureState.IDLE
        self.captured: Optional[CapturedInput] = None
        self.result: Optional[PipelineResult] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def category(self) -> Optional[ErrorCategory]:
        """Failure category once FAILED."""
        if self.state is CaptureState.FAILED and self.result is not None:
            return self.result.category
        return None

    def start_capture(self) -> None:
        self._transition(CaptureState.IDLE, CaptureState.CAPTURING)

    def cancel_capture(self) -> None:
        self._transition(CaptureState.CAPTURING, CaptureState.IDLE)

    def submit(self, captured: CapturedInput) -> None:
        """Hand the finished capture over for processing."""
        self._transition(CaptureState.CAPTURING, CaptureState.SUBMITTED)
        self.captured = captured

    async def process(self) -> Optional[PipelineResult]:
        """
        Run the pipeline on the submitted capture.

        Only the current run publishes. A run that was abandoned, even one
        whose pipeline already finished, returns None and leaves the
        session untouched.

        Returns:
            PipelineResult, or None when the session was abandoned meanwhile

        Raises:
            InvalidTransitionError: Nothing submitted
        """
        captured = self.captured
        if self.state is not CaptureState.SUBMITTED or captured is None:
            raise InvalidTransitionError(
                f"Cannot move to {CaptureState.PIPELINING.value} from {self.state.value}"
            )
        self.state = CaptureState.PIPELINING

        task = asyncio.ensure_future(self.pipeline.run(captured, self.purpose))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if task.cancelled() and self._task is not task:
                logger.info("Capture abandoned", purpose=self.purpose.value)
                return None
            raise
        finally:
            current = self._task is task
            if current:
                self._task = None

        if not current:
            # Abandoned after the pipeline finished
            logger.info("Late capture result dropped", purpose=self.purpose.value)
            return None

        self.result = result
        self.state = CaptureState.SUCCEEDED if result.ok else CaptureState.FAILED
        logger.info(
            "Capture finished",
            state=self.state.value,
            category=result.category.value if result.category else None,
        )
        return result

    def abandon(self) -> None:
        """
        Leave the session.

        From CAPTURING or SUBMITTED the capture is dropped; from
        PIPELINING the in-flight run is cancelled. Always ends IDLE.
        """
        if self.state in _TERMINAL or self.state is CaptureState.IDLE:
            raise InvalidTransitionError(f"Cannot abandon from {self.state.value}")

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self.captured = None
        self.result = None
        self.state = CaptureState.IDLE

    def reset(self) -> None:
        """Return a finished session to IDLE."""
        if self.state not in _TERMINAL:
            raise InvalidTransitionError(f"Cannot reset from {self.state.value}")
        self.captured = None
        self.result = None
        self.state = CaptureState.IDLE

    def _transition(self, expected: CaptureState, target: CaptureState) -> None:
        if self.state is not expected:
            raise InvalidTransitionError(
                f"Cannot move to {target.value} from {self.state.value}"
            )
        self.state = target
