"""
Unit tests for CaptureSession.
"""

import asyncio

import pytest

from kalry.application.extraction.capture_session import CaptureSession, CaptureState
from kalry.application.extraction.pipeline import NutritionPipeline
from kalry.config import PipelineSettings
from kalry.domain.extraction.models import CapturedInput, ErrorCategory
from kalry.domain.shared.errors import InvalidTransitionError


class TestTransitions:
    """Test legal and illegal state changes."""

    @pytest.fixture
    def session(self, make_transport, fast_settings: PipelineSettings) -> CaptureSession:
        return CaptureSession(NutritionPipeline(make_transport(), fast_settings))

    def test_starts_idle(self, session: CaptureSession) -> None:
        assert session.state == CaptureState.IDLE
        assert session.result is None

    def test_cancel_capture(self, session: CaptureSession) -> None:
        """Test cancelling a capture returns to IDLE."""
        session.start_capture()
        assert session.state == CaptureState.CAPTURING

        session.cancel_capture()
        assert session.state == CaptureState.IDLE

    def test_submit_requires_capturing(
        self, session: CaptureSession, audio_input: CapturedInput
    ) -> None:
        with pytest.raises(InvalidTransitionError):
            session.submit(audio_input)

    def test_double_start_rejected(self, session: CaptureSession) -> None:
        session.start_capture()
        with pytest.raises(InvalidTransitionError):
            session.start_capture()

    @pytest.mark.asyncio
    async def test_process_requires_submit(self, session: CaptureSession) -> None:
        with pytest.raises(InvalidTransitionError):
            await session.process()

    def test_reset_requires_terminal(self, session: CaptureSession) -> None:
        with pytest.raises(InvalidTransitionError):
            session.reset()

    def test_abandon_from_idle_rejected(self, session: CaptureSession) -> None:
        with pytest.raises(InvalidTransitionError):
            session.abandon()

    def test_abandon_before_processing(
        self, session: CaptureSession, audio_input: CapturedInput
    ) -> None:
        session.start_capture()
        session.submit(audio_input)
        session.abandon()

        assert session.state == CaptureState.IDLE
        assert session.captured is None


class TestProcessing:
    """Test pipeline runs inside a session."""

    @pytest.mark.asyncio
    async def test_success(
        self,
        make_transport,
        fast_settings: PipelineSettings,
        audio_input: CapturedInput,
        black_beans_json: str,
    ) -> None:
        transport = make_transport({"gemini-2.0-flash": black_beans_json})
        session = CaptureSession(NutritionPipeline(transport, fast_settings))

        session.start_capture()
        session.submit(audio_input)
        assert session.state == CaptureState.SUBMITTED

        result = await session.process()

        assert result is not None
        assert result.ok is True
        assert session.state == CaptureState.SUCCEEDED
        assert session.category is None

    @pytest.mark.asyncio
    async def test_failure_then_reset(
        self,
        make_transport,
        fast_settings: PipelineSettings,
        audio_input: CapturedInput,
        no_food_json: str,
    ) -> None:
        """Test a failed run is terminal until the user resets."""
        transport = make_transport({"gemini-2.0-flash": no_food_json})
        session = CaptureSession(NutritionPipeline(transport, fast_settings))

        session.start_capture()
        session.submit(audio_input)
        await session.process()

        assert session.state == CaptureState.FAILED
        assert session.category == ErrorCategory.NO_FOOD_DETECTED
        assert len(transport.calls) == 1

        session.reset()
        assert session.state == CaptureState.IDLE
        assert session.result is None

    @pytest.mark.asyncio
    async def test_abandon_discards_late_result(
        self,
        make_transport,
        delayed,
        fast_settings: PipelineSettings,
        audio_input: CapturedInput,
        black_beans_json: str,
    ) -> None:
        """Test abandoning mid-run cancels it and publishes nothing."""
        transport = make_transport({"gemini-2.0-flash": delayed(0.3, black_beans_json)})
        session = CaptureSession(NutritionPipeline(transport, fast_settings))
        session.start_capture()
        session.submit(audio_input)

        processing = asyncio.ensure_future(session.process())
        await asyncio.sleep(0.02)
        assert session.state == CaptureState.PIPELINING

        session.abandon()
        result = await processing

        assert result is None
        assert session.state == CaptureState.IDLE
        assert session.result is None
        assert transport.completed == []

    @pytest.mark.asyncio
    async def test_abandoned_run_does_not_overwrite_restarted_run(
        self,
        make_transport,
        fast_settings: PipelineSettings,
        audio_input: CapturedInput,
        black_beans_json: str,
    ) -> None:
        """Test a finished but abandoned run stays silent after a restart."""
        transport = make_transport({"gemini-2.0-flash": black_beans_json})
        session = CaptureSession(NutritionPipeline(transport, fast_settings))
        session.start_capture()
        session.submit(audio_input)

        # Step the first run by hand so it resumes only after the restart
        first = session.process()
        pipeline_task = first.send(None)
        # Undo the blocking flag Future.__await__ set when the task was yielded
        pipeline_task._asyncio_future_blocking = False
        await pipeline_task
        assert pipeline_task.done()

        session.abandon()
        session.start_capture()
        session.submit(audio_input)
        second = asyncio.ensure_future(session.process())
        await asyncio.sleep(0)
        assert session.state == CaptureState.PIPELINING

        with pytest.raises(StopIteration) as stopped:
            first.send(None)

        assert stopped.value.value is None
        assert session.state == CaptureState.PIPELINING
        assert session.result is None

        result = await second

        assert result is not None
        assert result.ok is True
        assert session.state == CaptureState.SUCCEEDED
        assert session.result is result
        assert len(transport.calls) == 2
