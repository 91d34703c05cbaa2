#!/usr/bin/env python3
"""
Analyze a meal from the command line.

Runs the nutrition pipeline on a voice recording, a photo or typed text
and prints the nutrition record, or the user message on failure.

Usage:
    python -m kalry.scripts.analyze_meal --text "200g black beans and a glass of orange juice"
    python -m kalry.scripts.analyze_meal --audio lunch.m4a
    python -m kalry.scripts.analyze_meal --photo dinner.jpg --transcribe
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from kalry.application.extraction.pipeline import NutritionPipeline
from kalry.config import PipelineSettings, load_environment
from kalry.domain.extraction.models import CapturedInput, PipelinePurpose, PipelineResult
from kalry.domain.shared.errors import DomainError
from kalry.infrastructure.ai.factory import create_transport
from kalry.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Estimate the nutrition of a meal")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Typed meal description")
    source.add_argument("--audio", type=Path, help="Voice recording of the meal")
    source.add_argument("--photo", type=Path, help="Photo of the meal")
    parser.add_argument(
        "--transcribe",
        action="store_true",
        help="Also transcribe the recording (audio only)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default WARNING)")
    return parser.parse_args(argv)


def build_input(args: argparse.Namespace) -> Tuple[CapturedInput, PipelinePurpose]:
    """Captured input and purpose for the chosen source."""
    if args.text is not None:
        return CapturedInput.from_text(args.text), PipelinePurpose.ANALYZE_TEXT

    path: Path = args.audio or args.photo
    mime_type, _ = mimetypes.guess_type(path.name)
    data = path.read_bytes()

    if args.audio is not None:
        return CapturedInput.from_audio(data, mime_type or "audio/m4a"), PipelinePurpose.ANALYZE
    return CapturedInput.from_image(data, mime_type or "image/jpeg"), PipelinePurpose.ANALYZE_PHOTO


def render(result: PipelineResult) -> str:
    """Human-readable result."""
    if result.transcription is not None:
        return f"Transcription: {result.transcription.text}"

    record = result.record
    if not result.ok or record is None:
        message = result.message
        if message is None:
            return "Analysis failed"
        return f"{message.title}: {message.body}"

    lines = [f"Heard: {record.transcription}", ""]
    for item in record.items:
        lines.append(
            f"  {item.name}: {item.calories:.0f} kcal "
            f"(P {item.protein:g}g, C {item.carbs:g}g, F {item.fat:g}g)"
        )
    total = record.total
    lines.append("")
    lines.append(
        f"Total: {total.calories:.0f} kcal "
        f"(P {total.protein:g}g, C {total.carbs:g}g, F {total.fat:g}g)"
    )
    lines.append(f"Model: {record.model_id}")
    return "\n".join(lines)


async def main(argv: Optional[List[str]] = None) -> int:
    """Run the analysis; 0 on success, 1 on pipeline failure, 2 on setup error."""
    args = parse_args(argv)
    configure_logging(args.log_level)
    load_environment()

    try:
        settings = PipelineSettings.from_env()
        pipeline = NutritionPipeline(create_transport(settings.provider), settings)
        captured, purpose = build_input(args)
    except (DomainError, ValueError, OSError) as e:
        logger.error("Setup failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.transcribe and purpose is PipelinePurpose.ANALYZE:
        transcription, result = await pipeline.transcribe_and_analyze(captured)
        print(render(transcription))
    else:
        result = await pipeline.run(captured, purpose)

    print(render(result))
    return 0 if result.ok else 1


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
