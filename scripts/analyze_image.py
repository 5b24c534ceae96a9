#!/usr/bin/env python3
"""
Run the image safety pipeline on a local file.

Prints progress as each step runs, then the pipeline result as JSON.
Keys come from the environment (GEMINI_API_KEY or PERCEPTA_*_API_KEY).

Usage:
    python scripts/analyze_image.py site_photo.jpg
    python scripts/analyze_image.py site_photo.jpg --language en --accumulate
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from percepta.config import get_settings, validate_config
from percepta.media import ImageInput
from percepta.models.defaults import register_default_models
from percepta.models.errors import ConfigurationError
from percepta.pipeline import ContextPropagation, PipelineEngine, ProgressStatus
from percepta.registry import ModelRegistry

logger = logging.getLogger(__name__)


def print_progress(step: int, total: int, message: str, status: ProgressStatus) -> None:
    marker = {"loading": "..", "success": "OK", "error": "!!"}[status.value]
    print(f"  [{marker}] {step}/{total} {message}")


async def analyze(image_path: Path, language: Optional[str], accumulate: bool) -> int:
    settings = get_settings()
    if language:
        settings.analysis.report_language = language

    validation = validate_config(settings)
    for issue in validation.issues:
        logger.warning(issue)

    registry = register_default_models(ModelRegistry(), settings)
    try:
        for model_id in registry.list():
            await registry.get_registration(model_id).model.initialize()
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 2

    engine = PipelineEngine(
        registry,
        context_propagation=(
            ContextPropagation.ACCUMULATE if accumulate else ContextPropagation.PREVIOUS
        ),
    )
    engine.on_progress(print_progress)

    print(f"Analyzing {image_path.name}")
    result = await engine.execute_image_pipeline(ImageInput.from_path(image_path))

    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Analyze an image for industrial safety risks")
    parser.add_argument("image", help="Path to the image file")
    parser.add_argument("--language", choices=["ar", "en"], help="Safety report language")
    parser.add_argument(
        "--accumulate",
        action="store_true",
        help="Hand every step all earlier outputs instead of only the previous one",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if get_settings().features.debug_mode else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    path = Path(args.image)
    if not path.exists():
        parser.error(f"File not found: {path}")

    sys.exit(asyncio.run(analyze(path, args.language, args.accumulate)))
