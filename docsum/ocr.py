"""
ocr.py

Image-to-text decoding on top of a per-call RecognitionEngine.

Lifecycle of one call:

    Created -> Initializing -> LanguageLoading -> Recognizing
            -> Completed | Failed -> Terminated

The engine is terminated on every exit path, including cancellation.
A failure while terminating is logged and never replaces the call's own
result or error.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from . import config
from .engine import RecognitionEngine
from .preprocessor import preprocess_image
from .progress import ProgressBridge, ProgressSink
from .schemas import RecognitionOutcome
from .utils import (
    ErrorKind,
    NoTextRecognizedError,
    OcrProcessingError,
    RecognitionFailedError,
    decode_image_bytes,
)

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = (
    "No text could be recognized in the image. The image may be too blurry, "
    "low quality, or may not contain any text."
)
NO_TEXT_MESSAGE_GENERIC = "No text could be recognized in the image."
RECOGNITION_FAILED_MESSAGE = (
    "Failed to recognize text in image. "
    "Please ensure the image contains clear, readable text."
)


class OcrState(str, Enum):
    CREATED = "created"
    INITIALIZING = "initializing"
    LANGUAGE_LOADING = "language_loading"
    RECOGNIZING = "recognizing"
    COMPLETED = "completed"
    FAILED = "failed"
    TERMINATED = "terminated"


async def decode_image(
    data: bytes,
    languages: Sequence[str] = ("eng",),
    progress_sink: Optional[ProgressSink] = None,
) -> str:
    """
    Recognize text in an image.

    Args:
        data: Raw image bytes (PNG, JPEG, ...).
        languages: Language codes loaded into one recognition pass.
        progress_sink: Receives OcrProgressEvents for the four known stages.

    Returns:
        The recognized text, trimmed.

    Raises:
        NoTextRecognizedError: Recognition succeeded but found no text.
        RecognitionFailedError: The engine failed while recognizing.
        OcrProcessingError: Any other failure (decoding, engine start-up,
            language loading).
    """
    bridge = ProgressBridge(progress_sink)
    outcome = await _run_recognition(data, languages, bridge)
    return _validate(outcome, NO_TEXT_MESSAGE)


async def decode_image_multilang(
    data: bytes,
    languages: Sequence[str] = ("eng",),
    progress_sink: Optional[ProgressSink] = None,
) -> str:
    """
    Multi-language variant of decode_image.

    Every engine status is forwarded to the sink, including ones that
    have no OcrStage, and an empty result uses a shorter message.
    """
    logger.info("Starting OCR with languages: %s", ", ".join(languages))
    bridge = ProgressBridge(progress_sink, forward_all=True)
    outcome = await _run_recognition(data, languages, bridge)
    return _validate(outcome, NO_TEXT_MESSAGE_GENERIC)


async def _run_recognition(
    data: bytes, languages: Sequence[str], bridge: ProgressBridge
) -> RecognitionOutcome:
    try:
        engine = RecognitionEngine(languages, on_event=bridge)
    except Exception as e:
        raise OcrProcessingError(f"OCR processing failed: {e}") from e

    state = OcrState.CREATED
    try:
        image = await asyncio.to_thread(_prepare_image, data)

        state = OcrState.INITIALIZING
        await asyncio.to_thread(engine.initialize)

        state = OcrState.LANGUAGE_LOADING
        await asyncio.to_thread(engine.load_languages)

        state = OcrState.RECOGNIZING
        outcome = await asyncio.to_thread(engine.recognize, image)

        state = OcrState.COMPLETED
        logger.info("OCR completed with %.1f%% confidence", outcome.confidence)
        return outcome
    except Exception as e:
        failed_during, state = state, OcrState.FAILED
        logger.error("OCR failed during %s: %s", failed_during.value, e)
        if failed_during is OcrState.RECOGNIZING:
            raise RecognitionFailedError(f"{RECOGNITION_FAILED_MESSAGE} ({e})") from e
        raise OcrProcessingError(f"OCR processing failed: {e}") from e
    finally:
        # a cancelled call leaves the worker thread running; silence it first
        bridge.close()
        _terminate(engine)
        logger.debug("OCR engine state: %s -> %s", state.value, OcrState.TERMINATED.value)
        state = OcrState.TERMINATED


def _prepare_image(data: bytes) -> np.ndarray:
    image = decode_image_bytes(data)
    if config.ENABLE_PREPROCESSING:
        image = preprocess_image(image)
    return image


def _terminate(engine: RecognitionEngine) -> None:
    try:
        engine.terminate()
        logger.debug("OCR engine terminated")
    except Exception as e:
        logger.warning(
            "Failed to terminate OCR engine (%s): %s",
            ErrorKind.ENGINE_TERMINATION_FAILED.value,
            e,
        )


def _validate(outcome: RecognitionOutcome, empty_message: str) -> str:
    text = outcome.text.strip()
    if not text:
        raise NoTextRecognizedError(empty_message)

    if outcome.confidence < config.LOW_CONFIDENCE_THRESHOLD:
        logger.warning(
            "Low OCR confidence (%.1f%%). Results may be inaccurate.",
            outcome.confidence,
        )
    return text
