"""
Tests for the OCR decoder.

The EasyOCR engine is replaced by FakeEngine (see conftest.py), so no
models are downloaded.
"""

import logging

import pytest

from docsum import engine
from docsum.ocr import (
    NO_TEXT_MESSAGE,
    NO_TEXT_MESSAGE_GENERIC,
    OcrState,
    decode_image,
    decode_image_multilang,
)
from docsum.schemas import OcrProgressEvent, RecognitionOutcome
from docsum.utils import (
    ErrorKind,
    NoTextRecognizedError,
    OcrProcessingError,
    RecognitionFailedError,
)


class TestDecodeImage:
    @pytest.mark.asyncio
    async def test_returns_trimmed_text(self, fake_engine, png_bytes):
        fake_engine.outcome = RecognitionOutcome(text="  Invoice #123  ", confidence=88.0)

        text = await decode_image(png_bytes)

        assert text == "Invoice #123"
        assert text == text.strip()

    @pytest.mark.asyncio
    async def test_runs_lifecycle_in_order(self, fake_engine, png_bytes):
        await decode_image(png_bytes)

        [instance] = fake_engine.instances
        assert instance.calls == ["initialize", "load_languages", "recognize", "terminate"]
        assert instance.languages == ["eng"]

    @pytest.mark.asyncio
    async def test_forwards_known_stages_in_order(self, fake_engine, png_bytes):
        fake_engine.events = [
            (engine.STATUS_INITIALIZING, 0.0),
            (engine.STATUS_RECOGNIZING, 0.5),
            (engine.STATUS_RECOGNIZING, 1.0),
        ]
        fake_engine.outcome = RecognitionOutcome(text="  Invoice #123  ", confidence=88.0)
        received = []

        text = await decode_image(png_bytes, progress_sink=received.append)

        assert received == [
            OcrProgressEvent(stage="initializing", fraction=0.0),
            OcrProgressEvent(stage="recognizing", fraction=0.5),
            OcrProgressEvent(stage="recognizing", fraction=1.0),
        ]
        assert text == "Invoice #123"

    @pytest.mark.asyncio
    async def test_ignores_unknown_stages(self, fake_engine, png_bytes):
        fake_engine.events = [
            (engine.STATUS_DETECTING, 0.5),
            (engine.STATUS_RECOGNIZING, 1.0),
        ]
        received = []

        await decode_image(png_bytes, progress_sink=received.append)

        assert [e.stage for e in received] == ["recognizing"]

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, fake_engine, png_bytes):
        fake_engine.outcome = RecognitionOutcome(text="", confidence=95.0)

        with pytest.raises(NoTextRecognizedError) as exc_info:
            await decode_image(png_bytes)

        assert str(exc_info.value) == NO_TEXT_MESSAGE
        assert exc_info.value.kind is ErrorKind.NO_TEXT_RECOGNIZED
        assert fake_engine.instances[0].terminate_count == 1

    @pytest.mark.asyncio
    async def test_whitespace_text_rejected(self, fake_engine, png_bytes):
        fake_engine.outcome = RecognitionOutcome(text=" \n\t ", confidence=70.0)

        with pytest.raises(NoTextRecognizedError):
            await decode_image(png_bytes)

    @pytest.mark.asyncio
    async def test_low_confidence_is_advisory(self, fake_engine, png_bytes, caplog):
        fake_engine.outcome = RecognitionOutcome(text="hello", confidence=42.0)

        with caplog.at_level(logging.WARNING, logger="docsum.ocr"):
            text = await decode_image(png_bytes)

        assert text == "hello"
        assert "Low OCR confidence" in caplog.text

    @pytest.mark.asyncio
    async def test_recognition_failure(self, fake_engine, png_bytes):
        fake_engine.fail_on = "recognize"

        with pytest.raises(RecognitionFailedError) as exc_info:
            await decode_image(png_bytes)

        message = str(exc_info.value)
        assert "clear, readable text" in message
        assert "recognize exploded" in message
        assert fake_engine.instances[0].terminate_count == 1

    @pytest.mark.parametrize("step", ["initialize", "load_languages"])
    @pytest.mark.asyncio
    async def test_startup_failure(self, fake_engine, png_bytes, step):
        fake_engine.fail_on = step

        with pytest.raises(OcrProcessingError) as exc_info:
            await decode_image(png_bytes)

        assert str(exc_info.value) == f"OCR processing failed: {step} exploded"
        assert fake_engine.instances[0].terminate_count == 1

    @pytest.mark.asyncio
    async def test_unreadable_image(self, fake_engine):
        with pytest.raises(OcrProcessingError) as exc_info:
            await decode_image(b"definitely not an image")

        assert str(exc_info.value).startswith("OCR processing failed:")
        [instance] = fake_engine.instances
        assert instance.calls == ["terminate"]

    @pytest.mark.asyncio
    async def test_termination_failure_does_not_mask_result(self, fake_engine, png_bytes, caplog):
        fake_engine.fail_terminate = True

        with caplog.at_level(logging.WARNING, logger="docsum.ocr"):
            text = await decode_image(png_bytes)

        assert text == "hello"
        assert "Failed to terminate OCR engine" in caplog.text

    @pytest.mark.asyncio
    async def test_termination_failure_does_not_mask_error(self, fake_engine, png_bytes):
        fake_engine.fail_terminate = True
        fake_engine.fail_on = "recognize"

        with pytest.raises(RecognitionFailedError):
            await decode_image(png_bytes)

    @pytest.mark.asyncio
    async def test_lifecycle_ends_terminated(self, fake_engine, png_bytes, caplog):
        with caplog.at_level(logging.DEBUG, logger="docsum.ocr"):
            await decode_image(png_bytes)

        assert "completed -> terminated" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_passes_through_failed_state(self, fake_engine, png_bytes, caplog):
        fake_engine.fail_on = "load_languages"

        with caplog.at_level(logging.DEBUG, logger="docsum.ocr"):
            with pytest.raises(OcrProcessingError):
                await decode_image(png_bytes)

        assert "OCR failed during language_loading" in caplog.text
        assert "failed -> terminated" in caplog.text

    def test_states_cover_lifecycle(self):
        assert [s.value for s in OcrState] == [
            "created",
            "initializing",
            "language_loading",
            "recognizing",
            "completed",
            "failed",
            "terminated",
        ]

    @pytest.mark.asyncio
    async def test_fresh_engine_per_call(self, fake_engine, png_bytes):
        await decode_image(png_bytes)
        fake_engine.outcome = RecognitionOutcome(text="", confidence=0.0)
        with pytest.raises(NoTextRecognizedError):
            await decode_image(png_bytes)

        assert len(fake_engine.instances) == 2
        assert [e.terminate_count for e in fake_engine.instances] == [1, 1]


class TestDecodeImageMultilang:
    @pytest.mark.asyncio
    async def test_languages_share_one_engine(self, fake_engine, png_bytes):
        await decode_image_multilang(png_bytes, ["eng", "fra", "deu"])

        [instance] = fake_engine.instances
        assert instance.languages == ["eng", "fra", "deu"]
        assert instance.calls.count("recognize") == 1

    @pytest.mark.asyncio
    async def test_forwards_every_status(self, fake_engine, png_bytes):
        fake_engine.events = [
            (engine.STATUS_DETECTING, 0.5),
            (engine.STATUS_RECOGNIZING, 1.0),
        ]
        received = []

        await decode_image_multilang(png_bytes, ["eng"], progress_sink=received.append)

        assert [(e.stage, e.fraction) for e in received] == [
            ("detecting text", 0.5),
            ("recognizing", 1.0),
        ]

    @pytest.mark.asyncio
    async def test_generic_empty_message(self, fake_engine, png_bytes):
        fake_engine.outcome = RecognitionOutcome(text="   ", confidence=10.0)

        with pytest.raises(NoTextRecognizedError) as exc_info:
            await decode_image_multilang(png_bytes, ["eng", "fra"])

        assert str(exc_info.value) == NO_TEXT_MESSAGE_GENERIC
        assert fake_engine.instances[0].terminate_count == 1

    @pytest.mark.asyncio
    async def test_recognition_failure_is_distinct(self, fake_engine, png_bytes):
        fake_engine.fail_on = "recognize"

        with pytest.raises(RecognitionFailedError):
            await decode_image_multilang(png_bytes, ["eng", "fra"])
