import io
from unittest.mock import patch

import pytest
from PIL import Image

from docsum.schemas import RecognitionOutcome


class FakeEngine:
    """
    Stand-in for RecognitionEngine that records its lifecycle.

    Class attributes configure the next run; ``instances`` keeps every
    engine created so tests can count terminations.
    """

    instances = []
    outcome = RecognitionOutcome(text="hello", confidence=90.0)
    events = []
    fail_on = None
    fail_terminate = False
    recognize_delay = 0.0

    def __init__(self, languages, on_event=None):
        self.languages = list(languages)
        self.on_event = on_event
        self.calls = []
        self.terminate_count = 0
        FakeEngine.instances.append(self)

    @classmethod
    def reset(cls):
        cls.instances = []
        cls.outcome = RecognitionOutcome(text="hello", confidence=90.0)
        cls.events = []
        cls.fail_on = None
        cls.fail_terminate = False
        cls.recognize_delay = 0.0

    def _step(self, name):
        self.calls.append(name)
        if FakeEngine.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def initialize(self):
        self._step("initialize")

    def load_languages(self):
        self._step("load_languages")

    def recognize(self, image):
        self._step("recognize")
        if FakeEngine.recognize_delay:
            import time

            time.sleep(FakeEngine.recognize_delay)
        for status, progress in FakeEngine.events:
            self.on_event(status, progress)
        return FakeEngine.outcome

    def terminate(self):
        self.calls.append("terminate")
        self.terminate_count += 1
        if FakeEngine.fail_terminate:
            raise RuntimeError("terminate exploded")


@pytest.fixture
def fake_engine():
    FakeEngine.reset()
    with patch("docsum.ocr.RecognitionEngine", FakeEngine):
        yield FakeEngine
    FakeEngine.reset()


@pytest.fixture
def png_bytes():
    img = Image.new("RGB", (120, 40), "white")
    img.paste((0, 0, 0), (10, 15, 110, 25))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
