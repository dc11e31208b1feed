"""
engine.py

EasyOCR recognition engine with an explicit per-call lifecycle.

A RecognitionEngine is created for one OCR call and walked through:

1. initialize      - import the EasyOCR core and pick the device
2. load_languages  - build the Reader, which fetches the language models
3. recognize       - detect and read text, returning a RecognitionOutcome
4. terminate       - drop the Reader and free GPU memory

Each step reports (status, progress) pairs through an optional callback.
Engines are never cached or shared between calls.
"""

import logging
from typing import Callable, Iterable, List, Optional

import numpy as np

from . import config
from .schemas import OcrLine, OcrWord, RecognitionOutcome

logger = logging.getLogger(__name__)

EngineCallback = Callable[[str, float], None]

# Status names reported through the engine callback
STATUS_LOADING_CORE = "loading core"
STATUS_INITIALIZING = "initializing engine"
STATUS_LOADING_LANGUAGE = "loading language data"
STATUS_DETECTING = "detecting text"
STATUS_RECOGNIZING = "recognizing text"

# Tesseract-style (ISO 639-2) codes to EasyOCR codes
LANGUAGE_CODES = {
    "eng": "en",
    "fra": "fr",
    "deu": "de",
    "spa": "es",
    "ita": "it",
    "por": "pt",
    "nld": "nl",
    "pol": "pl",
    "tur": "tr",
    "rus": "ru",
    "ukr": "uk",
    "ara": "ar",
    "fas": "fa",
    "urd": "ur",
    "hin": "hi",
    "jpn": "ja",
    "kor": "ko",
    "chi_sim": "ch_sim",
    "chi_tra": "ch_tra",
}


def to_easyocr_languages(languages: Iterable[str]) -> List[str]:
    """Map language codes to EasyOCR codes, keeping order and dropping repeats."""
    result: List[str] = []
    for code in languages:
        mapped = LANGUAGE_CODES.get(code, code)
        if mapped not in result:
            result.append(mapped)
    if not result:
        raise ValueError("At least one OCR language is required")
    return result


def _load_easyocr():
    try:
        import easyocr
    except ImportError:
        raise ImportError(
            "easyocr is required. Install it with: pip install easyocr"
        )
    return easyocr


def _reformat_input(image: np.ndarray):
    """Colour and grayscale views of an image, as EasyOCR expects them."""
    from easyocr.utils import reformat_input

    return reformat_input(image)


def _gpu_available() -> bool:
    try:
        import torch
    except ImportError:
        logger.info("PyTorch not found, using CPU mode")
        return False
    return torch.cuda.is_available()


class RecognitionEngine:
    """
    Wrapper around one EasyOCR Reader.

    All languages are loaded into a single Reader, so a multi-language
    request is still a single recognition pass.
    """

    def __init__(
        self,
        languages: Iterable[str],
        on_event: Optional[EngineCallback] = None,
        use_gpu: Optional[bool] = None,
    ):
        self.languages = list(languages)
        self._reader_languages = to_easyocr_languages(self.languages)
        self._on_event = on_event
        self._use_gpu = config.USE_GPU if use_gpu is None else use_gpu
        self._easyocr = None
        self._reader = None

    def _emit(self, status: str, progress: float) -> None:
        on_event = self._on_event
        if on_event is not None:
            on_event(status, progress)

    @property
    def rtl(self) -> bool:
        return any(lang in config.RTL_LANGUAGES for lang in self._reader_languages)

    def initialize(self) -> None:
        """Load the EasyOCR core and resolve the compute device."""
        self._emit(STATUS_LOADING_CORE, 0.0)
        self._easyocr = _load_easyocr()
        self._emit(STATUS_LOADING_CORE, 1.0)

        self._emit(STATUS_INITIALIZING, 0.0)
        if self._use_gpu and not _gpu_available():
            logger.info("CUDA not available, falling back to CPU")
            self._use_gpu = False
        self._emit(STATUS_INITIALIZING, 1.0)

    def load_languages(self) -> None:
        """Build the Reader; downloads detection and language models if missing."""
        if self._easyocr is None:
            raise RuntimeError("Engine not initialized")

        self._emit(STATUS_LOADING_LANGUAGE, 0.0)
        logger.info(
            "Loading EasyOCR reader (languages=%s, gpu=%s)",
            "+".join(self._reader_languages),
            self._use_gpu,
        )
        self._reader = self._easyocr.Reader(
            self._reader_languages,
            gpu=self._use_gpu,
            model_storage_directory=config.MODEL_STORAGE_DIR,
            download_enabled=config.DOWNLOAD_ENABLED,
            verbose=False,
        )
        self._emit(STATUS_LOADING_LANGUAGE, 1.0)

    def recognize(self, image: np.ndarray) -> RecognitionOutcome:
        """
        Detect and read all text in an image.

        Lines are ordered top to bottom; words within a line are ordered
        by reading direction.
        """
        reader = self._reader
        if reader is None:
            raise RuntimeError("Cannot recognize before languages are loaded")

        img, img_cv_grey = _reformat_input(image)

        self._emit(STATUS_DETECTING, 0.0)
        horizontal_list, free_list = reader.detect(img)
        self._emit(STATUS_DETECTING, 1.0)

        # terminate() may run on another thread while detection is in progress
        if self._reader is None:
            raise RuntimeError("Engine terminated during recognition")

        self._emit(STATUS_RECOGNIZING, 0.0)
        raw = reader.recognize(
            img_cv_grey,
            horizontal_list[0],
            free_list[0],
            detail=1,
            paragraph=False,
        )
        self._emit(STATUS_RECOGNIZING, 1.0)

        words = _parse_raw_results(raw)
        lines = _group_words_into_lines(words, rtl=self.rtl)
        text = "\n".join(line.text for line in lines)
        confidence = _compute_weighted_confidence(words) * 100.0

        logger.debug("Recognized %d word(s) in %d line(s)", len(words), len(lines))
        return RecognitionOutcome(text=text, confidence=confidence)

    def terminate(self) -> None:
        """Release the Reader and any cached GPU memory."""
        reader, self._reader = self._reader, None
        self._on_event = None
        if reader is not None and self._use_gpu:
            import torch

            torch.cuda.empty_cache()
        self._easyocr = None
        logger.debug("EasyOCR reader released")


def _parse_raw_results(raw) -> List[OcrWord]:
    """Convert EasyOCR (bbox, text, confidence) tuples into OcrWord objects."""
    words = []
    for bbox, text, confidence in raw:
        text = text.strip()
        if not text:
            continue
        words.append(
            OcrWord(
                text=text,
                bbox=[(float(x), float(y)) for x, y in bbox],
                confidence=min(max(float(confidence), 0.0), 1.0),
            )
        )
    return words


def _group_words_into_lines(words: List[OcrWord], rtl: bool = False) -> List[OcrLine]:
    """
    Group words whose vertical centres are within half a word height.

    Lines are returned top to bottom; words are sorted left to right,
    or right to left when ``rtl`` is set.
    """
    if not words:
        return []

    ordered = sorted(words, key=lambda w: w.center_y)
    rows: List[List[OcrWord]] = [[ordered[0]]]

    for word in ordered[1:]:
        row = rows[-1]
        row_center = sum(w.center_y for w in row) / len(row)
        tolerance = max(max(w.height for w in row), word.height) / 2
        if abs(word.center_y - row_center) <= tolerance:
            row.append(word)
        else:
            rows.append([word])

    lines = []
    for row in rows:
        row.sort(key=lambda w: w.left, reverse=rtl)
        lines.append(
            OcrLine(
                words=row,
                text=" ".join(w.text for w in row),
                confidence=_compute_weighted_confidence(row),
            )
        )
    return lines


def _compute_weighted_confidence(words: List[OcrWord]) -> float:
    """Character-weighted mean of word confidences (0-1)."""
    total_chars = sum(len(w.text) for w in words)
    if total_chars == 0:
        return 0.0
    return sum(w.confidence * len(w.text) for w in words) / total_chars
