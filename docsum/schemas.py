"""
schemas.py

Pydantic models shared across the extraction pipeline.
"""

from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class DocumentKind(str, Enum):
    """Closed set of decodable inputs, derived once from the media type."""

    PDF = "pdf"
    DOCX = "docx"
    IMAGE = "image"


class OcrStage(str, Enum):
    LOADING_CORE = "loading-core"
    INITIALIZING = "initializing"
    LOADING_LANGUAGE_DATA = "loading-language-data"
    RECOGNIZING = "recognizing"


class UploadedFile(BaseModel):
    """Raw upload: bytes plus the declared media type and name."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    media_type: str
    name: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


class OcrProgressEvent(BaseModel):
    """
    A single progress update from an OCR run.

    ``stage`` is an OcrStage value for single-language runs. Multi-language
    runs also pass through engine statuses that have no OcrStage mapping.
    """

    model_config = ConfigDict(frozen=True)

    stage: str
    fraction: float = Field(ge=0.0, le=1.0)


class RecognitionOutcome(BaseModel):
    text: str
    confidence: float = Field(ge=0.0, le=100.0)


class OcrWord(BaseModel):
    text: str
    bbox: List[Tuple[float, float]]
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def center_y(self) -> float:
        return sum(y for _, y in self.bbox) / len(self.bbox)

    @property
    def height(self) -> float:
        ys = [y for _, y in self.bbox]
        return max(ys) - min(ys)

    @property
    def left(self) -> float:
        return min(x for x, _ in self.bbox)


class OcrLine(BaseModel):
    words: List[OcrWord]
    text: str
    confidence: float


class ExtractionResult(BaseModel):
    text: str
    kind: DocumentKind
    file_name: str = ""
