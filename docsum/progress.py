"""
progress.py

Bridge between recognition engine status callbacks and a caller's
progress sink.
"""

import logging
from typing import Callable, Optional

from . import engine
from .schemas import OcrProgressEvent, OcrStage

logger = logging.getLogger(__name__)

ProgressSink = Callable[[OcrProgressEvent], None]

STAGE_BY_STATUS = {
    engine.STATUS_LOADING_CORE: OcrStage.LOADING_CORE,
    engine.STATUS_INITIALIZING: OcrStage.INITIALIZING,
    engine.STATUS_LOADING_LANGUAGE: OcrStage.LOADING_LANGUAGE_DATA,
    engine.STATUS_RECOGNIZING: OcrStage.RECOGNIZING,
}


class ProgressBridge:
    """
    Engine callback that forwards OcrProgressEvents to a sink.

    By default only statuses that map to an OcrStage are forwarded.
    With ``forward_all`` every status is passed on, unknown ones under
    their raw engine name.

    Fractions are clamped to [0, 1] and never decrease within a stage.
    The sink is called synchronously on the engine's thread. Once the
    bridge is closed, later statuses are dropped.
    """

    def __init__(self, sink: Optional[ProgressSink] = None, forward_all: bool = False):
        self._sink = sink
        self._forward_all = forward_all
        self._closed = False
        self._last_stage: Optional[str] = None
        self._last_fraction = 0.0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop forwarding; the caller's call has ended."""
        self._closed = True

    def __call__(self, status: str, progress: Optional[float]) -> None:
        logger.debug("OCR progress: %s %s", status, progress)
        if self._sink is None or self._closed:
            return

        stage = STAGE_BY_STATUS.get(status)
        if stage is not None:
            stage_name = stage.value
        elif self._forward_all:
            stage_name = status
        else:
            return

        fraction = min(max(float(progress or 0.0), 0.0), 1.0)
        if stage_name == self._last_stage:
            fraction = max(fraction, self._last_fraction)
        self._last_stage = stage_name
        self._last_fraction = fraction

        self._sink(OcrProgressEvent(stage=stage_name, fraction=fraction))
