import logging
from typing import Callable, List

from veriframe.domain.models import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


class ProgressReporter:
    """
    Forwards stage updates to the caller's callback.

    Percent is clamped to 0..100 and never goes backwards within one analysis.
    """

    def __init__(self, callback: ProgressCallback) -> None:
        self._callback = callback
        self._percent = 0
        self.events: List[ProgressEvent] = []

    def __call__(self, message: str, percent: int) -> None:
        percent = max(self._percent, min(100, int(percent)))
        self._percent = percent
        event = ProgressEvent(message=message, percent=percent)
        self.events.append(event)
        logger.info("%3d%% %s", percent, message)
        self._callback(event.message, event.percent)
