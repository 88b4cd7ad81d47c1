# vinobatch/outputs/log_output.py

from __future__ import annotations

import logging
from typing import List

from vinobatch.inferences.result import Result
from vinobatch.utils import get_logger

from .base_output import BaseOutput

logger = get_logger(__name__)


class LogOutput(BaseOutput):
    """Writes every fetched result to the package logger."""

    def __init__(self, name: str = "", level: int = logging.INFO):
        super().__init__(name)
        self.level = level
        self.frames_seen = 0
        self._pending: List[Result] = []

    def accept(self, results: List[Result]) -> None:
        self._pending.extend(results)
        self.frames_seen += len(results)

    def handle_output(self) -> None:
        for result in self._pending:
            plate = getattr(result, "license", None)
            if plate is not None:
                logger.log(self.level, "[%s] %s: %s", self.name, result.location, plate)
            else:
                logger.log(self.level, "[%s] %s", self.name, result.location)
        self._pending = []
