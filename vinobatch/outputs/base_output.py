# vinobatch/outputs/base_output.py

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from vinobatch.inferences.result import Result


class BaseOutput(ABC):
    """Consumer of fetched results, registered with ``observe_output``."""

    def __init__(self, name: str = ""):
        self.name = name or self.__class__.__name__

    @abstractmethod
    def accept(self, results: List[Result]) -> None:
        """Receive the results of one fetch, in enqueue order."""

    def handle_output(self) -> None:
        """Flush whatever :meth:`accept` buffered. No-op by default."""
