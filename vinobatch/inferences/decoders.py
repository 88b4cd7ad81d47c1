# vinobatch/inferences/decoders.py

"""
Result decoders keyed by model category.

A decoder turns the output tensors of a finished request into typed results.
:class:`BaseInference` looks one up from the model descriptor's category, so
supporting a new network family means registering a decoder, not subclassing
the pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List, Type

from vinobatch.utils import get_logger

from .result import Rect, Result

if TYPE_CHECKING:
    from vinobatch.engines.base import InferRequest
    from vinobatch.models.base import BaseModel

logger = get_logger(__name__)

_DECODERS: Dict[str, Type["ResultDecoder"]] = {}


class ResultDecoder:
    """Location-only decoder: one plain :class:`Result` per enqueued frame."""

    result_class: Type[Result] = Result

    def make_result(self, location: Rect) -> Result:
        return self.result_class(location)

    def prepare(self, request: "InferRequest", model: "BaseModel") -> None:
        """Fill auxiliary inputs right before a batch is submitted."""

    def decode(
        self, request: "InferRequest", model: "BaseModel", results: List[Result]
    ) -> List[Result]:
        """Attach decoded payload to ``results`` (enqueue order) and return them."""
        return results


def register_decoder(category: str) -> Callable[[Type[ResultDecoder]], Type[ResultDecoder]]:
    """Class decorator registering a decoder for a model category."""

    def _register(cls: Type[ResultDecoder]) -> Type[ResultDecoder]:
        if category in _DECODERS and _DECODERS[category] is not cls:
            logger.warning(
                "Replacing decoder for %s: %s -> %s",
                category,
                _DECODERS[category].__name__,
                cls.__name__,
            )
        _DECODERS[category] = cls
        return cls

    return _register


def get_decoder(category: str) -> ResultDecoder:
    decoder_cls = _DECODERS.get(category)
    if decoder_cls is None:
        logger.debug("No decoder registered for %s, using location-only results", category)
        return ResultDecoder()
    return decoder_cls()
