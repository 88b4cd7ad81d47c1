# vinobatch/inferences/__init__.py

"""
Batch inference pipeline, results and result decoders.
"""

from .base_inference import BaseInference, PipelineState, frame_to_blob
from .decoders import ResultDecoder, get_decoder, register_decoder
from .license_plate_detection import (
    LICENSE_SYMBOLS,
    LicensePlateDecoder,
    LicensePlateResult,
)
from .result import Rect, Result

__all__ = [
    "BaseInference",
    "PipelineState",
    "frame_to_blob",
    "ResultDecoder",
    "get_decoder",
    "register_decoder",
    "LICENSE_SYMBOLS",
    "LicensePlateDecoder",
    "LicensePlateResult",
    "Rect",
    "Result",
]
