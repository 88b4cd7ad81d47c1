import logging

# Add NullHandler to prevent logs when used as library
logging.getLogger(__name__).addHandler(logging.NullHandler())

"""
Batches video frames into inference requests and maps results back to the
frame locations they came from.
"""

from .engines import EngineType, make_engine
from .inferences import (
    BaseInference,
    LicensePlateResult,
    PipelineState,
    Rect,
    Result,
    frame_to_blob,
)
from .models import BaseModel, LicensePlateDetectionModel
from .network import NetworkInfo, TensorInfo
from .outputs import BaseOutput, LogOutput
from .utils import get_logger  # Export for users
from .utils import setup_logging  # Export for users who want to enable logging
