# vinobatch/engines/factory.py

"""
Selects an engine handle based on the model file extension.
"""

from __future__ import annotations

import os

from vinobatch.utils import get_logger

from .base import Engine
from .engine_type import EngineType

logger = get_logger(__name__)


def make_engine(model_path: str, device: str, engine_type: EngineType = None) -> Engine:
    """Factory function to create the engine handle for a model file.

    Args:
        model_path (str): Path to the model file. The file extension determines
            which engine will be selected unless ``engine_type`` is given:
            - .xml/.bin or a directory with an .xml file → OpenVINO engine
            - .onnx → ONNX Runtime engine
        device (str): Target device, in the spelling the engine expects
            ("CPU"/"GPU"/"AUTO" for OpenVINO, "cpu"/"cuda" for ONNX Runtime).
        engine_type (EngineType, optional): Force an engine, e.g. to run an
            .onnx file through OpenVINO.

    Returns:
        Engine: Engine handle with the network read but no request yet.

    Raises:
        NotImplementedError: If the engine type is not supported.
        FileNotFoundError: If model_path does not exist.
        ImportError: If required engine dependencies are not installed.
    """

    if not os.path.exists(model_path):
        raise FileNotFoundError(f"Model file not found: {model_path}")

    if engine_type is None:
        engine_type = EngineType.from_extension(model_path)
    logger.info(f"Creating {engine_type.value} engine for model: {model_path}")

    if engine_type == EngineType.OPENVINO:
        from .openvino_engine import OpenVinoEngine

        return OpenVinoEngine(model_path, device)

    if engine_type == EngineType.ONNX:
        from .onnx_engine import OnnxEngine

        return OnnxEngine(model_path, device)

    raise NotImplementedError(f"EngineType {engine_type} is not supported.")
