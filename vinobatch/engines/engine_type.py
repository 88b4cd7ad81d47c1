import os
from enum import Enum


class EngineType(Enum):
    OPENVINO = "openvino"
    ONNX = "onnx"

    @classmethod
    def from_extension(cls, model_path):
        """Determine engine type from file extension or directory structure"""

        # Check if it's a directory (for OpenVINO)
        if os.path.isdir(model_path):
            for file in os.listdir(model_path):
                if file.endswith(".xml"):
                    return cls.OPENVINO
            raise ValueError(
                f"Directory {model_path} doesn't contain OpenVINO .xml files"
            )

        extension_map = {
            ".onnx": cls.ONNX,
            ".xml": cls.OPENVINO,
            ".bin": cls.OPENVINO,
        }

        ext = os.path.splitext(model_path)[1].lower()
        engine_type = extension_map.get(ext)

        if engine_type is None:
            raise ValueError(
                f"Unsupported model format: {ext}. Supported: {list(extension_map.keys())} or OpenVINO directories"
            )

        return engine_type
