# vinobatch/engines/openvino_engine.py

"""
OpenVINO engine implementation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np

from vinobatch.network import NetworkInfo, TensorInfo, element_type_name
from vinobatch.utils import get_logger

from .base import Engine, InferRequest

if TYPE_CHECKING:
    from vinobatch.models.base import BaseModel

logger = get_logger(__name__)

try:
    import openvino as ov
    from openvino.preprocess import PrePostProcessor

    OPENVINO_AVAILABLE = True
except ImportError:
    OPENVINO_AVAILABLE = False


class OpenVinoRequest(InferRequest):
    """Adapter exposing an ``openvino.InferRequest`` through numpy buffers."""

    def __init__(self, request):
        self._request = request

    def get_tensor(self, name: str) -> np.ndarray:
        return self._request.get_tensor(name).data

    def start_async(self) -> None:
        self._request.start_async()

    def wait(self, timeout: Optional[float] = None) -> bool:
        if timeout is None:
            self._request.wait()
            return True
        return self._request.wait_for(int(timeout * 1000))

    def infer(self) -> None:
        self._request.infer()


class OpenVinoEngine(Engine):
    """Engine handle based on OpenVINO Runtime."""

    def __init__(
        self,
        model_path: str,
        device: str = "CPU",
        *,
        num_threads: int | None = None,
    ):
        """Read an OpenVINO model and discover its tensor metadata.

        The model is compiled later, by :meth:`load`, once a model descriptor
        has validated and patched the discovered metadata.

        Args:
            model_path (str): Path to OpenVINO model. Can be:
                - Directory containing .xml and .bin files
                - Direct path to .xml file
                - Any other format OpenVINO reads (e.g. .onnx)
            device (str, optional): OpenVINO device target ("CPU", "GPU",
                "NPU", "AUTO"). Defaults to "CPU".
            num_threads (int | None, optional): Number of CPU inference
                threads. Only applicable when device="CPU".

        Raises:
            ImportError: If OpenVINO is not installed.
            FileNotFoundError: If the model path does not exist or a directory
                holds no .xml file.
        """

        if not OPENVINO_AVAILABLE:
            raise ImportError(
                "OpenVINO is not installed. Install with: pip install openvino"
            )

        self.device = device.upper()
        self.core = ov.Core()

        if self.device == "CPU" and num_threads:
            self.core.set_property("CPU", {"INFERENCE_NUM_THREADS": int(num_threads)})

        logger.info("Initializing OpenVINO with device=%s", self.device)

        model_path = Path(model_path)
        if model_path.is_dir():
            xml_files = list(model_path.glob("*.xml"))
            if not xml_files:
                raise FileNotFoundError(f"No .xml model file found in {model_path}")
            model_file = xml_files[0]
        elif model_path.exists():
            model_file = model_path
        else:
            raise FileNotFoundError(f"Model file not found: {model_path}")

        self.model_file = model_file
        self.model = self.core.read_model(model_file)
        self.network = self._discover(self.model)
        self._declared: Dict[str, TensorInfo] = {
            info.name: TensorInfo(info.name, info.shape, info.element_type, info.layout)
            for info in self.network.inputs
        }
        self.compiled_model = None
        self._request: Optional[OpenVinoRequest] = None

        logger.info(
            "OpenVINO network %s: inputs=%s outputs=%s",
            model_file.name,
            [(i.name, i.shape) for i in self.network.inputs],
            [(o.name, o.shape) for o in self.network.outputs],
        )

    @staticmethod
    def _tensor_info(port) -> TensorInfo:
        partial_shape = port.get_partial_shape()
        if partial_shape.rank.is_dynamic:
            raise ValueError(f"Tensor '{port.get_any_name()}' has a dynamic rank")
        shape = tuple(d.get_length() if d.is_static else None for d in partial_shape)
        return TensorInfo(
            name=port.get_any_name(),
            shape=shape,
            element_type=element_type_name(port.get_element_type().to_dtype()),
        )

    @classmethod
    def _discover(cls, model) -> NetworkInfo:
        return NetworkInfo(
            inputs=[cls._tensor_info(port) for port in model.inputs],
            outputs=[cls._tensor_info(port) for port in model.outputs],
        )

    def load(self, model: "BaseModel") -> None:
        """Validate ``model``, apply its hints and create the infer request.

        Raises:
            ValueError: If the descriptor rejects the network or the network
                cannot be reshaped to the descriptor's batch size.
        """
        model.update_layer_property(self.network)

        ppp = PrePostProcessor(self.model)
        patched = False
        for info in self.network.inputs:
            declared = self._declared[info.name]
            if info.element_type != declared.element_type:
                ppp.input(info.name).tensor().set_element_type(
                    getattr(ov.Type, info.element_type)
                )
                patched = True
            if info.layout is not None and info.layout != declared.layout:
                ppp.input(info.name).tensor().set_layout(ov.Layout(info.layout))
                ppp.input(info.name).model().set_layout(ov.Layout(info.layout))
                patched = True
        if patched:
            self.model = ppp.build()

        input_name = model.get_input_name()
        input_info = self.network.input(input_name)
        target = list(input_info.shape)
        target[0] = model.max_batch_size
        if target != list(input_info.shape):
            logger.info("Reshaping input '%s' to %s", input_name, target)
            try:
                self.model.reshape(
                    {input_name: ov.PartialShape([-1 if d is None else d for d in target])}
                )
            except RuntimeError as e:
                raise ValueError(
                    f"Network cannot run batch size {model.max_batch_size}: {e}"
                ) from e
            input_info.shape = tuple(target)

        self.compiled_model = self.core.compile_model(self.model, self.device)
        self._request = OpenVinoRequest(self.compiled_model.create_infer_request())
        logger.info(
            "OpenVINO engine loaded %s on %s",
            model.get_model_category(),
            self.device,
        )

    def get_request(self) -> Optional[OpenVinoRequest]:
        return self._request

    def is_loaded(self) -> bool:
        return self._request is not None

    def close(self) -> None:
        """Release OpenVINO runtime resources."""

        self._request = None
        self.compiled_model = None
        self.model = None
        self.core = None
