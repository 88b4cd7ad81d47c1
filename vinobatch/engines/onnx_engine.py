# vinobatch/engines/onnx_engine.py

from __future__ import annotations

import concurrent.futures
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np
import onnxruntime as ort

from vinobatch.network import ELEMENT_TYPES, NetworkInfo, TensorInfo
from vinobatch.utils import get_logger

from .base import Engine, InferRequest, batched_shape

if TYPE_CHECKING:
    from vinobatch.models.base import BaseModel

logger = get_logger(__name__)

_ORT_ELEMENT_TYPES = {
    "tensor(uint8)": "u8",
    "tensor(int8)": "i8",
    "tensor(uint16)": "u16",
    "tensor(int16)": "i16",
    "tensor(int32)": "i32",
    "tensor(int64)": "i64",
    "tensor(float16)": "f16",
    "tensor(float)": "f32",
    "tensor(double)": "f64",
}


class OnnxRequest(InferRequest):
    """
    Execution request over an ONNX Runtime session.

    Inputs live in preallocated numpy buffers that callers write into. They
    are cast to the element types the graph declares when the session runs.
    Asynchronous runs execute on a single worker thread, so at most one run
    is in flight per request.
    """

    def __init__(
        self,
        session: ort.InferenceSession,
        buffers: Dict[str, np.ndarray],
        declared_types: Dict[str, np.dtype],
        output_names: List[str],
    ):
        self._session = session
        self._buffers = buffers
        self._declared_types = declared_types
        self._output_names = output_names
        self._outputs: Dict[str, np.ndarray] = {}
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        self._future: Optional[concurrent.futures.Future] = None

    def get_tensor(self, name: str) -> np.ndarray:
        if name in self._buffers:
            return self._buffers[name]
        if name in self._outputs:
            return self._outputs[name]
        raise KeyError(f"No tensor named '{name}' (outputs exist after a run)")

    def _run(self) -> Dict[str, np.ndarray]:
        feeds = {
            name: buf.astype(self._declared_types[name], copy=False)
            for name, buf in self._buffers.items()
        }
        try:
            values = self._session.run(self._output_names, feeds)
        except Exception as e:
            raise RuntimeError(f"ONNX Runtime inference failed: {e}") from e
        return dict(zip(self._output_names, values))

    def start_async(self) -> None:
        if self._future is not None and not self._future.done():
            raise RuntimeError("Request is busy, wait for the running inference first")
        self._future = self._executor.submit(self._run)

    def wait(self, timeout: Optional[float] = None) -> bool:
        if self._future is None:
            return True
        done, _ = concurrent.futures.wait([self._future], timeout=timeout)
        if not done:
            return False
        future, self._future = self._future, None
        self._outputs = future.result()
        return True

    def infer(self) -> None:
        self.wait()
        self._outputs = self._run()

    def close(self) -> None:
        self._executor.shutdown(wait=True)


class OnnxEngine(Engine):
    """
    ONNX Runtime engine handle.

    Example:
        >>> engine = OnnxEngine("lpr.onnx", "cpu")
        >>> engine.load(LicensePlateDetectionModel("lpr.onnx"))
        >>> request = engine.get_request()
    """

    def __init__(self, model_path: str, device: str = "cpu"):
        """
        Create the session and discover tensor metadata.

        Args:
            model_path (str): Path to the ONNX model file (.onnx extension).
            device (str, optional): Target device ("cuda" or "cpu").
                Defaults to "cpu".

        Raises:
            FileNotFoundError: If ``model_path`` does not exist.
        """
        if not Path(model_path).exists():
            raise FileNotFoundError(f"Model file not found: {model_path}")

        sess_options = ort.SessionOptions()
        sess_options.graph_optimization_level = (
            ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        )

        if device.lower().startswith("cuda"):
            providers = ["CUDAExecutionProvider"]
        else:
            providers = ["CPUExecutionProvider"]

        logger.info("Initializing ONNX Runtime with providers=%s", providers)

        self.session = ort.InferenceSession(
            str(model_path), sess_options=sess_options, providers=providers
        )
        self.device = device.lower()
        self.network = NetworkInfo(
            inputs=[self._tensor_info(arg) for arg in self.session.get_inputs()],
            outputs=[self._tensor_info(arg) for arg in self.session.get_outputs()],
        )
        self._declared_types = {
            info.name: info.dtype for info in self.network.inputs
        }
        self._request: Optional[OnnxRequest] = None

    @staticmethod
    def _tensor_info(arg) -> TensorInfo:
        if arg.type not in _ORT_ELEMENT_TYPES:
            raise ValueError(f"Unsupported ONNX tensor type {arg.type} for '{arg.name}'")
        return TensorInfo(
            name=arg.name,
            shape=tuple(d if isinstance(d, int) else None for d in arg.shape),
            element_type=_ORT_ELEMENT_TYPES[arg.type],
        )

    def load(self, model: "BaseModel") -> None:
        """
        Validate ``model`` and allocate input buffers for its batch size.

        Raises:
            ValueError: If the descriptor rejects the network, or an input has
                dynamic dimensions besides the batch of the bound input.
        """
        model.update_layer_property(self.network)

        buffers: Dict[str, np.ndarray] = {}
        for info in self.network.inputs:
            if info.name == model.get_input_name():
                shape = batched_shape(info, model.max_batch_size)
            else:
                shape = list(info.shape)
            if any(d is None for d in shape):
                raise ValueError(
                    f"Input '{info.name}' has dynamic dimensions {info.shape}"
                )
            info.shape = tuple(shape)
            buffers[info.name] = np.zeros(shape, dtype=ELEMENT_TYPES[info.element_type])

        self._request = OnnxRequest(
            self.session,
            buffers,
            self._declared_types,
            [info.name for info in self.network.outputs],
        )
        logger.info(
            "ONNX engine loaded %s with buffers %s",
            model.get_model_category(),
            {name: buf.shape for name, buf in buffers.items()},
        )

    def get_request(self) -> Optional[OnnxRequest]:
        return self._request

    def is_loaded(self) -> bool:
        return self._request is not None

    def close(self) -> None:
        """Release the session and the worker thread."""
        if self._request is not None:
            self._request.close()
        self._request = None
        self.session = None
