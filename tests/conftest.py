# tests/conftest.py
"""
Pytest configuration and shared fixtures for vinobatch tests.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import numpy as np
import pytest

from vinobatch.models.base import BaseModel
from vinobatch.network import NetworkInfo, TensorInfo

# ---------------------------------------------------------------------------
# Fake engine
# ---------------------------------------------------------------------------


class FakeRequest:
    """In-memory request: numpy buffers plus a pluggable compute function."""

    def __init__(
        self,
        inputs: Dict[str, np.ndarray],
        outputs: Dict[str, np.ndarray],
        compute: Optional[Callable] = None,
    ):
        self.inputs = inputs
        self.outputs = outputs
        self.compute = compute
        self.pending = False
        self.hold = False  # wait(0) reports "still running" while True
        self.fail_on_start = False
        self.fail_on_complete = False
        self.started = 0
        self.completed = 0

    def get_tensor(self, name):
        if name in self.inputs:
            return self.inputs[name]
        return self.outputs[name]

    def _complete(self):
        if self.fail_on_complete:
            self.pending = False
            raise RuntimeError("device lost")
        if self.compute is not None:
            for name, value in self.compute(self.inputs).items():
                self.outputs[name][...] = value
        self.pending = False
        self.completed += 1

    def start_async(self):
        if self.fail_on_start:
            raise RuntimeError("request rejected")
        self.started += 1
        self.pending = True

    def wait(self, timeout=None):
        if not self.pending:
            return True
        if timeout == 0 and self.hold:
            return False
        self._complete()
        return True

    def infer(self):
        if self.fail_on_start:
            raise RuntimeError("request rejected")
        self.started += 1
        self._complete()


class FakeEngine:
    """Engine handle over a :class:`NetworkInfo`, backed by :class:`FakeRequest`."""

    def __init__(self, network: NetworkInfo, batch_slots: Optional[int] = None):
        self.network = network
        self.batch_slots = batch_slots
        self.compute = None
        self._request = None
        self.load_calls = 0

    def load(self, model):
        self.load_calls += 1
        model.update_layer_property(self.network)
        inputs = {}
        for info in self.network.inputs:
            shape = list(info.shape)
            if info.name == model.get_input_name():
                shape[0] = self.batch_slots or model.max_batch_size
            inputs[info.name] = np.zeros(shape, dtype=info.dtype)
        outputs = {}
        for info in self.network.outputs:
            shape = list(info.shape)
            shape[0] = self.batch_slots or model.max_batch_size
            outputs[info.name] = np.zeros(shape, dtype=info.dtype)
        self._request = FakeRequest(inputs, outputs, self.compute)

    def get_request(self):
        return self._request

    def is_loaded(self):
        return self._request is not None

    def close(self):
        self._request = None


class SimpleModel(BaseModel):
    """Descriptor with one 4-D input and one output."""

    def get_model_category(self):
        return "Simple Model"

    def update_layer_property(self, network):
        if len(network.inputs) != 1 or network.inputs[0].rank != 4:
            raise ValueError("Simple model expects one 4-D input")
        if len(network.outputs) != 1:
            raise ValueError("Simple model expects one output")
        self._set_bindings(input=network.inputs[0].name, output=network.outputs[0].name)
        return True


# ---------------------------------------------------------------------------
# Fixtures: networks & engines
# ---------------------------------------------------------------------------


def _simple_network():
    return NetworkInfo(
        inputs=[TensorInfo("data", (1, 3, 8, 8))],
        outputs=[TensorInfo("prob", (1, 2))],
    )


def _lpr_network():
    return NetworkInfo(
        inputs=[
            TensorInfo("data", (1, 3, 24, 94)),
            TensorInfo("seq_ind", (88, 1)),
        ],
        outputs=[TensorInfo("decode", (1, 88, 1, 1))],
    )


@pytest.fixture
def simple_network() -> NetworkInfo:
    return _simple_network()


@pytest.fixture
def lpr_network() -> NetworkInfo:
    return _lpr_network()


@pytest.fixture
def make_simple_pipeline():
    """Factory returning (pipeline, engine) for a SimpleModel of a given batch size."""
    from vinobatch.inferences import BaseInference

    def _factory(batch_size=1, scale_factor=1.0):
        model = SimpleModel("simple.xml", max_batch_size=batch_size)
        engine = FakeEngine(_simple_network())
        pipeline = BaseInference(model, scale_factor=scale_factor)
        pipeline.load_engine(engine)
        return pipeline, engine

    return _factory


# ---------------------------------------------------------------------------
# Fixtures: images
# ---------------------------------------------------------------------------


@pytest.fixture
def make_image():
    """Deterministic packed uint8 image of the requested size."""

    def _factory(height, width, seed=0):
        rng = np.random.default_rng(seed)
        return rng.integers(0, 256, (height, width, 3), dtype=np.uint8)

    return _factory


@pytest.fixture
def restore_vinobatch_logger():
    """Undo setup_logging side effects on the package logger."""
    logger = logging.getLogger("vinobatch")
    state = (logger.disabled, logger.propagate, logger.level, list(logger.handlers))
    yield logger
    logger.disabled, logger.propagate, level, handlers = state
    logger.setLevel(level)
    logger.handlers[:] = handlers


# ---------------------------------------------------------------------------
# Fixtures: tiny ONNX graphs
# ---------------------------------------------------------------------------


@pytest.fixture
def scale_onnx_model(tmp_path: Path) -> Path:
    """ONNX graph: scaled = data * 2 with a symbolic batch dimension."""
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper

    data = helper.make_tensor_value_info("data", TensorProto.FLOAT, ["N", 3, 4, 4])
    scaled = helper.make_tensor_value_info("scaled", TensorProto.FLOAT, ["N", 3, 4, 4])
    two = helper.make_tensor("two", TensorProto.FLOAT, [], [2.0])
    node = helper.make_node("Mul", ["data", "two"], ["scaled"])
    graph = helper.make_graph([node], "scale", [data], [scaled], initializer=[two])
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8

    path = tmp_path / "scale.onnx"
    onnx.save(model, str(path))
    return path


@pytest.fixture
def lpr_onnx_model(tmp_path: Path) -> Path:
    """ONNX graph with the license plate topology.

    decode = reshape(seq_ind) + 0 * mean(data), so a filled sequence input
    decodes to "0" followed by 87 "1" symbols.
    """
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper

    data = helper.make_tensor_value_info("data", TensorProto.FLOAT, [1, 3, 24, 94])
    seq_ind = helper.make_tensor_value_info("seq_ind", TensorProto.FLOAT, [88, 1])
    decode = helper.make_tensor_value_info("decode", TensorProto.FLOAT, [1, 88, 1, 1])
    zero = helper.make_tensor("zero", TensorProto.FLOAT, [], [0.0])
    shape = helper.make_tensor("shape", TensorProto.INT64, [4], [1, 88, 1, 1])
    nodes = [
        helper.make_node("ReduceMean", ["data"], ["mean"], keepdims=0),
        helper.make_node("Mul", ["mean", "zero"], ["nothing"]),
        helper.make_node("Reshape", ["seq_ind", "shape"], ["seq4"]),
        helper.make_node("Add", ["seq4", "nothing"], ["decode"]),
    ]
    graph = helper.make_graph(
        nodes, "lpr", [data, seq_ind], [decode], initializer=[zero, shape]
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8

    path = tmp_path / "lpr.onnx"
    onnx.save(model, str(path))
    return path
