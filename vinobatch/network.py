# vinobatch/network.py

"""
Tensor metadata discovered from a loaded network.

Engines build a :class:`NetworkInfo` when they read a model file and hand it
to the model descriptor for validation. Descriptors may patch the
``element_type`` and ``layout`` of input tensors; the engine applies those
hints before compiling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

# element type names shared by all engines
ELEMENT_TYPES: Dict[str, np.dtype] = {
    "u8": np.dtype(np.uint8),
    "i8": np.dtype(np.int8),
    "u16": np.dtype(np.uint16),
    "i16": np.dtype(np.int16),
    "i32": np.dtype(np.int32),
    "i64": np.dtype(np.int64),
    "f16": np.dtype(np.float16),
    "f32": np.dtype(np.float32),
    "f64": np.dtype(np.float64),
}


def element_type_name(dtype) -> str:
    """Map a numpy dtype to its short element type name."""
    dtype = np.dtype(dtype)
    for name, known in ELEMENT_TYPES.items():
        if known == dtype:
            return name
    raise ValueError(f"Unsupported tensor element type: {dtype}")


@dataclass
class TensorInfo:
    """Name, shape and storage hints of one network tensor.

    ``shape`` entries are ``None`` for dynamic dimensions.
    """

    name: str
    shape: Tuple[Optional[int], ...]
    element_type: str = "f32"
    layout: Optional[str] = None

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def dtype(self) -> np.dtype:
        return ELEMENT_TYPES[self.element_type]


@dataclass
class NetworkInfo:
    """Ordered input and output tensors of a loaded network."""

    inputs: List[TensorInfo] = field(default_factory=list)
    outputs: List[TensorInfo] = field(default_factory=list)

    def input(self, name: str) -> TensorInfo:
        for info in self.inputs:
            if info.name == name:
                return info
        raise KeyError(f"Network has no input named '{name}'")
