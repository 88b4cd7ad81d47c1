# vinobatch/engines/base.py

"""
Abstract base protocols for engine handles.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol

import numpy as np

from vinobatch.network import NetworkInfo, TensorInfo

if TYPE_CHECKING:
    from vinobatch.models.base import BaseModel


class InferRequest(Protocol):
    """Protocol for a live execution request with named tensor access."""

    def get_tensor(self, name: str) -> np.ndarray:
        """Return the writable buffer backing the named tensor."""
        ...

    def start_async(self) -> None:
        """Start execution without blocking."""
        ...

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block up to ``timeout`` seconds; True once execution finished."""
        ...

    def infer(self) -> None:
        """Run execution and block until it finishes."""
        ...


class Engine(Protocol):
    """Protocol for all engine classes."""

    network: NetworkInfo

    def load(self, model: "BaseModel") -> None:
        """Validate ``model`` against the network and create the request."""
        ...

    def get_request(self) -> Optional[InferRequest]:
        """Return the request, or None before :meth:`load`."""
        ...

    def is_loaded(self) -> bool:
        ...

    def close(self) -> None:
        """Release engine resources."""
        ...


def batched_shape(info: TensorInfo, batch_size: int) -> List[Optional[int]]:
    """Shape of ``info`` with its leading dimension sized for ``batch_size``.

    Raises:
        ValueError: If the tensor has a static batch dimension smaller than
            ``batch_size``.
    """
    if info.rank == 0:
        raise ValueError(f"Tensor '{info.name}' is a scalar, it cannot be batched")

    shape = list(info.shape)
    if shape[0] is None:
        shape[0] = batch_size
    elif shape[0] < batch_size:
        raise ValueError(
            f"Tensor '{info.name}' holds {shape[0]} frame(s), "
            f"batch size {batch_size} requested"
        )
    return shape
