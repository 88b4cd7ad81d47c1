# vinobatch/models/base.py

"""
Abstract base class for model descriptors.

A descriptor binds the logical inputs/outputs of one network category to the
concrete tensor names found in a loaded network. It is validated once, when
an engine loads it, and is read-only afterwards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from vinobatch.network import NetworkInfo
from vinobatch.utils import get_logger

logger = get_logger(__name__)


class BaseModel(ABC):
    """Structural metadata of one network category."""

    def __init__(self, model_loc: str, max_batch_size: int = 1):
        """
        Args:
            model_loc (str): Path to the network file or directory.
            max_batch_size (int, optional): Number of frames one request can
                hold. Defaults to 1.

        Raises:
            ValueError: If ``max_batch_size`` is smaller than 1.
        """
        if max_batch_size < 1:
            raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")

        self.model_loc = str(model_loc)
        self.max_batch_size = int(max_batch_size)
        self._input: Optional[str] = None
        self._output: Optional[str] = None

    def get_model_name(self) -> str:
        return Path(self.model_loc).stem

    def get_input_name(self) -> Optional[str]:
        return self._input

    def get_output_name(self) -> Optional[str]:
        return self._output

    def input_bindings(self) -> Dict[str, str]:
        """Role -> tensor name for every bound input."""
        return {"input": self._input} if self._input is not None else {}

    def output_bindings(self) -> Dict[str, str]:
        """Role -> tensor name for every bound output."""
        return {"output": self._output} if self._output is not None else {}

    def is_bound(self) -> bool:
        return self._input is not None and self._output is not None

    @abstractmethod
    def get_model_category(self) -> str:
        """Stable identifier of the network category."""

    @abstractmethod
    def update_layer_property(self, network: NetworkInfo) -> bool:
        """Validate ``network`` and bind tensor names.

        Implementations raise ``ValueError`` when the network does not match
        what this category expects, and may patch element type / layout
        hints on ``network`` inputs.
        """

    def _set_bindings(self, **bindings: str) -> None:
        # a shared descriptor may be validated by several engines, but always
        # against the same tensor names
        for role, name in bindings.items():
            attr = f"_{role}"
            current = getattr(self, attr, None)
            if current is not None and current != name:
                raise ValueError(
                    f"{self.get_model_category()} model already bound {role}="
                    f"'{current}', network provides '{name}'"
                )
        for role, name in bindings.items():
            setattr(self, f"_{role}", name)

        logger.info(
            "Bound %s tensors for %s: %s",
            self.get_model_category(),
            self.get_model_name(),
            bindings,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(model_loc={self.model_loc!r}, "
            f"max_batch_size={self.max_batch_size})"
        )
