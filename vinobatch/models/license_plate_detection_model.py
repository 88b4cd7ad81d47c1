# vinobatch/models/license_plate_detection_model.py

"""
Descriptor for license plate recognition networks.

The network takes a plate crop plus a sequence-indicator input and produces
a fixed-length sequence of symbol indices per plate, terminated by ``-1``.
"""

from __future__ import annotations

from typing import Dict, Optional

from vinobatch.network import NetworkInfo
from vinobatch.utils import get_logger

from .base import BaseModel

logger = get_logger(__name__)


class LicensePlateDetectionModel(BaseModel):
    """License plate recognition model descriptor."""

    # up to 88 items per license plate, ended with -1
    MAX_SEQUENCE_SIZE = 88

    def __init__(self, model_loc: str, max_batch_size: int = 1):
        super().__init__(model_loc, max_batch_size)
        self._seq_input: Optional[str] = None

    def get_seq_input_name(self) -> Optional[str]:
        return self._seq_input

    def get_max_sequence_size(self) -> int:
        return self.MAX_SEQUENCE_SIZE

    def get_model_category(self) -> str:
        return "License Plate Detection"

    def input_bindings(self) -> Dict[str, str]:
        bindings = super().input_bindings()
        if self._seq_input is not None:
            bindings["seq_input"] = self._seq_input
        return bindings

    def is_bound(self) -> bool:
        return super().is_bound() and self._seq_input is not None

    def update_layer_property(self, network: NetworkInfo) -> bool:
        """Check the two-input / one-output topology and bind tensor names.

        Args:
            network (NetworkInfo): Tensor metadata of the loaded network.

        Returns:
            bool: True once the bindings are set.

        Raises:
            ValueError: If the input/output count, the image input rank or the
                sequence input length does not match this model.
        """
        logger.info("Checking inputs for model %s", self.get_model_name())

        if len(network.inputs) != 2:
            raise ValueError(
                "License plate topology should have exactly two inputs, "
                f"got {len(network.inputs)}"
            )

        image_inputs = [info for info in network.inputs if info.rank == 4]
        if len(image_inputs) != 1:
            raise ValueError(
                "License plate topology needs one 4-D image input, got shapes "
                f"{[info.shape for info in network.inputs]}"
            )
        image_input = image_inputs[0]
        seq_input = next(info for info in network.inputs if info is not image_input)

        if not seq_input.shape or seq_input.shape[0] != self.get_max_sequence_size():
            raise ValueError(
                "License plate max sequence size mismatch: expected "
                f"{self.get_max_sequence_size()}, network input '{seq_input.name}' "
                f"has shape {seq_input.shape}"
            )

        logger.info("Checking outputs for model %s", self.get_model_name())
        if len(network.outputs) != 1:
            raise ValueError(
                "License plate network expects exactly one output, "
                f"got {len(network.outputs)}"
            )

        image_input.element_type = "u8"
        image_input.layout = "NCHW"

        self._set_bindings(
            input=image_input.name,
            seq_input=seq_input.name,
            output=network.outputs[0].name,
        )
        return True
