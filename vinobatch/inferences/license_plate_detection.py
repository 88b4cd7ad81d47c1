# vinobatch/inferences/license_plate_detection.py

"""
Decoding of license plate recognition outputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List

from vinobatch.utils import get_logger

from .decoders import ResultDecoder, register_decoder
from .result import Result

if TYPE_CHECKING:
    from vinobatch.engines.base import InferRequest
    from vinobatch.models.license_plate_detection_model import (
        LicensePlateDetectionModel,
    )

logger = get_logger(__name__)

LICENSE_SYMBOLS = (
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
    "<Anhui>", "<Beijing>", "<Chongqing>", "<Fujian>",
    "<Gansu>", "<Guangdong>", "<Guangxi>", "<Guizhou>",
    "<Hainan>", "<Hebei>", "<Heilongjiang>", "<Henan>",
    "<HongKong>", "<Hubei>", "<Hunan>", "<InnerMongolia>",
    "<Jiangsu>", "<Jiangxi>", "<Jilin>", "<Liaoning>",
    "<Macau>", "<Ningxia>", "<Qinghai>", "<Shaanxi>",
    "<Shandong>", "<Shanghai>", "<Shanxi>", "<Sichuan>",
    "<Tianjin>", "<Tibet>", "<Xinjiang>", "<Yunnan>",
    "<Zhejiang>", "<police>",
    "A", "B", "C", "D", "E", "F", "G", "H", "I", "J",
    "K", "L", "M", "N", "O", "P", "Q", "R", "S", "T",
    "U", "V", "W", "X", "Y", "Z",
)  # fmt: skip

SEQUENCE_END = -1


@dataclass
class LicensePlateResult(Result):
    """License plate text decoded for one plate crop."""

    license: str = ""
    sequence: List[int] = field(default_factory=list)

    def get_license(self) -> str:
        return self.license


@register_decoder("License Plate Detection")
class LicensePlateDecoder(ResultDecoder):
    result_class = LicensePlateResult

    def prepare(
        self, request: "InferRequest", model: "LicensePlateDetectionModel"
    ) -> None:
        seq_blob = request.get_tensor(model.get_seq_input_name())
        max_sequence_size = seq_blob.shape[0]
        seq_blob.flat[0] = 0.0
        seq_blob.flat[1:max_sequence_size] = 1.0

    def decode(
        self,
        request: "InferRequest",
        model: "LicensePlateDetectionModel",
        results: List[LicensePlateResult],
    ) -> List[LicensePlateResult]:
        output = request.get_tensor(model.get_output_name()).reshape(-1)
        max_size = model.get_max_sequence_size()
        if output.size < len(results) * max_size:
            raise RuntimeError(
                f"Output '{model.get_output_name()}' holds {output.size} values, "
                f"{len(results)} plate(s) of {max_size} expected"
            )

        for i, result in enumerate(results):
            sequence = []
            for value in output[i * max_size : (i + 1) * max_size]:
                index = int(value)
                if index == SEQUENCE_END:
                    break
                if not 0 <= index < len(LICENSE_SYMBOLS):
                    logger.warning(
                        "Unknown license symbol %d for plate at %s", index, result.location
                    )
                    break
                sequence.append(index)
            result.sequence = sequence
            result.license = "".join(LICENSE_SYMBOLS[k] for k in sequence)
        return results
