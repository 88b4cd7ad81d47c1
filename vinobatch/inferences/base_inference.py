# vinobatch/inferences/base_inference.py

"""
Batch inference pipeline.

Frames are written one by one into the batch slots of the engine's input
tensor, the batch is executed in one request, and the decoded results are
kept until the next fetch. The pipeline is not thread-safe: drive each
instance from one thread.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

import cv2
import numpy as np

from vinobatch.utils import get_logger, to_numpy_image

from .decoders import ResultDecoder, get_decoder
from .result import Rect, Result

if TYPE_CHECKING:
    from vinobatch.engines.base import Engine, InferRequest
    from vinobatch.models.base import BaseModel
    from vinobatch.outputs.base_output import BaseOutput

logger = get_logger(__name__)


def frame_to_blob(
    image,
    blob: np.ndarray,
    scale_factor: float = 1.0,
    batch_index: int = 0,
) -> None:
    """Load a packed HxWxC frame into one batch slot of an NCHW tensor.

    The frame is resized to the tensor's height/width only when its
    resolution differs. Each destination element is the source channel value
    times ``scale_factor``, converted to the tensor's element type.

    Args:
        image: Frame to be put (numpy array or torch tensor, HxWxC).
        blob (np.ndarray): Destination tensor with dims [N, C, H, W].
        scale_factor (float, optional): Scale factor for loading. Defaults to 1.0.
        batch_index (int, optional): Batch slot for the frame. Defaults to 0.

    Raises:
        ValueError: If ``blob`` is not 4-D, the frame is empty or the channel
            counts differ.
        IndexError: If ``batch_index`` is outside the tensor's batch dimension.
    """
    image = to_numpy_image(image)
    if blob.ndim != 4:
        raise ValueError(f"Expected an NCHW tensor, got shape {blob.shape}")

    batch, channels, height, width = blob.shape
    if not 0 <= batch_index < batch:
        raise IndexError(f"Batch index {batch_index} out of range for {batch} slot(s)")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError(f"Frame is empty, shape {image.shape}")
    if image.shape[2] != channels:
        raise ValueError(
            f"Frame has {image.shape[2]} channel(s), tensor expects {channels}"
        )

    resized = image
    if image.shape[0] != height or image.shape[1] != width:
        resized = cv2.resize(np.ascontiguousarray(image), (width, height))
        if resized.ndim == 2:
            resized = resized[:, :, np.newaxis]

    planar = resized.transpose(2, 0, 1)
    if scale_factor != 1.0:
        planar = planar * scale_factor
    blob[batch_index] = planar


class PipelineState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    SUBMITTED = "submitted"
    FETCHED = "fetched"


class BaseInference:
    """
    Batching pipeline generic over a model descriptor.

    The descriptor provides the tensor bindings, the decoder registered for
    its category provides typed results. Lifecycle::

        IDLE -> ACCUMULATING (enqueue) -> SUBMITTED (submit_request /
        synchronous_request) -> FETCHED (fetch_results) -> ACCUMULATING ...

    Example:
        >>> pipeline = BaseInference(LicensePlateDetectionModel("lpr.xml"))
        >>> pipeline.load_engine(make_engine("lpr.xml", "CPU"))
        >>> pipeline.enqueue(plate_crop, (120, 300, 94, 24))
        >>> pipeline.synchronous_request()
        >>> pipeline.fetch_results()
        >>> pipeline.get_location_result(0).license
    """

    def __init__(
        self,
        model: "BaseModel",
        decoder: Optional[ResultDecoder] = None,
        scale_factor: float = 1.0,
    ):
        self.model = model
        self.decoder = decoder if decoder is not None else get_decoder(
            model.get_model_category()
        )
        self.scale_factor = scale_factor
        self.max_batch_size = model.max_batch_size

        self._engine: Optional["Engine"] = None
        self._state = PipelineState.IDLE
        self._enqueued_frames = 0
        self._pending: List[Result] = []
        self._results: List[Result] = []
        self._request_done = False
        self._outputs: List["BaseOutput"] = []

    # ------------------------------------------------------------------
    # engine
    # ------------------------------------------------------------------

    def load_engine(self, engine: "Engine") -> None:
        """Attach the engine whose request runs this pipeline's batches.

        The model descriptor is loaded into the engine when the engine has no
        request yet. An engine loaded elsewhere is still validated against
        the descriptor, so its tensor names must match the bound ones.

        Raises:
            ValueError: If the descriptor does not match the network, or the
                bound input tensor holds fewer slots than ``max_batch_size``.
        """
        if not engine.is_loaded():
            engine.load(self.model)
        else:
            self.model.update_layer_property(engine.network)

        blob = engine.get_request().get_tensor(self.model.get_input_name())
        if blob.ndim != 4:
            raise ValueError(
                f"Input '{self.model.get_input_name()}' must be NCHW, got shape {blob.shape}"
            )
        if blob.shape[0] < self.max_batch_size:
            raise ValueError(
                f"Input '{self.model.get_input_name()}' holds {blob.shape[0]} frame(s), "
                f"max batch size is {self.max_batch_size}"
            )

        self._engine = engine
        self._reset_batch()
        self._results = []
        logger.info(
            "%s pipeline ready (max batch size %d)", self.get_name(), self.max_batch_size
        )

    def get_engine(self) -> Optional["Engine"]:
        return self._engine

    def _require_request(self) -> "InferRequest":
        if self._engine is None or self._engine.get_request() is None:
            raise RuntimeError(f"No engine loaded for {self.get_name()} inference")
        return self._engine.get_request()

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    def get_enqueued_num(self) -> int:
        return self._enqueued_frames

    def get_name(self) -> str:
        return self.model.get_model_category()

    def _reset_batch(self) -> None:
        self._pending = []
        self._enqueued_frames = 0
        self._request_done = False
        self._state = PipelineState.IDLE

    # ------------------------------------------------------------------
    # batch cycle
    # ------------------------------------------------------------------

    def enqueue(self, frame, location) -> bool:
        """Buffer a frame in the next free batch slot; it is not inferred yet.

        Args:
            frame: The frame to be enqueued (HxWx3).
            location: Location of the frame with respect to the frame
                generated by the input device, as ``Rect`` or (x, y, w, h).

        Returns:
            bool: False if the batch is full or a request is in flight.
        """
        request = self._require_request()

        if self._state == PipelineState.SUBMITTED:
            logger.warning(
                "%s batch is in flight, fetch results before enqueueing", self.get_name()
            )
            return False

        if self._enqueued_frames == self.max_batch_size:
            logger.warning(
                "Number of %s input more than maximum(%d) processed by inference",
                self.get_name(),
                self.max_batch_size,
            )
            return False

        location = Rect.from_any(location)
        blob = request.get_tensor(self.model.get_input_name())
        frame_to_blob(frame, blob, self.scale_factor, self._enqueued_frames)

        self._pending.append(self.decoder.make_result(location))
        self._enqueued_frames += 1
        self._state = PipelineState.ACCUMULATING
        logger.debug(
            "Enqueued %s frame %d/%d at %s",
            self.get_name(),
            self._enqueued_frames,
            self.max_batch_size,
            location,
        )
        return True

    def _can_submit(self) -> bool:
        if self._state == PipelineState.SUBMITTED:
            logger.warning("%s request already submitted", self.get_name())
            return False
        if self._enqueued_frames == 0:
            logger.warning("No %s frames enqueued, nothing to submit", self.get_name())
            return False
        return True

    def submit_request(self) -> bool:
        """Start inference for all buffered frames without blocking."""
        request = self._require_request()
        if not self._can_submit():
            return False

        try:
            self.decoder.prepare(request, self.model)
            request.start_async()
        except RuntimeError as e:
            logger.error(f"{self.get_name()} request submission failed: {e}")
            return False

        self._request_done = False
        self._state = PipelineState.SUBMITTED
        logger.debug("Submitted %d %s frame(s)", self._enqueued_frames, self.get_name())
        return True

    def synchronous_request(self) -> bool:
        """Run inference for all buffered frames and block until it finishes."""
        request = self._require_request()
        if not self._can_submit():
            return False

        try:
            self.decoder.prepare(request, self.model)
            request.infer()
        except RuntimeError as e:
            logger.error(f"{self.get_name()} inference failed: {e}")
            return False

        self._request_done = True
        self._state = PipelineState.SUBMITTED
        logger.debug("Inferred %d %s frame(s)", self._enqueued_frames, self.get_name())
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for a submitted request; ``timeout=0`` only polls.

        Returns:
            bool: True once the request finished, False on timeout, on a
                backend failure (the batch is dropped) or when nothing was
                submitted.
        """
        if self._state != PipelineState.SUBMITTED:
            return False
        if self._request_done:
            return True

        try:
            done = self._require_request().wait(timeout)
        except RuntimeError as e:
            logger.error(f"{self.get_name()} inference failed: {e}")
            self._reset_batch()
            return False

        self._request_done = done
        return done

    def fetch_results(self) -> bool:
        """Fetch the results of the submitted batch into the result buffer.

        All buffered frames are cleared and registered outputs receive the
        new results.

        Returns:
            bool: Whether results were fetched this time. False when nothing
                was submitted, the request is still running, or it failed.
        """
        if self._state != PipelineState.SUBMITTED:
            logger.debug("No submitted %s batch to fetch", self.get_name())
            return False

        if not self._request_done and not self.wait(0):
            return False

        try:
            results = self.decoder.decode(
                self._require_request(), self.model, self._pending
            )
        except RuntimeError as e:
            logger.error(f"Decoding {self.get_name()} results failed: {e}")
            self._reset_batch()
            return False

        self._results = list(results)
        self._reset_batch()
        self._state = PipelineState.FETCHED

        for output in self._outputs:
            output.accept(self.get_results())
        return True

    # ------------------------------------------------------------------
    # results
    # ------------------------------------------------------------------

    def get_results_length(self) -> int:
        return len(self._results)

    def get_location_result(self, idx: int) -> Result:
        """Result ``idx`` of the last fetched batch, in enqueue order."""
        if not 0 <= idx < len(self._results):
            raise IndexError(
                f"Result index {idx} out of range, {len(self._results)} result(s) fetched"
            )
        return self._results[idx]

    def get_results(self) -> List[Result]:
        return list(self._results)

    def observe_output(self, output: "BaseOutput") -> None:
        """Register a consumer fed with the results of every fetch."""
        if output not in self._outputs:
            self._outputs.append(output)
