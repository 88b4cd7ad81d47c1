import contextlib
import time

import torch


def determine_device(device_arg, engine_type="openvino"):
    """Determine the device string understood by the selected engine"""
    if device_arg is None:
        device_arg = "auto"
    if str(engine_type).lower() == "openvino":
        # OpenVINO resolves AUTO itself
        return str(device_arg).upper()
    if device_arg == "auto":
        if torch.cuda.is_available():
            return "cuda"
        else:
            return "cpu"
    return str(device_arg).lower()


class Profiler(contextlib.ContextDecorator):
    """
    Performance profiler for timing pipeline stages.

    Synchronizes CUDA before reading the clock when torch reports a CUDA
    device, so GPU-side work is included in the measurement.

    Usage:
        @Profiler() decorator or 'with Profiler():' context manager

    Example:
        profiler = Profiler()
        with profiler:
            pipeline.synchronous_request()
        print(f"Inference time: {profiler.elapsed_time * 1000:.2f} ms")
    """

    def __init__(self, accumulated_time=0.0):
        """
        Initialize profiler.

        Args:
            accumulated_time (float): Initial accumulated time in seconds
        """
        self.accumulated_time = accumulated_time
        self.elapsed_time = 0.0
        self.cuda_available = torch.cuda.is_available()
        self._start_time = 0.0

    def __enter__(self):
        self._start_time = self._get_precise_time()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.elapsed_time = self._get_precise_time() - self._start_time
        self.accumulated_time += self.elapsed_time

    def _get_precise_time(self):
        if self.cuda_available:
            torch.cuda.synchronize()
        return time.perf_counter()

    def reset(self):
        """Reset accumulated time counter for a new measurement session."""
        self.accumulated_time = 0.0
        self.elapsed_time = 0.0

    def get_fps(self, num_samples):
        """
        Calculate FPS (Frames Per Second).

        Args:
            num_samples (int): Number of frames processed

        Returns:
            float: FPS based on accumulated time
        """
        if self.accumulated_time > 0:
            return num_samples / self.accumulated_time
        return 0.0

    def get_avg_time_ms(self, num_operations):
        """
        Get average time per operation in milliseconds.

        Args:
            num_operations (int): Number of operations performed

        Returns:
            float: Average time per operation in milliseconds
        """
        if num_operations > 0:
            return (self.accumulated_time / num_operations) * 1000
        return 0.0
