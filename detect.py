"""
Run license plate recognition on a directory of plate images.

Usage - formats:
    $ python detect.py --model lpr.xml --img_path plates/         # OpenVINO IR
                               lpr_openvino_dir                    # OpenVINO directory
                               lpr.onnx                            # ONNX Runtime
"""

import argparse
import os
import time
from pathlib import Path

import cv2
from easydict import EasyDict as edict

from vinobatch.config import _batch_size, load_config, with_defaults
from vinobatch.engines import EngineType, make_engine
from vinobatch.general import Profiler, determine_device
from vinobatch.inferences import BaseInference
from vinobatch.models import LicensePlateDetectionModel
from vinobatch.outputs import LogOutput
from vinobatch.utils import easydict_to_dict, get_logger, merge_config, setup_logging

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif"}


def parse_args():
    parser = argparse.ArgumentParser(
        description="Run batched license plate recognition on plate images."
    )

    parser.add_argument(
        "--config", type=str, default=None, help="Path to config.yml/.json"
    )
    parser.add_argument(
        "--img_path",
        default=None,
        type=str,
        help="Path to the folder containing plate images.",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model file (.xml or directory for OpenVINO, .onnx for ONNX Runtime)",
    )
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        help="Device to run inference on (CPU/GPU/AUTO for OpenVINO, cpu/cuda/auto for ONNX)",
    )
    parser.add_argument(
        "--batch_size", type=int, default=None, help="Frames per inference request"
    )
    parser.add_argument(
        "--scale_factor",
        type=float,
        default=None,
        help="Factor applied to pixel values when loading frames.",
    )
    parser.add_argument(
        "--async_mode",
        action="store_true",
        default=None,
        help="Submit requests asynchronously and wait for them separately.",
    )
    parser.add_argument(
        "--log_level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level.",
    )

    return parser.parse_args()


def list_images(img_path):
    return sorted(
        p for p in Path(img_path).iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS
    )


def run_batch(pipeline, async_mode, profiler, output):
    """Execute the enqueued frames and hand the results to ``output``."""
    with profiler:
        if async_mode:
            submitted = pipeline.submit_request() and pipeline.wait()
        else:
            submitted = pipeline.synchronous_request()
        fetched = submitted and pipeline.fetch_results()
    output.handle_output()
    return fetched


def main():
    args = parse_args()
    cfg = load_config(args.config)
    config = edict(with_defaults(merge_config(args, cfg)))

    setup_logging(enabled=True, log_level=config.log_level, log_to_file=config.log_to_file)
    logger = get_logger("vinobatch.detect")

    if not config.get("img_path"):
        logger.error("img_path is required (via --img_path or config)")
        return 1

    if not config.get("model"):
        logger.error("model is required (via --model or config)")
        return 1

    profilers = {
        "model_loading": Profiler(),
        "enqueue": Profiler(),
        "inference": Profiler(),
    }
    logger.info(f"Final config: {easydict_to_dict(config)}")
    total_start_time = time.time()

    with profilers["model_loading"]:
        model_path = os.path.realpath(config.model)
        if not os.path.exists(model_path):
            logger.error(f"Model file not found: {model_path}")
            raise FileNotFoundError(f"Model file not found: {model_path}")

        engine_type = EngineType.from_extension(model_path)
        device = determine_device(config.device, engine_type.value)
        model = LicensePlateDetectionModel(model_path, _batch_size(config.batch_size))
        engine = make_engine(model_path, device, engine_type)
        pipeline = BaseInference(model, scale_factor=config.scale_factor)
        pipeline.load_engine(engine)
        logger.info(f"Loaded {pipeline.get_name()} on {device} ({engine_type.value})")

    output = LogOutput(name="plates")
    pipeline.observe_output(output)

    images = list_images(config.img_path)
    logger.info(f"Processing {len(images)} images from {config.img_path}")

    batch_count = 0
    frame_count = 0
    try:
        for image_path in images:
            frame = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
            if frame is None:
                logger.warning(f"Could not read image {image_path}, skipping")
                continue

            location = (0, 0, frame.shape[1], frame.shape[0])
            with profilers["enqueue"]:
                accepted = pipeline.enqueue(frame, location)
            if not accepted:
                # batch full: run it, then retry in the fresh batch
                batch_count += run_batch(
                    pipeline, config.async_mode, profilers["inference"], output
                )
                with profilers["enqueue"]:
                    accepted = pipeline.enqueue(frame, location)
            frame_count += accepted

        if pipeline.get_enqueued_num() > 0:
            batch_count += run_batch(
                pipeline, config.async_mode, profilers["inference"], output
            )
    finally:
        logger.info("Closing engine and freeing resources")
        engine.close()

    total_pipeline_time = time.time() - total_start_time

    logger.info("=" * 60)
    logger.info("PERFORMANCE SUMMARY")
    logger.info("=" * 60)
    logger.info(
        f"Model loading time:        {profilers['model_loading'].accumulated_time * 1000:.2f} ms"
    )
    logger.info(
        f"Enqueue time:              {profilers['enqueue'].accumulated_time * 1000:.2f} ms"
    )
    logger.info(
        f"Inference time:            {profilers['inference'].accumulated_time * 1000:.2f} ms"
    )
    logger.info(f"Total pipeline time:       {total_pipeline_time * 1000:.2f} ms")
    if frame_count > 0:
        logger.info(
            f"Inference FPS:             {profilers['inference'].get_fps(frame_count):.2f} frames/sec"
        )
        logger.info(
            f"Average inference time:    {profilers['inference'].get_avg_time_ms(batch_count):.2f} ms/batch"
        )
    logger.info(f"Plates decoded:            {output.frames_seen}")
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    try:
        exit_code = main()
        exit(exit_code)
    except KeyboardInterrupt:
        logger = get_logger(__name__)
        logger.info("Process interrupted by user")
        exit(1)
    except Exception as e:
        logger = get_logger(__name__)
        logger.error(f"Process failed with error: {e}", exc_info=True)
        exit(1)
