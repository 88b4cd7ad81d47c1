"""
End-to-end tests for the detect.py command line entry point.
"""
import sys

import cv2
import numpy as np
import pytest
import yaml

import detect
from vinobatch.outputs import LogOutput


@pytest.fixture
def plate_dir(tmp_path, make_image):
    folder = tmp_path / "plates"
    folder.mkdir()
    for i in range(3):
        cv2.imwrite(str(folder / f"plate_{i}.png"), make_image(24, 94, seed=i))
    (folder / "notes.txt").write_text("not an image")
    return folder


@pytest.fixture
def recorded_outputs(monkeypatch):
    outputs = []

    class RecordingOutput(LogOutput):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            outputs.append(self)

    monkeypatch.setattr(detect, "LogOutput", RecordingOutput)
    return outputs


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["detect.py", *argv])
    return detect.main()


def test_parse_args_defaults(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["detect.py"])
    args = detect.parse_args()

    assert args.config is None
    assert args.model is None
    assert args.batch_size is None
    assert args.async_mode is None


def test_list_images_filters_extensions(plate_dir):
    images = detect.list_images(plate_dir)
    assert [p.name for p in images] == ["plate_0.png", "plate_1.png", "plate_2.png"]


def test_requires_img_path(monkeypatch, restore_vinobatch_logger):
    assert _run(monkeypatch, "--model", "lpr.onnx") == 1


def test_requires_model(monkeypatch, restore_vinobatch_logger, plate_dir):
    assert _run(monkeypatch, "--img_path", str(plate_dir)) == 1


def test_missing_model_file(monkeypatch, restore_vinobatch_logger, plate_dir, tmp_path):
    with pytest.raises(FileNotFoundError):
        _run(
            monkeypatch,
            "--img_path", str(plate_dir),
            "--model", str(tmp_path / "missing.onnx"),
        )


@pytest.mark.parametrize("async_flag", [[], ["--async_mode"]])
def test_end_to_end_onnx(
    monkeypatch,
    restore_vinobatch_logger,
    recorded_outputs,
    plate_dir,
    lpr_onnx_model,
    async_flag,
):
    pytest.importorskip("onnxruntime")

    code = _run(
        monkeypatch,
        "--img_path", str(plate_dir),
        "--model", str(lpr_onnx_model),
        "--device", "cpu",
        "--log_level", "DEBUG",
        *async_flag,
    )

    assert code == 0
    (output,) = recorded_outputs
    assert output.frames_seen == 3


def test_end_to_end_from_config(
    monkeypatch,
    restore_vinobatch_logger,
    recorded_outputs,
    plate_dir,
    lpr_onnx_model,
    tmp_path,
):
    pytest.importorskip("onnxruntime")
    config = tmp_path / "config.yml"
    config.write_text(
        yaml.safe_dump(
            {
                "img_path": str(plate_dir),
                "model": str(lpr_onnx_model),
                "device": "cpu",
                "scale_factor": 1.0,
                "log_level": "WARNING",
            }
        )
    )

    assert _run(monkeypatch, "--config", str(config)) == 0
    assert recorded_outputs[0].frames_seen == 3


def test_unreadable_image_is_skipped(
    monkeypatch, restore_vinobatch_logger, recorded_outputs, plate_dir, lpr_onnx_model
):
    pytest.importorskip("onnxruntime")
    (plate_dir / "broken.png").write_bytes(np.zeros(16, dtype=np.uint8).tobytes())

    code = _run(
        monkeypatch,
        "--img_path", str(plate_dir),
        "--model", str(lpr_onnx_model),
        "--device", "cpu",
    )

    assert code == 0
    assert recorded_outputs[0].frames_seen == 3
