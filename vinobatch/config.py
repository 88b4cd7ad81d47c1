# vinobatch/config.py
import json
from pathlib import Path

import yaml

DEFAULT_CONFIG = {
    "model": None,
    "img_path": None,
    "device": "auto",
    "batch_size": 1,
    "scale_factor": 1.0,
    "async_mode": False,
    "log_level": "INFO",
    "log_to_file": False,
}


def load_config(path: str = None):
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    if p.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(p.read_text()) or {}
    if p.suffix.lower() == ".json":
        return json.loads(p.read_text())
    raise ValueError("Config must be .yml/.yaml or .json")


def with_defaults(config: dict) -> dict:
    # defaults first, file/CLI values on top
    merged = dict(DEFAULT_CONFIG)
    merged.update({k: v for k, v in (config or {}).items() if v is not None})
    return merged


def pick(*vals):
    # first non-None
    for v in vals:
        if v is not None:
            return v
    return None


def _batch_size(v):
    if v is None:
        return 1
    size = int(v)
    if size < 1:
        raise ValueError(f"batch_size must be >= 1, got {v}")
    return size
