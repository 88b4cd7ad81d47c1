# vinobatch/models/__init__.py

"""
Model descriptors binding network categories to tensor names.
"""

from .base import BaseModel
from .license_plate_detection_model import LicensePlateDetectionModel

__all__ = ["BaseModel", "LicensePlateDetectionModel"]
