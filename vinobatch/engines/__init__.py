# vinobatch/engines/__init__.py

"""
Engine handles owning a loaded network and its execution request.

Engine implementations are imported lazily by :func:`make_engine` so that
only the selected runtime has to be installed.
"""

from .base import Engine, InferRequest
from .engine_type import EngineType
from .factory import make_engine

__all__ = ["Engine", "InferRequest", "EngineType", "make_engine"]
