"""
Controllers for the wire topology engine.

This package contains Qt-free controller classes that orchestrate
operations between models and views using an observer pattern.
"""

from .file_controller import FileController, validate_circuit_data
from .wire_router import RouterState, WireRouter

__all__ = [
    "WireRouter",
    "RouterState",
    "FileController",
    "validate_circuit_data",
]
