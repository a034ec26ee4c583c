"""Capture-to-translation pipeline: immutable state and its controller."""

from .state import PipelineState
from .controller import (
    PipelineController,
    StateListener,
    create_controller,
)

__all__ = [
    "PipelineState",
    "PipelineController",
    "StateListener",
    "create_controller",
]
