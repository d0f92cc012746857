"""LaneOps: editing, validation and persistence orchestration for shipping lanes."""

__version__ = "0.1.0"
