"""
Visualization module for UV layouts and atlases.
"""

from .uv_viewer import UVViewer

__all__ = ["UVViewer"]
