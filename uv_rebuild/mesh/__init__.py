"""
Mesh data model and mesh file I/O.
"""

from .mesh_data import MeshData, MeshBuilder
from .mesh_io import load_mesh, save_mesh

__all__ = [
    "MeshData",
    "MeshBuilder",
    "load_mesh",
    "save_mesh",
]
