"""
Mesh file I/O.

Meshes are exchanged with the host as flat arrays, stored either as a numpy
``.npz`` archive or as a ``.json`` document with the same keys.
"""

import json
from pathlib import Path
from typing import Union

import numpy as np

from ..utils.logger import get_logger
from ..utils.error_handler import MeshError
from .mesh_data import MeshData


SUPPORTED_EXTENSIONS = ('.npz', '.json')

_ATTRIBUTES = ('vertices', 'triangles', 'uvs', 'normals', 'tangents', 'colors')

logger = get_logger("uv_rebuild.mesh_io")


def _mesh_from_mapping(data, name: str) -> MeshData:
    for key in ('vertices', 'triangles', 'uvs'):
        if key not in data:
            raise MeshError(f"Mesh data missing '{key}'", error_code=1002, mesh_name=name)

    optional = {}
    for key in ('normals', 'tangents', 'colors'):
        if key in data:
            optional[key] = data[key]

    return MeshData(
        name=name,
        vertices=data['vertices'],
        triangles=data['triangles'],
        uvs=data['uvs'],
        **optional
    )


def load_mesh(file_path: Union[str, Path]) -> MeshData:
    """
    Load a mesh from an ``.npz`` or ``.json`` file.

    Args:
        file_path: Mesh file path

    Returns:
        Loaded MeshData
    """
    path = Path(file_path)

    if not path.exists():
        raise MeshError(f"Mesh file not found: {path}", error_code=1001, file_path=str(path))

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise MeshError(
            f"Unsupported mesh format: {suffix}",
            error_code=1004,
            file_path=str(path)
        )

    try:
        if suffix == '.npz':
            with np.load(path, allow_pickle=False) as archive:
                data = {key: archive[key] for key in archive.files}
            name = str(data.pop('name')) if 'name' in data else path.stem
        else:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            name = data.get('name', path.stem)
    except (OSError, ValueError) as e:
        raise MeshError(
            f"Failed to read mesh file: {e}",
            error_code=1002,
            file_path=str(path)
        ) from e

    try:
        mesh = _mesh_from_mapping(data, name)
    except (ValueError, TypeError) as e:
        raise MeshError(
            f"Malformed mesh data in {path.name}: {e}",
            error_code=1002,
            file_path=str(path)
        ) from e

    logger.debug(f"Loaded {path.name}: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles")
    return mesh


def save_mesh(mesh: MeshData, file_path: Union[str, Path]) -> Path:
    """
    Save a mesh to an ``.npz`` or ``.json`` file.

    Absent attributes are not written.

    Args:
        mesh: Mesh to save
        file_path: Output path; the extension selects the format

    Returns:
        Path written
    """
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise MeshError(
            f"Unsupported mesh format: {suffix}",
            error_code=1004,
            file_path=str(path)
        )

    arrays = {}
    for key in _ATTRIBUTES:
        value = getattr(mesh, key)
        if value is not None:
            arrays[key] = value

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if suffix == '.npz':
            np.savez(path, name=np.array(mesh.name), **arrays)
        else:
            document = {'name': mesh.name}
            document.update({key: value.tolist() for key, value in arrays.items()})
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(document, f)
    except OSError as e:
        raise MeshError(
            f"Failed to write mesh file: {e}",
            error_code=1003,
            file_path=str(path)
        ) from e

    logger.debug(f"Saved {mesh.name} to {path}")
    return path
