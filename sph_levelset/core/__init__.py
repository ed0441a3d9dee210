"""Field storage shared by all package meshes."""

from __future__ import annotations

from .mesh_variables import FieldStore, MeshVariable

__all__ = ["FieldStore", "MeshVariable"]
