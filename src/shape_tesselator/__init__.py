"""
Shape Tesselator
================

Turns cuboid-based block and entity model shapes into renderable mesh
buffers.

A shape is a tree of boxed elements, each with per-axis extents,
rotation/scale about a pivot, and per-face texture UV assignments. The
tesselator resolves every element's parent-relative transform and emits
one textured quad per present face, producing one mesh buffer per
element with atlas-normalized UVs.

Key Features:
- Transform composition across arbitrarily deep element trees
- Per-face UV rotation in 90 degree steps without changing winding
- Per-texture UV normalization from a texture size table
- Parallel tesselation of independent shapes
- Export to glTF 2.0 (.glb) and Wavefront (.obj)

Example Usage:
    from shape_tesselator import ShapeElement, ShapeFace, Shape, ShapeTesselator

    cube = ShapeElement(
        name="cube",
        from_=(0, 0, 0),
        to=(16, 16, 16),
        faces=[ShapeFace()] * 6,
    )
    buffers = ShapeTesselator().tesselate(Shape(elements=[cube]))
"""

__version__ = "1.0.0"
__author__ = "Shape Tesselator Team"

from .shape import (
    FaceDirection,
    ShapeFace,
    ShapeElement,
    Shape,
    TextureSizeTable,
    ShapeDepthError,
    walk_elements,
)
from .faces import MeshBuffer, emit_face, texture_index_channel
from .transforms import resolve_transforms
from .tesselator import ShapeTesselator, BatchTesselator, tesselate_element, mesh_stats
from .textures import load_texture_sizes

__all__ = [
    "FaceDirection",
    "ShapeFace",
    "ShapeElement",
    "Shape",
    "TextureSizeTable",
    "ShapeDepthError",
    "walk_elements",
    "MeshBuffer",
    "emit_face",
    "texture_index_channel",
    "resolve_transforms",
    "ShapeTesselator",
    "BatchTesselator",
    "tesselate_element",
    "mesh_stats",
    "load_texture_sizes",
]
