"""
Shape Tesselation Pipeline

This is the primary interface for turning a shape into mesh buffers.
It runs in two phases:
1. Transform resolution over the whole element tree
2. Per-element face emission, baked into model space by the element's
   resolved transform

The result is one MeshBuffer per element in pre-order. Buffers are never
merged; each keeps indices local to its own vertices.

Example Usage:
    tesselator = ShapeTesselator()
    buffers = tesselator.tesselate(shape)
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence
import logging
import time
import numpy as np

from .faces import MeshBuffer, MeshBuilder, emit_face
from .matrix_stack import transform_points
from .shape import (
    FaceDirection, Shape, ShapeElement, TextureSizeTable,
    GRID_UNITS, MAX_DEPTH, walk_elements
)
from .transforms import resolve_transforms

logger = logging.getLogger(__name__)


def tesselate_element(
    element: ShapeElement,
    transform: np.ndarray,
    texture_sizes: TextureSizeTable
) -> MeshBuffer:
    """
    Build the geometry of a single element, excluding its children.

    Args:
        element: Element to tesselate
        transform: The element's resolved model-space matrix
        texture_sizes: Texture size table for UV normalization

    Returns:
        MeshBuffer with model-space positions (empty for zero-size boxes)
    """
    size = (np.asarray(element.to, dtype=np.float64) -
            np.asarray(element.from_, dtype=np.float64)) / GRID_UNITS
    if not np.any(size):
        return MeshBuffer.empty()

    relative_center = size / 2
    half_size = size / 2

    builder = MeshBuilder()
    for direction in FaceDirection:
        face = element.faces[direction]
        if face is None:
            continue

        emit_face(
            builder,
            direction,
            half_size,
            relative_center,
            face.uv_start,
            face.uv_size,
            face.rotation_step,
            face.texture_index,
            texture_sizes
        )

    local = builder.build()
    return local.with_vertices(transform_points(local.vertices, transform))


class ShapeTesselator:
    """
    Tesselates full element trees into per-element mesh buffers.

    Each call owns its matrix stack and output list, so one instance can
    be shared between threads.
    """

    def __init__(self, max_depth: int = MAX_DEPTH):
        """
        Initialize the tesselator.

        Args:
            max_depth: Maximum element nesting depth before failing
        """
        self.max_depth = max_depth

    def tesselate(self, shape: Shape) -> List[MeshBuffer]:
        """
        Tesselate a shape.

        Args:
            shape: Shape with elements and texture sizes

        Returns:
            One MeshBuffer per element, parents before children
        """
        return self.tesselate_elements(shape.elements, shape.texture_sizes)

    def tesselate_elements(
        self,
        elements: Sequence[ShapeElement],
        texture_sizes: Optional[TextureSizeTable] = None
    ) -> List[MeshBuffer]:
        """
        Tesselate an element tree.

        Args:
            elements: Root elements
            texture_sizes: Texture size table (defaults to 16x16 textures)

        Returns:
            One MeshBuffer per element, parents before children
        """
        if texture_sizes is None:
            texture_sizes = TextureSizeTable()

        start = time.perf_counter()
        ordered = walk_elements(elements, self.max_depth)
        transforms = resolve_transforms(elements, self.max_depth)
        logger.debug(
            f"Resolving {len(transforms)} element matrices took "
            f"{(time.perf_counter() - start) * 1000:.2f}ms"
        )

        start = time.perf_counter()
        buffers = [
            tesselate_element(element, transform, texture_sizes)
            for (element, _), transform in zip(ordered, transforms)
        ]
        logger.debug(
            f"Tesselating {len(buffers)} elements took "
            f"{(time.perf_counter() - start) * 1000:.2f}ms"
        )

        return buffers


class BatchTesselator:
    """
    Tesselates many independent shapes on a thread pool.

    Shapes share no state, so no locking is needed. Results keep the
    input order and a failure in any shape fails the whole batch.
    """

    def __init__(self, max_workers: Optional[int] = None, **tesselator_kwargs):
        """
        Initialize the batch tesselator.

        Args:
            max_workers: Thread pool size (None for the executor default)
            **tesselator_kwargs: Arguments passed to ShapeTesselator
        """
        self.max_workers = max_workers
        self.tesselator = ShapeTesselator(**tesselator_kwargs)

    def tesselate_many(self, shapes: Iterable[Shape]) -> List[List[MeshBuffer]]:
        """
        Tesselate shapes in parallel.

        Args:
            shapes: Independent shapes

        Returns:
            Buffer lists, one per shape, in input order
        """
        shapes = list(shapes)
        if not shapes:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self.tesselator.tesselate, shapes))

        logger.info(f"Tesselated {len(results)} shapes")
        return results


def mesh_stats(buffers: Sequence[MeshBuffer]) -> dict:
    """
    Summarize a tesselated shape.

    Args:
        buffers: Per-element buffers from ShapeTesselator

    Returns:
        Dictionary with element, vertex and triangle counts
    """
    return {
        "element_count": len(buffers),
        "empty_elements": sum(1 for b in buffers if b.vertex_count == 0),
        "vertex_count": sum(b.vertex_count for b in buffers),
        "triangle_count": sum(b.triangle_count for b in buffers),
    }
