#!/usr/bin/env python3
"""
Shape Tesselator Demo Script

This script demonstrates the tesselation pipeline by:
1. Building a small lantern-style shape in code (no files needed)
2. Tesselating it into per-element mesh buffers
3. Printing statistics
4. Exporting to OBJ and GLB

Run with: python examples/demo.py [output_dir]
"""

import sys
from pathlib import Path
import logging
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shape_tesselator import (
    FaceDirection,
    Shape,
    ShapeElement,
    ShapeFace,
    ShapeTesselator,
    TextureSizeTable,
    mesh_stats,
    walk_elements,
)
from shape_tesselator.exporters import GLTFExporter, OBJExporter
from shape_tesselator.logging_config import setup_logging


def all_faces(uv=(0, 0, 16, 16), texture_index=0, rotation=0):
    """Six identical faces."""
    return [ShapeFace(uv=uv, rotation=rotation, texture_index=texture_index) for _ in range(6)]


def create_lantern() -> Shape:
    """
    Build a lantern: a base, a glass body with a rotated handle on top,
    and a hanging hook nested below the handle.
    """
    hook = ShapeElement(
        name="hook",
        from_=(7, 14, 7), to=(9, 16, 9),
        rotation_origin=(8, 14, 8),
        rotation=(0, 45, 0),
        faces=all_faces(uv=(0, 0, 2, 2), texture_index=1),
    )
    handle = ShapeElement(
        name="handle",
        from_=(5, 10, 7.5), to=(11, 14, 8.5),
        rotation_origin=(8, 10, 8),
        rotation=(0, 0, 22.5),
        faces={
            FaceDirection.NORTH: ShapeFace(uv=(0, 0, 6, 4), texture_index=1),
            FaceDirection.SOUTH: ShapeFace(uv=(0, 0, 6, 4), texture_index=1, rotation=180),
        },
        children=[hook],
    )
    body = ShapeElement(
        name="body",
        from_=(5, 2, 5), to=(11, 10, 11),
        faces=all_faces(uv=(0, 2, 6, 10)),
        children=[handle],
    )
    base = ShapeElement(
        name="base",
        from_=(4, 0, 4), to=(12, 2, 12),
        faces=all_faces(uv=(0, 0, 8, 2), rotation=90),
    )
    # Pivot-only element: no geometry, only a transform for its children
    root = ShapeElement(name="root", children=[base, body])

    return Shape(
        elements=[root],
        texture_sizes=TextureSizeTable({0: (16, 16), 1: (32, 32)}),
    )


def main(output_dir: Path):
    setup_logging(logging.DEBUG)
    output_dir.mkdir(parents=True, exist_ok=True)

    shape = create_lantern()
    names = [element.name for element, _ in walk_elements(shape.elements)]

    start = time.time()
    buffers = ShapeTesselator().tesselate(shape)
    elapsed = time.time() - start

    stats = mesh_stats(buffers)
    print("\nMesh Statistics:")
    print(f"  Elements: {stats['element_count']} ({stats['empty_elements']} empty)")
    print(f"  Vertices: {stats['vertex_count']}")
    print(f"  Triangles: {stats['triangle_count']}")
    print(f"  Time: {elapsed * 1000:.2f}ms")

    for name, buffer in zip(names, buffers):
        print(f"  {name:8s} {buffer.vertex_count:3d} vertices")

    OBJExporter().export(buffers, output_dir / "lantern.obj", names=names)
    GLTFExporter().export(buffers, output_dir / "lantern.glb", names=names)
    print(f"\nExported to {output_dir}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent / "output"
    main(out)
