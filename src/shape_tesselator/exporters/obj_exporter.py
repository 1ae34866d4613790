"""
Wavefront OBJ Format Exporter

Writes tesselated shapes as text OBJ files. Every non-empty element
buffer becomes its own object ("o" record) with positions, texture
coordinates and triangle faces.

Limitations:
- OBJ has no per-vertex texture index; the atlas texture a face uses is
  written as a group comment only
- OBJ indices are file-global, so each object's faces are offset by the
  vertices written before it
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union
import logging

from ..faces import MeshBuffer

logger = logging.getLogger(__name__)


class OBJExporter:
    """
    Export per-element mesh buffers to Wavefront OBJ format.

    Supports:
    - One object per element
    - Texture coordinates (vt), optionally flipped to a bottom-left origin
    """

    def __init__(
        self,
        scale: float = 1.0,
        include_uvs: bool = True,
        flip_v: bool = False
    ):
        """
        Initialize the exporter.

        Args:
            scale: Scale factor for vertex positions
            include_uvs: Whether to write texture coordinates
            flip_v: Write 1 - v for tools expecting a bottom-left UV origin
        """
        self.scale = scale
        self.include_uvs = include_uvs
        self.flip_v = flip_v

    def export(
        self,
        buffers: Sequence[MeshBuffer],
        output_path: Union[str, Path],
        names: Optional[Sequence[str]] = None,
        model_name: str = "shape"
    ):
        """
        Export mesh buffers to an OBJ file.

        Args:
            buffers: Per-element buffers from ShapeTesselator
            output_path: Output file path (.obj)
            names: Optional object name per buffer
            model_name: Prefix for generated object names
        """
        output_path = Path(output_path)

        if all(b.vertex_count == 0 for b in buffers):
            raise ValueError("Cannot export empty mesh")

        lines = self.to_lines(buffers, names, model_name)

        with open(output_path, 'w') as f:
            f.write('\n'.join(lines))

        logger.info(f"Wrote {output_path}")

    def to_lines(
        self,
        buffers: Sequence[MeshBuffer],
        names: Optional[Sequence[str]] = None,
        model_name: str = "shape"
    ) -> List[str]:
        """Build the OBJ text as a list of lines."""
        if names is not None and len(names) != len(buffers):
            raise ValueError(
                f"Got {len(names)} names for {len(buffers)} buffers"
            )

        total_vertices = sum(b.vertex_count for b in buffers)
        total_triangles = sum(b.triangle_count for b in buffers)

        lines = []
        lines.append("# Shape Tesselator OBJ Export")
        lines.append(f"# Vertices: {total_vertices}")
        lines.append(f"# Triangles: {total_triangles}")
        lines.append("")

        vertex_offset = 0
        for i, buffer in enumerate(buffers):
            if buffer.vertex_count == 0:
                continue

            name = names[i] if names and names[i] else f"{model_name}_{i}"
            lines.append(f"o {name}")

            for v in buffer.vertices * self.scale:
                lines.append(f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}")

            if self.include_uvs:
                for uv in buffer.uvs:
                    v = 1.0 - uv[1] if self.flip_v else uv[1]
                    lines.append(f"vt {uv[0]:.6f} {v:.6f}")

            textures = sorted(set(buffer.texture_indices.tolist()))
            lines.append(f"# textures: {' '.join(str(t) for t in textures)}")

            indices = buffer.indices
            for t in range(0, len(indices), 3):
                i0 = int(indices[t]) + vertex_offset + 1
                i1 = int(indices[t + 1]) + vertex_offset + 1
                i2 = int(indices[t + 2]) + vertex_offset + 1

                if self.include_uvs:
                    lines.append(f"f {i0}/{i0} {i1}/{i1} {i2}/{i2}")
                else:
                    lines.append(f"f {i0} {i1} {i2}")

            lines.append("")
            vertex_offset += buffer.vertex_count

        return lines
