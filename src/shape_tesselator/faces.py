"""
Face Geometry Emission

Emits one textured quad per element face: 4 vertices, 4 UVs, 4 texture
indices and 6 triangle indices.

Vertex positions come from a fixed cube corner template per face
direction, scaled by the element's half size around its relative center.
UV rotation only changes which template UV corner lands on the first
vertex; vertex winding and the triangle fan are the same for every
rotation.
"""

from typing import List, NamedTuple, Sequence
import numpy as np

from .shape import FaceDirection, TextureSizeTable, GRID_UNITS


# Cube corner offsets per face, origin at the cube middle point
CUBE_VERTICES = np.array([
    # NORTH
    [[-1, -1, -1], [-1, 1, -1], [1, 1, -1], [1, -1, -1]],
    # EAST
    [[1, -1, -1], [1, 1, -1], [1, 1, 1], [1, -1, 1]],
    # SOUTH
    [[-1, -1, 1], [1, -1, 1], [1, 1, 1], [-1, 1, 1]],
    # WEST
    [[-1, -1, -1], [-1, -1, 1], [-1, 1, 1], [-1, 1, -1]],
    # UP
    [[-1, 1, -1], [-1, 1, 1], [1, 1, 1], [1, 1, -1]],
    # DOWN
    [[-1, -1, -1], [1, -1, -1], [1, -1, 1], [-1, -1, 1]],
], dtype=np.float64)
CUBE_VERTICES.flags.writeable = False

# UV corner slots per face
CUBE_UV_COORDS = np.array([
    # NORTH
    [[1, 0], [1, 1], [0, 1], [0, 0]],
    # EAST
    [[1, 0], [1, 1], [0, 1], [0, 0]],
    # SOUTH
    [[0, 0], [1, 0], [1, 1], [0, 1]],
    # WEST
    [[0, 0], [1, 0], [1, 1], [0, 1]],
    # UP
    [[0, 1], [0, 0], [1, 0], [1, 1]],
    # DOWN
    [[1, 1], [0, 1], [0, 0], [1, 0]],
], dtype=np.float64)
CUBE_UV_COORDS.flags.writeable = False

# Two triangles fanned from the first vertex of a quad
QUAD_INDICES = np.array([0, 1, 2, 0, 2, 3], dtype=np.uint32)


class MeshBuffer(NamedTuple):
    """Geometry for one element."""
    vertices: np.ndarray         # (N, 3) float64 model-space positions
    uvs: np.ndarray              # (N, 2) float64 atlas-normalized UVs
    texture_indices: np.ndarray  # (N,) int32 texture index per vertex
    indices: np.ndarray          # (M,) uint32 triangle indices, local to this buffer

    @classmethod
    def empty(cls) -> "MeshBuffer":
        return cls(
            vertices=np.zeros((0, 3), dtype=np.float64),
            uvs=np.zeros((0, 2), dtype=np.float64),
            texture_indices=np.zeros((0,), dtype=np.int32),
            indices=np.zeros((0,), dtype=np.uint32)
        )

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def with_vertices(self, vertices: np.ndarray) -> "MeshBuffer":
        """Copy of this buffer with replaced positions."""
        return self._replace(vertices=vertices)


class MeshBuilder:
    """
    Append-only geometry accumulator for a single element.

    Faces are appended in emission order; build() converts the collected
    rows into a MeshBuffer.
    """

    def __init__(self):
        self._vertices: List[np.ndarray] = []
        self._uvs: List[np.ndarray] = []
        self._texture_indices: List[np.ndarray] = []
        self._indices: List[np.ndarray] = []
        self.vertex_count = 0

    def add_quad(
        self,
        vertices: np.ndarray,
        uvs: np.ndarray,
        texture_index: int
    ):
        """
        Append a 4-vertex quad with its fan indices.

        Args:
            vertices: (4, 3) positions
            uvs: (4, 2) texture coordinates
            texture_index: Texture index shared by all 4 vertices
        """
        self._vertices.append(vertices)
        self._uvs.append(uvs)
        self._texture_indices.append(np.full(4, texture_index, dtype=np.int32))
        self._indices.append(QUAD_INDICES + np.uint32(self.vertex_count))
        self.vertex_count += 4

    def build(self) -> MeshBuffer:
        if not self._vertices:
            return MeshBuffer.empty()

        return MeshBuffer(
            vertices=np.vstack(self._vertices).astype(np.float64),
            uvs=np.vstack(self._uvs).astype(np.float64),
            texture_indices=np.concatenate(self._texture_indices),
            indices=np.concatenate(self._indices).astype(np.uint32)
        )


def face_uvs(
    direction: FaceDirection,
    uv_start: Sequence[float],
    uv_size: Sequence[float],
    rotation_step: int,
    texture_size: Sequence[float]
) -> np.ndarray:
    """
    Compute the 4 atlas-normalized UVs for one face.

    Output vertex i takes UV slot (rotation_step + i) mod 4.

    Args:
        direction: Face direction
        uv_start: UV origin in texture units
        uv_size: Signed UV extent in texture units
        rotation_step: Quarter turns (0-3)
        texture_size: Texture size multiplier (width, height)

    Returns:
        (4, 2) float64 array
    """
    slots = (rotation_step + np.arange(4)) % 4
    template = CUBE_UV_COORDS[direction][slots]

    uv_start = np.asarray(uv_start, dtype=np.float64)
    uv_size = np.asarray(uv_size, dtype=np.float64)
    scale = GRID_UNITS * np.asarray(texture_size, dtype=np.float64)

    return (uv_start + uv_size * template) / scale


def emit_face(
    builder: MeshBuilder,
    direction: FaceDirection,
    half_size: np.ndarray,
    relative_center: np.ndarray,
    uv_start: Sequence[float],
    uv_size: Sequence[float],
    rotation_step: int,
    texture_index: int,
    texture_sizes: TextureSizeTable
):
    """
    Append one face quad to the builder.

    Args:
        builder: Destination buffer
        direction: Face direction
        half_size: Half of the element size (model units)
        relative_center: Box center relative to the element corner
        uv_start: UV origin in texture units
        uv_size: Signed UV extent in texture units
        rotation_step: Quarter turns of UV rotation (0-3)
        texture_index: Texture the face samples
        texture_sizes: Texture size table for UV normalization
    """
    vertices = relative_center + half_size * CUBE_VERTICES[direction]
    uvs = face_uvs(
        direction, uv_start, uv_size, rotation_step,
        texture_sizes.size_multiplier(texture_index)
    )
    builder.add_quad(vertices, uvs, texture_index)


def texture_index_channel(buffer: MeshBuffer) -> np.ndarray:
    """
    Encode per-vertex texture indices as a secondary UV channel.

    Each index i becomes (i + 0.5, i + 0.5) so a shader can floor it back
    to the texture slot without rounding errors.

    Args:
        buffer: Element mesh buffer

    Returns:
        (N, 2) float32 array
    """
    channel = buffer.texture_indices.astype(np.float32) + 0.5
    return np.column_stack([channel, channel])
