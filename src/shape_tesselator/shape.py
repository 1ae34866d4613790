"""
Shape Data Model

A shape is a tree of cuboid elements. Each element is described in a
0-16 grid unit system with:
- from/to box corners
- an optional rotation origin (pivot)
- Euler rotation in degrees and a per-axis scale
- up to six textured faces, one per axis-aligned direction

Elements are treated as immutable input. Resolved transforms are never
cached on the nodes; they live in a parallel list indexed by the
pre-order position returned from walk_elements().
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

# Shape coordinates and UVs are expressed in sixteenths of a block
GRID_UNITS = 16.0

# Pixel size assumed for textures missing from the size table
DEFAULT_TEXTURE_SIZE = 16

# Nesting guard for malformed or pathologically deep trees
MAX_DEPTH = 64


class ShapeDepthError(RuntimeError):
    """Raised when an element tree nests deeper than the allowed depth."""


class FaceDirection(IntEnum):
    """Axis-aligned face directions, in cube template order."""
    NORTH = 0  # -Z
    EAST = 1   # +X
    SOUTH = 2  # +Z
    WEST = 3   # -X
    UP = 4     # +Y
    DOWN = 5   # -Y


Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]


@dataclass
class ShapeFace:
    """
    Texture assignment for one side of an element.

    Attributes:
        uv: UV rectangle (u0, v0, u1, v1) in 0-16 texture units
        rotation: UV rotation in degrees (0, 90, 180 or 270)
        texture_index: Index into the texture size table
    """

    uv: Tuple[float, float, float, float] = (0.0, 0.0, 16.0, 16.0)
    rotation: float = 0.0
    texture_index: int = 0

    @property
    def rotation_step(self) -> int:
        """Quarter turns of UV rotation, wrapped into 0..3."""
        return int(self.rotation / 90) % 4

    @property
    def uv_start(self) -> Vec2:
        """UV corner the face templates are measured from."""
        return (self.uv[0], self.uv[3])

    @property
    def uv_size(self) -> Vec2:
        """Signed UV extent from uv_start to the opposite corner."""
        return (self.uv[2] - self.uv[0], self.uv[1] - self.uv[3])


FacesInput = Union[Sequence[Optional[ShapeFace]], Mapping[FaceDirection, ShapeFace]]


def _normalize_faces(faces: Optional[FacesInput]) -> Tuple[Optional[ShapeFace], ...]:
    """Convert a face mapping or sequence into a 6-slot tuple."""
    if faces is None:
        return (None,) * 6

    if isinstance(faces, Mapping):
        slots: List[Optional[ShapeFace]] = [None] * 6
        for direction, face in faces.items():
            slots[FaceDirection(direction)] = face
        return tuple(slots)

    faces = tuple(faces)
    if len(faces) != 6:
        raise ValueError(f"Expected 6 face slots, got {len(faces)}")
    return faces


@dataclass
class ShapeElement:
    """
    One cuboid of a shape, possibly owning nested child elements.

    Attributes:
        name: Element name, used for logging and export object names
        from_: Minimum box corner in grid units
        to: Maximum box corner in grid units
        rotation_origin: Pivot in grid units, None for the origin
        rotation: Euler angles (x, y, z) in degrees
        scale: Per-axis scale factors
        faces: Six face slots indexed by FaceDirection
        children: Child elements, in order
    """

    name: str = ""
    from_: Vec3 = (0.0, 0.0, 0.0)
    to: Vec3 = (0.0, 0.0, 0.0)
    rotation_origin: Optional[Vec3] = None
    rotation: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    faces: FacesInput = field(default=None)
    children: List["ShapeElement"] = field(default_factory=list)

    def __post_init__(self):
        self.faces = _normalize_faces(self.faces)

    def face(self, direction: FaceDirection) -> Optional[ShapeFace]:
        """Get the face descriptor for a direction, or None."""
        return self.faces[direction]

    @property
    def face_count(self) -> int:
        """Number of present face descriptors."""
        return sum(1 for f in self.faces if f is not None)


class TextureSizeTable:
    """
    Pixel dimensions of the textures a shape references.

    Indices that are not listed fall back to the default size, matching
    shapes that only declare a global texture width and height.
    """

    def __init__(
        self,
        sizes: Optional[Mapping[int, Tuple[int, int]]] = None,
        default_size: Tuple[int, int] = (DEFAULT_TEXTURE_SIZE, DEFAULT_TEXTURE_SIZE)
    ):
        """
        Initialize the table.

        Args:
            sizes: Mapping of texture index to (width, height) in pixels
            default_size: Size used for indices not present in sizes
        """
        self._sizes: Dict[int, Tuple[int, int]] = dict(sizes or {})
        self.default_size = default_size

    def __getitem__(self, index: int) -> Tuple[int, int]:
        return self._sizes.get(index, self.default_size)

    def __contains__(self, index: int) -> bool:
        return index in self._sizes

    def __len__(self) -> int:
        return len(self._sizes)

    def size_multiplier(self, index: int) -> Tuple[float, float]:
        """Texture size relative to a 16 pixel texture."""
        width, height = self[index]
        return (width / DEFAULT_TEXTURE_SIZE, height / DEFAULT_TEXTURE_SIZE)


@dataclass
class Shape:
    """A full element tree plus the texture sizes its faces refer to."""

    elements: List[ShapeElement] = field(default_factory=list)
    texture_sizes: TextureSizeTable = field(default_factory=TextureSizeTable)


def walk_elements(
    elements: Sequence[ShapeElement],
    max_depth: int = MAX_DEPTH
) -> List[Tuple[ShapeElement, int]]:
    """
    Flatten an element tree in pre-order.

    The position of an element in the returned list is its index in every
    per-element array the tesselator produces.

    Args:
        elements: Root elements
        max_depth: Maximum nesting depth

    Returns:
        List of (element, depth) pairs, parents before children
    """
    flat: List[Tuple[ShapeElement, int]] = []
    pending = [(element, 0) for element in reversed(elements)]

    while pending:
        element, depth = pending.pop()
        if depth >= max_depth:
            raise ShapeDepthError(
                f"Element '{element.name}' nests deeper than {max_depth} levels"
            )
        flat.append((element, depth))
        for child in reversed(element.children):
            pending.append((child, depth + 1))

    return flat
