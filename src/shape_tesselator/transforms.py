"""
Element Transform Resolution

Walks the element tree once with a matrix stack and produces, for every
element, the affine matrix mapping its pivot-relative local coordinates
into model space.

Per element, composed onto the parent's matrix:
1. Translate to the rotation origin (origin / 16)
2. Rotate X, Y, Z about that point
3. Scale per axis
4. Translate to the box corner ((from - origin) / 16)

Siblings start from the parent's matrix; the stack is popped after each
subtree so no sibling sees another's transform.
"""

from typing import List, Sequence
import numpy as np

from .matrix_stack import MatrixStack
from .shape import ShapeElement, GRID_UNITS, MAX_DEPTH


def resolve_transforms(
    elements: Sequence[ShapeElement],
    max_depth: int = MAX_DEPTH
) -> List[np.ndarray]:
    """
    Resolve model-space transforms for an element tree.

    Args:
        elements: Root elements
        max_depth: Maximum nesting depth

    Returns:
        One 4x4 matrix per element, in walk_elements() order
    """
    # One slot for the identity base plus one per nesting level
    stack = MatrixStack(capacity=max_depth + 1)
    stack.push_identity()

    transforms: List[np.ndarray] = []
    _resolve(elements, stack, transforms)
    return transforms


def _resolve(
    elements: Sequence[ShapeElement],
    stack: MatrixStack,
    transforms: List[np.ndarray]
):
    for element in elements:
        stack.push()

        if element.rotation_origin is None:
            origin = np.zeros(3, dtype=np.float64)
        else:
            origin = np.asarray(element.rotation_origin, dtype=np.float64)
            stack.translate(*(origin / GRID_UNITS))

        stack.rotate(*element.rotation)
        stack.scale(*element.scale)

        corner = (np.asarray(element.from_, dtype=np.float64) - origin) / GRID_UNITS
        stack.translate(*corner)

        transforms.append(stack.top.copy())

        if element.children:
            _resolve(element.children, stack, transforms)

        stack.pop()
