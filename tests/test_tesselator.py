"""
Unit tests for the Shape Tesselator.
"""

import sys
from pathlib import Path
import io
import logging
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shape_tesselator import (
    BatchTesselator,
    FaceDirection,
    Shape,
    ShapeDepthError,
    ShapeElement,
    ShapeFace,
    ShapeTesselator,
    TextureSizeTable,
    mesh_stats,
    resolve_transforms,
    walk_elements,
)
from shape_tesselator.logging_config import setup_logging
from shape_tesselator.faces import MeshBuilder, emit_face, face_uvs, texture_index_channel
from shape_tesselator.matrix_stack import MatrixStack, rotation_y, transform_points
from shape_tesselator.tesselator import tesselate_element


def full_block(**kwargs) -> ShapeElement:
    """A 16^3 element with all six faces."""
    kwargs.setdefault("from_", (0, 0, 0))
    kwargs.setdefault("to", (16, 16, 16))
    kwargs.setdefault("faces", [ShapeFace() for _ in range(6)])
    return ShapeElement(**kwargs)


def nested(depth: int) -> ShapeElement:
    """A chain of elements nested depth levels deep."""
    root = ShapeElement(name="0", to=(1, 1, 1))
    current = root
    for level in range(1, depth):
        child = ShapeElement(name=str(level), to=(1, 1, 1))
        current.children.append(child)
        current = child
    return root


class TestShapeModel(unittest.TestCase):
    """Tests for the shape data model."""

    def test_faces_from_mapping(self):
        """Face mappings are normalized to six slots."""
        face = ShapeFace(texture_index=2)
        element = ShapeElement(faces={FaceDirection.UP: face})

        assert len(element.faces) == 6
        assert element.face(FaceDirection.UP) is face
        assert element.face(FaceDirection.NORTH) is None
        assert element.face_count == 1

    def test_wrong_face_count(self):
        with self.assertRaises(ValueError):
            ShapeElement(faces=[ShapeFace()] * 5)

    def test_rotation_step(self):
        assert ShapeFace(rotation=0).rotation_step == 0
        assert ShapeFace(rotation=90).rotation_step == 1
        assert ShapeFace(rotation=270).rotation_step == 3
        assert ShapeFace(rotation=360).rotation_step == 0
        assert ShapeFace(rotation=-90).rotation_step == 3

    def test_uv_rect_corners(self):
        """UV start is (u0, v1) and the size runs back to v0."""
        face = ShapeFace(uv=(2, 4, 10, 12))
        assert face.uv_start == (2, 12)
        assert face.uv_size == (8, -8)

    def test_texture_size_default(self):
        table = TextureSizeTable({1: (32, 64)})
        assert table[1] == (32, 64)
        assert table[5] == (16, 16)
        assert table.size_multiplier(1) == (2.0, 4.0)
        assert 1 in table
        assert 5 not in table

    def test_walk_preorder(self):
        """Parents come before children, siblings in order."""
        a = ShapeElement(name="a", children=[
            ShapeElement(name="a1"),
            ShapeElement(name="a2", children=[ShapeElement(name="a2x")]),
        ])
        b = ShapeElement(name="b")

        flat = walk_elements([a, b])
        assert [e.name for e, _ in flat] == ["a", "a1", "a2", "a2x", "b"]
        assert [d for _, d in flat] == [0, 1, 1, 2, 0]

    def test_walk_depth_guard(self):
        walk_elements([nested(64)])
        with self.assertRaises(ShapeDepthError):
            walk_elements([nested(65)])


class TestMatrixStack(unittest.TestCase):
    """Tests for matrix stack operations."""

    def test_push_copies_top(self):
        stack = MatrixStack()
        stack.push_identity()
        stack.push()
        stack.translate(1, 2, 3)
        stack.pop()

        assert np.array_equal(stack.top, np.eye(4))

    def test_operations_apply_in_reverse_order(self):
        """Translate then scale scales the point before translating it."""
        stack = MatrixStack()
        stack.push_identity()
        stack.translate(1, 0, 0)
        stack.scale(2, 2, 2)

        out = transform_points(np.array([[1.0, 1.0, 1.0]]), stack.top)
        assert np.allclose(out, [[3.0, 2.0, 2.0]])

    def test_rotate_y(self):
        stack = MatrixStack()
        stack.push_identity()
        stack.rotate(0, 90, 0)

        out = transform_points(np.array([[1.0, 0.0, 0.0]]), stack.top)
        assert np.allclose(out, [[0.0, 0.0, -1.0]])

    def test_overflow(self):
        stack = MatrixStack(capacity=2)
        stack.push_identity()
        stack.push()
        with self.assertRaises(ShapeDepthError):
            stack.push()

    def test_transform_empty(self):
        out = transform_points(np.zeros((0, 3)), np.eye(4))
        assert out.shape == (0, 3)


class TestTransformResolver(unittest.TestCase):
    """Tests for transform resolution."""

    def test_translation_only(self):
        element = ShapeElement(from_=(8, 0, 4), to=(16, 8, 8))
        (matrix,) = resolve_transforms([element])

        expected = np.eye(4)
        expected[:3, 3] = [0.5, 0.0, 0.25]
        assert np.allclose(matrix, expected)

    def test_child_inherits_parent(self):
        child = ShapeElement(from_=(16, 0, 0), to=(17, 1, 1))
        parent = ShapeElement(from_=(16, 0, 0), to=(17, 1, 1), children=[child])

        parent_m, child_m = resolve_transforms([parent])
        assert np.allclose(parent_m[:3, 3], [1, 0, 0])
        assert np.allclose(child_m[:3, 3], [2, 0, 0])

    def test_siblings_isolated(self):
        """A later sibling starts from the parent, not the earlier sibling."""
        first = ShapeElement(from_=(16, 0, 0), rotation=(0, 90, 0), scale=(2, 2, 2))
        second = ShapeElement(from_=(0, 16, 0))
        parent = ShapeElement(children=[first, second])

        _, _, second_m = resolve_transforms([parent])
        expected = np.eye(4)
        expected[:3, 3] = [0, 1, 0]
        assert np.allclose(second_m, expected)

    def test_rotation_about_origin(self):
        """A pivot on the element center keeps the center in place."""
        element = ShapeElement(
            from_=(0, 0, 0), to=(16, 16, 16),
            rotation_origin=(8, 8, 8), rotation=(0, 90, 0)
        )
        (matrix,) = resolve_transforms([element])

        center = transform_points(np.array([[0.5, 0.5, 0.5]]), matrix)
        assert np.allclose(center, [[0.5, 0.5, 0.5]])

    def test_scale_about_origin(self):
        element = ShapeElement(
            from_=(0, 0, 0), to=(16, 16, 16),
            rotation_origin=(0, 0, 0), scale=(2, 1, 1)
        )
        (matrix,) = resolve_transforms([element])

        out = transform_points(np.array([[1.0, 1.0, 1.0]]), matrix)
        assert np.allclose(out, [[2.0, 1.0, 1.0]])

    def test_scale_applies_before_rotation(self):
        """Scale acts in the element's own axes, then the rotation turns it."""
        element = ShapeElement(to=(16, 16, 16), rotation=(0, 90, 0), scale=(2, 1, 1))
        (matrix,) = resolve_transforms([element])

        out = transform_points(np.array([[1.0, 0.0, 0.0]]), matrix)
        assert np.allclose(out, [[0.0, 0.0, -2.0]])

    def test_child_inherits_parent_rotation(self):
        child = ShapeElement(from_=(16, 0, 0), to=(17, 1, 1))
        parent = ShapeElement(to=(16, 16, 16), rotation=(0, 90, 0), children=[child])

        _, child_m = resolve_transforms([parent])
        assert np.allclose(child_m[:3, 3], [0.0, 0.0, -1.0])
        assert np.allclose(child_m[:3, :3], rotation_y(90)[:3, :3])

    def test_count_matches_walk(self):
        tree = [nested(5), ShapeElement(), nested(3)]
        assert len(resolve_transforms(tree)) == len(walk_elements(tree))

    def test_depth_guard(self):
        resolve_transforms([nested(64)])
        with self.assertRaises(ShapeDepthError):
            resolve_transforms([nested(65)])

    def test_does_not_mutate(self):
        element = full_block(rotation=(10, 20, 30))
        before = repr(element)
        resolve_transforms([element])
        assert repr(element) == before


class TestFaceEmitter(unittest.TestCase):
    """Tests for face geometry emission."""

    def emit(self, direction, rotation_step=0, builder=None, texture_index=0):
        builder = builder or MeshBuilder()
        emit_face(
            builder, direction,
            half_size=np.array([0.5, 0.5, 0.5]),
            relative_center=np.array([0.5, 0.5, 0.5]),
            uv_start=(0, 16), uv_size=(16, -16),
            rotation_step=rotation_step,
            texture_index=texture_index,
            texture_sizes=TextureSizeTable()
        )
        return builder

    def test_quad_counts(self):
        mesh = self.emit(FaceDirection.EAST).build()

        assert mesh.vertices.shape == (4, 3)
        assert mesh.uvs.shape == (4, 2)
        assert list(mesh.texture_indices) == [0, 0, 0, 0]
        assert list(mesh.indices) == [0, 1, 2, 0, 2, 3]

    def test_faces_lie_on_their_plane(self):
        planes = {
            FaceDirection.NORTH: (2, 0.0),
            FaceDirection.EAST: (0, 1.0),
            FaceDirection.SOUTH: (2, 1.0),
            FaceDirection.WEST: (0, 0.0),
            FaceDirection.UP: (1, 1.0),
            FaceDirection.DOWN: (1, 0.0),
        }
        for direction, (axis, value) in planes.items():
            mesh = self.emit(direction).build()
            assert np.allclose(mesh.vertices[:, axis], value), direction

    def test_second_face_offsets_indices(self):
        builder = self.emit(FaceDirection.NORTH)
        self.emit(FaceDirection.UP, builder=builder, texture_index=3)
        mesh = builder.build()

        assert list(mesh.indices) == [0, 1, 2, 0, 2, 3, 4, 5, 6, 4, 6, 7]
        assert list(mesh.texture_indices) == [0, 0, 0, 0, 3, 3, 3, 3]

    def test_uv_corner_per_vertex(self):
        """Full-texture UVs land on fixed vertices for every face at step 0."""
        expected = {
            FaceDirection.NORTH: [[1, 1], [1, 0], [0, 0], [0, 1]],
            FaceDirection.EAST: [[1, 1], [1, 0], [0, 0], [0, 1]],
            FaceDirection.SOUTH: [[0, 1], [1, 1], [1, 0], [0, 0]],
            FaceDirection.WEST: [[0, 1], [1, 1], [1, 0], [0, 0]],
            FaceDirection.UP: [[0, 0], [0, 1], [1, 1], [1, 0]],
            FaceDirection.DOWN: [[1, 0], [0, 0], [0, 1], [1, 1]],
        }
        for direction, uvs in expected.items():
            mesh = self.emit(direction).build()
            assert np.array_equal(mesh.uvs, np.array(uvs, dtype=np.float64)), direction

    def test_uv_rotation_is_cyclic(self):
        for direction in FaceDirection:
            for step in range(4):
                uvs = face_uvs(direction, (2, 10), (6, -4), step, (1, 1))
                rotated = face_uvs(direction, (2, 10), (6, -4), (step + 1) % 4, (1, 1))
                assert np.allclose(rotated, np.roll(uvs, -1, axis=0))

    def test_uv_rotation_keeps_positions(self):
        plain = self.emit(FaceDirection.SOUTH, 0).build()
        turned = self.emit(FaceDirection.SOUTH, 1).build()

        assert np.array_equal(plain.vertices, turned.vertices)
        assert np.array_equal(plain.indices, turned.indices)
        assert not np.array_equal(plain.uvs, turned.uvs)

    def test_uv_normalized_per_texture(self):
        """A 32 pixel texture halves the normalized UVs."""
        uvs = face_uvs(FaceDirection.NORTH, (0, 16), (16, -16), 0, (2, 2))
        assert uvs.max() == 0.5
        assert uvs.min() == 0.0

    def test_texture_index_channel(self):
        builder = self.emit(FaceDirection.NORTH, texture_index=2)
        channel = texture_index_channel(builder.build())

        assert channel.shape == (4, 2)
        assert np.allclose(channel, 2.5)


class TestElementTesselator(unittest.TestCase):
    """Tests for single element tesselation."""

    def test_vertex_count_per_face(self):
        for count in range(7):
            faces = [ShapeFace() if i < count else None for i in range(6)]
            element = full_block(faces=faces)
            mesh = tesselate_element(element, np.eye(4), TextureSizeTable())

            assert mesh.vertex_count == 4 * count
            assert len(mesh.indices) == 6 * count

    def test_zero_size(self):
        element = full_block(from_=(4, 4, 4), to=(4, 4, 4))
        mesh = tesselate_element(element, np.eye(4), TextureSizeTable())

        assert mesh.vertex_count == 0
        assert len(mesh.indices) == 0

    def test_flat_element_has_geometry(self):
        """Zero extent on one axis still produces faces."""
        element = full_block(to=(16, 0, 16))
        mesh = tesselate_element(element, np.eye(4), TextureSizeTable())
        assert mesh.vertex_count == 24

    def test_indices_stay_local(self):
        element = full_block()
        mesh = tesselate_element(element, np.eye(4), TextureSizeTable())

        for face in range(6):
            n = face * 4
            assert list(mesh.indices[face * 6:(face + 1) * 6]) == [n, n + 1, n + 2, n, n + 2, n + 3]

    def test_reflection_about_center(self):
        """A 180 degree Y turn about the center negates X and Z offsets."""
        element = full_block(
            from_=(2, 0, 4), to=(10, 6, 12),
            rotation_origin=(6, 3, 8), rotation=(0, 180, 0)
        )
        local = tesselate_element(element, np.eye(4), TextureSizeTable()).vertices
        (matrix,) = resolve_transforms([element])
        model = tesselate_element(element, matrix, TextureSizeTable()).vertices

        center = np.array([6, 3, 8]) / 16
        local_offset = local + np.array([2, 0, 4]) / 16 - center
        model_offset = model - center

        assert np.allclose(model_offset[:, 0], -local_offset[:, 0])
        assert np.allclose(model_offset[:, 1], local_offset[:, 1])
        assert np.allclose(model_offset[:, 2], -local_offset[:, 2])

    def test_nan_propagates(self):
        element = full_block(rotation=(float("nan"), 0, 0))
        (matrix,) = resolve_transforms([element])
        mesh = tesselate_element(element, matrix, TextureSizeTable())
        assert np.isnan(mesh.vertices).any()


class TestShapeTesselator(unittest.TestCase):
    """Integration tests for ShapeTesselator."""

    def test_single_north_face(self):
        element = ShapeElement(
            from_=(0, 0, 0), to=(16, 16, 16),
            faces={FaceDirection.NORTH: ShapeFace(uv=(0, 0, 16, 16))}
        )
        shape = Shape([element], TextureSizeTable({0: (16, 16)}))
        (mesh,) = ShapeTesselator().tesselate(shape)

        assert np.array_equal(
            mesh.vertices, [[0, 0, 0], [0, 1, 0], [1, 1, 0], [1, 0, 0]]
        )
        assert np.array_equal(mesh.uvs, [[1, 1], [1, 0], [0, 0], [0, 1]])
        assert list(mesh.indices) == [0, 1, 2, 0, 2, 3]
        assert list(mesh.texture_indices) == [0, 0, 0, 0]

    def test_preorder_output(self):
        child = full_block(name="child", from_=(0, 16, 0), to=(16, 32, 16))
        empty = ShapeElement(name="empty", from_=(1, 1, 1), to=(1, 1, 1), children=[child])
        sibling = full_block(name="sibling", faces={FaceDirection.UP: ShapeFace()})

        buffers = ShapeTesselator().tesselate_elements([empty, sibling])

        assert [b.vertex_count for b in buffers] == [0, 24, 4]
        # Child geometry sits on top of the empty parent's corner
        assert np.allclose(buffers[1].vertices[:, 1].min(), 1 / 16 + 1.0)

    def test_idempotent(self):
        shape = Shape([
            full_block(rotation=(15, 30, 45), rotation_origin=(8, 0, 8), children=[
                full_block(from_=(4, 16, 4), to=(12, 20, 12), scale=(1, 2, 1))
            ])
        ])
        tesselator = ShapeTesselator()
        first = tesselator.tesselate(shape)
        second = tesselator.tesselate(shape)

        for a, b in zip(first, second):
            assert np.array_equal(a.vertices, b.vertices)
            assert np.array_equal(a.uvs, b.uvs)
            assert np.array_equal(a.indices, b.indices)

    def test_depth_guard(self):
        with self.assertRaises(ShapeDepthError):
            ShapeTesselator(max_depth=4).tesselate_elements([nested(5)])

    def test_mesh_stats(self):
        buffers = ShapeTesselator().tesselate_elements([
            full_block(), ShapeElement(), full_block(faces={FaceDirection.UP: ShapeFace()})
        ])
        stats = mesh_stats(buffers)

        assert stats["element_count"] == 3
        assert stats["empty_elements"] == 1
        assert stats["vertex_count"] == 28
        assert stats["triangle_count"] == 14


class TestLoggingConfig(unittest.TestCase):
    """Tests for logging setup."""

    def test_setup_replaces_handlers(self):
        setup_logging(logging.DEBUG)
        setup_logging(logging.WARNING)

        logger = logging.getLogger("shape_tesselator")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_level_name_and_stream(self):
        stream = io.StringIO()
        logger = setup_logging("debug", stream=stream)
        logging.getLogger("shape_tesselator.tesselator").debug("resolved 3 matrices")

        assert logger.level == logging.DEBUG
        assert "resolved 3 matrices" in stream.getvalue()

    def test_unknown_level(self):
        with self.assertRaises(ValueError):
            setup_logging("chatty")


class TestBatchTesselator(unittest.TestCase):
    """Tests for parallel tesselation."""

    def test_order_preserved(self):
        shapes = [
            Shape([full_block(faces=[ShapeFace() if i < n else None for i in range(6)])])
            for n in range(1, 7)
        ]
        results = BatchTesselator(max_workers=3).tesselate_many(shapes)

        assert [r[0].vertex_count for r in results] == [4, 8, 12, 16, 20, 24]

    def test_failure_fails_batch(self):
        shapes = [Shape([full_block()]), Shape([nested(10)])]
        with self.assertRaises(ShapeDepthError):
            BatchTesselator(max_depth=4).tesselate_many(shapes)

    def test_empty(self):
        assert BatchTesselator().tesselate_many([]) == []


if __name__ == "__main__":
    unittest.main(verbosity=2)
