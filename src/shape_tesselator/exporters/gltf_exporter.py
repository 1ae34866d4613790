"""
glTF 2.0 Exporter (.glb binary format)

Writes tesselated shapes for preview in engines and viewers. Each
non-empty element buffer becomes its own node and mesh, so element
buffers keep their local index spaces.

Per element primitive:
- Indices (uint16/uint32)
- POSITION (float32 vec3)
- TEXCOORD_0: atlas-normalized UVs (float32 vec2)
- TEXCOORD_1: texture index channel (float32 vec2, index + 0.5)

Textures themselves are not embedded; the material is a plain white
placeholder the renderer replaces with its atlas.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import json
import logging
import struct
import numpy as np

from ..faces import MeshBuffer, texture_index_channel

logger = logging.getLogger(__name__)

# glTF constants
GLTF_VERSION = "2.0"
GENERATOR = "ShapeTesselator"

# Component types
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

# Buffer view targets
ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

# Primitive modes
TRIANGLES = 4


def _check_names(buffers: Sequence[MeshBuffer], names: Optional[Sequence[str]]):
    """Names, when given, must pair one-to-one with buffers."""
    if names is not None and len(names) != len(buffers):
        raise ValueError(
            f"Got {len(names)} names for {len(buffers)} buffers"
        )


def _pad4(data: bytes, fill: bytes = b'\x00') -> bytes:
    """Pad bytes to 4-byte alignment."""
    return data + fill * ((4 - len(data) % 4) % 4)


class GLTFExporter:
    """
    Export per-element mesh buffers to glTF 2.0 binary format (.glb).

    Features:
    - One node and mesh per element
    - Atlas UVs and texture index channel
    - Compact 16-bit indices where they fit
    """

    def __init__(self, scale: float = 1.0):
        """
        Initialize the exporter.

        Args:
            scale: Scale factor for vertex positions
        """
        self.scale = scale

    def export(
        self,
        buffers: Sequence[MeshBuffer],
        output_path: Union[str, Path],
        names: Optional[Sequence[str]] = None,
        material_name: str = "ShapeMaterial"
    ):
        """
        Export mesh buffers to a .glb file.

        Args:
            buffers: Per-element buffers from ShapeTesselator
            output_path: Output file path
            names: Optional node name per buffer
            material_name: Name for the placeholder material
        """
        output_path = Path(output_path)

        if all(b.vertex_count == 0 for b in buffers):
            raise ValueError("Cannot export empty mesh")

        gltf, buffer_data = self.build(buffers, names, material_name)
        self._write_glb(output_path, gltf, buffer_data)

        logger.info(f"Wrote {output_path}")

    def build(
        self,
        buffers: Sequence[MeshBuffer],
        names: Optional[Sequence[str]] = None,
        material_name: str = "ShapeMaterial"
    ) -> Tuple[Dict[str, Any], bytes]:
        """
        Build the glTF JSON structure and its binary buffer.

        Returns:
            (gltf, buffer_data)
        """
        _check_names(buffers, names)

        parts: List[bytes] = []
        offset = 0
        accessors: List[Dict[str, Any]] = []
        buffer_views: List[Dict[str, Any]] = []
        meshes: List[Dict[str, Any]] = []
        nodes: List[Dict[str, Any]] = []

        def add_view(data: bytes, target: int) -> int:
            nonlocal offset
            buffer_views.append({
                "buffer": 0,
                "byteOffset": offset,
                "byteLength": len(data),
                "target": target
            })
            padded = _pad4(data)
            parts.append(padded)
            offset += len(padded)
            return len(buffer_views) - 1

        for i, buffer in enumerate(buffers):
            if buffer.vertex_count == 0:
                continue

            vertices = (buffer.vertices * self.scale).astype(np.float32)
            uvs = buffer.uvs.astype(np.float32)
            channel = texture_index_channel(buffer).astype(np.float32)

            if buffer.vertex_count < 65536:
                index_type = UNSIGNED_SHORT
                indices = buffer.indices.astype(np.uint16)
            else:
                index_type = UNSIGNED_INT
                indices = buffer.indices.astype(np.uint32)

            first = len(accessors)
            accessors.append({
                "bufferView": add_view(indices.tobytes(), ELEMENT_ARRAY_BUFFER),
                "componentType": index_type,
                "count": len(indices),
                "type": "SCALAR"
            })
            accessors.append({
                "bufferView": add_view(vertices.tobytes(), ARRAY_BUFFER),
                "componentType": FLOAT,
                "count": len(vertices),
                "type": "VEC3",
                "min": vertices.min(axis=0).tolist(),
                "max": vertices.max(axis=0).tolist()
            })
            accessors.append({
                "bufferView": add_view(uvs.tobytes(), ARRAY_BUFFER),
                "componentType": FLOAT,
                "count": len(uvs),
                "type": "VEC2"
            })
            accessors.append({
                "bufferView": add_view(channel.tobytes(), ARRAY_BUFFER),
                "componentType": FLOAT,
                "count": len(channel),
                "type": "VEC2"
            })

            name = names[i] if names and names[i] else f"Element_{i}"
            meshes.append({
                "primitives": [
                    {
                        "attributes": {
                            "POSITION": first + 1,
                            "TEXCOORD_0": first + 2,
                            "TEXCOORD_1": first + 3
                        },
                        "indices": first,
                        "material": 0,
                        "mode": TRIANGLES
                    }
                ],
                "name": name
            })
            nodes.append({"mesh": len(meshes) - 1, "name": name})

        gltf = {
            "asset": {
                "version": GLTF_VERSION,
                "generator": GENERATOR
            },
            "scene": 0,
            "scenes": [
                {"nodes": list(range(len(nodes)))}
            ],
            "nodes": nodes,
            "meshes": meshes,
            "materials": [
                {
                    "name": material_name,
                    "pbrMetallicRoughness": {
                        "baseColorFactor": [1.0, 1.0, 1.0, 1.0],
                        "metallicFactor": 0.0,
                        "roughnessFactor": 1.0
                    },
                    "doubleSided": False
                }
            ],
            "accessors": accessors,
            "bufferViews": buffer_views,
            "buffers": [
                {"byteLength": offset}
            ]
        }

        return gltf, b''.join(parts)

    def _write_glb(
        self,
        output_path: Path,
        gltf: Dict[str, Any],
        buffer_data: bytes
    ):
        """Write the GLB binary file."""
        json_bytes = _pad4(json.dumps(gltf, separators=(',', ':')).encode('utf-8'), b' ')

        total_length = 12 + 8 + len(json_bytes) + 8 + len(buffer_data)

        with open(output_path, 'wb') as f:
            # Header
            f.write(struct.pack('<I', 0x46546C67))  # glTF magic
            f.write(struct.pack('<I', 2))           # Version 2
            f.write(struct.pack('<I', total_length))

            # JSON chunk
            f.write(struct.pack('<I', len(json_bytes)))
            f.write(struct.pack('<I', 0x4E4F534A))  # JSON magic
            f.write(json_bytes)

            # Binary chunk
            f.write(struct.pack('<I', len(buffer_data)))
            f.write(struct.pack('<I', 0x004E4942))  # BIN magic
            f.write(buffer_data)
