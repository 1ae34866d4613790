"""
Export modules for tesselated shapes.

Supported formats:
- glTF 2.0 (.glb) - Preview in engines and viewers
- Wavefront (.obj) - Universal legacy support
"""

from .gltf_exporter import GLTFExporter
from .obj_exporter import OBJExporter

__all__ = ["GLTFExporter", "OBJExporter"]
