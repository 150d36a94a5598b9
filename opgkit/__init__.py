"""Host-side utilities for a ray-tracing playground: images, EXR files, paths, bit flags, bounding boxes, frame statistics, camera control and shader binding table layout."""

__version__ = "0.1.0"