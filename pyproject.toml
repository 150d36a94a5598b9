[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "opgkit"
version = "0.1.0"
description = "Host-side utilities for a ray-tracing playground: images, bounding boxes, camera control, shader binding tables"
requires-python = ">=3.10"
keywords = ["ray tracing", "rendering", "aabb", "camera", "openexr", "shader binding table"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["opgkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
