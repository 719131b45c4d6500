[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bgkmap"
version = "0.1.0"
description = "Block-hashed octree occupancy maps with Beta-distributed cells and training data for kernel inference"
requires-python = ">=3.10"
dependencies = []
keywords = ["occupancy", "mapping", "octree", "octomap", "kernel inference", "robotics", "point cloud"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bgkmap"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
