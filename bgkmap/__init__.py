"""Block-hashed octree occupancy maps: Beta-distributed cells, octrees, blocks and scan training data."""

__version__ = "0.1.0"

__all__ = [
    "block",
    "occupancy",
    "octomap",
    "octree",
    "spatial",
    "training",
    "void_training",
]