"""Fractal fiducial markers: marker sets, rendering, labelling, kd-tree search and planar pose estimation."""

__version__ = "0.1.0"

__all__ = [
    "result_set",
    "kdtree",
    "kdtree_io",
    "fractal_marker",
    "fractal_data",
    "fractal_set",
    "fractal_image",
    "labeler",
    "geometry",
    "ippe",
]