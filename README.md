# fractaltags

Tools for working with fractal fiducial markers: nested square markers
where smaller markers sit inside larger ones, so a target stays readable
from far away and from close up.

## What is in the package

- `fractaltags.fractal_data` – names of the predefined configurations
  (`ConfigurationType`, `configurations()`, `type_from_string()`,
  `type_string()`, `is_predefined()`) and their binary form
  (`predefined_bytes()`).
- `fractaltags.fractal_marker` – `FractalMarker`: one marker with its bit
  matrix, four 3D corners, sub-marker ids and a mask of the bits covered
  by sub-markers; `inner_corners()` gives the corner points between bits of
  different colour.
- `fractaltags.fractal_set` – `FractalMarkerSet` and its helpers:
  - `load()` takes a predefined name such as `"FRACTAL_3L_6"` or a path to
    a YAML file; `load_predefined()`, `read_file()` and `from_bytes()` do
    one each.
  - `FractalMarkerSet.save()` writes YAML, `to_bytes()` the binary form.
  - `FractalMarkerSet.create()` generates random markers for a list of
    `(bits, inner region)` levels, normalized or in pixels; pass a
    `random.Random` for repeatable results.
  - `convert_to_meters()` and `normalize()` return rescaled copies;
    `is_fractal_marker()` matches a bit code against the set.
  - `rotate_bits()`, `self_distance()` and `marker_distance()` compare bit
    matrices.
- `fractaltags.fractal_image` – `fractal_marker_image()` renders a set as
  a `uint8` image of 0 and 255; `inner_corners()` collects the inner
  corners of every marker, keyed by marker id.
- `fractaltags.labeler` – `FractalMarkerLabeler` reads the bit code of a
  square, rectified marker image (grey or BGR), thresholds it with Otsu's
  method and returns a `Detection(marker_id, rotations)` or `None`. The
  helpers `otsu_threshold()`, `inner_codes()` and `rotate_code()` are
  public too.
- `fractaltags.result_set` and `fractaltags.kdtree` – `KdTreeIndex`, a
  small k-d tree with exact k-nearest (`search_knn`) and radius
  (`radius_search`) queries, built on `ResultSet`.
- `fractaltags.kdtree_io` – `write_index()`, `read_index()`,
  `index_to_bytes()` and `index_from_bytes()` save and load the tree
  structure.
- `fractaltags.geometry` – Rodrigues conversions (`rodrigues`,
  `rot2vec`), `rt_matrix`, `project_points` and `undistort_points` with
  radial, tangential and thin-prism distortion, homographies
  (`homography_ho`, `homography_from_square_points`) and
  `perspective_transform`.
- `fractaltags.ippe` – the IPPE solver for planar targets.
  `solve_generic()` and `solve_square()` return two `PoseSolution`s
  (rotation vector, translation, reprojection error), best first;
  `solve_pnp()` and `solve_pnp_square()` return the same as
  `(float32 4x4 matrix, error)` pairs.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Examples

Load a predefined set and render it:

```python
from fractaltags.fractal_set import load
from fractaltags.fractal_image import fractal_marker_image

marker_set = load("FRACTAL_3L_6")
image = fractal_marker_image(marker_set, 10, True)   # uint8 array, 0 or 255
```

Label a rectified marker crop:

```python
from fractaltags.labeler import FractalMarkerLabeler

labeler = FractalMarkerLabeler(marker_set)
detection = labeler.detect(crop)   # a Detection, or None when no marker matches
if detection is not None:
    print(detection.marker_id, detection.rotations)
```

Estimate the pose of a square marker from its four image corners, given
in the order (-l, l), (l, l), (l, -l), (-l, -l):

```python
import numpy as np
from fractaltags.ippe import solve_pnp_square

camera = np.array([[800.0, 0, 320], [0, 800.0, 240], [0, 0, 1]])
corners = np.array([[300, 220], [340, 220], [340, 260], [300, 260]], float)
best, other = solve_pnp_square(0.05, corners, camera, np.zeros(5))
matrix, error = best
```

Search points with a kd-tree:

```python
from fractaltags.kdtree import KdTreeIndex

points = [(0.0, 0.0), (1.0, 1.0), (5.0, 5.0)]
tree = KdTreeIndex(2, lambda p, d: p[d], 10)
tree.build(points)
tree.search_knn(points, (0.9, 0.9), 2, True)           # [(index, squared distance), ...]
tree.radius_search(points, (0.0, 0.0), 2.0, True, -1)
```

The radius is given as a plain distance, while the distances returned
are squared. The tree does not keep the points, so pass the same
sequence to each search.

## What it does not do

The package works on data you hand it. It does not open cameras or video,
does not find marker candidates in a full image (the labeler expects a
square crop already rectified to one marker), does not track poses from
frame to frame, and has no command-line program.