"""Infinitesimal plane-based pose estimation for planar targets."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .geometry import (
    homography_from_square_points,
    homography_ho,
    project_points,
    rodrigues,
    rot2vec,
    rotate_vec_to_z_axis,
    rt_matrix,
    undistort_points,
)

IPPE_SMALL = 1e-7


@dataclass(frozen=True, eq=False)
class PoseSolution:
    """A pose of the object in the camera frame and its reprojection error."""

    rvec: np.ndarray
    tvec: np.ndarray
    error: float

    @property
    def matrix(self) -> np.ndarray:
        """The 4x4 rigid transform of the pose."""
        return rt_matrix(self.rvec, self.tvec)


def _has_camera(camera_matrix: Optional[np.ndarray]) -> bool:
    return camera_matrix is not None and np.asarray(camera_matrix).size != 0


def _object_points(object_points: np.ndarray) -> np.ndarray:
    arr = np.asarray(object_points, dtype=np.float64)
    if arr.size % 3:
        raise ValueError("object points must have three coordinates each")
    return arr.reshape(-1, 3)


def _image_points(image_points: np.ndarray) -> np.ndarray:
    arr = np.asarray(image_points, dtype=np.float64)
    if arr.size % 2:
        raise ValueError("image points must have two coordinates each")
    return arr.reshape(-1, 2)


def square_object_corners_3d(square_length: float) -> np.ndarray:
    """Corners of a square centred at the origin on the plane z=0, as a (4, 3) array."""
    h = square_length / 2.0
    return np.array([[-h, h, 0.0], [h, h, 0.0], [h, -h, 0.0], [-h, -h, 0.0]])


def square_object_corners_2d(square_length: float) -> np.ndarray:
    """Corners of a square centred at the origin, as a (4, 2) array."""
    return square_object_corners_3d(square_length)[:, :2].copy()


def _object_space_r_3pts(points: np.ndarray) -> Optional[np.ndarray]:
    if points.shape[0] < 3:
        return None
    (p1x, p1y, p1z), (p2x, p2y, p2z), (p3x, p3y, p3z) = points[:3].tolist()
    nx = (p1y - p2y) * (p1z - p3z) - (p1y - p3y) * (p1z - p2z)
    ny = (p1x - p3x) * (p1z - p2z) - (p1x - p2x) * (p1z - p3z)
    nz = (p1x - p2x) * (p1y - p3y) - (p1x - p3x) * (p1y - p2y)
    nrm = math.sqrt(nx * nx + ny * ny + nz * nz)
    if nrm <= IPPE_SMALL:
        return None
    return rotate_vec_to_z_axis(np.array([nx, ny, nz]) / nrm)


def _object_space_r_svd(zero_mean: np.ndarray) -> np.ndarray:
    u, w, _ = np.linalg.svd(zero_mean @ zero_mean.T)
    if w[1] == 0 or w[2] / w[1] >= IPPE_SMALL:
        raise ValueError("object points are not coplanar")
    r = u.T.copy()
    if np.linalg.det(r) < 0:
        r[2] = -r[2]
    return r


def make_canonical_object_points(object_points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Planar object points moved to be zero centred on the plane z=0.

    Returns the (N, 2) canonical points and the 4x4 transform taking the
    model points to them.
    """
    pts = _object_points(object_points)
    if pts.shape[0] == 0:
        raise ValueError("no object points given")
    mean = pts.mean(axis=0)
    zero_mean = (pts - mean).T
    center = np.eye(4)
    center[:3, 3] = -mean
    if np.all(np.abs(pts[:, 2]) <= IPPE_SMALL):
        return zero_mean[:2].T.copy(), center
    r = _object_space_r_3pts(pts)
    if r is None:
        r = _object_space_r_svd(zero_mean)
    aligned = r @ zero_mean
    rotation = np.eye(4)
    rotation[:3, :3] = r
    return aligned[:2].T.copy(), rotation @ center


def compute_translation(object_points: np.ndarray, normalized_points: np.ndarray, r: np.ndarray) -> np.ndarray:
    """Least-squares translation given canonical points, their normalized images and a rotation."""
    obj = np.asarray(object_points, dtype=np.float64).reshape(-1, 2)
    img = _image_points(normalized_points)
    rot = np.asarray(r, dtype=np.float64).reshape(3, 3)
    n = obj.shape[0]
    if n != img.shape[0]:
        raise ValueError("object and image points differ in number")

    ata00 = ata11 = float(n)
    ata02 = ata12 = ata20 = ata21 = ata22 = 0.0
    atb0 = atb1 = atb2 = 0.0
    for (ox, oy), (ix, iy) in zip(obj.tolist(), img.tolist()):
        rx = rot[0, 0] * ox + rot[0, 1] * oy
        ry = rot[1, 0] * ox + rot[1, 1] * oy
        rz = rot[2, 0] * ox + rot[2, 1] * oy
        a2 = -ix
        b2 = -iy
        ata02 += a2
        ata12 += b2
        ata20 += a2
        ata21 += b2
        ata22 += a2 * a2 + b2 * b2
        bx = -a2 * rz - rx
        by = -b2 * rz - ry
        atb0 += bx
        atb1 += by
        atb2 += a2 * bx + b2 * by

    det = ata00 * ata11 * ata22 - ata00 * ata12 * ata21 - ata02 * ata11 * ata20
    if det == 0:
        raise ValueError("degenerate point configuration")
    det_inv = 1.0 / det
    s00 = ata11 * ata22 - ata12 * ata21
    s01 = ata02 * ata21
    s02 = -ata02 * ata11
    s10 = ata12 * ata20
    s11 = ata00 * ata22 - ata02 * ata20
    s12 = -ata00 * ata12
    s20 = -ata11 * ata20
    s21 = -ata00 * ata21
    s22 = ata00 * ata11
    return np.array(
        [
            det_inv * (s00 * atb0 + s01 * atb1 + s02 * atb2),
            det_inv * (s10 * atb0 + s11 * atb1 + s12 * atb2),
            det_inv * (s20 * atb0 + s21 * atb1 + s22 * atb2),
        ]
    )


def compute_rotations(
    j00: float, j01: float, j10: float, j11: float, p: float, q: float
) -> tuple[np.ndarray, np.ndarray]:
    """The two rotations consistent with a homography Jacobian at the image point (p, q)."""
    rv = rotate_vec_to_z_axis(np.array([p, q, 1.0])).T
    (rv00, rv01, rv02), (rv10, rv11, rv12), (rv20, rv21, rv22) = rv.tolist()

    b00 = rv00 - p * rv20
    b01 = rv01 - p * rv21
    b10 = rv10 - q * rv20
    b11 = rv11 - q * rv21
    dtinv = 1.0 / (b00 * b11 - b01 * b10)
    binv00 = dtinv * b11
    binv01 = -dtinv * b01
    binv10 = -dtinv * b10
    binv11 = dtinv * b00

    a00 = binv00 * j00 + binv01 * j10
    a01 = binv00 * j01 + binv01 * j11
    a10 = binv10 * j00 + binv11 * j10
    a11 = binv10 * j01 + binv11 * j11

    ata00 = a00 * a00 + a01 * a01
    ata01 = a00 * a10 + a01 * a11
    ata11 = a10 * a10 + a11 * a11
    gamma = math.sqrt(
        0.5 * (ata00 + ata11 + math.sqrt((ata00 - ata11) ** 2 + 4.0 * ata01 * ata01))
    )

    t00 = a00 / gamma
    t01 = a01 / gamma
    t10 = a10 / gamma
    t11 = a11 / gamma
    b0 = math.sqrt(max(0.0, 1.0 - t00 * t00 - t10 * t10))
    b1 = math.sqrt(max(0.0, 1.0 - t01 * t01 - t11 * t11))
    if -t00 * t01 - t10 * t11 < 0:
        b1 = -b1

    cross = t00 * t11 - t01 * t10
    rows = ((rv00, rv01, rv02), (rv10, rv11, rv12), (rv20, rv21, rv22))
    r1 = np.array(
        [
            [
                t00 * c0 + t10 * c1 + b0 * c2,
                t01 * c0 + t11 * c1 + b1 * c2,
                (b1 * t10 - b0 * t11) * c0 + (b0 * t01 - b1 * t00) * c1 + cross * c2,
            ]
            for c0, c1, c2 in rows
        ]
    )
    r2 = np.array(
        [
            [
                t00 * c0 + t10 * c1 - b0 * c2,
                t01 * c0 + t11 * c1 - b1 * c2,
                (b0 * t11 - b1 * t10) * c0 + (b1 * t00 - b0 * t01) * c1 + cross * c2,
            ]
            for c0, c1, c2 in rows
        ]
    )
    return r1, r2


def solve_canonical_form(
    canonical_points: np.ndarray, normalized_points: np.ndarray, h: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """The two 4x4 poses of canonical points given their homography to the image."""
    hm = np.asarray(h, dtype=np.float64).reshape(3, 3)
    j00 = hm[0, 0] - hm[2, 0] * hm[0, 2]
    j01 = hm[0, 1] - hm[2, 1] * hm[0, 2]
    j10 = hm[1, 0] - hm[2, 0] * hm[1, 2]
    j11 = hm[1, 1] - hm[2, 1] * hm[1, 2]
    ra, rb = compute_rotations(j00, j01, j10, j11, hm[0, 2], hm[1, 2])
    poses = []
    for r in (ra, rb):
        m = np.eye(4)
        m[:3, :3] = r
        m[:3, 3] = compute_translation(canonical_points, normalized_points, r)
        poses.append(m)
    return poses[0], poses[1]


def eval_reproj_error(
    object_points: np.ndarray,
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray],
    dist_coeffs: Optional[np.ndarray],
    m: np.ndarray,
) -> float:
    """Root mean square reprojection error of a 4x4 pose."""
    obj = _object_points(object_points)
    img = _image_points(image_points)
    pose = np.asarray(m, dtype=np.float64).reshape(4, 4)
    r = rot2vec(pose[:3, :3])
    if _has_camera(camera_matrix):
        projected = project_points(obj, r, pose[:3, 3], camera_matrix, dist_coeffs)
    else:
        projected = project_points(obj, r, pose[:3, 3])
    n = obj.shape[0]
    if n == 0 or img.shape[0] < n:
        raise ValueError("object and image points differ in number")
    diff = projected - img[:n]
    return math.sqrt(float(np.sum(diff * diff)) / (2.0 * n))


def mean_scene_depth(object_points: np.ndarray, rvec: np.ndarray, tvec: np.ndarray) -> float:
    """Average depth of the object points in the camera frame."""
    obj = _object_points(object_points)
    if obj.shape[0] == 0:
        raise ValueError("no object points given")
    cam = obj @ rodrigues(rvec).T + np.asarray(tvec, dtype=np.float64).ravel()
    return float(cam[:, 2].mean())


def _sorted_poses(
    object_points: np.ndarray,
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray],
    dist_coeffs: Optional[np.ndarray],
    ma: np.ndarray,
    mb: np.ndarray,
) -> tuple[PoseSolution, PoseSolution]:
    err_a = eval_reproj_error(object_points, image_points, camera_matrix, dist_coeffs, ma)
    err_b = eval_reproj_error(object_points, image_points, camera_matrix, dist_coeffs, mb)
    sol_a = PoseSolution(rot2vec(ma[:3, :3]), ma[:3, 3].copy(), err_a)
    sol_b = PoseSolution(rot2vec(mb[:3, :3]), mb[:3, 3].copy(), err_b)
    return (sol_a, sol_b) if err_a < err_b else (sol_b, sol_a)


def _normalize(image_points, camera_matrix, dist_coeffs) -> np.ndarray:
    if _has_camera(camera_matrix):
        return undistort_points(image_points, camera_matrix, dist_coeffs)
    return _image_points(image_points).copy()


def solve_generic(
    object_points: np.ndarray,
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray] = None,
    dist_coeffs: Optional[np.ndarray] = None,
) -> tuple[PoseSolution, PoseSolution]:
    """Both poses of a planar object, best first.

    Without a camera matrix the image points are taken as normalized
    coordinates.
    """
    obj = _object_points(object_points)
    img = _image_points(image_points)
    if obj.shape[0] < 4:
        raise ValueError("at least four points are needed")
    if obj.shape[0] != img.shape[0]:
        raise ValueError("object and image points differ in number")
    normalized = _normalize(img, camera_matrix, dist_coeffs)
    canonical, to_canonical = make_canonical_object_points(obj)
    h = homography_ho(canonical, normalized)
    ma_c, mb_c = solve_canonical_form(canonical, normalized, h)
    return _sorted_poses(
        obj, img, camera_matrix, dist_coeffs, ma_c @ to_canonical, mb_c @ to_canonical
    )


def solve_square(
    square_length: float,
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray] = None,
    dist_coeffs: Optional[np.ndarray] = None,
) -> tuple[PoseSolution, PoseSolution]:
    """Both poses of a square whose corners are ordered as :func:`square_object_corners_3d`."""
    img = _image_points(image_points)
    if img.shape[0] != 4:
        raise ValueError("a square needs exactly four image points")
    if square_length <= 0:
        raise ValueError("square_length must be positive")
    normalized = _normalize(img, camera_matrix, dist_coeffs)
    h = homography_from_square_points(normalized, square_length / 2.0)
    ma, mb = solve_canonical_form(square_object_corners_2d(square_length), normalized, h)
    return _sorted_poses(
        square_object_corners_3d(square_length), img, camera_matrix, dist_coeffs, ma, mb
    )


def _as_pairs(solutions: tuple[PoseSolution, PoseSolution]) -> list[tuple[np.ndarray, float]]:
    return [(s.matrix.astype(np.float32), s.error) for s in solutions]


def solve_pnp(
    object_points: np.ndarray,
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray] = None,
    dist_coeffs: Optional[np.ndarray] = None,
) -> list[tuple[np.ndarray, float]]:
    """Both poses of a planar object as (float32 4x4 matrix, error) pairs, best first."""
    return _as_pairs(solve_generic(object_points, image_points, camera_matrix, dist_coeffs))


def solve_pnp_square(
    size: float,
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray] = None,
    dist_coeffs: Optional[np.ndarray] = None,
) -> list[tuple[np.ndarray, float]]:
    """Both poses of a square marker as (float32 4x4 matrix, error) pairs, best first."""
    return _as_pairs(solve_square(size, image_points, camera_matrix, dist_coeffs))