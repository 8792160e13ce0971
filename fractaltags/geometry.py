"""Rotations, projections and homographies used by the pose solvers."""

from __future__ import annotations

from typing import Optional

import numpy as np

_FLT_EPSILON = float(np.finfo(np.float32).eps)
_UNDISTORT_ITERATIONS = 5


def _points(points: np.ndarray, width: int) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.size % width:
        raise ValueError(f"points must have {width} coordinates each")
    return arr.reshape(-1, width)


def _camera(camera_matrix: Optional[np.ndarray]) -> tuple[float, float, float, float]:
    if camera_matrix is None or np.asarray(camera_matrix).size == 0:
        return 1.0, 1.0, 0.0, 0.0
    k = np.asarray(camera_matrix, dtype=np.float64).reshape(3, 3)
    return float(k[0, 0]), float(k[1, 1]), float(k[0, 2]), float(k[1, 2])


def _distortion(dist_coeffs: Optional[np.ndarray]) -> np.ndarray:
    coeffs = np.zeros(12, dtype=np.float64)
    if dist_coeffs is None:
        return coeffs
    values = np.asarray(dist_coeffs, dtype=np.float64).ravel()
    if values.size not in (0, 4, 5, 8, 12):
        raise ValueError("distortion coefficients must have 4, 5, 8 or 12 values")
    coeffs[: values.size] = values
    return coeffs


def rodrigues(rvec: np.ndarray) -> np.ndarray:
    """Rotation matrix of a rotation vector."""
    r = np.asarray(rvec, dtype=np.float64).ravel()
    if r.size != 3:
        raise ValueError("a rotation vector has three values")
    theta = float(np.linalg.norm(r))
    if theta < 1e-300:
        return np.eye(3)
    k = r / theta
    kx = np.array([[0.0, -k[2], k[1]], [k[2], 0.0, -k[0]], [-k[1], k[0], 0.0]])
    c, s = np.cos(theta), np.sin(theta)
    return c * np.eye(3) + (1.0 - c) * np.outer(k, k) + s * kx


def rot2vec(r: np.ndarray) -> np.ndarray:
    """Rotation vector of a 3x3 rotation matrix."""
    m = np.asarray(r, dtype=np.float64)
    if m.shape != (3, 3):
        raise ValueError("a rotation matrix is 3x3")
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    w_norm = float(np.arccos(np.clip((trace - 1.0) / 2.0, -1.0, 1.0)))
    if w_norm < _FLT_EPSILON:
        return np.zeros(3)
    d = w_norm / (2.0 * np.sin(w_norm))
    return d * np.array([m[2, 1] - m[1, 2], m[0, 2] - m[2, 0], m[1, 0] - m[0, 1]])


def rt_matrix(rvec: np.ndarray, tvec: np.ndarray) -> np.ndarray:
    """4x4 rigid transform from a rotation (vector or matrix) and a translation."""
    r = np.asarray(rvec, dtype=np.float64)
    t = np.asarray(tvec, dtype=np.float64).ravel()
    if t.size != 3:
        raise ValueError("a translation has three values")
    m = np.eye(4)
    if r.size == 3:
        m[:3, :3] = rodrigues(r)
    elif r.size == 9:
        m[:3, :3] = r.reshape(3, 3)
    else:
        raise ValueError("rotation must be a 3-vector or a 3x3 matrix")
    m[:3, 3] = t
    return m


def project_points(
    object_points: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
    camera_matrix: Optional[np.ndarray] = None,
    dist_coeffs: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Image coordinates, as an (N, 2) array, of 3D points seen by a camera."""
    pts = _points(object_points, 3)
    r = np.asarray(rvec, dtype=np.float64)
    rot = rodrigues(r) if r.size == 3 else r.reshape(3, 3)
    cam = pts @ rot.T + np.asarray(tvec, dtype=np.float64).ravel()
    z = cam[:, 2]
    inv_z = np.where(z != 0, 1.0 / np.where(z != 0, z, 1.0), 1.0)
    x = cam[:, 0] * inv_z
    y = cam[:, 1] * inv_z
    k = _distortion(dist_coeffs)
    r2 = x * x + y * y
    r4 = r2 * r2
    r6 = r4 * r2
    cdist = 1 + k[0] * r2 + k[1] * r4 + k[4] * r6
    icdist2 = 1.0 / (1 + k[5] * r2 + k[6] * r4 + k[7] * r6)
    a1 = 2 * x * y
    xd = x * cdist * icdist2 + k[2] * a1 + k[3] * (r2 + 2 * x * x) + k[8] * r2 + k[9] * r4
    yd = y * cdist * icdist2 + k[2] * (r2 + 2 * y * y) + k[3] * a1 + k[10] * r2 + k[11] * r4
    fx, fy, cx, cy = _camera(camera_matrix)
    return np.stack([xd * fx + cx, yd * fy + cy], axis=1)


def undistort_points(
    image_points: np.ndarray,
    camera_matrix: Optional[np.ndarray] = None,
    dist_coeffs: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Normalized, undistorted coordinates of pixel points, as an (N, 2) array."""
    pts = _points(image_points, 2)
    fx, fy, cx, cy = _camera(camera_matrix)
    k = _distortion(dist_coeffs)
    result = np.empty_like(pts)
    for i, (u, v) in enumerate(pts):
        x0 = x = (u - cx) / fx
        y0 = y = (v - cy) / fy
        if k.any():
            for _ in range(_UNDISTORT_ITERATIONS):
                r2 = x * x + y * y
                icdist = (1 + ((k[7] * r2 + k[6]) * r2 + k[5]) * r2) / (
                    1 + ((k[4] * r2 + k[1]) * r2 + k[0]) * r2
                )
                if icdist < 0:
                    x, y = x0, y0
                    break
                dx = 2 * k[2] * x * y + k[3] * (r2 + 2 * x * x) + k[8] * r2 + k[9] * r2 * r2
                dy = k[2] * (r2 + 2 * y * y) + 2 * k[3] * x * y + k[10] * r2 + k[11] * r2 * r2
                x = (x0 - dx) * icdist
                y = (y0 - dy) * icdist
        result[i] = (x, y)
    return result


def rotate_vec_to_z_axis(a: np.ndarray) -> np.ndarray:
    """Rotation matrix taking the direction of ``a`` onto the z axis."""
    v = np.asarray(a, dtype=np.float64).ravel()
    if v.size != 3:
        raise ValueError("a vector of three values is required")
    nrm = float(np.linalg.norm(v))
    if nrm == 0:
        raise ValueError("cannot rotate a zero vector")
    ax, ay, az = v / nrm
    if abs(1.0 + az) < _FLT_EPSILON:
        return np.diag([1.0, 1.0, -1.0])
    d = 1.0 / (1.0 + az)
    ax2, ay2, axay = ax * ax, ay * ay, ax * ay
    return np.array(
        [
            [1.0 - ax2 * d, -axay * d, -ax],
            [-axay * d, 1.0 - ay2 * d, -ay],
            [ax, ay, 1.0 - (ax2 + ay2) * d],
        ]
    )


def normalize_data_isotropic(data: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Centre and scale points so their mean squared norm is 2.

    Returns the 2xN normalized points, the de-normalizing transform T and its
    inverse Ti.  Only the first two coordinates of each point are used.
    """
    arr = np.asarray(data, dtype=np.float64)
    width = arr.shape[-1] if arr.ndim else 0
    if width not in (2, 3):
        raise ValueError("points must have 2 or 3 coordinates")
    pts = arr.reshape(-1, width)[:, :2]
    n = pts.shape[0]
    if n < 4:
        raise ValueError("at least four points are needed")
    mean = pts.mean(axis=0)
    centred = pts - mean
    kappa = float(np.sum(centred * centred))
    beta = float(np.sqrt(2 * n / kappa))
    data_n = (centred * beta).T
    t = np.array([[1.0 / beta, 0.0, mean[0]], [0.0, 1.0 / beta, mean[1]], [0.0, 0.0, 1.0]])
    ti = np.array(
        [[beta, 0.0, -beta * mean[0]], [0.0, beta, -beta * mean[1]], [0.0, 0.0, 1.0]]
    )
    return data_n, t, ti


def homography_ho(src_points: np.ndarray, target_points: np.ndarray) -> np.ndarray:
    """Homography from ``src_points`` to ``target_points`` by the harker-o'leary method."""
    a, _, tai = normalize_data_isotropic(src_points)
    b, tb, _ = normalize_data_isotropic(target_points)
    n = a.shape[1]
    if n != b.shape[1]:
        raise ValueError("source and target must have the same number of points")

    c1 = -b[0] * a[0]
    c2 = -b[0] * a[1]
    c3 = -b[1] * a[0]
    c4 = -b[1] * a[1]
    m_c1, m_c2, m_c3, m_c4 = c1.mean(), c2.mean(), c3.mean(), c4.mean()
    mx = np.stack([c1 - m_c1, c2 - m_c2, -b[0]], axis=1)
    my = np.stack([c3 - m_c3, c4 - m_c4, -b[1]], axis=1)

    aat = a @ a.T
    dt = aat[0, 0] * aat[1, 1] - aat[0, 1] * aat[1, 0]
    aat_inv = np.array([[aat[1, 1], -aat[0, 1]], [-aat[1, 0], aat[0, 0]]]) / dt
    pp = aat_inv @ a
    bx = pp @ mx
    by = pp @ my
    ex = a.T @ bx
    ey = a.T @ by
    d = np.vstack([mx - ex, my - ey])

    _, vectors = np.linalg.eigh(d.T @ d)
    h789 = vectors[:, 0]
    h12 = -bx @ h789
    h45 = -by @ h789
    h3 = -(m_c1 * h789[0] + m_c2 * h789[1])
    h6 = -(m_c3 * h789[0] + m_c4 * h789[1])
    h = np.array([[h12[0], h12[1], h3], [h45[0], h45[1], h6], h789])
    h = tb @ h @ tai
    return h / h[2, 2]


def homography_from_square_points(target_points: np.ndarray, half_length: float) -> np.ndarray:
    """Homography taking the square corners (-l,l), (l,l), (l,-l), (-l,-l) to the targets."""
    pts = _points(target_points, 2)
    if pts.shape[0] < 4:
        raise ValueError("four target points are needed")
    (p1x, p1y), (p2x, p2y), (p3x, p3y), (p4x, p4y) = (-pts[:4]).tolist()
    den = half_length * (
        p1x * p2y - p2x * p1y - p1x * p4y + p2x * p3y - p3x * p2y + p4x * p1y + p3x * p4y - p4x * p3y
    )
    if den == 0:
        raise ValueError("degenerate square correspondence")
    dets_inv = -1.0 / den
    h = np.empty((3, 3))
    h[0, 0] = dets_inv * (
        p1x * p3x * p2y - p2x * p3x * p1y - p1x * p4x * p2y + p2x * p4x * p1y
        - p1x * p3x * p4y + p1x * p4x * p3y + p2x * p3x * p4y - p2x * p4x * p3y
    )
    h[0, 1] = dets_inv * (
        p1x * p2x * p3y - p1x * p3x * p2y - p1x * p2x * p4y + p2x * p4x * p1y
        + p1x * p3x * p4y - p3x * p4x * p1y - p2x * p4x * p3y + p3x * p4x * p2y
    )
    h[0, 2] = dets_inv * half_length * (
        p1x * p2x * p3y - p2x * p3x * p1y - p1x * p2x * p4y + p1x * p4x * p2y
        - p1x * p4x * p3y + p3x * p4x * p1y + p2x * p3x * p4y - p3x * p4x * p2y
    )
    h[1, 0] = dets_inv * (
        p1x * p2y * p3y - p2x * p1y * p3y - p1x * p2y * p4y + p2x * p1y * p4y
        - p3x * p1y * p4y + p4x * p1y * p3y + p3x * p2y * p4y - p4x * p2y * p3y
    )
    h[1, 1] = dets_inv * (
        p2x * p1y * p3y - p3x * p1y * p2y - p1x * p2y * p4y + p4x * p1y * p2y
        + p1x * p3y * p4y - p4x * p1y * p3y - p2x * p3y * p4y + p3x * p2y * p4y
    )
    h[1, 2] = dets_inv * half_length * (
        p1x * p2y * p3y - p3x * p1y * p2y - p2x * p1y * p4y + p4x * p1y * p2y
        - p1x * p3y * p4y + p3x * p1y * p4y + p2x * p3y * p4y - p4x * p2y * p3y
    )
    h[2, 0] = -dets_inv * (
        p1x * p3y - p3x * p1y - p1x * p4y - p2x * p3y + p3x * p2y + p4x * p1y + p2x * p4y - p4x * p2y
    )
    h[2, 1] = dets_inv * (
        p1x * p2y - p2x * p1y - p1x * p3y + p3x * p1y + p2x * p4y - p4x * p2y - p3x * p4y + p4x * p3y
    )
    h[2, 2] = 1.0
    return h


def perspective_transform(points: np.ndarray, h: np.ndarray) -> np.ndarray:
    """2D points mapped through a 3x3 homography; points at infinity become (0, 0)."""
    pts = _points(points, 2)
    m = np.asarray(h, dtype=np.float64).reshape(3, 3)
    homog = np.hstack([pts, np.ones((pts.shape[0], 1))]) @ m.T
    w = homog[:, 2]
    valid = np.abs(w) > _FLT_EPSILON
    scale = np.where(valid, 1.0 / np.where(valid, w, 1.0), 0.0)
    return homog[:, :2] * scale[:, None]