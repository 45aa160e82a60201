"""
Distribution samplers for particle anchors.

Every sampler draws from an injected numpy Generator so that scenes are
reproducible for a fixed seed. Batch functions return float64 arrays of
shape (n, 3); the scalar helpers return a single (3,) point.

Shapes:
- sphere_points:      uniform in a ball (dispersed layouts)
- cone_points:        uniform in a solid cone standing on +Y (foliage)
- cone_shell_points:  thin shell hugging the cone surface (ornaments)
- spiral_points:      deterministic helix winding up the cone (ribbon)
- shell_points:       spherical shell for the backdrop star field
"""

import math

import numpy as np


def _check_count(n):
    if int(n) != n or n < 1:
        raise ValueError(f"sample count must be a positive integer, got {n}")
    return int(n)


def _check_positive(name, value):
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"{name} must be positive and finite, got {value}")


def _check_non_negative(name, value):
    if not math.isfinite(value) or value < 0.0:
        raise ValueError(f"{name} must be non-negative and finite, got {value}")


def _directions(n, rng):
    """Unit vectors, uniform on the sphere (theta = 2*pi*u, phi = acos(2v - 1))."""
    theta = rng.random(n) * 2.0 * math.pi
    phi = np.arccos(2.0 * rng.random(n) - 1.0)
    sin_phi = np.sin(phi)
    return np.stack([sin_phi * np.cos(theta), sin_phi * np.sin(theta), np.cos(phi)], axis=1)


def sphere_points(n, radius, rng):
    """
    Sample n points uniformly inside a ball of the given radius.

    The radius uses the cube root of a uniform variate so that density is
    constant in volume (the radial CDF is (r/R)^3).

    Args:
        n: Number of points (>= 1)
        radius: Ball radius (> 0)
        rng: numpy.random.Generator

    Returns:
        (n, 3) float64 array
    """
    n = _check_count(n)
    _check_positive("radius", radius)
    r = np.cbrt(rng.random(n)) * radius
    return _directions(n, rng) * r[:, None]


def sphere_point(radius, rng):
    return sphere_points(1, radius, rng)[0]


def cone_points(n, height, base_radius, rng):
    """
    Sample n points inside a cone with its base on y = 0 and apex at y = height.

    Height is uniform; within each horizontal slice the point is uniform on
    the disc of radius (1 - y/h) * R, using sqrt on the radial variate.

    Returns:
        (pos, radius_at_height): (n, 3) positions and the (n,) slice radius
    """
    n = _check_count(n)
    _check_positive("height", height)
    _check_positive("base_radius", base_radius)
    y = rng.random(n) * height
    slice_r = (1.0 - y / height) * base_radius
    angle = rng.random(n) * 2.0 * math.pi
    r = np.sqrt(rng.random(n)) * slice_r
    pos = np.stack([np.cos(angle) * r, y, np.sin(angle) * r], axis=1)
    return pos, slice_r


def cone_point(height, base_radius, rng):
    pos, slice_r = cone_points(1, height, base_radius, rng)
    return pos[0], float(slice_r[0])


def cone_shell_points(n, height, base_radius, thickness, rng):
    """
    Sample n points on the cone surface, pushed outward by up to `thickness`.

    Returns:
        (pos, radius_at_height) like cone_points
    """
    n = _check_count(n)
    _check_positive("height", height)
    _check_positive("base_radius", base_radius)
    _check_non_negative("thickness", thickness)
    y = rng.random(n) * height
    slice_r = (1.0 - y / height) * base_radius
    r = slice_r + rng.random(n) * thickness
    angle = rng.random(n) * 2.0 * math.pi
    pos = np.stack([np.cos(angle) * r, y, np.sin(angle) * r], axis=1)
    return pos, slice_r


def spiral_point(t, height, base_radius, loops):
    """
    Point on a helix that narrows linearly to the apex.

    Args:
        t: Parameter in [0, 1] (0 = base, 1 = apex)
        height, base_radius: Helix envelope
        loops: Number of full turns over t in [0, 1]
    """
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"spiral parameter must lie in [0, 1], got {t}")
    _check_positive("height", height)
    _check_positive("base_radius", base_radius)
    _check_non_negative("loops", loops)
    y = t * height
    r = (1.0 - t) * base_radius
    angle = t * 2.0 * math.pi * loops
    return np.array([math.cos(angle) * r, y, math.sin(angle) * r])


def spiral_points(n, height, base_radius, loops):
    """Evenly spaced helix points with t = i / n for i in [0, n)."""
    n = _check_count(n)
    _check_positive("height", height)
    _check_positive("base_radius", base_radius)
    _check_non_negative("loops", loops)
    t = np.arange(n) / n
    r = (1.0 - t) * base_radius
    angle = t * 2.0 * math.pi * loops
    return np.stack([np.cos(angle) * r, t * height, np.sin(angle) * r], axis=1)


def shell_points(n, inner_radius, depth, rng):
    """Uniform directions with radius uniform in [inner_radius, inner_radius + depth]."""
    n = _check_count(n)
    _check_positive("inner_radius", inner_radius)
    _check_non_negative("depth", depth)
    r = inner_radius + rng.random(n) * depth
    return _directions(n, rng) * r[:, None]
