"""
Flat-shaded primitive meshes for instanced rendering.

Each builder returns (vertices, normals) as float32 arrays of shape (3T, 3):
triangles are unindexed so every face gets its own normal. load_mesh()
uploads a mesh into Taichi fields ready for scene.mesh_instance().

    octahedron    foliage
    tetrahedron   ribbon
    cube          ornaments
    icosahedron   ornaments (radius 0.7)
    star          5-point extruded star (outer 1, inner 0.4, depth 0.2)
"""

import math

import numpy as np
import taichi as ti


def _flat(points, faces):
    """Expand indexed faces into per-face vertices with outward normals."""
    points = np.asarray(points, dtype=np.float64)
    tris = points[np.asarray(faces)]                     # (T, 3, 3)
    normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    normals /= np.linalg.norm(normals, axis=1, keepdims=True)
    # Every shape here is star-shaped about the origin: flip inward faces
    flip = np.einsum("ij,ij->i", normals, tris.mean(axis=1)) < 0.0
    tris[flip] = tris[flip][:, ::-1]
    normals[flip] *= -1.0
    verts = tris.reshape(-1, 3)
    norms = np.repeat(normals, 3, axis=0)
    return verts.astype(np.float32), norms.astype(np.float32)


def octahedron(radius=1.0):
    p = np.array([[1, 0, 0], [-1, 0, 0], [0, 1, 0], [0, -1, 0], [0, 0, 1], [0, 0, -1]]) * radius
    faces = [(0, 2, 4), (2, 1, 4), (1, 3, 4), (3, 0, 4),
             (2, 0, 5), (1, 2, 5), (3, 1, 5), (0, 3, 5)]
    return _flat(p, faces)


def tetrahedron(radius=1.0):
    p = np.array([[1, 1, 1], [-1, -1, 1], [-1, 1, -1], [1, -1, -1]]) * (radius / math.sqrt(3.0))
    faces = [(0, 1, 2), (0, 3, 1), (0, 2, 3), (1, 3, 2)]
    return _flat(p, faces)


def cube(size=1.0):
    h = size * 0.5
    p = np.array([[x, y, z] for x in (-h, h) for y in (-h, h) for z in (-h, h)])
    faces = [(0, 1, 3), (0, 3, 2), (4, 6, 7), (4, 7, 5),   # -x, +x
             (0, 4, 5), (0, 5, 1), (2, 3, 7), (2, 7, 6),   # -y, +y
             (0, 2, 6), (0, 6, 4), (1, 5, 7), (1, 7, 3)]   # -z, +z
    return _flat(p, faces)


def icosahedron(radius=0.7):
    g = (1.0 + math.sqrt(5.0)) / 2.0
    p = np.array([[-1, g, 0], [1, g, 0], [-1, -g, 0], [1, -g, 0],
                  [0, -1, g], [0, 1, g], [0, -1, -g], [0, 1, -g],
                  [g, 0, -1], [g, 0, 1], [-g, 0, -1], [-g, 0, 1]], dtype=np.float64)
    p *= radius / np.linalg.norm(p[0])
    faces = [(0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
             (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
             (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
             (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1)]
    return _flat(p, faces)


def star(points=5, outer=1.0, inner=0.4, depth=0.2):
    """Star polygon in the XY plane, extruded along Z and centered on z = 0."""
    k = 2 * points
    ang = math.pi / 2.0 + np.arange(k) * (2.0 * math.pi / k)
    rad = np.where(np.arange(k) % 2 == 0, outer, inner)
    ring = np.stack([np.cos(ang) * rad, np.sin(ang) * rad], axis=1)
    z = depth * 0.5
    front = np.hstack([ring, np.full((k, 1), z)])
    back = np.hstack([ring, np.full((k, 1), -z)])
    p = np.vstack([front, back, [[0.0, 0.0, z], [0.0, 0.0, -z]]])
    cf, cb = 2 * k, 2 * k + 1
    faces = []
    for i in range(k):
        j = (i + 1) % k
        faces.append((cf, i, j))
        faces.append((cb, k + j, k + i))
        faces.append((i, k + i, k + j))
        faces.append((i, k + j, j))
    return _flat(p, faces)


BUILDERS = {
    "octahedron": octahedron,
    "tetrahedron": tetrahedron,
    "cube": cube,
    "icosa": icosahedron,
    "star": star,
}


def load_mesh(name):
    """
    Upload a named mesh into Taichi fields.

    Returns:
        (vertices, normals): ti.Vector.field(3, f32) pair of equal length
    """
    if name not in BUILDERS:
        raise ValueError(f"unknown mesh {name!r}")
    verts, norms = BUILDERS[name]()
    v = ti.Vector.field(3, dtype=ti.f32, shape=len(verts))
    nrm = ti.Vector.field(3, dtype=ti.f32, shape=len(norms))
    v.from_numpy(verts)
    nrm.from_numpy(norms)
    return v, nrm
