import numpy as np
import pytest

import shapes


@pytest.mark.parametrize("name", sorted(shapes.BUILDERS))
def test_flat_meshes_have_outward_unit_normals(name):
    verts, norms = shapes.BUILDERS[name]()
    assert verts.shape == norms.shape
    assert verts.shape[0] % 3 == 0
    assert np.allclose(np.linalg.norm(norms, axis=1), 1.0, atol=1e-5)
    centroids = verts.reshape(-1, 3, 3).mean(axis=1)
    face_normals = norms[::3]
    assert np.all(np.einsum("ij,ij->i", centroids, face_normals) > 0.0)


def test_triangle_counts():
    assert len(shapes.octahedron()[0]) == 8 * 3
    assert len(shapes.tetrahedron()[0]) == 4 * 3
    assert len(shapes.cube()[0]) == 12 * 3
    assert len(shapes.icosahedron()[0]) == 20 * 3
    assert len(shapes.star()[0]) == 4 * 10 * 3


def test_icosahedron_radius():
    verts, _ = shapes.icosahedron(0.7)
    assert np.allclose(np.linalg.norm(verts, axis=1), 0.7, atol=1e-5)


def test_star_extent():
    verts, _ = shapes.star()
    r = np.hypot(verts[:, 0], verts[:, 1])
    assert r.max() == pytest.approx(1.0, abs=1e-5)
    assert np.abs(verts[:, 2]).max() == pytest.approx(0.1, abs=1e-6)


def test_load_mesh_uploads_fields():
    v, n = shapes.load_mesh("cube")
    assert v.shape == (36,) and n.shape == (36,)
    assert np.allclose(v.to_numpy(), shapes.cube()[0])


def test_unknown_mesh_raises():
    with pytest.raises(ValueError):
        shapes.load_mesh("torus")
