"""Small meshes shared across the test modules."""

import numpy as np
import pytest

from tuftedcover.core.TriSoupMesh import TriSoupMesh


@pytest.fixture
def rightTriangle():
    """A flat unit right triangle, the right angle at vertex 0."""
    return TriSoupMesh([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], [[0, 1, 2]])


@pytest.fixture
def bowtie():
    """Two triangles touching only at vertex 0."""
    verts = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [-1.0, -1.0, 0.0]]
    return TriSoupMesh(verts, [[0, 1, 2], [0, 3, 4]])


@pytest.fixture
def fin():
    """Three triangles sharing the edge (0,1) along the z axis, like the vanes of a Y."""
    verts = [[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [-0.5, 0.8, 0.0], [-0.5, -0.8, 0.0]]
    return TriSoupMesh(verts, [[0, 1, 2], [0, 1, 3], [0, 1, 4]])


@pytest.fixture
def thinDiamond():
    """Two flat triangles sharing a long edge, with obtuse angles opposite it."""
    verts = [[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [1.0, 0.2, 0.0], [1.0, -0.2, 0.0]]
    return TriSoupMesh(verts, [[0, 1, 2], [1, 0, 3]])


@pytest.fixture
def tetrahedron():
    verts = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
    return TriSoupMesh(verts, [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])


@pytest.fixture
def bumpyGrid():
    """An open 4x4 grid of vertices with jittered heights, split in to triangles."""
    rng = np.random.default_rng(7)
    n = 4
    verts = []
    for i in range(n):
        for j in range(n):
            verts.append([float(i) + 0.3 * rng.uniform(-1, 1), float(j) + 0.3 * rng.uniform(-1, 1),
                          0.4 * rng.uniform(-1, 1)])
    tris = []
    for i in range(n - 1):
        for j in range(n - 1):
            v00 = i*n + j
            v10 = (i+1)*n + j
            v01 = i*n + j + 1
            v11 = (i+1)*n + j + 1
            tris.append([v00, v10, v11])
            tris.append([v00, v11, v01])
    return TriSoupMesh(verts, tris)


def _writeObj(path, verts, faces):
    with open(str(path), 'w') as outFile:
        for v in verts:
            outFile.write('v %.17g %.17g %.17g\n' % tuple(v))
        for face in faces:
            outFile.write('f ' + ' '.join(str(i + 1) for i in face) + '\n')
    return str(path)


@pytest.fixture
def writeObj():
    return _writeObj


@pytest.fixture
def rightTriangleObj(tmp_path, rightTriangle):
    return _writeObj(tmp_path / 'triangle.obj', rightTriangle.verts, rightTriangle.tris)
