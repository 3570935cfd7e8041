# Reading meshes from disk and writing results back out

import logging
import os
import tempfile

import meshio
import numpy as np
import scipy.sparse

from .TriSoupMesh import TriSoupMesh

logger = logging.getLogger(__name__)


# meshio cell types which describe a surface polygon
POLYGON_CELL_TYPES = ('triangle', 'quad', 'polygon')


def readMesh(filename):
    """
    Reads any surface mesh format meshio understands (obj, off, ply, stl, vtk, ...)
    and returns it as a TriSoupMesh. Faces are not sanitized or triangulated here,
    see TriSoupMesh.sanitize().
    """
    if not os.path.isfile(filename):
        raise IOError("failed to read mesh file " + str(filename) + ": no such file")

    try:
        inMesh = meshio.read(filename)
    except (meshio.ReadError, ValueError, KeyError, IndexError) as e:
        raise IOError("failed to read mesh file " + str(filename) + ": " + str(e)) from e

    # Pad 2D point sets out to 3D
    points = np.asarray(inMesh.points, dtype=float)
    if points.ndim != 2 or points.shape[1] > 3:
        raise IOError("failed to read mesh file " + str(filename) + ": points must be 2D or 3D")
    if points.shape[1] < 3:
        points = np.hstack((points, np.zeros((len(points), 3 - points.shape[1]))))

    faces = []
    for cellBlock in inMesh.cells:
        if not cellBlock.type.startswith(POLYGON_CELL_TYPES):
            logger.debug("ignoring %d '%s' cells in %s", len(cellBlock.data), cellBlock.type, filename)
            continue
        for cell in cellBlock.data:
            faces.append([int(i) for i in cell])

    if len(faces) == 0:
        raise IOError("failed to read mesh file " + str(filename) + ": it contains no surface faces")

    print('Read mesh ' + str(filename) + ' with ' + str(len(points)) + ' vertices and ' + str(len(faces)) + ' faces')
    return TriSoupMesh(points, faces)


def writeSparseMatrix(filename, matrix):
    """
    Writes a sparse matrix as plain text, one '<row> <col> <value>' triplet per stored
    entry in column-major order, with 16 significant digits and no header.

    WARNING: this follows the matlab convention, so rows and columns are 1-indexed.

    The matrix is written to a temporary file alongside the destination and moved in
    to place once complete, so a failed write never leaves a partial file behind.
    """
    print('Writing sparse matrix to: ' + str(filename))

    mat = scipy.sparse.csc_matrix(matrix)
    mat.sort_indices()

    outDir = os.path.dirname(os.path.abspath(filename))
    try:
        outFile = tempfile.NamedTemporaryFile('w', dir=outDir, prefix='.' + os.path.basename(filename) + '.',
                                              suffix='.tmp', delete=False)
    except OSError as e:
        raise IOError("failed to open output file " + str(filename) + ": " + str(e)) from e

    try:
        with outFile:
            for iCol in range(mat.shape[1]):
                for k in range(mat.indptr[iCol], mat.indptr[iCol+1]):
                    outFile.write('%d %d %.16g\n' % (mat.indices[k] + 1, iCol + 1, mat.data[k]))
        # Temporary files are created owner-only, give the output the usual permissions
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(outFile.name, 0o666 & ~umask)
        os.replace(outFile.name, filename)
    except BaseException:
        if os.path.exists(outFile.name):
            os.remove(outFile.name)
        raise

    logger.debug("wrote %d entries of a %dx%d matrix to %s", mat.nnz, mat.shape[0], mat.shape[1], filename)


def readSparseMatrix(filename, shape=None):
    """Reads a matrix written by writeSparseMatrix() back in, as a scipy csc_matrix"""
    rows, cols, vals = [], [], []
    with open(filename, 'r') as inFile:
        for line in inFile:
            if not line.strip():
                continue
            r, c, v = line.split()
            rows.append(int(r) - 1)
            cols.append(int(c) - 1)
            vals.append(float(v))
    if shape is None:
        shape = (max(rows, default=-1) + 1, max(cols, default=-1) + 1)
    return scipy.sparse.csc_matrix((vals, (rows, cols)), shape=shape)
