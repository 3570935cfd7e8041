import logging

import numpy as np

logger = logging.getLogger(__name__)


# A mesh stored as a plain list of vertex positions and a list of faces, each
# face a list of indices in to the vertex list. No connectivity is built; this is
# the format meshes are read in as, sanitized in, and handed to the tufted cover.
#
# Faces may be arbitrary polygons until triangulate() is called, after which
# every entry in 'tris' has exactly three indices.
class TriSoupMesh(object):

    def __init__(self, verts, tris):

        self.verts = np.array(verts, dtype=float).reshape(-1, 3)
        self.tris = [list(int(i) for i in face) for face in tris]

        for face in self.tris:
            for i in face:
                if i < 0 or i >= len(self.verts):
                    raise ValueError("ERROR: face " + str(face) + " references vertex " + str(i) +
                                     " but the mesh only has " + str(len(self.verts)) + " vertices")

    def nVerts(self):
        return len(self.verts)

    def nFaces(self):
        return len(self.tris)

    def isTriangular(self):
        return all(len(face) == 3 for face in self.tris)

    def stripFacesWithDuplicateVertices(self):
        """
        Removes any face which visits the same vertex more than once. Such faces
        have a zero-length side and cannot be represented in a halfedge mesh.
        """
        kept = [face for face in self.tris if len(set(face)) == len(face)]
        nStripped = len(self.tris) - len(kept)
        if nStripped > 0:
            print('  Note: stripped ' + str(nStripped) + ' faces with repeated vertices')
        self.tris = kept
        return nStripped

    def stripUnusedVertices(self):
        """
        Removes vertices which do not appear in any face, re-indexing the faces.
        Returns the array mapping new vertex index ==> old vertex index.
        """
        used = np.zeros(len(self.verts), dtype=bool)
        for face in self.tris:
            used[face] = True

        oldInd = np.flatnonzero(used)
        newInd = -np.ones(len(self.verts), dtype=int)
        newInd[oldInd] = np.arange(len(oldInd))

        nUnused = len(self.verts) - len(oldInd)
        if nUnused > 0:
            print('  Note: ' + str(nUnused) + ' vertices in the original mesh were not used in any face and are being discarded')

        self.verts = self.verts[oldInd]
        self.tris = [[int(newInd[i]) for i in face] for face in self.tris]

        return oldInd

    def triangulate(self):
        """Splits every polygon in to a fan of triangles around its first vertex"""
        tris = []
        for face in self.tris:
            if len(face) < 3:
                logger.debug("dropping face with %d vertices", len(face))
                continue
            for i in range(1, len(face) - 1):
                tris.append([face[0], face[i], face[i+1]])
        self.tris = tris

    def sanitize(self):
        """The standard cleanup applied to every mesh before building a cover"""
        self.stripFacesWithDuplicateVertices()
        self.stripUnusedVertices()
        self.triangulate()

    def edgeLengths(self):
        """
        Enumerates the unique (unordered) edges of the soup and returns
        (edgeDict, lengths), where edgeDict maps the sorted index pair
        (i, j) ==> edge index and lengths holds the extrinsic length of each edge.
        """
        edgeDict = {}
        lengths = []
        for face in self.tris:
            for i in range(len(face)):
                edgeKey = tuple(sorted((face[i], face[(i+1)%len(face)])))
                if edgeKey not in edgeDict:
                    edgeDict[edgeKey] = len(lengths)
                    lengths.append(np.linalg.norm(self.verts[edgeKey[1]] - self.verts[edgeKey[0]]))
        return edgeDict, np.array(lengths, dtype=float)
