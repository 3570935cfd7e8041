import logging

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

logger = logging.getLogger(__name__)


class MeshError(ValueError):
    """Base class for structural problems with a mesh or triangulation"""

class NonManifoldMeshError(MeshError):
    pass


# A triangle mesh composed of halfedge elements.
#
# Unlike a pointer-based halfedge structure, every element here is a plain integer
# handle in to flat numpy tables:
#
#   heNext[h]    the next halfedge around the face of h
#   heTwin[h]    the oppositely oriented halfedge along the same edge
#   heVertex[h]  the vertex h points *away* from (its tail)
#   heFace[h]    the face h belongs to
#   heEdge[h]    the edge h belongs to
#   eHalfEdge[e], fHalfEdge[f], vHalfEdge[v]   any halfedge of that element
#
# Every edge has exactly two halfedges and every face is a triangle, so the mesh is
# always closed. Vertices may still be non-manifold (the halfedges leaving a vertex
# may form several separate fans) until separateNonmanifoldVertices() is called.
class HalfEdgeMesh(object):

    def __init__(self, nVerts, heNext, heTwin, heVertex, heFace, heEdge, eHalfEdge, fHalfEdge, vHalfEdge):

        self.heNext = np.asarray(heNext, dtype=np.int64)
        self.heTwin = np.asarray(heTwin, dtype=np.int64)
        self.heVertex = np.asarray(heVertex, dtype=np.int64)
        self.heFace = np.asarray(heFace, dtype=np.int64)
        self.heEdge = np.asarray(heEdge, dtype=np.int64)
        self.eHalfEdge = np.asarray(eHalfEdge, dtype=np.int64)
        self.fHalfEdge = np.asarray(fHalfEdge, dtype=np.int64)
        self.vHalfEdge = np.asarray(vHalfEdge, dtype=np.int64)

        if len(self.vHalfEdge) != nVerts:
            raise ValueError('ERROR: vHalfEdge has ' + str(len(self.vHalfEdge)) + ' entries for ' + str(nVerts) + ' vertices')


    ### Construction

    @classmethod
    def fromTriangles(cls, nVerts, tris, twins):
        """
        Build a mesh from a list of triangles and a twin assignment. The halfedges of
        face f are numbered 3f, 3f+1, 3f+2; halfedge 3f+i runs from tris[f][i] to
        tris[f][(i+1)%3]. twins[h] gives the twin of halfedge h, and must be a perfect
        pairing of the halfedges.
        """
        tris = np.asarray(tris, dtype=np.int64).reshape(-1, 3)
        twins = np.asarray(twins, dtype=np.int64)
        nFaces = len(tris)
        nHalfEdges = 3 * nFaces

        if len(twins) != nHalfEdges:
            raise ValueError('ERROR: expected ' + str(nHalfEdges) + ' twin entries, got ' + str(len(twins)))
        if np.any(twins[twins] != np.arange(nHalfEdges)) or np.any(twins == np.arange(nHalfEdges)):
            raise ValueError('ERROR: twin assignment is not a pairing of the halfedges')

        heInds = np.arange(nHalfEdges)
        heFace = heInds // 3
        heNext = 3 * heFace + (heInds + 1) % 3
        heVertex = tris.reshape(-1)

        # One edge per twin pair, named by the lower-indexed halfedge
        eHalfEdge = heInds[heInds < twins]
        heEdge = np.empty(nHalfEdges, dtype=np.int64)
        heEdge[eHalfEdge] = np.arange(len(eHalfEdge))
        heEdge[twins[eHalfEdge]] = np.arange(len(eHalfEdge))

        fHalfEdge = 3 * np.arange(nFaces)

        vHalfEdge = -np.ones(nVerts, dtype=np.int64)
        vHalfEdge[heVertex[::-1]] = heInds[::-1]
        if np.any(vHalfEdge < 0):
            raise ValueError('ERROR: ' + str(np.sum(vHalfEdge < 0)) + ' vertices are not used by any face')

        return cls(nVerts, heNext, twins, heVertex, heFace, heEdge, eHalfEdge, fHalfEdge, vHalfEdge)


    @classmethod
    def fromSoup(cls, soupMesh):
        """
        Build a mesh from a closed, consistently oriented TriSoupMesh, pairing each
        halfedge (i,j) with the halfedge (j,i) of the neighboring face.
        """
        # NOTE assumes faces have proper winding, fails otherwise.
        directedHalfEdge = {}
        for (f, face) in enumerate(soupMesh.tris):
            if len(face) != 3:
                raise ValueError('ERROR: HalfEdgeMesh only represents triangle meshes, triangulate() first')
            for i in range(3):
                key = (face[i], face[(i+1)%3])
                if key in directedHalfEdge:
                    raise ValueError('Mesh has duplicate edges or inconsistent winding, cannot represent as a half-edge mesh')
                directedHalfEdge[key] = 3*f + i

        twins = np.empty(3 * soupMesh.nFaces(), dtype=np.int64)
        unpairedEdges = 0
        for ((i, j), h) in directedHalfEdge.items():
            if (j, i) in directedHalfEdge:
                twins[h] = directedHalfEdge[(j, i)]
            else:
                unpairedEdges += 1

        if unpairedEdges > 0:
            raise ValueError('Mesh has ' + str(unpairedEdges) + ' unpaired edges (which only appear in one direction); ' +
                             'build a tufted cover to represent meshes with boundary')

        return cls.fromTriangles(soupMesh.nVerts(), soupMesh.tris, twins)


    def copy(self):
        return self.__class__(self.nVerts(), self.heNext.copy(), self.heTwin.copy(), self.heVertex.copy(),
                              self.heFace.copy(), self.heEdge.copy(), self.eHalfEdge.copy(),
                              self.fHalfEdge.copy(), self.vHalfEdge.copy())


    ### Element counts and basic navigation

    def nVerts(self):
        return len(self.vHalfEdge)

    def nEdges(self):
        return len(self.eHalfEdge)

    def nFaces(self):
        return len(self.fHalfEdge)

    def nHalfEdges(self):
        return len(self.heNext)

    def eulerCharacteristic(self):
        return self.nVerts() - self.nEdges() + self.nFaces()

    def prev(self, h):
        # Every face is a triangle
        return self.heNext[self.heNext[h]]

    def tipVertex(self, h):
        return self.heVertex[self.heNext[h]]

    def edgeVerts(self, e):
        h = self.eHalfEdge[e]
        return (int(self.heVertex[h]), int(self.tipVertex(h)))

    def faceHalfEdges(self, f):
        h0 = self.fHalfEdge[f]
        h1 = self.heNext[h0]
        h2 = self.heNext[h1]
        return (int(h0), int(h1), int(h2))

    def faceVerts(self, f):
        return tuple(int(self.heVertex[h]) for h in self.faceHalfEdges(f))

    def faceEdges(self, f):
        return tuple(int(self.heEdge[h]) for h in self.faceHalfEdges(f))

    def edgeFaces(self, e):
        h = self.eHalfEdge[e]
        return (int(self.heFace[h]), int(self.heFace[self.heTwin[h]]))

    def nextOutgoing(self, h):
        """The next halfedge leaving the same vertex, rotating counter-clockwise"""
        return self.heTwin[self.prev(h)]

    def prevOutgoing(self, h):
        """The next halfedge leaving the same vertex, rotating clockwise"""
        return self.heNext[self.heTwin[h]]


    # Iterate over the outgoing halfedges of the fan containing 'start' (default
    # vHalfEdge[v]), counter-clockwise
    def adjHalfEdges(self, v, start=None):

        first = int(self.vHalfEdge[v]) if start is None else int(start)
        curr = first
        count = 0
        while True:
            yield curr

            curr = int(self.nextOutgoing(curr))
            if curr == first:
                break

            count += 1
            if count > self.nHalfEdges():
                raise MeshError('ERROR: halfedges around vertex ' + str(v) + ' do not form a cycle')

    # Iterate over the faces adjacent to this vertex
    def adjFaces(self, v):
        for h in self.adjHalfEdges(v):
            yield int(self.heFace[h])

    # Iterate over the verts adjacent to this vertex
    def adjVerts(self, v):
        for h in self.adjHalfEdges(v):
            yield int(self.tipVertex(h))

    # Iterate over the edges adjacent to this vertex
    def adjEdges(self, v):
        for h in self.adjHalfEdges(v):
            yield int(self.heEdge[h])

    # Returns the number edges/faces neighboring this vertex (within one fan)
    def degree(self, v):
        return sum(1 for h in self.adjHalfEdges(v))

    def outgoingCounts(self):
        """Total number of halfedges leaving each vertex, across all of its fans"""
        return np.bincount(self.heVertex, minlength=self.nVerts())

    def isManifoldVertex(self, v):
        return self.degree(v) == self.outgoingCounts()[v]


    ### Geometry helpers

    def edgeLengthsFromPositions(self, positions):
        """Extrinsic length of every edge for the given (nVerts, 3) position array"""
        positions = np.asarray(positions, dtype=float)
        tails = self.heVertex[self.eHalfEdge]
        tips = self.heVertex[self.heNext[self.eHalfEdge]]
        return np.linalg.norm(positions[tips] - positions[tails], axis=1)

    def faceVertexArray(self):
        """(nFaces, 3) array of the vertices of each face, in halfedge order"""
        h0 = self.fHalfEdge
        h1 = self.heNext[h0]
        h2 = self.heNext[h1]
        return np.stack((self.heVertex[h0], self.heVertex[h1], self.heVertex[h2]), axis=1)


    ### Mutation

    def flipEdge(self, e):
        r"""
        Rotate edge e counter-clockwise within the quadrilateral formed by its two
        faces. Returns False (and does nothing) if the two faces of e are the same
        face, as happens around a degree-one vertex.

            before:   c              after:    c
                     / \                      /|\
                    a---b                    a | b
                     \ /                      \|/
                      d                        d
        """
        ha = int(self.eHalfEdge[e])
        hb = int(self.heTwin[ha])
        fA = int(self.heFace[ha])
        fB = int(self.heFace[hb])
        if fA == fB:
            return False

        ha1 = int(self.heNext[ha])
        ha2 = int(self.heNext[ha1])
        hb1 = int(self.heNext[hb])
        hb2 = int(self.heNext[hb1])

        va = int(self.heVertex[ha])
        vb = int(self.heVertex[hb])
        vc = int(self.heVertex[ha2])
        vd = int(self.heVertex[hb2])

        # This edge now runs d -> c (ha) and c -> d (hb)
        self.heVertex[ha] = vd
        self.heVertex[hb] = vc

        # Face A becomes (d, c, a)
        self.heNext[ha] = ha2
        self.heNext[ha2] = hb1
        self.heNext[hb1] = ha

        # Face B becomes (c, d, b)
        self.heNext[hb] = hb2
        self.heNext[hb2] = ha1
        self.heNext[ha1] = hb

        self.heFace[hb1] = fA
        self.heFace[ha1] = fB
        self.fHalfEdge[fA] = ha
        self.fHalfEdge[fB] = hb

        if self.vHalfEdge[va] == ha:
            self.vHalfEdge[va] = hb1
        if self.vHalfEdge[vb] == hb:
            self.vHalfEdge[vb] = ha1

        return True


    def separateNonmanifoldVertices(self):
        """
        Split every vertex whose outgoing halfedges form more than one fan, giving each
        extra fan a brand new vertex. Purely combinatorial: no faces or edges change.

        Returns an array origVert, where origVert[v] is the vertex that v was split
        from (or v itself for vertices that existed before).
        """
        nOrig = self.nVerts()
        origVert = list(range(nOrig))
        newVHalfEdge = list(self.vHalfEdge)

        # Group the outgoing halfedges by their vertex
        order = np.argsort(self.heVertex, kind='stable')
        splits = np.searchsorted(self.heVertex[order], np.arange(nOrig + 1))

        visited = np.zeros(self.nHalfEdges(), dtype=bool)
        nSplit = 0
        for v in range(nOrig):
            firstFan = True
            for h in order[splits[v]:splits[v+1]]:
                if visited[h]:
                    continue

                fan = list(self.adjHalfEdges(v, start=h))
                visited[fan] = True

                # The first fan keeps the original vertex
                if firstFan:
                    newVHalfEdge[v] = h
                    firstFan = False
                    continue

                newVert = len(origVert)
                origVert.append(v)
                newVHalfEdge.append(h)
                self.heVertex[fan] = newVert
                nSplit += 1

        if nSplit > 0:
            logger.debug("split %d fans off of non-manifold vertices", nSplit)

        self.vHalfEdge = np.array(newVHalfEdge, dtype=np.int64)
        origVert = np.array(origVert, dtype=np.int64)

        print('  Separated non-manifold vertices: created ' + str(nSplit) + ' new vertices (' +
              str(nOrig) + ' --> ' + str(self.nVerts()) + ')')
        return origVert


    def toManifoldMesh(self):
        """
        Returns a ManifoldHalfEdgeMesh with the same elements and numbering. Throws a
        NonManifoldMeshError if the mesh is not manifold (call
        separateNonmanifoldVertices() first).
        """
        counts = self.outgoingCounts()
        nonmanifold = [v for v in range(self.nVerts()) if self.degree(v) != counts[v]]
        if nonmanifold:
            raise NonManifoldMeshError('ERROR: cannot convert to a manifold mesh, ' + str(len(nonmanifold)) +
                                       ' vertices have more than one fan of faces (e.g. vertex ' + str(nonmanifold[0]) + ')')

        manifoldMesh = ManifoldHalfEdgeMesh(self.nVerts(), self.heNext.copy(), self.heTwin.copy(),
                                            self.heVertex.copy(), self.heFace.copy(), self.heEdge.copy(),
                                            self.eHalfEdge.copy(), self.fHalfEdge.copy(), self.vHalfEdge.copy())
        manifoldMesh.checkMeshReferences()
        return manifoldMesh


    ### Validation and reporting

    # Perform a basic reference validity check to catch blatant errors
    # Throws an error if it finds something broken about the datastructure
    def checkMeshReferences(self):

        nH = self.nHalfEdges()
        heInds = np.arange(nH)

        if nH != 3 * self.nFaces() or nH != 2 * self.nEdges():
            raise AssertionError('ERROR: Mesh check failed. Element counts are inconsistent (' + str(nH) + ' halfedges, ' +
                                 str(self.nEdges()) + ' edges, ' + str(self.nFaces()) + ' faces)')

        for (name, table, bound) in (('heNext', self.heNext, nH), ('heTwin', self.heTwin, nH),
                                     ('heVertex', self.heVertex, self.nVerts()), ('heFace', self.heFace, self.nFaces()),
                                     ('heEdge', self.heEdge, self.nEdges()), ('eHalfEdge', self.eHalfEdge, nH),
                                     ('fHalfEdge', self.fHalfEdge, nH), ('vHalfEdge', self.vHalfEdge, nH)):
            if len(table) > 0 and (table.min() < 0 or table.max() >= bound):
                raise AssertionError('ERROR: Mesh check failed. ' + name + ' references an element which does not exist')

        if np.any(self.heTwin[self.heTwin] != heInds) or np.any(self.heTwin == heInds):
            raise AssertionError('ERROR: Mesh check failed. he.twin symmetry broken')
        if np.any(self.heEdge[self.heTwin] != self.heEdge):
            raise AssertionError('ERROR: Mesh check failed. he and he.twin are on different edges')
        if np.any(self.heVertex[self.heTwin] != self.heVertex[self.heNext]):
            raise AssertionError('ERROR: Mesh check failed. he.twin does not start where he ends')
        if np.any(self.heNext[self.heNext[self.heNext]] != heInds):
            raise AssertionError('ERROR: Mesh check failed. some face is not a triangle')
        if np.any(self.heFace[self.heNext] != self.heFace):
            raise AssertionError('ERROR: Mesh check failed. he.next is in a different face')
        if np.any(self.heEdge[self.eHalfEdge] != np.arange(self.nEdges())):
            raise AssertionError('ERROR: Mesh check failed. edge.anyHalfEdge is not on its edge')
        if np.any(self.heFace[self.fHalfEdge] != np.arange(self.nFaces())):
            raise AssertionError('ERROR: Mesh check failed. face.anyHalfEdge is not in its face')
        if np.any(self.heVertex[self.vHalfEdge] != np.arange(self.nVerts())):
            raise AssertionError('ERROR: Mesh check failed. vert.anyHalfEdge does not leave its vertex')


    # Print out some summary statistics about the mesh
    def printMeshStats(self):

        print('=== HalfEdge mesh statistics:')
        print('    Halfedges = %d'%(self.nHalfEdges()))
        print('    Edges = %d'%(self.nEdges()))
        print('    Faces = %d'%(self.nFaces()))
        print('    Verts = %d'%(self.nVerts()))

        if self.nVerts() > 0:
            counts = self.outgoingCounts()
            print('    - Max vertex degree = ' + str(counts.max()))
            print('    - Min vertex degree = ' + str(counts.min()))
        print('    - Euler characteristic = ' + str(self.eulerCharacteristic()))


# A HalfEdgeMesh in which every vertex has a single fan of faces around it. Only
# created by HalfEdgeMesh.toManifoldMesh(), which validates the structure.
class ManifoldHalfEdgeMesh(HalfEdgeMesh):

    def isManifoldVertex(self, v):
        return True

    def connectedComponents(self):
        """Number of connected components of the vertex-edge graph"""
        tails = self.heVertex[self.eHalfEdge]
        tips = self.heVertex[self.heNext[self.eHalfEdge]]
        adjacency = csr_matrix((np.ones(self.nEdges()), (tails, tips)), shape=(self.nVerts(), self.nVerts()))
        return connected_components(adjacency, directed=False, return_labels=False)
