import numpy as np

from .HalfEdgeMesh import MeshError


# A location on a mesh: either exactly at a vertex, at a point along an edge, or
# at barycentric coordinates inside a face.
#
#   - VERTEX points store 'vertex'
#   - EDGE points store 'edge' and 'tEdge' in [0,1], measured from the tail of
#     mesh.eHalfEdge[edge] towards its tip
#   - FACE points store 'face' and 'faceCoords', barycentric coordinates with
#     respect to the vertices of mesh.faceHalfEdges(face), in that order
class SurfacePoint(object):

    VERTEX = 'vertex'
    EDGE = 'edge'
    FACE = 'face'

    def __init__(self, type, vertex=-1, edge=-1, tEdge=0.0, face=-1, faceCoords=None):
        self.type = type
        self.vertex = vertex
        self.edge = edge
        self.tEdge = tEdge
        self.face = face
        self.faceCoords = None if faceCoords is None else np.array(faceCoords, dtype=float)

    @classmethod
    def onVertex(cls, v):
        return cls(cls.VERTEX, vertex=int(v))

    @classmethod
    def onEdge(cls, e, tEdge):
        return cls(cls.EDGE, edge=int(e), tEdge=float(tEdge))

    @classmethod
    def inFaceCoords(cls, f, faceCoords):
        return cls(cls.FACE, face=int(f), faceCoords=faceCoords)

    def __repr__(self):
        if self.type == SurfacePoint.VERTEX:
            return 'SurfacePoint(vertex=%d)' % self.vertex
        if self.type == SurfacePoint.EDGE:
            return 'SurfacePoint(edge=%d, t=%g)' % (self.edge, self.tEdge)
        return 'SurfacePoint(face=%d, bary=%s)' % (self.face, np.array2string(self.faceCoords, precision=6))


    def candidateFaces(self, mesh):
        """The faces this point can be expressed in"""
        if self.type == SurfacePoint.VERTEX:
            return list(mesh.adjFaces(self.vertex))
        if self.type == SurfacePoint.EDGE:
            return list(mesh.edgeFaces(self.edge))
        return [self.face]


    def inFace(self, mesh, f):
        """
        Re-express this point as barycentric coordinates in face f, which must be
        incident to the point. Returns a new FACE SurfacePoint.
        """
        f = int(f)

        if self.type == SurfacePoint.FACE:
            if self.face != f:
                raise MeshError('ERROR: cannot express a point in face ' + str(self.face) + ' in face ' + str(f))
            return SurfacePoint.inFaceCoords(f, self.faceCoords)

        faceCoords = np.zeros(3)
        for (i, h) in enumerate(mesh.faceHalfEdges(f)):

            if self.type == SurfacePoint.VERTEX and mesh.heVertex[h] == self.vertex:
                faceCoords[i] = 1.0
                return SurfacePoint.inFaceCoords(f, faceCoords)

            if self.type == SurfacePoint.EDGE and mesh.heEdge[h] == self.edge:
                # Orient t along this halfedge, which runs from corner i to corner i+1
                t = self.tEdge if h == mesh.eHalfEdge[self.edge] else 1.0 - self.tEdge
                faceCoords[i] = 1.0 - t
                faceCoords[(i+1)%3] = t
                return SurfacePoint.inFaceCoords(f, faceCoords)

        raise MeshError('ERROR: ' + repr(self) + ' is not incident on face ' + str(f))


    def position(self, mesh, positions):
        """The point in R3 for a mesh with the given vertex positions"""
        if self.type == SurfacePoint.VERTEX:
            return np.array(positions[self.vertex], dtype=float)
        if self.type == SurfacePoint.EDGE:
            (vA, vB) = mesh.edgeVerts(self.edge)
            return (1.0 - self.tEdge) * positions[vA] + self.tEdge * positions[vB]
        faceVerts = list(mesh.faceVerts(self.face))
        return self.faceCoords.dot(positions[faceVerts])


def sharedFace(mesh, pA, pB):
    """
    Returns some face which both points lie in. If there are several (for instance
    two vertex points joined by an edge), the first in pA's candidate order wins.
    """
    facesB = set(pB.candidateFaces(mesh))
    for f in pA.candidateFaces(mesh):
        if f in facesB:
            return f
    raise MeshError('ERROR: ' + repr(pA) + ' and ' + repr(pB) + ' do not share a face')
