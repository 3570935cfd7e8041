# Tracing the edges of an intrinsic triangulation out as polylines on the input surface

import logging

import numpy as np

from ..core.SurfacePoint import SurfacePoint, sharedFace

logger = logging.getLogger(__name__)


# Traces are run for slightly less than the full edge length. When two consecutive
# trace points lie on a common boundary there can be several shared faces to
# interpolate in; stopping just short of the end vertex leaves the last point
# inside the face we want.
TRACE_LENGTH_FACTOR = 0.999


def interpolateSurfacePoints(mesh, pA, pB, nInterp=0, tValues=None):
    """
    Points strictly between pA and pB, found by linear blending of barycentric
    coordinates in a face both points share. By default the nInterp parameters
    t = 1/(n+1), ..., n/(n+1) are used; an explicit list of tValues may be given instead.
    """
    if tValues is None:
        tValues = [float(i + 1) / (nInterp + 1) for i in range(max(nInterp, 0))]

    f = sharedFace(mesh, pA, pB)
    pAF = pA.inFace(mesh, f)
    pBF = pB.inFace(mesh, f)

    return [SurfacePoint.inFaceCoords(f, (1.0 - t) * pAF.faceCoords + t * pBF.faceCoords) for t in tValues]


def densifyPath(mesh, points, pointsPerTriEdge):
    """Insert pointsPerTriEdge interpolated points between each consecutive pair"""
    dense = [points[0]]
    for i in range(len(points) - 1):
        dense.extend(interpolateSurfacePoints(mesh, points[i], points[i+1], pointsPerTriEdge))
        dense.append(points[i+1])
    return dense


def traceEdge(signpostTri, e, lengthFactor=TRACE_LENGTH_FACTOR):
    """
    Trace intrinsic edge e from the tail of its halfedge. The edge's length is scaled
    by lengthFactor for the duration of the trace and then restored exactly.
    """
    he = signpostTri.mesh.eHalfEdge[e]

    oldLen = signpostTri.intrinsicEdgeLengths[e]
    signpostTri.intrinsicEdgeLengths[e] = oldLen * lengthFactor
    try:
        points = signpostTri.traceHalfedge(he)
    finally:
        signpostTri.intrinsicEdgeLengths[e] = oldLen  # restore the pre-adjusted length

    return points


def traceIntrinsicEdges(signpostTri, bubbleOffset, pointsPerTriEdge):
    """
    Trace every intrinsic edge and map it on to the bubble surface.

    Returns a list with one (k,3) array of positions per intrinsic edge: each traced
    point, with pointsPerTriEdge interpolated points between each consecutive pair.
    """
    lines = []
    for e in range(signpostTri.mesh.nEdges()):
        points = traceEdge(signpostTri, e)
        dense = densifyPath(signpostTri.inputMesh, points, pointsPerTriEdge)
        lines.append(np.array([bubbleOffset.queryPoint(p) for p in dense]))

    logger.debug("traced %d intrinsic edges through %d points", len(lines), sum(len(l) for l in lines))
    return lines
