# Build the tufted Laplacian of a mesh and write it to file, and optionally show the
# intrinsic Delaunay triangulation of its tufted cover in a viewer window

# Python imports
import argparse
import logging
import sys
from os.path import basename

# tuftedcover imports
from tuftedcover.core.HalfEdgeMesh import MeshError
from tuftedcover.core.InputOutput import readMesh, writeSparseMatrix
from tuftedcover.geometry_processing.BubbleOffset import BubbleOffset, subdivideRounded
from tuftedcover.geometry_processing.EdgeTracing import traceIntrinsicEdges
from tuftedcover.geometry_processing.IntrinsicTriangulation import SignpostIntrinsicTriangulation
from tuftedcover.geometry_processing.TuftedCover import buildIntrinsicTuftedCover, mollifyIntrinsic
from tuftedcover.geometry_processing.TuftedLaplacian import buildTuftedLaplacian

logger = logging.getLogger(__name__)


class VisualizationParams(object):
    """Knobs for the bubble rendering, edited by the viewer widgets"""

    MAX_BUBBLE_SCALE = 0.5

    def __init__(self, subdivLevel=3, bubbleScale=0.2, pointsPerTriEdge=10):
        self.subdivLevel = subdivLevel
        self.bubbleScale = bubbleScale
        self.pointsPerTriEdge = pointsPerTriEdge

    @property
    def bubbleScale(self):
        return self._bubbleScale

    @bubbleScale.setter
    def bubbleScale(self, val):
        self._bubbleScale = min(max(float(val), 0.0), self.MAX_BUBBLE_SCALE)


class BubbleVisualization(object):

    SURFACE_NAME = "bubble tufted cover"
    CURVES_NAME = "intrinsic edges"

    def __init__(self, vertexCoordinates, polygons, lines):
        self.vertexCoordinates = vertexCoordinates
        self.polygons = polygons
        self.lines = lines


class TuftedSession(object):
    """
    Everything computed from one input mesh: the vertex-separated tufted cover, its
    positions, and the signpost intrinsic triangulation flipped to Delaunay. The
    visualization can be regenerated from this state as often as desired.
    """

    def __init__(self, soupMesh, mollifyFactor=1e-6, params=None):

        self.soupMesh = soupMesh
        self.mollifyFactor = mollifyFactor
        self.params = VisualizationParams() if params is None else params

        self.mesh = None
        self.positions = None
        self.origVert = None
        self.signpostTri = None


    def generateVertexSeparatedTuftedCover(self):

        coverMesh, _ = buildIntrinsicTuftedCover(self.soupMesh, positions=self.soupMesh.verts)

        # The cover can be pinched at vertices; give each fan its own vertex
        self.origVert = coverMesh.separateNonmanifoldVertices()
        self.positions = self.soupMesh.verts[self.origVert]

        self.mesh = coverMesh.toManifoldMesh()
        self.mesh.printMeshStats()

        edgeLengths = self.mesh.edgeLengthsFromPositions(self.positions)
        edgeLengths = mollifyIntrinsic(self.mesh, edgeLengths, self.mollifyFactor)

        self.signpostTri = SignpostIntrinsicTriangulation(self.mesh, edgeLengths)
        self.signpostTri.flipToDelaunay()

        return self.signpostTri

    def generateVisualization(self):
        if self.signpostTri is None:
            self.generateVertexSeparatedTuftedCover()

        params = self.params
        bubbleOffset = BubbleOffset(self.mesh, self.positions, params.bubbleScale)

        vertexCoordinates, polygons = subdivideRounded(self.mesh, self.positions, params.subdivLevel,
                                                       params.bubbleScale, bubbleOffset)
        lines = traceIntrinsicEdges(self.signpostTri, bubbleOffset, params.pointsPerTriEdge)

        logger.debug("visualization has %d vertices, %d polygons, %d curves",
                     len(vertexCoordinates), len(polygons), len(lines))
        return BubbleVisualization(vertexCoordinates, polygons, lines)

    def buildLaplacian(self):
        return buildTuftedLaplacian(self.soupMesh, mollifyFactor=self.mollifyFactor)


class ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors with exit status 1"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, '%s: error: %s\n' % (self.prog, message))


def buildArgParser():
    parser = ArgumentParser(prog='tufted-idt',
                            description='Build the tufted Laplacian of a mesh via the intrinsic Delaunay '
                                        'triangulation of its tufted cover.')
    parser.add_argument('mesh', nargs='?', help='A mesh file.')

    algorithmGroup = parser.add_argument_group('algorithm options')
    algorithmGroup.add_argument('--mollifyFactor', type=float, default=1e-6,
                                help='Amount of intrinsic mollification to perform, relative to the mean edge length.')

    outputGroup = parser.add_argument_group('output')
    outputGroup.add_argument('--gui', action='store_true', help='Show the tufted cover in a viewer window.')
    outputGroup.add_argument('--outputPrefix', default='tufted_', help='Prefix to prepend to all output file paths.')
    outputGroup.add_argument('--writeLaplacian', action='store_true',
                             help='Write the Laplace matrix to <prefix>laplacian.spmat')
    outputGroup.add_argument('--writeMass', action='store_true',
                             help='Write the lumped mass matrix to <prefix>lumped_mass.spmat')

    return parser


def main(argv=None):

    parser = buildArgParser()
    args = parser.parse_args(argv)

    if args.mesh is None:
        print('Please specify a mesh file as argument')
        parser.print_help(sys.stdout)
        return 1

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        # Read in the mesh
        soupMesh = readMesh(args.mesh)
        soupMesh.sanitize()

        session = TuftedSession(soupMesh, args.mollifyFactor)

        print('Building tufted Laplacian...')
        L, M = session.buildLaplacian()
        print('  ...done!')

        if args.writeLaplacian:
            writeSparseMatrix(args.outputPrefix + 'laplacian.spmat', L)
        if args.writeMass:
            writeSparseMatrix(args.outputPrefix + 'lumped_mass.spmat', M)

        if args.gui:
            print('Generating visualization...')
            session.generateVertexSeparatedTuftedCover()
            showSession(session, 'tuftedcover -- ' + basename(args.mesh))

    except (MeshError, IOError) as err:
        sys.stderr.write(str(err) + '\n')
        return 1

    return 0


def showSession(session, windowTitle):
    # The viewer pulls in matplotlib's interactive backends, only load it when asked
    from tuftedcover.viewer.MeshDisplayMPL import MeshDisplayMPL

    meshDisplay = MeshDisplayMPL(session.params, session.generateVisualization, windowTitle=windowTitle)
    meshDisplay.setInputMesh(session.soupMesh)
    meshDisplay.startMainLoop()


if __name__ == "__main__":
    sys.exit(main())
