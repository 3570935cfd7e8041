# Imports from core
from .core.InputOutput import *
from .core.TriSoupMesh import TriSoupMesh
from .core.HalfEdgeMesh import *
from .core.SurfacePoint import SurfacePoint, sharedFace

# Viewer (matplotlib) is imported on demand, see viewer.MeshDisplayMPL

# Import from Geometry Processing
from .geometry_processing.TuftedCover import *
from .geometry_processing.IntrinsicTriangulation import *
from .geometry_processing.EdgeTracing import *
from .geometry_processing.BubbleOffset import *
from .geometry_processing.TuftedLaplacian import *
