# An interactive matplotlib window showing the bubbled tufted cover and the traced
# intrinsic edges, with controls to regenerate the visualization.

import logging

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.widgets import Button, Slider, TextBox
from mpl_toolkits.mplot3d.art3d import Line3DCollection, Poly3DCollection

logger = logging.getLogger(__name__)


class MeshDisplayMPL(object):
    """
    The display only ever sees a parameter record (which its widgets edit) and a
    regenerate() callable returning a BubbleVisualization; it never touches the
    meshes or the triangulation directly.
    """

    def __init__(self, params, regenerate, windowTitle='tuftedcover', width=12, height=8):

        self.params = params
        self.regenerate = regenerate
        self.windowTitle = windowTitle
        self.figSize = (width, height)

        self.fig = None
        self.ax = None
        self.widgets = dict()

        # name ==> matplotlib collection, so re-registering replaces what is drawn
        self.surfaces = dict()
        self.curves = dict()
        self.enabled = dict()

        self.inputMesh = None


    def setInputMesh(self, soupMesh):
        self.inputMesh = soupMesh


    ### Scene management

    def registerSurfaceMesh(self, name, vertexCoordinates, polygons, color=(0.85, 0.75, 0.55), alpha=0.6, enabled=True):
        if name in self.surfaces:
            self.surfaces.pop(name).remove()

        vertexCoordinates = np.asarray(vertexCoordinates, dtype=float)
        polys = [vertexCoordinates[list(face)] for face in polygons]
        collection = Poly3DCollection(polys, facecolors=[color], edgecolors='none', alpha=alpha)
        collection.set_visible(enabled)
        self.ax.add_collection3d(collection)

        self.surfaces[name] = collection
        self.enabled[name] = enabled
        return collection

    def registerCurveNetwork(self, name, lines, color=(0.1, 0.2, 0.8), linewidth=1.5, enabled=True):
        if name in self.curves:
            self.curves.pop(name).remove()

        segments = [np.asarray(line) for line in lines if len(line) > 1]
        collection = Line3DCollection(segments, colors=[color], linewidths=linewidth)
        collection.set_visible(enabled)
        self.ax.add_collection3d(collection)

        self.curves[name] = collection
        self.enabled[name] = enabled
        return collection

    def fitView(self, points):
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        if len(points) == 0:
            return
        lower = points.min(axis=0)
        upper = points.max(axis=0)
        center = 0.5 * (lower + upper)
        radius = 0.5 * max(np.max(upper - lower), 1e-9)
        self.ax.set_xlim(center[0] - radius, center[0] + radius)
        self.ax.set_ylim(center[1] - radius, center[1] + radius)
        self.ax.set_zlim(center[2] - radius, center[2] + radius)
        self.ax.set_box_aspect((1, 1, 1))


    ### Visualization

    def showVisualization(self, visualization):
        self.registerSurfaceMesh(visualization.SURFACE_NAME, visualization.vertexCoordinates, visualization.polygons)
        self.registerCurveNetwork(visualization.CURVES_NAME, visualization.lines)
        self.fitView(visualization.vertexCoordinates)

    def regenerateVisualization(self, event=None):
        print('Regenerating visualization...')
        visualization = self.regenerate()
        self.showVisualization(visualization)
        if self.fig is not None:
            self.fig.canvas.draw_idle()
        return visualization


    ### Widgets

    def _onIntField(self, attrName):
        def callback(text):
            try:
                setattr(self.params, attrName, int(text))
            except ValueError:
                logger.warning("ignoring non-integer value %r for %s", text, attrName)
                self.widgets[attrName].set_val(str(getattr(self.params, attrName)))
        return callback

    def _onBubbleScale(self, val):
        self.params.bubbleScale = float(val)

    def _onToggle(self, name):
        def callback(event):
            collection = self.surfaces.get(name, self.curves.get(name))
            if collection is None:
                return
            self.enabled[name] = not self.enabled[name]
            collection.set_visible(self.enabled[name])
            self.fig.canvas.draw_idle()
        return callback

    def buildFigure(self):
        self.fig = plt.figure(figsize=self.figSize)
        self.fig.canvas.manager.set_window_title(self.windowTitle)
        self.ax = self.fig.add_axes([0.0, 0.2, 1.0, 0.8], projection='3d')
        self.ax.set_axis_off()

        self.fig.text(0.02, 0.16, 'Intrinsic triangulation:')

        axSubdiv = self.fig.add_axes([0.17, 0.10, 0.06, 0.04])
        self.widgets['subdivLevel'] = TextBox(axSubdiv, 'subdivision rounds ', initial=str(self.params.subdivLevel))
        self.widgets['subdivLevel'].on_submit(self._onIntField('subdivLevel'))

        axPoints = self.fig.add_axes([0.17, 0.04, 0.06, 0.04])
        self.widgets['pointsPerTriEdge'] = TextBox(axPoints, 'points per tri edge ', initial=str(self.params.pointsPerTriEdge))
        self.widgets['pointsPerTriEdge'].on_submit(self._onIntField('pointsPerTriEdge'))

        axScale = self.fig.add_axes([0.35, 0.10, 0.25, 0.04])
        self.widgets['bubbleScale'] = Slider(axScale, 'bubble scale', 0.0, 0.5, valinit=self.params.bubbleScale)
        self.widgets['bubbleScale'].on_changed(self._onBubbleScale)

        axRegen = self.fig.add_axes([0.35, 0.03, 0.25, 0.05])
        self.widgets['regenerate'] = Button(axRegen, 'Regenerate visualization')
        self.widgets['regenerate'].on_clicked(self.regenerateVisualization)

        axToggle = self.fig.add_axes([0.68, 0.03, 0.14, 0.05])
        self.widgets['toggleInput'] = Button(axToggle, 'toggle input mesh')
        self.widgets['toggleInput'].on_clicked(self._onToggle('input mesh'))

        if self.inputMesh is not None:
            self.registerSurfaceMesh('input mesh', self.inputMesh.verts, self.inputMesh.tris,
                                     color=(0.6, 0.6, 0.6), alpha=0.3, enabled=False)

        return self.fig

    def startMainLoop(self):
        if self.fig is None:
            self.buildFigure()
            self.regenerateVisualization()
        plt.show()
