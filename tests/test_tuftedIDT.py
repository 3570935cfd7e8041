"""Tests for the command line driver, the visualization session and the viewer."""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from tuftedcover.apps.tuftedIDT import BubbleVisualization, TuftedSession, VisualizationParams, main
from tuftedcover.core.InputOutput import readSparseMatrix
from tuftedcover.viewer.MeshDisplayMPL import MeshDisplayMPL


def test_missing_mesh_prints_usage_and_fails(capsys):
    assert main([]) == 1

    out = capsys.readouterr().out
    assert 'usage' in out
    assert '--mollifyFactor' in out


def test_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as excInfo:
        main(['-h'])

    assert excInfo.value.code == 0
    assert '--writeLaplacian' in capsys.readouterr().out


def test_bad_arguments_exit_with_status_one(capsys):
    with pytest.raises(SystemExit) as excInfo:
        main(['mesh.obj', '--mollifyFactor', 'lots'])

    assert excInfo.value.code == 1
    assert 'usage' in capsys.readouterr().err


def test_unknown_flag_exits_with_status_one():
    with pytest.raises(SystemExit) as excInfo:
        main(['mesh.obj', '--noSuchFlag'])

    assert excInfo.value.code == 1


def test_unreadable_mesh_fails(tmp_path, capsys):
    assert main([str(tmp_path / 'missing.obj')]) == 1
    assert 'missing.obj' in capsys.readouterr().err


def test_writes_laplacian_and_mass(tmp_path, rightTriangleObj):
    prefix = str(tmp_path / 'out_')

    assert main([rightTriangleObj, '--writeLaplacian', '--writeMass', '--outputPrefix', prefix,
                 '--mollifyFactor', '0']) == 0

    L = readSparseMatrix(prefix + 'laplacian.spmat', shape=(3, 3)).toarray()
    M = readSparseMatrix(prefix + 'lumped_mass.spmat', shape=(3, 3)).toarray()
    np.testing.assert_allclose(L, L.T)
    np.testing.assert_allclose(L.sum(axis=1), 0.0, atol=1e-12)
    assert L[0, 1] == pytest.approx(-0.5)
    assert M.sum() == pytest.approx(0.5)


def test_outputs_only_when_requested(tmp_path, rightTriangleObj):
    prefix = str(tmp_path / 'out_')

    assert main([rightTriangleObj, '--writeMass', '--outputPrefix', prefix]) == 0

    assert (tmp_path / 'out_lumped_mass.spmat').exists()
    assert not (tmp_path / 'out_laplacian.spmat').exists()


def test_visualization_params_clamp_bubble_scale():
    params = VisualizationParams()
    assert (params.subdivLevel, params.bubbleScale, params.pointsPerTriEdge) == (3, 0.2, 10)

    params.bubbleScale = 0.9
    assert params.bubbleScale == 0.5
    params.bubbleScale = -1.0
    assert params.bubbleScale == 0.0


def test_session_on_bowtie(bowtie):
    params = VisualizationParams(subdivLevel=1, bubbleScale=0.1, pointsPerTriEdge=2)
    session = TuftedSession(bowtie, mollifyFactor=1e-6, params=params)

    session.generateVertexSeparatedTuftedCover()

    assert session.mesh.nVerts() == 6
    assert session.mesh.nFaces() == 4
    np.testing.assert_array_equal(session.positions, bowtie.verts[[0, 1, 2, 3, 4, 0]])

    visualization = session.generateVisualization()

    assert isinstance(visualization, BubbleVisualization)
    assert visualization.polygons.shape == (4 * 4, 3)
    assert len(visualization.lines) == session.signpostTri.mesh.nEdges()
    for line in visualization.lines:
        assert len(line) >= 2 + params.pointsPerTriEdge


def test_session_regenerates_with_new_params(rightTriangle):
    session = TuftedSession(rightTriangle, mollifyFactor=0.0, params=VisualizationParams(subdivLevel=0))

    first = session.generateVisualization()
    session.params.subdivLevel = 2
    session.params.pointsPerTriEdge = 0
    second = session.generateVisualization()

    assert len(first.polygons) == 2
    assert len(second.polygons) == 2 * 16
    assert all(len(line) == 2 for line in second.lines)


def test_viewer_draws_and_regenerates(rightTriangle):
    session = TuftedSession(rightTriangle, mollifyFactor=0.0, params=VisualizationParams(subdivLevel=1))
    display = MeshDisplayMPL(session.params, session.generateVisualization, windowTitle='test')
    display.setInputMesh(rightTriangle)

    display.buildFigure()
    display.regenerateVisualization()

    assert set(display.surfaces) == {'input mesh', BubbleVisualization.SURFACE_NAME}
    assert set(display.curves) == {BubbleVisualization.CURVES_NAME}
    assert display.enabled['input mesh'] is False

    # Widgets edit the shared parameters, and regenerating replaces the drawn surface
    display.widgets['bubbleScale'].set_val(0.35)
    assert session.params.bubbleScale == pytest.approx(0.35)
    display._onIntField('subdivLevel')('2')
    assert session.params.subdivLevel == 2

    oldSurface = display.surfaces[BubbleVisualization.SURFACE_NAME]
    visualization = display.regenerateVisualization()
    assert display.surfaces[BubbleVisualization.SURFACE_NAME] is not oldSurface
    assert len(visualization.polygons) == 2 * 16

    display._onToggle('input mesh')(None)
    assert display.enabled['input mesh'] is True
