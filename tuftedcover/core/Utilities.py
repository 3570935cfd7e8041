# Small numerical helpers shared by the mesh and triangulation code

import numpy as np

from math import acos, pi, sqrt


def normalize(vec):
    """Returns vec scaled to unit length, or a zero vector if vec has no length"""
    n = np.linalg.norm(vec)
    if n == 0.0:
        return np.zeros_like(vec, dtype=float)
    return vec / n

def clamp(val, lower, upper):
    return max(lower, min(upper, val))

def regAngle(theta):
    """Returns the equivalent angle in [0, 2pi)"""
    theta = theta % (2*pi)
    if theta >= 2*pi:  # fmod can round up to exactly 2pi for tiny negatives
        theta = 0.0
    return theta


### Triangle quantities computed from edge lengths only

def triangleAngle(lA, lB, lOpp):
    """
    The angle between the sides of length lA and lB in a triangle whose third
    side has length lOpp (law of cosines). Degenerate inputs are clamped
    rather than producing NaN.
    """
    denom = 2.0 * lA * lB
    if denom <= 0.0:
        return 0.0
    return acos(clamp((lA*lA + lB*lB - lOpp*lOpp) / denom, -1.0, 1.0))

def triangleArea(lA, lB, lC):
    """Heron's formula, clamped to zero for triangles violating the triangle inequality"""
    s = 0.5 * (lA + lB + lC)
    arg = s * (s - lA) * (s - lB) * (s - lC)
    if arg <= 0.0:
        return 0.0
    return sqrt(arg)

def layoutTriangleVertex(pA, pB, lBC, lCA):
    """
    Given 2D positions for A and B, returns the position of C such that
    |BC| = lBC, |CA| = lCA and A, B, C are counter-clockwise.
    """
    pA = np.asarray(pA, dtype=float)
    pB = np.asarray(pB, dtype=float)
    vAB = pB - pA
    lAB = np.linalg.norm(vAB)
    if lAB == 0.0:
        return pA.copy()
    tangent = vAB / lAB
    normal = np.array([-tangent[1], tangent[0]])

    # Position of C projected on to AB, and height above it
    x = (lAB*lAB + lCA*lCA - lBC*lBC) / (2.0 * lAB)
    y = sqrt(max(lCA*lCA - x*x, 0.0))
    return pA + x*tangent + y*normal

def cross2D(u, v):
    return u[0]*v[1] - u[1]*v[0]

def barycentric2D(p, pA, pB, pC):
    """Barycentric coordinates of the 2D point p in triangle (pA, pB, pC)"""
    area = cross2D(pB - pA, pC - pA)
    if area == 0.0:
        return np.array([1.0, 0.0, 0.0])
    bA = cross2D(pB - p, pC - p) / area
    bB = cross2D(pC - p, pA - p) / area
    bC = 1.0 - bA - bB
    return np.array([bA, bB, bC])
