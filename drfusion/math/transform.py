"""
Orientation transforms between the device body frame and the earth frame.

The device motion framework hands us a 3x3 rotation matrix (row-major)
that maps body-frame vectors into an earth frame whose X axis points to
true north and whose Z axis is vertical. The integrator, however, works
in a frame where Y is true north and X is east, so every earth-frame
vector is relabelled with `relabel_axes` before integration.
"""

import math

import numpy as np

from .vector import Vector3

def transform(rotation, vector: Vector3) -> Vector3:
    """
    Rotate a body-frame vector into the earth frame.

    Computes R · a. The rotation is not validated; a matrix that is not
    3x3 orthonormal gives meaningless (but unit-consistent) output.

    Args:
        rotation: 3x3 rotation matrix, row-major (nested sequences or ndarray)
        vector: Body-frame vector

    Returns:
        Earth-frame vector in the same unit as `vector`
    """
    R = np.asarray(rotation, dtype=float)
    rotated = R @ vector.as_array()
    return Vector3(rotated[0], rotated[1], rotated[2], vector.unit)

def relabel_axes(vector: Vector3) -> Vector3:
    """
    Swap X and Y between the earth frame and the integrator frame.

    Earth frame: X = true north. Integrator frame: Y = true north, X = east.
    The swap is fixed and applied to every sample; it is its own inverse.
    """
    return Vector3(vector.y, vector.x, vector.z, vector.unit)

def is_rotation_matrix(rotation, tol: float = 1e-6) -> bool:
    """
    Check that a matrix is a finite, proper 3x3 rotation.

    Args:
        rotation: Candidate matrix
        tol: Tolerance on R·Rᵀ = I and det(R) = 1

    Returns:
        True if the matrix is a rotation within tolerance
    """
    R = np.asarray(rotation, dtype=float)
    if R.shape != (3, 3) or not np.all(np.isfinite(R)):
        return False
    if not np.allclose(R @ R.T, np.eye(3), atol=tol):
        return False
    return abs(np.linalg.det(R) - 1.0) < tol

def rotation_matrix_from_euler(yaw: float, pitch: float, roll: float) -> np.ndarray:
    """
    Build a body-to-earth rotation matrix from Z-Y-X Euler angles.

    Args:
        yaw: Rotation about Z in radians
        pitch: Rotation about Y in radians
        roll: Rotation about X in radians

    Returns:
        np.ndarray: 3x3 rotation matrix
    """
    cy, sy = math.cos(yaw), math.sin(yaw)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cr, sr = math.cos(roll), math.sin(roll)

    Rz = np.array([
        [cy, -sy, 0.0],
        [sy,  cy, 0.0],
        [0.0, 0.0, 1.0]
    ])
    Ry = np.array([
        [ cp, 0.0, sp],
        [0.0, 1.0, 0.0],
        [-sp, 0.0, cp]
    ])
    Rx = np.array([
        [1.0, 0.0, 0.0],
        [0.0,  cr, -sr],
        [0.0,  sr,  cr]
    ])

    return Rz @ Ry @ Rx
