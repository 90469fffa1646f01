#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
"""
Generation of the benchmark linear system: a 27-point stencil operator on a
3D grid, distributed across the processes of a Cartesian decomposition.

"""
from itertools import product

import numpy as np

from pyhpcg.ddm.geometry   import Geometry
from pyhpcg.linalg.sparse  import SparseMatrix

__all__ = ('DIAGONAL_VALUE', 'OFFDIAGONAL_VALUE', 'STENCIL_OFFSETS', 'Problem', 'generate_problem')

DIAGONAL_VALUE    = 26.0
OFFDIAGONAL_VALUE = -1.0

# Offsets (dz, dy, dx) of the 3x3x3 stencil, sorted so that the global
# column indices of each row are increasing
STENCIL_OFFSETS = np.array( list( product( (-1, 0, 1), repeat=3 ) ), dtype=np.int64 )

#===============================================================================
class Problem:
    """
    Linear system A x = b owned by one process, together with the exact
    solution of the global system.

    The problem owns its vectors: solvers only borrow them. The matrix and
    the vectors live as long as the problem does.

    Parameters
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid.

    A : pyhpcg.linalg.sparse.SparseMatrix
        Local rows of the matrix.

    x : numpy.ndarray
        Initial guess, overwritten by the solution.

    b : numpy.ndarray
        Right-hand side.

    xexact : numpy.ndarray
        Exact solution.

    """
    def __init__( self, geometry, A, x, b, xexact ):

        assert isinstance( geometry, Geometry )
        assert isinstance( A, SparseMatrix )
        assert x.shape == b.shape == xexact.shape == (A.nrows,)

        self._geometry = geometry
        self._A        = A
        self._x        = x
        self._b        = b
        self._xexact   = xexact

    @property
    def geometry( self ):
        return self._geometry

    @property
    def A( self ):
        return self._A

    @property
    def x( self ):
        return self._x

    @property
    def b( self ):
        return self._b

    @property
    def xexact( self ):
        return self._xexact

    def reset( self ):
        """ Reset the solution vector to zero, before a new solve. """
        self._x[:] = 0.0

    def permute( self, permutation ):
        """ Reorder the entries of all vectors: new[i] = old[permutation[i]]. """
        for v in (self._x, self._b, self._xexact):
            v[:] = v[permutation]

    def free( self ):
        self._A.free()

#===============================================================================
def generate_problem( geometry ):
    """
    Generate the local rows of the 27-point stencil matrix, the right-hand
    side and the exact solution.

    Each grid point is coupled to its (up to 26) neighbors in the global grid
    with coefficient -1, and to itself with coefficient 26. Boundary points
    have fewer neighbors but keep the same diagonal, so the matrix is
    diagonally dominant everywhere. The exact solution is the vector of ones,
    and b = A 1 exactly: b_i = 26 - (number of neighbors of point i).

    Parameters
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid.

    Returns
    -------
    problem : Problem
        Local linear system with x = 0. Local rows follow the natural
        ordering l = (iz*ny + iy)*nx + ix.

    """
    assert isinstance( geometry, Geometry )

    nrows = geometry.nrows
    gnx, gny, gnz = geometry.global_shape
    sx, sy, sz    = geometry.starts

    # Global coordinates of the local points
    ix, iy, iz = geometry.local_coords( np.arange( nrows, dtype=np.int64 ) )
    gx, gy, gz = ix + sx, iy + sy, iz + sz
    row_globals = geometry.global_index( gx, gy, gz )

    # Coordinates of all stencil neighbors, shape (nrows, 27)
    cz = gz[:, None] + STENCIL_OFFSETS[:, 0]
    cy = gy[:, None] + STENCIL_OFFSETS[:, 1]
    cx = gx[:, None] + STENCIL_OFFSETS[:, 2]

    inside = ((0 <= cx) & (cx < gnx) &
              (0 <= cy) & (cy < gny) &
              (0 <= cz) & (cz < gnz))

    counts = inside.sum( axis=1 )
    indptr = np.zeros( nrows+1, dtype=np.int64 )
    np.cumsum( counts, out=indptr[1:] )

    # Boolean indexing keeps the row-major order: row by row, columns increasing
    cx, cy, cz = cx[inside], cy[inside], cz[inside]
    global_columns = geometry.global_index( cx, cy, cz )
    owners         = geometry.rank_of( cx, cy, cz )

    is_diagonal = np.broadcast_to( np.all( STENCIL_OFFSETS == 0, axis=1 ), inside.shape )[inside]
    values      = np.where( is_diagonal, DIAGONAL_VALUE, OFFDIAGONAL_VALUE )

    A = SparseMatrix( geometry, indptr, global_columns, values, owners, row_globals )

    x      = np.zeros( nrows )
    xexact = np.ones ( nrows )
    b      = DIAGONAL_VALUE - (counts - 1).astype( float )

    return Problem( geometry, A, x, b, xexact )
