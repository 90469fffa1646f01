#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np

from pyhpcg.linalg.sparse import SparseMatrix

__all__ = ('symgs', 'SymmetricGaussSeidel')

#===============================================================================
def symgs( A, r, x ):
    """
    One symmetric Gauss-Seidel sweep for A x = r, updating x in place.

    The forward sweep relaxes the colors in increasing order, the backward
    sweep in decreasing order. Rows of the same color are not coupled, so
    they are all relaxed at once with

        x_i <- x_i + (r_i - sum_j a_ij x_j) / a_ii

    which is the same as x_i <- (r_i - sum_{j != i} a_ij x_j) / a_ii.
    The halo of x is refreshed before each sweep.

    Parameters
    ----------
    A : pyhpcg.linalg.sparse.SparseMatrix
        Optimized matrix.

    r : numpy.ndarray
        Right-hand side, of length A.nrows (or more).

    x : numpy.ndarray
        Initial guess with halo capacity, overwritten by the result.

    Returns
    -------
    x : numpy.ndarray
        The updated vector.

    """
    assert isinstance( A, SparseMatrix )

    if not A.is_optimized:
        raise RuntimeError( 'Symmetric Gauss-Seidel requires a matrix ordered by colors' )
    if x.ndim != 1 or x.shape[0] != A.ncols:
        raise ValueError( "Solution vector has length {}, expected {}".format( x.shape[0], A.ncols ) )
    if r.ndim != 1 or r.shape[0] < A.nrows:
        raise ValueError( "Right-hand side has length {}, expected {}".format( r.shape[0], A.nrows ) )

    diagonal = A.diagonal
    colors   = range( A.ncolors )

    # Forward sweep
    A.exchanger.update_ghost_regions( x )
    for c in colors:
        block, rows = A.color_block( c )
        x[rows] += (r[rows] - block @ x) / diagonal[rows]

    # Backward sweep
    A.exchanger.update_ghost_regions( x )
    for c in reversed( colors ):
        block, rows = A.color_block( c )
        x[rows] += (r[rows] - block @ x) / diagonal[rows]

    return x

#===============================================================================
class SymmetricGaussSeidel:
    """
    Preconditioner made of one symmetric Gauss-Seidel sweep from a zero
    initial guess. The resulting operator is symmetric and positive definite,
    hence suitable for the preconditioned Conjugate Gradient.

    Parameters
    ----------
    A : pyhpcg.linalg.sparse.SparseMatrix
        Optimized matrix of the linear system.

    """
    def __init__( self, A ):

        assert isinstance( A, SparseMatrix )
        if not A.is_optimized:
            raise RuntimeError( 'Symmetric Gauss-Seidel requires a matrix ordered by colors' )

        self._A = A

    @property
    def linop( self ):
        return self._A

    def dot( self, r, out=None ):
        """
        Apply the preconditioner: z = M^{-1} r.

        Parameters
        ----------
        r : numpy.ndarray
            Residual, of length A.nrows (or more).

        out : numpy.ndarray, optional
            Output vector with halo capacity.

        Returns
        -------
        z : numpy.ndarray
            Preconditioned residual, with halo capacity.

        """
        if out is None:
            out = self._A.zeros( halo=True )
        else:
            out[:] = 0.0

        return symgs( self._A, r, out )
