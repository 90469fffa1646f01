#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
"""
This module provides the preconditioned Conjugate Gradient solver of the
benchmark, with per-phase timings.

"""
from dataclasses import dataclass
from enum        import Enum
from math        import sqrt
from time        import perf_counter

import numpy as np

from pyhpcg.linalg.sparse    import SparseMatrix
from pyhpcg.linalg.utilities import global_sum, ddot, waxpby

__all__ = (
    'TIMING_SLOTS',
    'CGState',
    'CGResult',
    'ConjugateGradient',
)

# Meaning of the 8 entries of a timing array. The dot products (1) include
# their global reductions (4); SpMV (3) and SymGS (6) include the waits for
# halo exchanges (5).
TIMING_SLOTS = (
    'total',      # 0: whole CG call
    'ddot',       # 1: dot products
    'waxpby',     # 2: vector updates
    'spmv',       # 3: sparse matrix-vector products
    'allreduce',  # 4: global reductions
    'exchange',   # 5: halo exchange waits
    'precond',    # 6: preconditioner (symmetric Gauss-Seidel)
    'optimize',   # 7: matrix optimization (setup, not measured by CG)
)

#===============================================================================
class CGState(Enum):
    INIT              = 'init'
    ITERATING         = 'iterating'
    CONVERGED         = 'converged'
    MAX_ITER_EXCEEDED = 'max_iter_exceeded'

#===============================================================================
@dataclass(frozen=True)
class CGResult:
    """
    Outcome of one call to the Conjugate Gradient solver.

    Not reaching the tolerance is not an error: the final state tells whether
    the solver converged or ran out of iterations.

    """
    niters : int
    normr  : float
    normr0 : float
    state  : CGState
    times  : tuple

    @property
    def success( self ):
        return self.state is CGState.CONVERGED

    @property
    def overhead( self ):
        """ Time of the CG call not spent in dot products, updates, SpMV and preconditioner. """
        t = self.times
        return t[0] - (t[1] + t[2] + t[3] + t[6])

    @property
    def timings( self ):
        return dict( zip( TIMING_SLOTS, self.times ) )

    def timing( self, name ):
        return self.times[TIMING_SLOTS.index( name )]

    @property
    def info( self ):
        return {'niter': self.niters, 'success': self.success, 'res_norm': self.normr}

#===============================================================================
class ConjugateGradient:
    """
    Preconditioned Conjugate Gradient (PCG) for the distributed symmetric
    positive definite system A x = b.

    Parameters
    ----------
    A : pyhpcg.linalg.sparse.SparseMatrix
        Optimized matrix of the linear system.

    pc : object with a dot(r, out) method, optional
        Preconditioner, approximating the inverse of A, e.g.
        `pyhpcg.linalg.symgs.SymmetricGaussSeidel`. If None, no
        preconditioner is used.

    tol : float
        Relative tolerance: the solver stops once ||r|| <= tol * ||r0||.
        With tol = 0 the solver always performs maxiter iterations.

    maxiter : int
        Maximum number of iterations.

    verbose : bool
        If True, L2-norm of residual r is printed at each iteration.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator used for the global reductions (by default the one of
        the halo exchanger of A).

    timer : callable
        Wall-clock time query, called at phase boundaries.

    """
    def __init__( self, A, *, pc=None, tol=0.0, maxiter=50, verbose=False, comm=None, timer=perf_counter ):

        assert isinstance( A, SparseMatrix )
        if not A.is_optimized or A.exchanger is None:
            raise RuntimeError( 'Conjugate Gradient requires an optimized matrix with a halo exchanger' )
        if tol < 0:
            raise ValueError( "Tolerance must be non-negative, got {}".format( tol ) )
        if int( maxiter ) != maxiter or maxiter < 0:
            raise ValueError( "Maximum number of iterations must be a non-negative integer, got {}".format( maxiter ) )

        self._A       = A
        self._pc      = pc
        self._comm    = A.exchanger.comm if comm is None else comm
        self._timer   = timer
        self._options = {"pc": pc, "tol": float( tol ), "maxiter": int( maxiter ), "verbose": verbose}

        # Work vectors: p and z are operands of SpMV / SymGS and need a halo
        self._tmps = {"r" : A.zeros(),
                      "Ap": A.zeros(),
                      "p" : A.zeros( halo=True ),
                      "z" : A.zeros( halo=True )}

        self._info = None

    #...
    @property
    def linop( self ):
        return self._A

    @property
    def options( self ):
        return self._options

    def get_info( self ):
        return self._info

    #...
    def solve( self, b, x ):
        """
        Solve A x = b, starting from the current content of x.

        Parameters
        ----------
        b : numpy.ndarray
            Right-hand side, of length A.nrows.

        x : numpy.ndarray
            Initial guess, of length A.nrows, overwritten by the solution.

        Returns
        -------
        result : CGResult
            Iteration count, residual norms, final state and timings.

        """
        A       = self._A
        pc      = self._pc
        comm    = self._comm
        timer   = self._timer
        tol     = self._options["tol"]
        maxiter = self._options["maxiter"]
        verbose = self._options["verbose"]

        n = A.nrows
        if b.ndim != 1 or b.shape[0] != n:
            raise ValueError( "Right-hand side has length {}, expected {}".format( b.shape[0], n ) )
        if x.ndim != 1 or x.shape[0] != n:
            raise ValueError( "Solution vector has length {}, expected {}".format( x.shape[0], n ) )

        # Extract local storage
        r  = self._tmps["r"]
        Ap = self._tmps["Ap"]
        p  = self._tmps["p"]
        z  = self._tmps["z"]

        times = np.zeros( len( TIMING_SLOTS ) )
        wait0 = A.exchanger.wait_time

        # Local dot product and global reduction are timed separately
        def dot( u, v ):
            t0 = timer()
            local = ddot( n, u, v )
            t1 = timer()
            value = global_sum( comm, local )
            t2 = timer()
            times[1] += t2 - t0
            times[4] += t2 - t1
            return value

        t_begin = timer()
        state   = CGState.INIT

        # First values: r = b - A x, computed from a copy of x with halo
        t0 = timer(); waxpby( n, 1.0, x, 0.0, x, p ); times[2] += timer() - t0
        t0 = timer(); A.dot( p, out=Ap )            ; times[3] += timer() - t0
        t0 = timer(); waxpby( n, 1.0, b, -1.0, Ap, r ); times[2] += timer() - t0

        normr  = sqrt( dot( r, r ) )
        normr0 = normr

        if verbose:
            print( "Pre-conditioned CG solver:" if pc is not None else "CG solver:" )
            print( "+---------+---------------------+")
            print( "+ Iter. # | L2-norm of residual |")
            print( "+---------+---------------------+")
            template = "| {:7d} | {:19.2e} |"
            print( template.format( 0, normr ) )

        if normr0 < tol:
            state = CGState.CONVERGED
        elif maxiter == 0:
            state = CGState.MAX_ITER_EXCEEDED
        else:
            state = CGState.ITERATING

        k   = 0
        rtz = 0.0

        # Iterate to convergence
        while state is CGState.ITERATING:

            k += 1

            # z = M^{-1} r
            t0 = timer()
            if pc is None:
                z[:n] = r
            else:
                pc.dot( r, out=z )
            times[6] += timer() - t0

            # New search direction
            if k == 1:
                t0 = timer(); waxpby( n, 1.0, z, 0.0, z, p ); times[2] += timer() - t0
                rtz = dot( r, z )
            else:
                oldrtz = rtz
                rtz    = dot( r, z )
                beta   = rtz / oldrtz if oldrtz != 0.0 else 0.0
                t0 = timer(); waxpby( n, 1.0, z, beta, p, p ); times[2] += timer() - t0

            t0 = timer(); A.dot( p, out=Ap ); times[3] += timer() - t0

            pAp   = dot( p, Ap )
            alpha = rtz / pAp if pAp != 0.0 else 0.0

            t0 = timer()
            waxpby( n, 1.0, x,  alpha, p , x ) # this is x += alpha*p
            waxpby( n, 1.0, r, -alpha, Ap, r ) # this is r -= alpha*Ap
            times[2] += timer() - t0

            normr = sqrt( dot( r, r ) )

            if verbose:
                print( template.format( k, normr ) )

            if tol > 0.0 and normr <= tol * normr0:
                state = CGState.CONVERGED
            elif k >= maxiter:
                state = CGState.MAX_ITER_EXCEEDED

        if verbose:
            print( "+---------+---------------------+")

        times[0] = timer() - t_begin
        times[5] = A.exchanger.wait_time - wait0

        result = CGResult( niters=k, normr=normr, normr0=normr0, state=state, times=tuple( times.tolist() ) )

        # Convergence information
        self._info = result.info

        return result
