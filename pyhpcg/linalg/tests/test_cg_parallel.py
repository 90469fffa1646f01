# File test_cg_parallel.py

import numpy as np
import pytest

#===============================================================================
# TEST preconditioned CG on all processes
#===============================================================================
def run_cg_parallel( nx, ny, nz, *, tol, maxiter, blocking=False ):

    from mpi4py import MPI

    from pyhpcg.ddm.geometry     import generate_geometry
    from pyhpcg.linalg.problem   import generate_problem
    from pyhpcg.linalg.optimize  import optimize_problem
    from pyhpcg.linalg.symgs     import SymmetricGaussSeidel
    from pyhpcg.linalg.solvers   import ConjugateGradient
    from pyhpcg.linalg.utilities import compute_residual

    comm = MPI.COMM_WORLD
    size = comm.Get_size()
    rank = comm.Get_rank()

    geometry = generate_geometry( size, rank, nx, ny, nz )
    problem  = optimize_problem( generate_problem( geometry ), comm, blocking=blocking )

    pc     = SymmetricGaussSeidel( problem.A )
    solver = ConjugateGradient( problem.A, pc=pc, tol=tol, maxiter=maxiter, verbose=(rank == 0) )

    first = solver.solve( problem.b, problem.x )
    error = compute_residual( problem.x, problem.xexact, comm )

    problem.reset()
    second = solver.solve( problem.b, problem.x )

    # Same values on all processes
    normrs  = comm.allgather( first.normr )
    niterss = comm.allgather( first.niters )

    problem.free()

    return locals()

#===============================================================================
@pytest.mark.mpi
def test_cg_parallel_zero_tolerance():

    namespace = run_cg_parallel( 4, 4, 4, tol=0.0, maxiter=10 )

    first  = namespace['first']
    second = namespace['second']

    assert first.niters == 10
    assert first.normr  == second.normr
    assert len( set( namespace['normrs']  ) ) == 1
    assert len( set( namespace['niterss'] ) ) == 1

#===============================================================================
@pytest.mark.mpi
@pytest.mark.parametrize( 'blocking', [False, True] )

def test_cg_parallel_convergence( blocking ):

    namespace = run_cg_parallel( 3, 4, 5, tol=1e-10, maxiter=200, blocking=blocking )

    first = namespace['first']

    assert first.success
    assert first.normr <= 1e-10 * first.normr0
    assert namespace['error'] < 1e-8

#===============================================================================
# RUN TEST MANUALLY
#===============================================================================
if __name__ == '__main__':

    namespace = run_cg_parallel( 16, 16, 16, tol=0.0, maxiter=50 )

    if namespace['rank'] == 0:
        print( namespace['first'] )
