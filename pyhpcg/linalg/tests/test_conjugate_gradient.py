import numpy as np
import pytest

from pyhpcg.ddm.geometry    import generate_geometry
from pyhpcg.ddm.mpi         import SerialComm
from pyhpcg.linalg.problem  import generate_problem
from pyhpcg.linalg.optimize import optimize_problem
from pyhpcg.linalg.symgs    import SymmetricGaussSeidel
from pyhpcg.linalg.solvers  import ConjugateGradient, CGState, TIMING_SLOTS
from pyhpcg.linalg.utilities import ddot

#===============================================================================
def make_solver( nx, ny, nz, *, precondition=True, **kwargs ):

    comm    = SerialComm()
    problem = optimize_problem( generate_problem( generate_geometry( 1, 0, nx, ny, nz ) ), comm )
    pc      = SymmetricGaussSeidel( problem.A ) if precondition else None
    solver  = ConjugateGradient( problem.A, pc=pc, comm=comm, **kwargs )

    return problem, solver

#===============================================================================
@pytest.mark.parametrize( 'maxiter', [1, 5, 12] )

def test_cg_zero_tolerance( maxiter ):

    problem, solver = make_solver( 4, 4, 4, tol=0.0, maxiter=maxiter )

    result = solver.solve( problem.b, problem.x )

    assert result.niters == maxiter
    assert result.state is CGState.MAX_ITER_EXCEEDED
    assert not result.success
    assert result.normr < result.normr0

#===============================================================================
@pytest.mark.parametrize( 'precondition', [True, False] )

def test_cg_convergence( precondition ):

    tol = 1e-10
    problem, solver = make_solver( 4, 3, 5, tol=tol, maxiter=200, precondition=precondition )

    result = solver.solve( problem.b, problem.x )

    assert result.state is CGState.CONVERGED
    assert result.success
    assert 0 < result.niters < 200
    assert result.normr <= tol * result.normr0
    assert np.allclose( problem.x, problem.xexact, rtol=0, atol=1e-8 )

    info = solver.get_info()
    assert info['niter']   == result.niters
    assert info['success']
    assert info['res_norm'] == result.normr

#===============================================================================
def test_cg_preconditioner_reduces_iterations():

    # On small grids plain CG already needs few iterations
    problem, solver = make_solver( 10, 10, 10, tol=1e-8, maxiter=500 )
    niters_pc = solver.solve( problem.b, problem.x ).niters

    problem, solver = make_solver( 10, 10, 10, tol=1e-8, maxiter=500, precondition=False )
    niters = solver.solve( problem.b, problem.x ).niters

    assert niters_pc < niters

#===============================================================================
def test_cg_initial_residual_norm():

    # x = 0, hence r0 = b
    problem, solver = make_solver( 4, 3, 2, tol=0.0, maxiter=1 )
    comm = SerialComm()

    result = solver.solve( problem.b, problem.x )

    assert result.normr0 == np.sqrt( ddot( problem.A.nrows, problem.b, problem.b, comm ) )

#===============================================================================
def test_cg_reset_reproducible():

    problem, solver = make_solver( 4, 4, 4, tol=0.0, maxiter=7 )

    r1 = solver.solve( problem.b, problem.x )
    x1 = problem.x.copy()

    problem.reset()

    r2 = solver.solve( problem.b, problem.x )

    assert r1.normr  == r2.normr
    assert r1.normr0 == r2.normr0
    assert np.array_equal( x1, problem.x )

#===============================================================================
def test_cg_exact_initial_guess():

    # Initial residual is zero: converged immediately if tol > 0
    problem, solver = make_solver( 3, 3, 3, tol=1e-6, maxiter=10 )
    problem.x[:] = problem.xexact

    result = solver.solve( problem.b, problem.x )

    assert result.state is CGState.CONVERGED
    assert result.niters == 0
    assert result.normr  == 0.0

    # With zero tolerance all iterations run, with zero steps
    problem, solver = make_solver( 3, 3, 3, tol=0.0, maxiter=4 )
    problem.x[:] = problem.xexact

    result = solver.solve( problem.b, problem.x )

    assert result.state is CGState.MAX_ITER_EXCEEDED
    assert result.niters == 4
    assert result.normr  == 0.0
    assert np.array_equal( problem.x, problem.xexact )

#===============================================================================
def test_cg_no_iterations():

    problem, solver = make_solver( 3, 3, 3, maxiter=0 )

    result = solver.solve( problem.b, problem.x )

    assert result.niters == 0
    assert result.state is CGState.MAX_ITER_EXCEEDED
    assert result.normr == result.normr0

#===============================================================================
def test_cg_timings():

    problem, solver = make_solver( 4, 4, 4, maxiter=5 )

    result = solver.solve( problem.b, problem.x )
    times  = result.times

    assert len( times ) == len( TIMING_SLOTS ) == 8
    assert all( t >= 0.0 for t in times )
    assert times[TIMING_SLOTS.index( 'optimize' )] == 0.0
    assert result.timing( 'allreduce' ) <= result.timing( 'ddot' )
    assert result.overhead >= 0.0
    assert result.overhead == pytest.approx( times[0] - times[1] - times[2] - times[3] - times[6] )

#===============================================================================
def test_cg_verbose( capsys ):

    problem, solver = make_solver( 2, 2, 2, maxiter=3, verbose=True )

    solver.solve( problem.b, problem.x )

    out = capsys.readouterr().out
    assert 'Pre-conditioned CG solver' in out
    assert 'L2-norm of residual' in out

#===============================================================================
def test_cg_errors():

    problem, solver = make_solver( 3, 3, 3 )

    with pytest.raises( ValueError ):
        solver.solve( problem.b[:-1], problem.x )

    with pytest.raises( ValueError ):
        solver.solve( problem.b, np.zeros( problem.A.nrows + 1 ) )

    with pytest.raises( ValueError ):
        ConjugateGradient( problem.A, tol=-1.0 )

    # Matrix not optimized
    A = generate_problem( generate_geometry( 1, 0, 3, 3, 3 ) ).A
    with pytest.raises( RuntimeError ):
        ConjugateGradient( A )
