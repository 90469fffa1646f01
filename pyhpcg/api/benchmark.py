#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
"""
Benchmark driver: generation of the distributed problem, optimization of the
matrix and repeated solution with the preconditioned Conjugate Gradient.

"""
import logging
from dataclasses import dataclass
from time        import perf_counter

import numpy as np

from pyhpcg.api.settings     import get_settings, PYHPCG_EXCHANGES
from pyhpcg.ddm.geometry     import Geometry, generate_geometry
from pyhpcg.ddm.mpi          import get_comm
from pyhpcg.linalg.problem   import generate_problem
from pyhpcg.linalg.optimize  import optimize_problem
from pyhpcg.linalg.solvers   import ConjugateGradient, TIMING_SLOTS
from pyhpcg.linalg.symgs     import SymmetricGaussSeidel
from pyhpcg.linalg.utilities import compute_residual

__all__ = ('BenchmarkResult', 'run_benchmark')

logger = logging.getLogger(name=__name__)

#==============================================================================
@dataclass(frozen=True)
class BenchmarkResult:
    """
    Summary of a benchmark run, identical on all processes except for the
    local sizes.

    Attributes
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid (as seen by this process).

    nrows, nnz : int
        Local number of rows and non-zero entries.

    niters : int
        Total number of CG iterations, over all calls.

    normr : float
        Residual norm at the end of the last call.

    times : tuple of float
        Timings summed over all calls (see TIMING_SLOTS); the last entry is
        the time spent optimizing the matrix.

    residual : float | None
        Maximum difference between the last computed solution and the exact
        one, if requested.

    results : tuple of CGResult
        Outcome of every CG call.

    tolerance : float
        Relative tolerance of the CG solver.

    max_iter : int
        Maximum number of iterations of each CG call.

    exchange : str
        Halo exchange strategy, one of PYHPCG_EXCHANGES.

    """
    geometry  : Geometry
    nrows     : int
    nnz       : int
    niters    : int
    normr     : float
    times     : tuple
    residual  : float
    results   : tuple
    tolerance : float
    max_iter  : int
    exchange  : str

    @property
    def ncalls(self):
        return len(self.results)

    @property
    def nrows_global(self):
        return self.geometry.nrows_global

    @property
    def nnz_global(self):
        return self.geometry.nnz_global

    @property
    def overhead(self):
        t = self.times
        return t[0] - (t[1] + t[2] + t[3] + t[6])

    @property
    def timings(self):
        return dict(zip(TIMING_SLOTS, self.times))

#==============================================================================
def run_benchmark(nx, ny, nz, comm=None, *, max_iter=None, tolerance=None, ncalls=None,
                  exchange=None, check_residual=True, dump_dir=None, verbose=False,
                  timer=perf_counter):
    """
    Run the benchmark on a grid of nx*ny*nz points per process.

    Parameters
    ----------
    nx, ny, nz : int
        Local grid dimensions.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator of the process group; if None, it is created according
        to the settings (see `pyhpcg.api.settings.get_settings`).

    max_iter, tolerance, ncalls, exchange : optional
        Override the settings of the run.

    check_residual : bool
        Compare the last computed solution with the exact one.

    dump_dir : str, optional
        If given, every process writes its problem to an HDF5 file in this
        directory before the matrix is optimized.

    verbose : bool
        Print the residual table of the solver.

    timer : callable
        Wall-clock time query.

    Returns
    -------
    result : BenchmarkResult
        Iteration count, residual and timings of the run.

    """
    settings = get_settings(max_iter=max_iter, tolerance=tolerance, ncalls=ncalls, exchange=exchange)

    if comm is None:
        comm = get_comm(settings['comm'])

    size = comm.Get_size()
    rank = comm.Get_rank()

    geometry = generate_geometry(size, rank, nx, ny, nz)
    logger.debug('Rank %d: geometry %s', rank, geometry)

    problem = generate_problem(geometry)
    logger.debug('Rank %d: generated %d rows, %d non-zeros', rank, problem.A.nrows, problem.A.nnz)

    if dump_dir is not None:
        from pyhpcg.api.dump import write_problem
        filename = write_problem(problem, dump_dir)
        logger.debug('Rank %d: problem written to %s', rank, filename)

    blocking = PYHPCG_EXCHANGES[settings['exchange']]['blocking']

    t7 = timer()
    optimize_problem(problem, comm, blocking=blocking)
    t7 = timer() - t7
    logger.debug('Rank %d: matrix optimized in %g s (%d halo columns, %d neighbors)',
                 rank, t7, problem.A.pattern.nhalo, problem.A.pattern.nneighbors)

    A  = problem.A
    pc = SymmetricGaussSeidel(A)
    cg = ConjugateGradient(A, pc=pc, tol=settings['tolerance'], maxiter=settings['max_iter'],
                           verbose=verbose and rank == 0, comm=comm, timer=timer)

    times    = np.zeros(len(TIMING_SLOTS))
    results  = []
    residual = None

    for i in range(settings['ncalls']):
        res = cg.solve(problem.b, problem.x)
        results.append(res)
        times += res.times

        if rank == 0:
            logger.info('Call [%d] Residual [%g]', i, res.normr)

        # Difference with the exact solution, before x is reset
        if check_residual and i == settings['ncalls'] - 1:
            residual = compute_residual(problem.x, problem.xexact, comm)
            if rank == 0:
                logger.info('Difference between computed and exact = %g', residual)

        problem.reset()

    times[7] = t7

    problem.free()

    return BenchmarkResult(
        geometry  = geometry,
        nrows     = A.nrows,
        nnz       = A.nnz,
        niters    = sum(r.niters for r in results),
        normr     = results[-1].normr,
        times     = tuple(times.tolist()),
        residual  = residual,
        results   = tuple(results),
        tolerance = settings['tolerance'],
        max_iter  = settings['max_iter'],
        exchange  = settings['exchange'],
    )
