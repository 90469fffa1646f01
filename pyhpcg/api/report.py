#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import os
import logging
from datetime import datetime

import yaml
import numpy as np

from pyhpcg.version          import __version__
from pyhpcg.linalg.solvers   import TIMING_SLOTS

__all__ = ('count_flops', 'collect_results', 'report_results')

logger = logging.getLogger(name=__name__)

#==============================================================================
def count_flops(nrows_global, nnz_global, niters):
    """
    Number of floating-point operations performed by the CG iterations.

    Parameters
    ----------
    nrows_global : int
        Number of rows of the global matrix.

    nnz_global : int
        Number of non-zero entries of the global matrix.

    niters : int
        Total number of CG iterations.

    Returns
    -------
    flops : dict
        Operation count of each kind of kernel, and their total.

    """
    flops = {'ddot'   : 4 * nrows_global * niters,
             'waxpby' : 6 * nrows_global * niters,
             'spmv'   : 2 * nnz_global   * niters,
             'precond': 4 * nnz_global   * niters}
    flops['total'] = sum(flops.values())
    return flops

#==============================================================================
def _rate(flops, seconds):
    return float(flops) / seconds * 1e-9 if seconds > 0 else 0.0

#==============================================================================
def collect_results(result, comm=None):
    """
    Gather the summary of a benchmark run into a nested dictionary.

    Timings are the maximum over all processes; with a communicator this
    function is collective.

    Parameters
    ----------
    result : pyhpcg.api.benchmark.BenchmarkResult
        Outcome of the run on this process.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator of the process group.

    Returns
    -------
    data : dict
        Content of the report, made of Python built-in types only.

    """
    times = np.asarray(result.times, dtype=float)
    if comm is not None:
        times = np.max(np.array(comm.allgather(times)), axis=0)
    times = [float(t) for t in times]

    geometry = result.geometry
    flops    = count_flops(result.nrows_global, result.nnz_global, result.niters)

    total    = times[TIMING_SLOTS.index('total')]
    overhead = total - sum(times[TIMING_SLOTS.index(k)] for k in ('ddot', 'waxpby', 'spmv', 'precond'))

    rates = {'ddot'   : _rate(flops['ddot']   , times[TIMING_SLOTS.index('ddot')]),
             'waxpby' : _rate(flops['waxpby'] , times[TIMING_SLOTS.index('waxpby')]),
             'spmv'   : _rate(flops['spmv']   , times[TIMING_SLOTS.index('spmv')]),
             'precond': _rate(flops['precond'], times[TIMING_SLOTS.index('precond')]),
             'total'  : _rate(flops['total']  , total)}

    residual = None if result.residual is None else float(result.residual)

    data = {
        'PYHPCG benchmark': {
            'version': __version__,
            'date'   : datetime.now().isoformat(timespec='seconds'),
        },
        'Machine': {
            'processes'   : geometry.size,
            'process grid': dict(zip(('npx', 'npy', 'npz'), geometry.nprocs)),
        },
        'Linear system': {
            'local domain' : dict(zip(('nx', 'ny', 'nz'), geometry.local_shape)),
            'global domain': dict(zip(('nx', 'ny', 'nz'), geometry.global_shape)),
            'rows'         : geometry.nrows_global,
            'non-zeros'    : geometry.nnz_global,
        },
        'Solver': {
            'CG calls'             : result.ncalls,
            'iterations'           : result.niters,
            'maximum iterations'   : result.max_iter,
            'tolerance'            : result.tolerance,
            'halo exchange'        : result.exchange,
            'final residual norm'  : float(result.normr),
            'converged'            : all(r.success for r in result.results),
            'difference with exact': residual,
        },
        'Timings (s)': dict(zip(TIMING_SLOTS, times), overhead=overhead),
        'Floating-point operations': flops,
        'GFLOP/s': rates,
    }

    return data

#==============================================================================
def report_results(result, comm=None, *, output_dir='.', filename=None):
    """
    Write the summary of a benchmark run to a YAML file.

    The report is collected on all processes and written by process 0 only.

    Parameters
    ----------
    result : pyhpcg.api.benchmark.BenchmarkResult
        Outcome of the run on this process.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator of the process group.

    output_dir : str
        Directory of the report, created if needed.

    filename : str, optional
        Name of the report file (default: pyhpcg-<date>.yaml).

    Returns
    -------
    path : str | None
        Path of the report on process 0, None on other processes.

    """
    data = collect_results(result, comm)

    if comm is not None and comm.Get_rank() != 0:
        return None

    if filename is None:
        filename = 'pyhpcg-{}.yaml'.format(datetime.now().strftime('%Y.%m.%d.%H.%M.%S'))
    elif not os.path.splitext(filename)[-1] in ['.yml', '.yaml']:
        filename = filename + '.yaml'

    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)

    with open(path, 'w') as f:
        yaml.dump(data=data, stream=f, default_flow_style=False, sort_keys=False)

    logger.info('Results written to %s', path)

    return path
