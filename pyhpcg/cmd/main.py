#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import argparse
import logging
import sys

from pyhpcg.cmd.argparse_helpers import (PyhpcgArgumentParser, positive_int,
                                         non_negative_int, non_negative_float,
                                         add_help_flag, add_version_flag,
                                         exit_with_error_message)
from pyhpcg.ddm.mpi       import COMM_KINDS, get_comm
from pyhpcg.api.settings  import get_settings

__all__ = (
    'setup_pyhpcg_parser',
    'pyhpcg',
    'pyhpcg_command',
    'PYHPCG_DESCR',
)

PYHPCG_DESCR = """Run the PYHPCG benchmark: solve a 27-point stencil linear system,
distributed over all processes, with the preconditioned Conjugate Gradient.

Every process owns a block of nx*ny*nz grid points; the processes are
arranged on a 3D grid as close to a cube as possible. Example:

    mpirun -n 8 pyhpcg 32 32 32
"""
#==============================================================================
def setup_pyhpcg_parser(parser):
    """
    Add the `pyhpcg` arguments to the parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        The parser to be modified.
    """
    group = parser.add_argument_group('Local domain')
    group.add_argument('nx',
        type     = positive_int,
        help     = 'Number of grid points along x on each process.'
    )
    group.add_argument('ny',
        type     = positive_int,
        help     = 'Number of grid points along y on each process.'
    )
    group.add_argument('nz',
        type     = positive_int,
        help     = 'Number of grid points along z on each process.'
    )

    group = parser.add_argument_group('Solver')
    group.add_argument('--max-iter',
        type     = non_negative_int,
        default  = None,
        dest     = 'max_iter',
        metavar  = 'N',
        help     = 'Maximum number of CG iterations per call (default: 50).'
    )
    group.add_argument('--tolerance',
        type     = non_negative_float,
        default  = None,
        dest     = 'tolerance',
        metavar  = 'TOL',
        help     = 'Relative tolerance; 0 runs all iterations (default: 0).'
    )
    group.add_argument('--ncalls',
        type     = positive_int,
        default  = None,
        dest     = 'ncalls',
        metavar  = 'K',
        help     = 'Number of CG calls (default: 1).'
    )

    group = parser.add_argument_group('Communication')
    group.add_argument('--comm',
        type     = str,
        choices  = COMM_KINDS,
        default  = None,
        dest     = 'comm',
        help     = 'Communication layer (default: $PYHPCG_COMM or mpi).'
    )
    group.add_argument('--blocking',
        action   = 'store_const',
        const    = 'blocking',
        default  = None,
        dest     = 'exchange',
        help     = 'Use blocking halo exchanges, without overlap with the computation.'
    )

    group = parser.add_argument_group('Output')
    group.add_argument('-o', '--output-dir',
        type     = str,
        default  = None,
        dest     = 'output_dir',
        metavar  = 'DIR',
        help     = 'Directory of the YAML report (default: current directory).'
    )
    group.add_argument('--dump',
        action   = 'store_true',
        dest     = 'dump',
        help     = 'Write the local linear system of every process to an HDF5 file.'
    )
    group.add_argument('-v', '--verbose',
        action   = 'store_true',
        dest     = 'verbose',
        help     = 'Print the residual at each iteration and the progress of the run.'
    )
    group.add_argument('--debug',
        action   = 'store_true',
        dest     = 'debug',
        help     = 'Print debugging information.'
    )

    group = parser.add_argument_group('Other options')
    add_help_flag(group)
    add_version_flag(group)

#==============================================================================
def pyhpcg(*, nx, ny, nz, max_iter=None, tolerance=None, ncalls=None, comm=None,
           exchange=None, output_dir=None, dump=False, verbose=False, debug=False):
    """
    Run the benchmark and write its report.

    Returns
    -------
    path : str | None
        Path of the YAML report on process 0, None on other processes.
    """
    from pyhpcg.api.benchmark import run_benchmark
    from pyhpcg.api.report    import report_results

    # comm is either a communicator or the name of a communication layer
    if comm is None or isinstance(comm, str):
        settings = get_settings(comm=comm, exchange=exchange, output_dir=output_dir)
        comm     = get_comm(settings['comm'])
    else:
        settings = get_settings(exchange=exchange, output_dir=output_dir)

    rank = comm.Get_rank()

    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format=f'[{rank}] %(levelname)s %(name)s: %(message)s')

    result = run_benchmark(nx, ny, nz, comm,
        max_iter  = max_iter,
        tolerance = tolerance,
        ncalls    = ncalls,
        exchange  = settings['exchange'],
        dump_dir  = settings['output_dir'] if dump else None,
        verbose   = verbose,
    )

    return report_results(result, comm, output_dir=settings['output_dir'])

#==============================================================================
def pyhpcg_command(argv=None) -> None:
    """
    Main entry point for the `pyhpcg` command line interface.

    Bootstraps the communication layer, parses the command line arguments and
    runs the benchmark. Usage errors are reported by process 0 and all
    processes exit with status code 1.

    Parameters
    ----------
    argv : list of str, optional
        Command line arguments (default: sys.argv[1:]).
    """
    if argv is None:
        argv = sys.argv[1:]

    # The communication layer is needed before the other arguments are
    # parsed, to report usage errors once
    bootstrap = PyhpcgArgumentParser(add_help=False)
    bootstrap.add_argument('--comm', type=str, choices=COMM_KINDS, default=None)
    known, _ = bootstrap.parse_known_args(argv)

    try:
        settings = get_settings(comm=known.comm)
    except ValueError as e:
        exit_with_error_message(str(e), status=1)

    comm = get_comm(settings['comm'])

    parser = PyhpcgArgumentParser(
        prog            = 'pyhpcg',
        description     = PYHPCG_DESCR,
        formatter_class = argparse.RawDescriptionHelpFormatter,
        add_help        = False,
        comm            = comm,
    )
    setup_pyhpcg_parser(parser)

    kwargs = vars(parser.parse_args(argv))
    kwargs['comm'] = comm

    try:
        pyhpcg(**kwargs)
    except ValueError as e:
        exit_with_error_message(str(e), status=1, comm=comm)
