#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import sys
import argparse

from termcolor import colored

from pyhpcg import __version__ as pyhpcg_version
from pyhpcg import __path__ as pyhpcg_path

__all__ = (
    'PyhpcgArgumentParser',
    'positive_int',
    'non_negative_int',
    'non_negative_float',
    'add_help_flag',
    'add_version_flag',
    'exit_with_error_message',
)

#------------------------------------------------------------------------------
class PyhpcgArgumentParser(argparse.ArgumentParser):
    """
    Argument parser which reports usage errors once per process group.

    The usage message and the error are printed by process 0 only, and all
    processes exit with status code 1.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator of the process group.
    """
    def __init__(self, *args, comm=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.comm = comm

    def error(self, message):
        if self.comm is None or self.comm.Get_rank() == 0:
            self.print_usage(sys.stderr)
        exit_with_error_message(message, status=1, comm=self.comm)

#------------------------------------------------------------------------------
def positive_int(value: str) -> int:
    """
    Convert a command line argument to a positive integer.

    Parameters
    ----------
    value : str
        The command line argument.

    Returns
    -------
    int
        The converted value, > 0.
    """
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid positive integer: '{value}'")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {n}")
    return n

#------------------------------------------------------------------------------
def non_negative_int(value: str) -> int:
    """ Convert a command line argument to an integer >= 0. """
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid non-negative integer: '{value}'")
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer, got {n}")
    return n

#------------------------------------------------------------------------------
def non_negative_float(value: str) -> float:
    """ Convert a command line argument to a float >= 0. """
    try:
        x = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid non-negative number: '{value}'")
    if not x >= 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative number, got {x}")
    return x

#------------------------------------------------------------------------------
def add_help_flag(parser: argparse.ArgumentParser) -> None:
    """
    Add `-h/--help` flag to argument parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        The parser to be modified.
    """
    message = 'Show this help message and exit.'
    parser.add_argument('-h', '--help', action='help', help=message)

#------------------------------------------------------------------------------
def add_version_flag(parser: argparse.ArgumentParser) -> None:
    """
    Add `-V/--version` flag to argument parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        The parser to be modified.
    """
    version = pyhpcg_version
    libpath = pyhpcg_path[0]
    python  = f'python {sys.version_info.major}.{sys.version_info.minor}'
    message = f'pyhpcg {version} from {libpath} ({python})'

    parser.add_argument('-V', '--version', action='version',
                        help='Show version and exit.', version=message)

#------------------------------------------------------------------------------
def exit_with_error_message(msg: str, status: int = 1, comm=None) -> None:
    """
    Print a colored error message on stderr and exit.

    Print a colored error message on stderr (from process 0 only, if a
    communicator is given) and exit with the given status code.

    Parameters
    ----------
    msg : str
        The error message to be printed.

    status : int
        The exit status code.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator of the process group.
    """
    if comm is None or comm.Get_rank() == 0:
        err = colored('ERROR', color='magenta', attrs=['bold'])
        sep = colored(': ', color='magenta')
        msg = colored(msg, color='magenta')
        print(f'{err}{sep}{msg}', file=sys.stderr)
    sys.exit(status)
