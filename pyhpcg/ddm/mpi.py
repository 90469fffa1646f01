#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
"""
Communication layer of the benchmark.

The same code path is used with and without MPI: in serial mode the
communicator is a `SerialComm`, which implements the handful of mpi4py
methods needed by PYHPCG for a group of exactly one process.

"""

__all__ = ('SerialComm', 'get_comm', 'is_serial', 'COMM_KINDS')

COMM_KINDS = ('mpi', 'serial')

#===============================================================================
class SerialComm:
    """
    Communicator of a single process.

    It mimics the subset of the `mpi4py.MPI.Comm` interface used by the
    benchmark: rank/size queries, barriers and object collectives. Point-to-point
    messages are never needed, because a single process has no halo.

    """
    rank = 0
    size = 1

    def Get_rank(self):
        return 0

    def Get_size(self):
        return 1

    def Barrier(self):
        return

    def allgather(self, sendobj):
        return [sendobj]

    def bcast(self, obj, root=0):
        assert root == 0
        return obj

    def __repr__(self):
        return 'SerialComm()'

#===============================================================================
def get_comm(kind='mpi'):
    """
    Bootstrap the process group and return its communicator.

    Parameters
    ----------
    kind : str
        'mpi' for `mpi4py.MPI.COMM_WORLD`, 'serial' for a `SerialComm`.
        mpi4py is only imported in the first case.

    Returns
    -------
    comm : mpi4py.MPI.Comm | SerialComm
        Communicator with stable and contiguous ranks 0..size-1.

    """
    if kind == 'mpi':
        from mpi4py import MPI
        return MPI.COMM_WORLD
    elif kind == 'serial':
        return SerialComm()
    else:
        raise ValueError(f"Communication layer '{kind}' not understood, expected one of {COMM_KINDS}.")

#===============================================================================
def is_serial(comm):
    """ True if comm is None or groups a single process. """
    return comm is None or comm.Get_size() == 1
