#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np

from .mpi     import is_serial
from .basic   import SerialHaloExchanger
from .pattern import CommunicationPattern


__all__ = ('find_mpi_type', 'get_halo_exchanger')

#===============================================================================
def find_mpi_type( dtype ):
    """
    Find correct MPI datatype that corresponds to user-provided datatype.

    Parameters
    ----------
    dtype : [type | str | numpy.dtype | mpi4py.MPI.Datatype]
        Datatype for which the corresponding MPI datatype is requested.

    Returns
    -------
    mpi_type : mpi4py.MPI.Datatype
        MPI datatype to be used for communication.

    """
    from mpi4py import MPI

    if isinstance( dtype, MPI.Datatype ):
        mpi_type = dtype
    else:
        nt = np.dtype( dtype )
        mpi_type = MPI._typedict[nt.char]

    return mpi_type

#===============================================================================
def get_halo_exchanger( comm, pattern, *, dtype=float, blocking=False ):
    """
    Create the object in charge of updating the halo entries of the vectors
    distributed according to a communication pattern.

    A process without neighbors (in particular a single process, whether the
    communicator is a SerialComm or an MPI communicator of size 1) gets a
    no-op exchanger, and never needs mpi4py.

    """
    assert isinstance( pattern, CommunicationPattern )

    if is_serial( comm ) or pattern.is_empty:
        return SerialHaloExchanger( comm, pattern )

    if blocking:
        from .blocking_data_exchanger import BlockingHaloExchanger
        return BlockingHaloExchanger( comm, pattern, dtype=dtype )
    else:
        from .nonblocking_data_exchanger import NonBlockingHaloExchanger
        return NonBlockingHaloExchanger( comm, pattern, dtype=dtype )
