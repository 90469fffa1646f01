#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np
from mpi4py import MPI

from .basic     import HaloExchanger
from .utilities import find_mpi_type


__all__ = ('NonBlockingHaloExchanger',)

class NonBlockingHaloExchanger(HaloExchanger):
    """
    Type that takes care of updating the halo entries of a distributed vector
    with non-blocking point-to-point communications, so that the caller can
    compute while messages are in flight.

    Receives are posted directly into the halo slots of the vector; the values
    sent to each neighbor are packed into a private buffer, allocated once.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm
        Communicator of the process group.

    pattern : pyhpcg.ddm.pattern.CommunicationPattern
        Who sends what to whom.

    dtype : [type | str | numpy.dtype | mpi4py.MPI.Datatype]
        Datatype of the vector entries.

    """
    # Message tag, identical at sender and receiver
    tag = 99

    def __init__( self, comm, pattern, dtype=float ):

        super().__init__( comm, pattern )

        self._dtype    = np.dtype( dtype )
        self._mpi_type = find_mpi_type( dtype )
        self._send_buffers = {r: np.empty( len( pattern.send_indices( r ) ), dtype=self._dtype )
                              for r in pattern.neighbors}

    #---------------------------------------------------------------------------
    # Public interface
    #---------------------------------------------------------------------------
    def start_update_ghost_regions( self, array ):

        self._check_array( array )

        # Shortcuts
        comm    = self._comm
        pattern = self._pattern
        tag     = self.tag

        # Requests' handles
        requests = []

        # Start receiving data (MPI_IRECV)
        for r in pattern.neighbors:
            recv_buf = [array[pattern.recv_slice( r )], self._mpi_type]
            requests.append( comm.Irecv( recv_buf, source=r, tag=tag ) )

        # Pack boundary values and start sending data (MPI_ISEND)
        for r in pattern.neighbors:
            send_buf = self._send_buffers[r]
            np.take( array, pattern.send_indices( r ), out=send_buf )
            requests.append( comm.Isend( [send_buf, self._mpi_type], dest=r, tag=tag ) )

        return requests

    def _wait( self, requests ):
        # Wait for end of data exchange (MPI_WAITALL)
        MPI.Request.Waitall( requests )
