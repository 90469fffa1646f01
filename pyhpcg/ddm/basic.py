#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
from abc  import ABC, abstractmethod
from time import perf_counter

from .pattern import CommunicationPattern


__all__ = ('HaloExchanger', 'SerialHaloExchanger')
#===============================================================================
class HaloExchanger(ABC):
    """
    Type that takes care of updating the halo (ghost) entries of a vector
    distributed by rows, according to a given communication pattern.

    The vector must have halo capacity, i.e. its length is `pattern.ncols`:
    the owned rows are stored first and the halo values after them.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm
        Communicator of the process group.

    pattern : pyhpcg.ddm.pattern.CommunicationPattern
        Who sends what to whom.

    """
    def __init__( self, comm, pattern ):

        assert isinstance( pattern, CommunicationPattern )

        self._comm      = comm
        self._pattern   = pattern
        self._wait_time = 0.0

    #---------------------------------------------------------------------------
    # Public interface
    #---------------------------------------------------------------------------
    @property
    def comm( self ):
        return self._comm

    @property
    def pattern( self ):
        return self._pattern

    @property
    def wait_time( self ):
        """ Accumulated time spent waiting for the completion of exchanges. """
        return self._wait_time

    def update_ghost_regions( self, array ):
        """ Complete halo exchange, without overlap with computation. """
        requests = self.start_update_ghost_regions( array )
        self.end_update_ghost_regions( array, requests )

    def end_update_ghost_regions( self, array, requests ):
        """
        Wait for the halo exchange started by `start_update_ghost_regions`.
        After this call the halo entries of `array` can be read.

        """
        t0 = perf_counter()
        self._wait( requests )
        self._wait_time += perf_counter() - t0

    def free( self ):
        """ Release communication resources. """

    def _check_array( self, array ):
        if array.ndim != 1 or array.shape[0] != self._pattern.ncols:
            raise ValueError( "Vector of length {} has no halo capacity, expected length {}".format(
                array.shape[0], self._pattern.ncols ) )

    #---------------------------------------------------------------------------
    # Deferred methods
    #---------------------------------------------------------------------------
    @abstractmethod
    def start_update_ghost_regions( self, array ):
        """
        Start updating the halo entries of a numpy array: post the receives
        and send the boundary values needed by the neighbors.

        Parameters
        ----------
        array : numpy.ndarray
            Local part of a distributed vector, with halo capacity.

        Returns
        -------
        requests : list | None
            Handles of the pending communications.

        """

    @abstractmethod
    def _wait( self, requests ):
        pass

#===============================================================================
class SerialHaloExchanger(HaloExchanger):
    """
    Trivial exchanger of a single process: there is no halo to update.

    """
    def __init__( self, comm, pattern ):

        super().__init__( comm, pattern )

        if not pattern.is_empty:
            raise RuntimeError( "A single process cannot provide halo values for neighbors {}".format(
                pattern.neighbors ) )

    def start_update_ghost_regions( self, array ):
        self._check_array( array )
        return None

    def _wait( self, requests ):
        pass
