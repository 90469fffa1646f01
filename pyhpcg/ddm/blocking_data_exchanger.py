#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
from time import perf_counter

from mpi4py import MPI

from .nonblocking_data_exchanger import NonBlockingHaloExchanger


__all__ = ('BlockingHaloExchanger',)

class BlockingHaloExchanger(NonBlockingHaloExchanger):
    """
    Halo exchanger that completes the whole exchange when it is started.

    The messages are the same as those of `NonBlockingHaloExchanger`, but
    `start_update_ghost_regions` only returns once the halo entries are up to
    date, hence no computation overlaps with communication. This is useful to
    measure the benefit of the overlap.

    """
    def start_update_ghost_regions( self, array ):

        requests = super().start_update_ghost_regions( array )

        t0 = perf_counter()
        MPI.Request.Waitall( requests )
        self._wait_time += perf_counter() - t0

        return None

    def _wait( self, requests ):
        pass
