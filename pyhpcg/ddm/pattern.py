#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np


__all__ = ('CommunicationPattern',)

#===============================================================================
class CommunicationPattern:
    """
    Point-to-point communication pattern of a halo exchange.

    A vector with halo capacity stores the values of the `nrows` local rows
    first, followed by the halo values received from the neighbors. The halo
    values received from each neighbor occupy a contiguous slice, neighbors
    being sorted by ascending rank.

    Parameters
    ----------
    nrows : int
        Number of locally owned rows.

    neighbors : sequence of int
        Ranks of the neighbor processes, in ascending order.

    send_lists : dict
        For each neighbor rank, the ordered array of local row indices whose
        values must be sent to it.

    recv_counts : dict
        For each neighbor rank, the number of halo values received from it.

    Notes
    -----
    Both the send list from rank A to rank B and the receive slice of rank B
    from rank A are ordered by ascending global row index, which makes them
    consistent without any negotiation.

    """
    def __init__( self, nrows, neighbors, send_lists, recv_counts ):

        neighbors = tuple( int( r ) for r in neighbors )
        assert list( neighbors ) == sorted( set( neighbors ) )
        assert set( send_lists  ) == set( neighbors )
        assert set( recv_counts ) == set( neighbors )

        self._nrows      = int( nrows )
        self._neighbors  = neighbors
        self._send_lists = {r: np.asarray( send_lists[r], dtype=np.int64 ) for r in neighbors}

        self._recv_slices = {}
        offset = self._nrows
        for r in neighbors:
            self._recv_slices[r] = slice( offset, offset + int( recv_counts[r] ) )
            offset += int( recv_counts[r] )

        self._ncols = offset

        for idx in self._send_lists.values():
            idx.flags.writeable = False

    #---------------------------------------------------------------------------
    @property
    def nrows( self ):
        return self._nrows

    @property
    def ncols( self ):
        """ Length of a vector with halo capacity. """
        return self._ncols

    @property
    def nhalo( self ):
        return self._ncols - self._nrows

    @property
    def neighbors( self ):
        return self._neighbors

    @property
    def nneighbors( self ):
        return len( self._neighbors )

    @property
    def total_send( self ):
        return sum( len( idx ) for idx in self._send_lists.values() )

    @property
    def is_empty( self ):
        return len( self._neighbors ) == 0

    def send_indices( self, rank ):
        return self._send_lists[rank]

    def recv_slice( self, rank ):
        return self._recv_slices[rank]

    def recv_count( self, rank ):
        s = self._recv_slices[rank]
        return s.stop - s.start

    #---------------------------------------------------------------------------
    def __str__( self ):
        txt  = '\n'
        txt += '> nrows     :: {}\n'.format( self._nrows )
        txt += '> nhalo     :: {}\n'.format( self.nhalo )
        txt += '> neighbors :: {}\n'.format( self._neighbors )
        for r in self._neighbors:
            txt += '>   rank {:4d} :: send {:6d}, recv {:6d}\n'.format(
                    r, len( self._send_lists[r] ), self.recv_count( r ) )
        return txt
