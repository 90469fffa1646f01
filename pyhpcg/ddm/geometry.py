#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np

from sympy.ntheory import factorint


__all__ = ('compute_dims', 'generate_geometry', 'Geometry')

#==============================================================================
def compute_dims( nnodes, ndims=3 ):
    """
    With the aim of distributing a 3D grid of identical local blocks on a
    Cartesian topology, compute the number of processes along each dimension.

    The prime factors of `nnodes` are taken from the largest to the smallest,
    and each of them multiplies the dimension which currently has the fewest
    processes (the first one in case of a tie), so that the process grid is as
    close to a cube as possible.

    Parameters
    ----------
    nnodes : int
        Number of processes in the Cartesian topology.

    ndims : int
        Number of dimensions of the topology.

    Returns
    -------
    dims : list of int
        Number of processes along each dimension of the Cartesian topology.

    """
    if int( nnodes ) != nnodes or nnodes < 1:
        raise ValueError( "Cannot build a process grid with {} processes".format( nnodes ) )

    nprocs = [1]*ndims

    f = factorint( int( nnodes ), multiple=True )
    f.sort( reverse=True )

    for a in f:
        i = int( np.argmin( nprocs ) )
        nprocs[i] *= a

    assert int( np.prod( nprocs ) ) == nnodes

    return nprocs

#==============================================================================
def generate_geometry( size, rank, nx, ny, nz ):
    """
    Compute the process grid and the local sub-domain of one process.

    Parameters
    ----------
    size : int
        Total number of cooperating processes.

    rank : int
        Rank of this process, in [0, size).

    nx, ny, nz : int
        Number of grid points of the local sub-block along each direction.

    Returns
    -------
    geometry : Geometry
        Fully populated geometry, identical on all processes except for the
        rank-dependent coordinates.

    """
    for name, n in zip( 'xyz', (nx, ny, nz) ):
        if int( n ) != n or n < 1:
            raise ValueError( "Local dimension n{} must be a positive integer, got {}".format( name, n ) )

    npx, npy, npz = compute_dims( size )

    return Geometry( size, rank, nx, ny, nz, npx, npy, npz )

#==============================================================================
class Geometry:
    """
    Cartesian decomposition of a 3D grid of (npx*nx, npy*ny, npz*nz) points
    into npx*npy*npz identical blocks of (nx, ny, nz) points, one per process.

    Ranks and points are both flattened in row-major order with x running
    fastest: rank = ipz*npx*npy + ipy*npx + ipx, and global row
    g = gz*gnx*gny + gy*gnx + gx. All index methods accept integers or numpy
    arrays.

    Parameters
    ----------
    size : int
        Number of processes.

    rank : int
        Rank of this process.

    nx, ny, nz : int
        Local block dimensions.

    npx, npy, npz : int
        Process grid dimensions, with npx*npy*npz == size.

    """
    def __init__( self, size, rank, nx, ny, nz, npx, npy, npz ):

        if npx*npy*npz != size:
            raise ValueError( "Process grid {}x{}x{} does not match {} processes".format( npx, npy, npz, size ) )
        if not 0 <= rank < size:
            raise ValueError( "Rank {} is out of range for {} processes".format( rank, size ) )
        if min( nx, ny, nz, npx, npy, npz ) < 1:
            raise ValueError( "Degenerate geometry: all dimensions must be >= 1" )

        self._size  = int( size )
        self._rank  = int( rank )
        self._local_shape  = (int( nx  ), int( ny  ), int( nz  ))
        self._nprocs       = (int( npx ), int( npy ), int( npz ))
        self._coords       = self.rank_coords( rank )
        self._global_shape = tuple( n*p for n, p in zip( self._local_shape, self._nprocs ) )
        self._starts       = tuple( n*c for n, c in zip( self._local_shape, self._coords ) )
        self._ends         = tuple( s+n-1 for s, n in zip( self._starts, self._local_shape ) )

    #---------------------------------------------------------------------------
    # Global properties (same for each process)
    #---------------------------------------------------------------------------
    @property
    def size( self ):
        return self._size

    @property
    def nprocs( self ):
        """ Process grid dimensions (npx, npy, npz). """
        return self._nprocs

    @property
    def local_shape( self ):
        """ Local block dimensions (nx, ny, nz). """
        return self._local_shape

    @property
    def global_shape( self ):
        """ Global grid dimensions (gnx, gny, gnz). """
        return self._global_shape

    @property
    def nrows_global( self ):
        return int( np.prod( self._global_shape ) )

    @property
    def nnz_global( self ):
        """
        Number of non-zeros of the 27-point stencil matrix on the global grid:
        along a line of g points there are 3g-2 pairs (i, j) with |i-j| <= 1.

        """
        return int( np.prod( [3*g-2 for g in self._global_shape] ) )

    @property
    def nx( self ):
        return self._local_shape[0]

    @property
    def ny( self ):
        return self._local_shape[1]

    @property
    def nz( self ):
        return self._local_shape[2]

    @property
    def npx( self ):
        return self._nprocs[0]

    @property
    def npy( self ):
        return self._nprocs[1]

    @property
    def npz( self ):
        return self._nprocs[2]

    #---------------------------------------------------------------------------
    # Local properties
    #---------------------------------------------------------------------------
    @property
    def rank( self ):
        return self._rank

    @property
    def coords( self ):
        """ Coordinates (ipx, ipy, ipz) of this process in the process grid. """
        return self._coords

    @property
    def starts( self ):
        """ Global coordinates of the first local point. """
        return self._starts

    @property
    def ends( self ):
        """ Global coordinates of the last local point (inclusive). """
        return self._ends

    @property
    def nrows( self ):
        return int( np.prod( self._local_shape ) )

    #---------------------------------------------------------------------------
    # Index arithmetic
    #---------------------------------------------------------------------------
    def rank_coords( self, rank ):
        npx, npy, _ = self._nprocs
        return (rank % npx, (rank // npx) % npy, rank // (npx*npy))

    def rank_index( self, ipx, ipy, ipz ):
        npx, npy, _ = self._nprocs
        return (ipz*npy + ipy)*npx + ipx

    def global_index( self, gx, gy, gz ):
        gnx, gny, _ = self._global_shape
        return (gz*gny + gy)*gnx + gx

    def global_coords( self, g ):
        gnx, gny, _ = self._global_shape
        return (g % gnx, (g // gnx) % gny, g // (gnx*gny))

    def local_index( self, ix, iy, iz ):
        nx, ny, _ = self._local_shape
        return (iz*ny + iy)*nx + ix

    def local_coords( self, l ):
        nx, ny, _ = self._local_shape
        return (l % nx, (l // nx) % ny, l // (nx*ny))

    def local_to_global( self, l ):
        ix, iy, iz = self.local_coords( l )
        sx, sy, sz = self._starts
        return self.global_index( ix+sx, iy+sy, iz+sz )

    def global_to_local( self, g ):
        """ Natural local index of a global row owned by this process. """
        gx, gy, gz = self.global_coords( g )
        sx, sy, sz = self._starts
        return self.local_index( gx-sx, gy-sy, gz-sz )

    def rank_of( self, gx, gy, gz ):
        """ Rank of the process owning the point of global coordinates (gx, gy, gz). """
        nx, ny, nz = self._local_shape
        return self.rank_index( gx // nx, gy // ny, gz // nz )

    def owner( self, g ):
        return self.rank_of( *self.global_coords( g ) )

    def owns( self, g ):
        return self.owner( g ) == self._rank

    def are_neighbors( self, rank1, rank2 ):
        """ True if the blocks of two distinct ranks touch (face, edge or corner). """
        c1 = self.rank_coords( rank1 )
        c2 = self.rank_coords( rank2 )
        return rank1 != rank2 and all( abs( a-b ) <= 1 for a, b in zip( c1, c2 ) )

    #---------------------------------------------------------------------------
    def for_rank( self, rank ):
        """ Geometry of another process of the same decomposition. """
        return Geometry( self._size, rank, *self._local_shape, *self._nprocs )

    def __eq__( self, other ):
        return (isinstance( other, Geometry ) and self._rank == other._rank and
                self._size == other._size and self._nprocs == other._nprocs and
                self._local_shape == other._local_shape)

    def __hash__( self ):
        return hash( (self._size, self._rank, self._nprocs, self._local_shape) )

    def __repr__( self ):
        return 'Geometry(size={}, rank={}, local_shape={}, nprocs={})'.format(
                self._size, self._rank, self._local_shape, self._nprocs )
