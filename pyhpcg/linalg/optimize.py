#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
"""
Local reordering of the matrix rows and setup of the halo exchange.

Rows are colored by the parity of their global coordinates: two points of the
27-point stencil are coupled only if their coordinates differ by at most one
along each axis, so two distinct points with the same parities are never
coupled. The 8 colors are stored one after the other, so that the rows of a
color form a contiguous block which can be relaxed at once by the symmetric
Gauss-Seidel sweep.

"""
import numpy as np

from pyhpcg.ddm.geometry  import Geometry
from pyhpcg.ddm.pattern   import CommunicationPattern
from pyhpcg.ddm.utilities import get_halo_exchanger
from pyhpcg.linalg.sparse import SparseMatrix

__all__ = (
    'NCOLORS',
    'color_rows',
    'reorder_rows',
    'build_communication_pattern',
    'optimize_matrix',
    'optimize_problem',
    'check_communication_pattern',
)

NCOLORS = 8

#===============================================================================
def color_rows( geometry, row_globals ):
    """
    Color of each row, c = (gx%2) + 2*(gy%2) + 4*(gz%2).

    Parameters
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid.

    row_globals : numpy.ndarray
        Global index of each row.

    Returns
    -------
    colors : numpy.ndarray
        Integer in [0, 8) for each row.

    """
    gx, gy, gz = geometry.global_coords( np.asarray( row_globals ) )
    return (gx % 2) + 2*(gy % 2) + 4*(gz % 2)

#===============================================================================
def reorder_rows( A, permutation ):
    """
    Gather the rows of a CSR matrix in a new order.

    Parameters
    ----------
    A : pyhpcg.linalg.sparse.SparseMatrix
        Matrix whose rows are reordered (not modified).

    permutation : numpy.ndarray
        Old index of each new row.

    Returns
    -------
    indptr, global_columns, values, owners, row_globals : numpy.ndarray
        CSR arrays of the reordered matrix.

    """
    counts = np.diff( A.indptr )[permutation]
    indptr = np.zeros( A.nrows+1, dtype=np.int64 )
    np.cumsum( counts, out=indptr[1:] )

    # Position in the old arrays of every entry of the new arrays
    shift = np.repeat( A.indptr[permutation] - indptr[:-1], counts )
    index = shift + np.arange( A.nnz, dtype=np.int64 )

    return (indptr,
            A.global_columns[index],
            A.values        [index],
            A.owners        [index],
            A.row_globals   [permutation])

#===============================================================================
def build_communication_pattern( geometry, indptr, global_columns, owners, row_globals, local_of_global ):
    """
    Number the columns of the local matrix and compute which values must be
    exchanged with each neighbor.

    Halo columns are numbered after the nrows local rows, grouped by owner
    rank and sorted by global index within each group. The rows sent to a
    neighbor are exactly the local rows which reference one of its columns:
    the stencil is symmetric, so these are the rows the neighbor references.
    They are sent in ascending global index, which is the order in which the
    neighbor stores them.

    Parameters
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid.

    indptr, global_columns, owners, row_globals : numpy.ndarray
        CSR arrays of the matrix, in storage order.

    local_of_global : callable
        Local storage index of an (array of) owned global row index.

    Returns
    -------
    local_columns : numpy.ndarray
        Local column index of each non-zero entry.

    pattern : pyhpcg.ddm.pattern.CommunicationPattern
        Communication pattern of the halo exchange.

    halo_globals : numpy.ndarray
        Global index of each halo column.

    """
    rank  = geometry.rank
    nrows = len( indptr ) - 1
    rows  = np.repeat( np.arange( nrows, dtype=np.int64 ), np.diff( indptr ) )

    local_columns = np.empty( len( global_columns ), dtype=np.int64 )

    is_local = owners == rank
    local_columns[is_local] = local_of_global( global_columns[is_local] )

    # Halo references
    is_halo   = ~is_local
    hcols     = global_columns[is_halo]
    howners   = owners[is_halo]
    hrows     = rows[is_halo]

    # Every halo reference must point to a column owned by a neighbor
    if len( hcols ) > 0:
        valid = (howners >= 0) & (howners < geometry.size)
        if not valid.all():
            raise RuntimeError( "Halo columns {} reference non-existent ranks {}".format(
                hcols[~valid][:5].tolist(), howners[~valid][:5].tolist() ) )
        wrong = geometry.owner( hcols ) != howners
        if wrong.any():
            raise RuntimeError( "Halo columns {} are not owned by ranks {}".format(
                hcols[wrong][:5].tolist(), howners[wrong][:5].tolist() ) )
        for r in np.unique( howners ).tolist():
            if not geometry.are_neighbors( rank, r ):
                raise RuntimeError( "Rank {} has a halo reference to rank {}, which is not a neighbor".format( rank, r ) )

    # Halo columns, sorted by owner and then by global index
    halo_unique, inverse = np.unique( hcols, return_inverse=True )
    halo_owners = geometry.owner( halo_unique )
    order       = np.lexsort( (halo_unique, halo_owners) )
    position    = np.empty( len( order ), dtype=np.int64 )
    position[order] = np.arange( len( order ), dtype=np.int64 )

    halo_globals = halo_unique[order]
    local_columns[is_halo] = nrows + position[inverse.reshape( -1 )]

    recv_neighbors, recv_counts = np.unique( halo_owners, return_counts=True )
    recv_neighbors = recv_neighbors.tolist()

    # Rows to send to each neighbor, in ascending global index
    send_lists = {}
    for r in np.unique( howners ).tolist():
        send_rows = np.unique( hrows[howners == r] )
        send_lists[r] = send_rows[np.argsort( row_globals[send_rows], kind='stable' )]

    if sorted( send_lists ) != recv_neighbors:
        raise RuntimeError( "Send neighbors {} do not match receive neighbors {}".format(
            sorted( send_lists ), recv_neighbors ) )

    pattern = CommunicationPattern(
        nrows       = nrows,
        neighbors   = recv_neighbors,
        send_lists  = send_lists,
        recv_counts = dict( zip( recv_neighbors, recv_counts.tolist() ) ),
    )

    return local_columns, pattern, halo_globals

#===============================================================================
def optimize_matrix( geometry, A, comm=None, *, blocking=False, install_exchanger=True ):
    """
    Reorder the local rows of A by color and set up its halo exchange.

    Rows are stably sorted by color. The matrix is modified in place and must
    not change afterwards.

    Parameters
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid.

    A : pyhpcg.linalg.sparse.SparseMatrix
        Matrix generated by `pyhpcg.linalg.problem.generate_problem`.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        Communicator of the process group (None for a single process).

    blocking : bool
        Use blocking halo exchanges (no overlap with computation).

    install_exchanger : bool
        If False, only the pattern is computed; this allows inspecting the
        matrix of any rank of a decomposition from a single process.

    Returns
    -------
    permutation : numpy.ndarray
        Natural local index of each row, in the new storage order.

    """
    assert isinstance( geometry, Geometry )
    assert isinstance( A, SparseMatrix )

    if A.geometry != geometry:
        raise ValueError( 'Matrix was not generated for this geometry' )
    if comm is not None and (comm.Get_size() != geometry.size or comm.Get_rank() != geometry.rank):
        raise ValueError( "Communicator (rank {} of {}) does not match geometry (rank {} of {})".format(
            comm.Get_rank(), comm.Get_size(), geometry.rank, geometry.size ) )

    # Color rows and sort them by color; ties keep the natural order
    colors        = color_rows( geometry, A.row_globals )
    permutation   = np.argsort( colors, kind='stable' ).astype( np.int64 )
    color_offsets = np.searchsorted( colors[permutation], np.arange( NCOLORS+1 ) )

    indptr, global_columns, values, owners, row_globals = reorder_rows( A, permutation )

    # Storage index of each natural local index
    new_of_natural = np.empty( A.nrows, dtype=np.int64 )
    new_of_natural[permutation] = np.arange( A.nrows, dtype=np.int64 )
    local_of_global = lambda g: new_of_natural[geometry.global_to_local( g )]

    local_columns, pattern, halo_globals = build_communication_pattern(
        geometry, indptr, global_columns, owners, row_globals, local_of_global )

    A.set_optimized( indptr, global_columns, values, owners, row_globals,
                     local_columns = local_columns,
                     pattern       = pattern,
                     halo_globals  = halo_globals,
                     permutation   = permutation,
                     color_offsets = color_offsets )

    if install_exchanger:
        A.set_exchanger( get_halo_exchanger( comm, pattern, dtype=A.dtype, blocking=blocking ) )

    return A.permutation

#===============================================================================
def optimize_problem( problem, comm=None, **kwargs ):
    """
    Optimize the matrix of a problem and reorder its vectors accordingly.

    Keyword arguments are passed to `optimize_matrix`.

    """
    permutation = optimize_matrix( problem.geometry, problem.A, comm, **kwargs )
    problem.permute( permutation )
    return problem

#===============================================================================
def check_communication_pattern( A, comm ):
    """
    Collective check that every process sends to each neighbor exactly the
    rows that the neighbor stores in its halo, in the same order.

    Returns
    -------
    success : bool
        Same value on all processes.

    """
    pattern = A.pattern
    nrows   = A.nrows

    if comm is None or pattern.is_empty:
        success = pattern.is_empty
    else:
        tag = 77
        requests = [comm.isend( A.row_globals[pattern.send_indices( r )].tolist(), dest=r, tag=tag )
                    for r in pattern.neighbors]

        success = True
        for r in pattern.neighbors:
            received = comm.recv( source=r, tag=tag )
            s = pattern.recv_slice( r )
            expected = A.halo_globals[s.start-nrows:s.stop-nrows].tolist()
            success  = success and (received == expected)

        for req in requests:
            req.wait()

    if comm is None:
        return success

    return all( comm.allgather( success ) )
