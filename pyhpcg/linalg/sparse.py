#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np
from scipy.sparse import csr_matrix

from pyhpcg.ddm.geometry import Geometry
from pyhpcg.ddm.basic    import HaloExchanger
from pyhpcg.ddm.pattern  import CommunicationPattern

__all__ = ('SparseMatrix',)

#===============================================================================
class SparseMatrix:
    """
    Sparse matrix distributed by rows across the processes of a Cartesian
    decomposition, stored in compressed sparse row (CSR) form.

    Each process stores the rows of the grid points it owns. Every non-zero
    entry knows its global column index and the rank owning that column.
    After optimization (see `pyhpcg.linalg.optimize`), every entry also has a
    local column index: columns j < nrows are owned by this process, columns
    j >= nrows are halo columns, whose values are received from neighbors
    according to the communication pattern.

    Parameters
    ----------
    geometry : pyhpcg.ddm.geometry.Geometry
        Decomposition of the global grid.

    indptr : numpy.ndarray
        CSR row pointer, of length nrows+1.

    global_columns : numpy.ndarray
        Global column index of each non-zero entry.

    values : numpy.ndarray
        Value of each non-zero entry.

    owners : numpy.ndarray
        Rank of the process owning the column of each non-zero entry.

    row_globals : numpy.ndarray
        Global row index of each local row.

    """
    def __init__( self, geometry, indptr, global_columns, values, owners, row_globals ):

        assert isinstance( geometry, Geometry )

        self._geometry  = geometry
        self._exchanger = None
        self._set_rows( indptr, global_columns, values, owners, row_globals )

        # Created by the optimizer
        self._local_columns = None
        self._pattern       = None
        self._halo_globals  = None
        self._permutation   = np.arange( self._nrows, dtype=np.int64 )
        self._color_offsets = None
        self._local_block   = None
        self._halo_block    = None
        self._color_blocks  = None

    #...
    def _set_rows( self, indptr, global_columns, values, owners, row_globals ):

        indptr         = np.asarray( indptr        , dtype=np.int64 )
        global_columns = np.asarray( global_columns, dtype=np.int64 )
        owners         = np.asarray( owners        , dtype=np.int64 )
        row_globals    = np.asarray( row_globals   , dtype=np.int64 )
        values         = np.asarray( values )

        nrows = len( indptr ) - 1
        nnz   = int( indptr[-1] )
        assert len( row_globals ) == nrows
        assert len( global_columns ) == len( values ) == len( owners ) == nnz

        # Row of each non-zero entry, and diagonal values
        rows = np.repeat( np.arange( nrows, dtype=np.int64 ), np.diff( indptr ) )
        mask = global_columns == row_globals[rows]
        diagonal = np.zeros( nrows, dtype=values.dtype )
        diagonal[rows[mask]] = values[mask]

        self._nrows          = nrows
        self._nnz            = nnz
        self._indptr         = indptr
        self._global_columns = global_columns
        self._values         = values
        self._owners         = owners
        self._row_globals    = row_globals
        self._diagonal       = diagonal

    #--------------------------------------
    # Global properties
    #--------------------------------------
    @property
    def geometry( self ):
        return self._geometry

    @property
    def nrows_global( self ):
        return self._geometry.nrows_global

    @property
    def nnz_global( self ):
        return self._geometry.nnz_global

    @property
    def dtype( self ):
        return self._values.dtype

    #--------------------------------------
    # Local properties
    #--------------------------------------
    @property
    def nrows( self ):
        """ Number of locally owned rows. """
        return self._nrows

    @property
    def ncols( self ):
        """ Number of local columns (owned rows + halo), None before optimization. """
        return None if self._pattern is None else self._pattern.ncols

    @property
    def nnz( self ):
        return self._nnz

    @property
    def indptr( self ):
        return self._indptr

    @property
    def global_columns( self ):
        return self._global_columns

    @property
    def local_columns( self ):
        return self._local_columns

    @property
    def values( self ):
        return self._values

    @property
    def owners( self ):
        return self._owners

    @property
    def row_globals( self ):
        return self._row_globals

    @property
    def diagonal( self ):
        return self._diagonal

    @property
    def halo_globals( self ):
        """ Global index of each halo column, in halo storage order. """
        return self._halo_globals

    @property
    def pattern( self ):
        return self._pattern

    @property
    def permutation( self ):
        """ Natural local index of each row, in storage order. """
        return self._permutation

    @property
    def color_offsets( self ):
        """ Rows of color c are stored in range(color_offsets[c], color_offsets[c+1]). """
        return self._color_offsets

    @property
    def ncolors( self ):
        return 0 if self._color_offsets is None else len( self._color_offsets ) - 1

    @property
    def exchanger( self ):
        return self._exchanger

    @property
    def is_optimized( self ):
        return self._pattern is not None

    #--------------------------------------
    # Other properties/methods
    #--------------------------------------
    def nonzeros_in_row( self, i ):
        return int( self._indptr[i+1] - self._indptr[i] )

    def row( self, i ):
        """
        Non-zero entries of local row i, as a dictionary mapping local column
        index (or global column index, before optimization) to value.

        """
        k = slice( self._indptr[i], self._indptr[i+1] )
        cols = self._global_columns[k] if self._local_columns is None else self._local_columns[k]
        return dict( zip( cols.tolist(), self._values[k].tolist() ) )

    def is_halo_column( self, j ):
        return j >= self._nrows

    def zeros( self, halo=False ):
        """
        New vector of zeros, with halo capacity if requested.

        """
        if halo:
            self._check_optimized()
            return np.zeros( self.ncols, dtype=self.dtype )
        return np.zeros( self._nrows, dtype=self.dtype )

    def tocsr( self ):
        """ Local rows as a SciPy CSR matrix of shape (nrows, ncols). """
        self._check_optimized()
        return csr_matrix( (self._values.copy(), self._local_columns.copy(), self._indptr.copy()),
                           shape=(self._nrows, self.ncols) )

    def toarray( self ):
        return self.tocsr().toarray()

    def color_block( self, c ):
        """ Rows of color c as a CSR matrix of shape (nrows_c, ncols), and their range. """
        self._check_optimized()
        s, e = self._color_offsets[c], self._color_offsets[c+1]
        return self._color_blocks[c], slice( s, e )

    #...
    def set_optimized( self, indptr, global_columns, values, owners, row_globals,
                       local_columns, pattern, halo_globals, permutation, color_offsets ):
        """
        Store the reordered rows and the halo setup computed by the optimizer.

        """
        assert isinstance( pattern, CommunicationPattern )
        if self.is_optimized:
            raise RuntimeError( 'Matrix is already optimized' )

        self._set_rows( indptr, global_columns, values, owners, row_globals )

        local_columns = np.asarray( local_columns, dtype=np.int64 )
        assert len( local_columns ) == self._nnz
        assert pattern.nrows == self._nrows

        self._local_columns = local_columns
        self._pattern       = pattern
        self._halo_globals  = np.asarray( halo_globals, dtype=np.int64 )
        self._permutation   = np.asarray( permutation, dtype=np.int64 )
        self._color_offsets = np.asarray( color_offsets, dtype=np.int64 )
        assert self._color_offsets[0] == 0 and self._color_offsets[-1] == self._nrows

        n   = self._nrows
        csr = self.tocsr()
        self._local_block  = csr[:, :n].tocsr()
        self._halo_block   = csr[:, n:].tocsr()
        self._color_blocks = [csr[s:e] for s, e in zip( self._color_offsets[:-1], self._color_offsets[1:] )]

        # The local rows never change after this point
        for a in (self._indptr, self._global_columns, self._values, self._owners,
                  self._row_globals, self._diagonal, self._local_columns,
                  self._halo_globals, self._permutation, self._color_offsets):
            a.flags.writeable = False

    # ...
    def set_exchanger( self, exchanger ):
        assert isinstance( exchanger, HaloExchanger )
        assert exchanger.pattern is self._pattern
        self._exchanger = exchanger

    # ...
    def free( self ):
        """ Release communication resources. """
        if self._exchanger is not None:
            self._exchanger.free()
            self._exchanger = None

    # ...
    def _check_optimized( self ):
        if not self.is_optimized:
            raise RuntimeError( 'Matrix must be optimized before it is used with local column indices' )

    #--------------------------------------
    # Distributed matrix-vector product
    #--------------------------------------
    def dot( self, x, out=None ):
        """
        Distributed sparse matrix-vector product y = A x.

        The halo exchange of x overlaps with the product of the local block:
        (1) post the receives into the halo of x, (2) send the boundary values,
        (3) multiply the columns owned locally, (4) wait for the halo values,
        (5) add the contribution of the halo columns.

        Parameters
        ----------
        x : numpy.ndarray
            Input vector with halo capacity (length ncols); its halo entries
            are overwritten.

        out : numpy.ndarray, optional
            Output vector of length nrows or ncols; only its first nrows
            entries are written.

        Returns
        -------
        out : numpy.ndarray
            Result of the product.

        """
        self._check_optimized()
        if self._exchanger is None:
            raise RuntimeError( 'Matrix has no halo exchanger' )

        n = self._nrows
        if x.ndim != 1 or x.shape[0] != self.ncols:
            raise ValueError( "Input vector has length {}, expected {}".format( x.shape[0], self.ncols ) )

        if out is None:
            out = np.zeros( n, dtype=self.dtype )
        elif out.ndim != 1 or out.shape[0] not in (n, self.ncols):
            raise ValueError( "Output vector has length {}, expected {}".format( out.shape[0], n ) )

        requests = self._exchanger.start_update_ghost_regions( x )

        out[:n] = self._local_block @ x[:n]

        self._exchanger.end_update_ghost_regions( x, requests )

        if self._halo_block.nnz > 0:
            out[:n] += self._halo_block @ x[n:]

        return out

    #...
    def __str__( self ):
        txt  = '\n'
        txt += '> geometry :: {}\n'.format( self._geometry )
        txt += '> nrows    :: {}\n'.format( self._nrows )
        txt += '> ncols    :: {}\n'.format( self.ncols )
        txt += '> nnz      :: {}\n'.format( self._nnz )
        txt += '> ncolors  :: {}\n'.format( self.ncolors )
        return txt
