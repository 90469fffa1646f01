import numpy as np
import pytest

from pyhpcg.ddm.geometry import compute_dims, generate_geometry, Geometry

#==============================================================================
@pytest.mark.parametrize( ('nnodes', 'dims'), [(1  , [1, 1, 1]),
                                               (2  , [2, 1, 1]),
                                               (4  , [2, 2, 1]),
                                               (6  , [3, 2, 1]),
                                               (7  , [7, 1, 1]),
                                               (8  , [2, 2, 2]),
                                               (12 , [3, 2, 2]),
                                               (16 , [4, 2, 2]),
                                               (100, [5, 5, 4])] )

def test_compute_dims( nnodes, dims ):

    assert compute_dims( nnodes ) == dims

#==============================================================================
def test_compute_dims_product():

    for nnodes in range( 1, 65 ):
        dims = compute_dims( nnodes )
        assert len( dims ) == 3
        assert min( dims ) >= 1
        assert int( np.prod( dims ) ) == nnodes

#==============================================================================
@pytest.mark.parametrize( 'nnodes', [0, -3] )

def test_compute_dims_invalid( nnodes ):

    with pytest.raises( ValueError ):
        compute_dims( nnodes )

#==============================================================================
def test_generate_geometry_invalid():

    with pytest.raises( ValueError ):
        generate_geometry( 1, 0, 4, 0, 4 )

    with pytest.raises( ValueError ):
        generate_geometry( 2, 2, 4, 4, 4 )

    # Process grid does not match number of processes
    with pytest.raises( ValueError ):
        Geometry( 4, 0, 2, 2, 2, 2, 1, 1 )

#==============================================================================
def test_geometry_single_process():

    geo = generate_geometry( 1, 0, 4, 5, 6 )

    assert geo.nprocs       == (1, 1, 1)
    assert geo.coords       == (0, 0, 0)
    assert geo.local_shape  == (4, 5, 6)
    assert geo.global_shape == (4, 5, 6)
    assert geo.starts       == (0, 0, 0)
    assert geo.ends         == (3, 4, 5)
    assert geo.nrows        == 120
    assert geo.nrows_global == 120
    assert geo.nnz_global   == 10 * 13 * 16

#==============================================================================
@pytest.mark.parametrize( 'size', [1, 2, 3, 4, 6, 8, 12] )
@pytest.mark.parametrize( 'shape', [(2, 3, 4), (3, 3, 3)] )

def test_geometry_index_roundtrip( size, shape ):

    nx, ny, nz = shape
    geo = generate_geometry( size, size-1, nx, ny, nz )

    g = np.arange( geo.nrows_global )
    assert np.array_equal( geo.global_index( *geo.global_coords( g ) ), g )

    l = np.arange( geo.nrows )
    assert np.array_equal( geo.local_index( *geo.local_coords( l ) ), l )
    assert np.array_equal( geo.global_to_local( geo.local_to_global( l ) ), l )

    for r in range( size ):
        assert geo.rank_index( *geo.rank_coords( r ) ) == r

#==============================================================================
@pytest.mark.parametrize( 'size', [1, 2, 3, 4, 6, 8, 12] )

def test_partition_completeness( size ):

    nx, ny, nz = 3, 2, 4
    geometries = [generate_geometry( size, r, nx, ny, nz ) for r in range( size )]

    nrows_global = geometries[0].nrows_global
    assert nrows_global == size * nx * ny * nz

    owned = []
    for geo in geometries:
        rows = geo.local_to_global( np.arange( geo.nrows ) )
        assert np.all( geo.owner( rows ) == geo.rank )
        assert np.all( geo.owns( rows ) )
        owned.append( rows )

    # Local row sets are disjoint and cover the global range
    owned = np.concatenate( owned )
    assert len( owned ) == nrows_global
    assert np.array_equal( np.sort( owned ), np.arange( nrows_global ) )

#==============================================================================
def test_geometry_neighbors():

    geo = generate_geometry( 8, 0, 2, 2, 2 )

    assert geo.nprocs == (2, 2, 2)

    # In a 2x2x2 grid of processes all blocks touch each other
    for r in range( 1, 8 ):
        assert geo.are_neighbors( 0, r )

    assert not geo.are_neighbors( 0, 0 )

    geo = generate_geometry( 3, 0, 2, 2, 2 )
    assert geo.nprocs == (3, 1, 1)
    assert     geo.are_neighbors( 0, 1 )
    assert not geo.are_neighbors( 0, 2 )

#==============================================================================
def test_geometry_for_rank():

    geo   = generate_geometry( 6, 0, 2, 3, 4 )
    other = geo.for_rank( 5 )

    assert other == generate_geometry( 6, 5, 2, 3, 4 )
    assert other != geo
    assert other.coords == (2, 1, 0)
    assert other.starts == (4, 3, 0)
