import numpy as np
import pytest

from pyhpcg.ddm.mpi          import SerialComm
from pyhpcg.linalg.utilities import global_sum, global_max, ddot, waxpby, compute_residual

#===============================================================================
def test_global_reductions_serial():

    assert global_sum( None, 2.5 ) == 2.5
    assert global_sum( SerialComm(), 2.5 ) == 2.5
    assert global_max( SerialComm(), -1.0 ) == -1.0

#===============================================================================
def test_ddot():

    x = np.array( [1.0, 2.0, 3.0, 100.0] )
    y = np.array( [4.0, 5.0, 6.0, 100.0] )

    # Halo entries beyond n are ignored
    assert ddot( 3, x, y ) == 32.0
    assert ddot( 3, x, y, SerialComm() ) == 32.0

#===============================================================================
@pytest.mark.parametrize( ('alpha', 'beta'), [(1.0, 2.0), (3.0, 1.0), (-0.5, 0.25)] )

def test_waxpby( alpha, beta ):

    rng = np.random.default_rng( 0 )
    x   = rng.random( 10 )
    y   = rng.random( 10 )
    w   = np.full( 12, 7.0 )

    waxpby( 10, alpha, x, beta, y, w )

    assert np.allclose( w[:10], alpha * x + beta * y )
    assert np.all( w[10:] == 7.0 )

    # In place: w is x, then w is y
    expected = alpha * x + beta * y
    x2 = x.copy()
    waxpby( 10, alpha, x2, beta, y, x2 )
    assert np.allclose( x2, expected )

    y2 = y.copy()
    waxpby( 10, alpha, x, beta, y2, y2 )
    assert np.allclose( y2, expected )

#===============================================================================
def test_compute_residual():

    v1 = np.array( [1.0, 2.0, 3.0] )
    v2 = np.array( [1.0, 2.5, 2.0] )

    assert compute_residual( v1, v2 ) == 1.0
    assert compute_residual( v1, v2, SerialComm() ) == 1.0
    assert compute_residual( v1, v1 ) == 0.0
    assert compute_residual( np.zeros( 0 ), np.zeros( 0 ) ) == 0.0

    with pytest.raises( ValueError ):
        compute_residual( v1, v2[:2] )
