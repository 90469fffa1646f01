#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import numpy as np

__all__ = (
    'global_sum',
    'global_max',
    'ddot',
    'waxpby',
    'compute_residual',
)

#==============================================================================
def global_sum( comm, value ):
    """
    Sum of a scalar over all processes.

    The partial values are gathered on every process and added in rank order,
    so the result is bitwise identical on all processes and reproducible from
    one run to the next with the same number of processes.

    """
    if comm is None:
        return value

    values = comm.allgather( value )
    total  = values[0]
    for v in values[1:]:
        total += v

    return total

#==============================================================================
def global_max( comm, value ):
    """ Maximum of a scalar over all processes. """
    if comm is None:
        return value
    return max( comm.allgather( value ) )

#==============================================================================
def ddot( n, x, y, comm=None ):
    """
    Global dot product of the first n entries of two distributed vectors.

    """
    local = float( np.dot( x[:n], y[:n] ) )
    return global_sum( comm, local )

#==============================================================================
def waxpby( n, alpha, x, beta, y, w ):
    """
    Compute w = alpha * x + beta * y on the first n entries, in place.

    w may be the same array as x or y.

    """
    xs, ys, ws = x[:n], y[:n], w[:n]

    if alpha == 1.0:
        np.add( xs, beta * ys, out=ws )
    elif beta == 1.0:
        np.add( alpha * xs, ys, out=ws )
    else:
        np.add( alpha * xs, beta * ys, out=ws )

    return w

#==============================================================================
def compute_residual( v1, v2, comm=None ):
    """
    Maximum absolute difference between two distributed vectors, used to
    compare the computed solution with the exact one.

    Parameters
    ----------
    v1, v2 : numpy.ndarray
        Local parts of the two vectors, with the same length.

    comm : mpi4py.MPI.Comm | pyhpcg.ddm.mpi.SerialComm | None
        If given, the maximum is taken over all processes.

    Returns
    -------
    residual : float
        max_i |v1_i - v2_i|.

    """
    if len( v1 ) != len( v2 ):
        raise ValueError( "Vectors have different lengths {} and {}".format( len( v1 ), len( v2 ) ) )

    local = float( np.max( np.abs( v1 - v2 ) ) ) if len( v1 ) > 0 else 0.0

    return global_max( comm, local )
