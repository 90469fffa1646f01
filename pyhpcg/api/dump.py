#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
"""
Export of the local linear systems to HDF5 files, one file per process, for
offline inspection.

"""
import os

import numpy as np
import h5py as h5

from pyhpcg.ddm.geometry   import Geometry
from pyhpcg.linalg.sparse  import SparseMatrix
from pyhpcg.linalg.problem import Problem

__all__ = ('problem_filename', 'write_problem', 'read_problem')

_MATRIX_ARRAYS = ('indptr', 'global_columns', 'values', 'owners', 'row_globals')
_VECTORS       = ('x', 'b', 'xexact')

#==============================================================================
def problem_filename(rank):
    return f'pyhpcg-problem-{rank:05d}.h5'

#==============================================================================
def write_problem(problem, output_dir='.', filename=None):
    """
    Write the local linear system of one process to an HDF5 file.

    The matrix is stored in CSR form with global column indices, in the
    current storage order of the rows; the global index of each row is
    stored alongside.

    Parameters
    ----------
    problem : pyhpcg.linalg.problem.Problem
        Local linear system.

    output_dir : str
        Directory of the file, created if needed.

    filename : str, optional
        Name of the file (default: one name per rank, see `problem_filename`).

    Returns
    -------
    path : str
        Path of the written file.

    """
    assert isinstance(problem, Problem)

    geometry = problem.geometry
    A        = problem.A

    if filename is None:
        filename = problem_filename(geometry.rank)

    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)

    with h5.File(path, mode='w') as f:

        f.attrs.create('size'       , data=geometry.size)
        f.attrs.create('rank'       , data=geometry.rank)
        f.attrs.create('local_shape', data=np.array(geometry.local_shape))
        f.attrs.create('nprocs'     , data=np.array(geometry.nprocs))

        group = f.create_group('matrix')
        group.attrs.create('nrows_global', data=A.nrows_global)
        group.attrs.create('nnz_global'  , data=A.nnz_global)
        for name in _MATRIX_ARRAYS:
            group.create_dataset(name, data=getattr(A, name))

        group = f.create_group('vectors')
        for name in _VECTORS:
            group.create_dataset(name, data=getattr(problem, name))

    return path

#==============================================================================
def read_problem(path):
    """
    Read a local linear system written by `write_problem`.

    The returned matrix is not optimized.

    Parameters
    ----------
    path : str
        Path of the HDF5 file.

    Returns
    -------
    problem : pyhpcg.linalg.problem.Problem
        Local linear system.

    """
    with h5.File(path, mode='r') as f:

        size = int(f.attrs['size'])
        rank = int(f.attrs['rank'])
        nx, ny, nz    = (int(n) for n in f.attrs['local_shape'])
        npx, npy, npz = (int(n) for n in f.attrs['nprocs'])

        geometry = Geometry(size, rank, nx, ny, nz, npx, npy, npz)

        arrays  = {name: f['matrix'][name][()] for name in _MATRIX_ARRAYS}
        vectors = {name: f['vectors'][name][()] for name in _VECTORS}

    A = SparseMatrix(geometry, **arrays)

    return Problem(geometry, A, **vectors)
