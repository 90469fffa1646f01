import os

import numpy as np
import pytest

from pyhpcg.ddm.geometry    import generate_geometry
from pyhpcg.ddm.mpi         import SerialComm
from pyhpcg.linalg.problem  import generate_problem
from pyhpcg.linalg.optimize import optimize_problem
from pyhpcg.api.dump        import problem_filename, write_problem, read_problem
from pyhpcg.api.benchmark   import run_benchmark

#==============================================================================
@pytest.mark.parametrize('size', [1, 4])

def test_write_read_problem(tmp_path, size):

    rank     = size - 1
    geometry = generate_geometry(size, rank, 3, 2, 4)
    problem  = generate_problem(geometry)

    path = write_problem(problem, str(tmp_path))
    assert os.path.basename(path) == problem_filename(rank)

    loaded = read_problem(path)

    assert loaded.geometry == geometry
    assert not loaded.A.is_optimized
    for name in ('indptr', 'global_columns', 'values', 'owners', 'row_globals', 'diagonal'):
        assert np.array_equal(getattr(loaded.A, name), getattr(problem.A, name))
    for name in ('x', 'b', 'xexact'):
        assert np.array_equal(getattr(loaded, name), getattr(problem, name))

#==============================================================================
def test_read_problem_is_usable(tmp_path):

    problem = generate_problem(generate_geometry(1, 0, 3, 3, 3))
    path    = write_problem(problem, str(tmp_path), filename='problem.h5')

    loaded = optimize_problem(read_problem(path), SerialComm())
    A      = loaded.A

    x    = A.zeros(halo=True)
    x[:] = 1.0

    assert np.array_equal(A.dot(x), loaded.b)

#==============================================================================
def test_benchmark_dump(tmp_path):

    run_benchmark(2, 2, 2, SerialComm(), max_iter=1, dump_dir=str(tmp_path))

    assert (tmp_path / problem_filename(0)).exists()
