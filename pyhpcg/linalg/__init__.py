__all__ = ['optimize', 'problem', 'solvers', 'sparse', 'symgs', 'utilities']

from pyhpcg.linalg import sparse
from pyhpcg.linalg import problem
from pyhpcg.linalg import optimize
from pyhpcg.linalg import symgs
from pyhpcg.linalg import solvers
from pyhpcg.linalg import utilities
