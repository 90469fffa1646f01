import sys
from setuptools import setup, find_packages

#==============================================================================
def get_version():
    """ Get the package version from pyhpcg/version.py """
    sys.path.insert(0, 'pyhpcg')
    from version import __version__
    sys.path.pop(0)
    return __version__

#==============================================================================
setup(
    name             = 'pyhpcg',
    version          = get_version(),
    description      = 'Distributed 27-point stencil Conjugate Gradient benchmark in Python',
    license          = 'MIT',
    python_requires  = '>=3.9',
    packages         = find_packages(include=['pyhpcg', 'pyhpcg.*']),
    install_requires = [
        'numpy >= 1.16',
        'scipy >= 1.12',
        'sympy >= 1.5',
        'mpi4py >= 4',
        'h5py >= 3.0',
        'pyyaml >= 5.1',
        'termcolor',
    ],
    extras_require   = {
        'test': [
            'pytest >= 4.5',
            'pytest-mpi',
        ],
    },
    entry_points     = {
        'console_scripts': [
            'pyhpcg = pyhpcg.cmd.main:pyhpcg_command',
        ],
    },
)
