#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
import os

from pyhpcg.ddm.mpi import COMM_KINDS

__all__ = ('PYHPCG_DEFAULTS', 'PYHPCG_EXCHANGES', 'PYHPCG_ENVIRONMENT', 'get_settings')

#==============================================================================

# ... default parameters of a benchmark run
PYHPCG_DEFAULTS = {'max_iter'  : 50,
                   'tolerance' : 0.0,
                   'ncalls'    : 1,
                   'comm'      : 'mpi',
                   'exchange'  : 'nonblocking',
                   'output_dir': '.'}

# ... available halo exchange strategies
PYHPCG_EXCHANGES = {'nonblocking': {'blocking': False},
                    'blocking'   : {'blocking': True }}

# ... environment variables overriding the defaults
PYHPCG_ENVIRONMENT = {'comm'    : 'PYHPCG_COMM',
                      'exchange': 'PYHPCG_EXCHANGE'}
# ...

#==============================================================================
def get_settings(**overrides):
    """
    Parameters of a benchmark run.

    Values are taken from the defaults, then from the environment variables
    PYHPCG_COMM and PYHPCG_EXCHANGE, then from the keyword arguments.
    Keyword arguments equal to None are ignored.

    Returns
    -------
    settings : dict
        Validated parameters, with the same keys as PYHPCG_DEFAULTS.

    """
    unknown = set(overrides) - set(PYHPCG_DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    settings = dict(PYHPCG_DEFAULTS)

    for key, var in PYHPCG_ENVIRONMENT.items():
        value = os.environ.get(var)
        if value:
            settings[key] = value.strip().lower()

    settings.update({k: v for k, v in overrides.items() if v is not None})

    if settings['comm'] not in COMM_KINDS:
        raise ValueError(f"Communication layer must be one of {COMM_KINDS}, got '{settings['comm']}'")

    if settings['exchange'] not in PYHPCG_EXCHANGES:
        raise ValueError(f"Halo exchange must be one of {tuple(PYHPCG_EXCHANGES)}, got '{settings['exchange']}'")

    if int(settings['max_iter']) != settings['max_iter'] or settings['max_iter'] < 0:
        raise ValueError(f"Maximum number of iterations must be a non-negative integer, got {settings['max_iter']}")

    if int(settings['ncalls']) != settings['ncalls'] or settings['ncalls'] < 1:
        raise ValueError(f"Number of CG calls must be a positive integer, got {settings['ncalls']}")

    if settings['tolerance'] < 0:
        raise ValueError(f"Tolerance must be non-negative, got {settings['tolerance']}")

    settings['max_iter']  = int(settings['max_iter'])
    settings['ncalls']    = int(settings['ncalls'])
    settings['tolerance'] = float(settings['tolerance'])

    return settings
