# -*- coding: UTF-8 -*-
__all__     = ['__version__', 'api', 'ddm', 'linalg']

from pyhpcg.version import __version__

from pyhpcg import ddm
from pyhpcg import linalg
from pyhpcg import api
