#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
from pyhpcg.api import settings
from pyhpcg.api import benchmark
from pyhpcg.api import dump
from pyhpcg.api import report
