#---------------------------------------------------------------------------#
# This file is part of PYHPCG which is released under MIT License. See the  #
# LICENSE file at the root of the source tree for full license details.     #
#---------------------------------------------------------------------------#
# The MPI halo exchangers import mpi4py, they are loaded on demand by
# pyhpcg.ddm.utilities.get_halo_exchanger
from pyhpcg.ddm import mpi
from pyhpcg.ddm import geometry
from pyhpcg.ddm import pattern
from pyhpcg.ddm import basic
from pyhpcg.ddm import utilities
