#!/usr/bin/env python3
#
# Copyright 2022 Max Planck Insitute Magdeburg
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
#
#
"""fbcmodeltests: quality tests and FROG reproducibility reports for constraint-based metabolic models"""

from importlib.util import find_spec as module_exists
from .names import *
import logging

__version__ = '0.1.0'


class DisableLogger():
    """Environment in which logging is disabled"""

    def __enter__(self):
        logging.disable(logging.CRITICAL)

    def __exit__(self, exit_type, exit_value, exit_traceback):
        logging.disable(logging.NOTSET)


avail_solvers = set()
if module_exists("swiglpk"):
    avail_solvers.add(GLPK)
if module_exists("cplex"):
    avail_solvers.add(CPLEX)
if module_exists("gurobipy"):
    avail_solvers.add(GUROBI)
if module_exists("pyscipopt"):
    avail_solvers.add(SCIP)

from .utils import *
from .pool import *
from .gpr import *
from .config import *
from .balance import *
from .consistency import *
from .network import *
from .memote import *
from .frog_types import *
from .frog_io import *
from .frog import *
from .frog_compare import *
