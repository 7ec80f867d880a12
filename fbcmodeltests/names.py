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
"""Static strings used in the fbcmodeltests package

    Solvers and status codes

        SOLVER = 'solver'

        CPLEX = 'cplex'

        GUROBI = 'gurobi'

        SCIP = 'scip'

        GLPK = 'glpk'

        OPTIMAL = 'optimal' # from optlang interface

        INFEASIBLE ='infeasible' # from optlang interface

        UNBOUNDED = 'unbounded' # from optlang interface

    FROG report files

        FROG_OBJECTIVE_FILE = '01_objective.tsv'

        FROG_FVA_FILE = '02_fva.tsv'

        FROG_GENE_DELETION_FILE = '03_gene_deletion.tsv'

        FROG_REACTION_DELETION_FILE = '04_reaction_deletion.tsv'

        FROG_METADATA_FILE = 'metadata.json'

    FROG table columns

        MODEL = 'model', OBJECTIVE = 'objective', REACTION = 'reaction', GENE = 'gene',
        FLUX = 'flux', STATUS = 'status', VALUE = 'value', MINIMUM = 'minimum',
        MAXIMUM = 'maximum', FRACTION_OPTIMUM = 'fraction_optimum'

    FROG metadata keys

        SOFTWARE_NAME = 'software.name'

        SOFTWARE_VERSION = 'software.version'

        ENVIRONMENT = 'environment'

        MODEL_FILENAME = 'model.filename'

        MODEL_MD5 = 'model.md5'

        MODEL_SHA256 = 'model.sha256'

        SOLVER_NAME = 'solver.name'

    Analysis

        MAXIMIZE = 'maximize'

        MINIMIZE = 'minimize'

        DEFAULT_OBJECTIVE = 'obj'
"""

# Solvers and status codes
SOLVER = 'solver'
CPLEX = 'cplex'
GUROBI = 'gurobi'
SCIP = 'scip'
GLPK = 'glpk'
from optlang.interface import OPTIMAL,    \
                              INFEASIBLE, \
                              UNBOUNDED

# FROG report files
FROG_OBJECTIVE_FILE = '01_objective.tsv'
FROG_FVA_FILE = '02_fva.tsv'
FROG_GENE_DELETION_FILE = '03_gene_deletion.tsv'
FROG_REACTION_DELETION_FILE = '04_reaction_deletion.tsv'
FROG_METADATA_FILE = 'metadata.json'

# FROG table columns
MODEL = 'model'
OBJECTIVE = 'objective'
REACTION = 'reaction'
GENE = 'gene'
FLUX = 'flux'
STATUS = 'status'
VALUE = 'value'
MINIMUM = 'minimum'
MAXIMUM = 'maximum'
FRACTION_OPTIMUM = 'fraction_optimum'

# FROG metadata keys
SOFTWARE_NAME = 'software.name'
SOFTWARE_VERSION = 'software.version'
ENVIRONMENT = 'environment'
MODEL_FILENAME = 'model.filename'
MODEL_MD5 = 'model.md5'
MODEL_SHA256 = 'model.sha256'
SOLVER_NAME = 'solver.name'

# Analysis
MAXIMIZE = 'maximize'
MINIMIZE = 'minimize'
DEFAULT_OBJECTIVE = 'obj'
