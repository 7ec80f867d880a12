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
"""Containers for FROG reproducibility reports

A FROG report holds, for every objective of a model, the optimal objective value, the flux of
every reaction in the computed optimum, its flux variability and the objective value after
deleting it, and the objective value after deleting each gene. Values that could not be
computed (infeasible or unbounded problems) are None, which is distinct from 0.0.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class FROGReactionReport:
    """Reproducibility data of one reaction under one objective

    Fields:
        flux: Flux through the reaction in the optimal solution.
        variability_min, variability_max: Flux range at the optimal objective value.
        deletion: Optimal objective value with the reaction deleted.
    """
    flux: Optional[float] = None
    variability_min: Optional[float] = None
    variability_max: Optional[float] = None
    deletion: Optional[float] = None


@dataclass(frozen=True)
class FROGObjectiveReport:
    """Reproducibility data of one objective

    Fields:
        optimum: Optimal objective value.
        reactions: {reaction_id: FROGReactionReport}
        gene_deletions: {gene_id: optimal objective value with the gene deleted}
        fraction_of_optimum: Fraction of the optimum that FVA solutions had to reach.
    """
    optimum: Optional[float] = None
    reactions: Dict[str, FROGReactionReport] = field(default_factory=dict)
    gene_deletions: Dict[str, Optional[float]] = field(default_factory=dict)
    fraction_of_optimum: float = 1.0


# {objective name: FROGObjectiveReport}
FROGReportData = Dict[str, FROGObjectiveReport]

# {key: value}, e.g. {'model.filename': 'e_coli_core.xml', ...}
FROGMetadata = Dict[str, str]
