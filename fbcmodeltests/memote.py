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
"""Composite quality test of a metabolic model"""

from typing import Optional
from fbcmodeltests.config import MemoteConfig
from fbcmodeltests.consistency import CheckResult, QualityReport, test_consistency
from fbcmodeltests.balance import metabolites_no_formula, metabolites_no_charge, \
                                  metabolites_duplicated_in_compartment, metabolites_medium_components, \
                                  reactions_without_gpr, find_transport_reactions
from fbcmodeltests.network import find_orphan_metabolites, find_deadend_metabolites, find_blocked_reactions
import logging


def run_memote_checks(model, solver=None, config: Optional[MemoteConfig] = None, workers=None) -> QualityReport:
    """Run all quality tests on a model

    The report contains the consistency tests (see test_consistency) and the following tests,
    whose details list the offending metabolites or reactions:

        metabolites_have_formula, metabolites_have_charge, no_duplicated_metabolites,
        reactions_have_gpr, no_orphan_metabolites, no_deadend_metabolites, no_blocked_reactions

    The entries 'medium_components' and 'transport_reactions' are informative and always pass.

    Example:
        report = run_memote_checks(model, solver='glpk')
        print(report.failed())

    Args:
        model (cobra.Model):
            A metabolic model. It is not modified.

        solver (optional (str)):
            The solver that should be used.

        config (optional (MemoteConfig)):
            Test configuration.

        workers (optional (int)):
            Number of worker processes for the search of blocked reactions.

    Returns:
        (QualityReport)
    """
    config = config or MemoteConfig()
    logging.info('Testing model ' + str(model.id) + '.')
    report = test_consistency(model, solver, config.consistency)

    missing = metabolites_no_formula(model, config.metabolite)
    report.add(CheckResult('metabolites_have_formula', not missing, missing))
    missing = metabolites_no_charge(model, config.metabolite)
    report.add(CheckResult('metabolites_have_charge', not missing, missing))
    duplicates = metabolites_duplicated_in_compartment(model, config.metabolite)
    report.add(CheckResult('no_duplicated_metabolites', not duplicates, duplicates))
    report.add(CheckResult('medium_components', True, metabolites_medium_components(model, config.metabolite)))

    missing = reactions_without_gpr(model, config.reaction)
    report.add(CheckResult('reactions_have_gpr', not missing, missing))
    report.add(CheckResult('transport_reactions', True, find_transport_reactions(model, config)))

    orphans = find_orphan_metabolites(model)
    report.add(CheckResult('no_orphan_metabolites', not orphans, orphans))
    deadends = find_deadend_metabolites(model)
    report.add(CheckResult('no_deadend_metabolites', not deadends, deadends))
    blocked = find_blocked_reactions(model, solver=solver, workers=workers)
    report.add(CheckResult('no_blocked_reactions', not blocked, blocked))
    if report.passed:
        logging.info('All quality tests passed.')
    else:
        logging.warning('Failed quality tests: ' + ', '.join(report.failed()))
    return report
