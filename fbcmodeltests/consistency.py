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
"""LP-based consistency tests of metabolic models

model_is_consistent tests the stoichiometric consistency of a model after

    Gevorgyan, A., Poolman, M. G., & Fell, D. A. (2008). Detection of stoichiometric
    inconsistencies in biomolecular models. Bioinformatics, 24(19), 2245-2251.

model_has_no_erroneous_energy_generating_cycles detects energy generating cycles after

    Fritzemeier, C. J., Hartleb, D., Szappanos, B., Papp, B., & Lercher, M. J. (2017).
    Erroneous energy-generating cycles in published genome scale metabolic networks:
    Identification and removal. PLoS Computational Biology, 13(4), e1005494.
"""

from cobra import Reaction
from cobra.util import create_stoichiometric_matrix
from cobra.util.solver import solvers
from optlang.symbolics import Zero
from scipy import sparse
from numpy import unique
from typing import Dict, List, Optional
from fbcmodeltests.names import *
from fbcmodeltests.config import ConsistencyConfig
from fbcmodeltests.utils import select_solver, solver_interface_name, working_copy, optimize_value, ScopedObjective, \
                                find_exchange_reactions, find_biomass_reactions
from fbcmodeltests.balance import reactions_mass_unbalanced, reactions_charge_unbalanced
import logging

# Energy dissipating reactions in canonical metabolite names (Fritzemeier et al. 2017)
ENERGY_DISSIPATING_REACTIONS = [
    {"ATP": -1, "H2O": -1, "ADP": 1, "H": 1, "Phosphate": 1},
    {"CTP": -1, "H2O": -1, "CDP": 1, "H": 1, "Phosphate": 1},
    {"GTP": -1, "H2O": -1, "GDP": 1, "H": 1, "Phosphate": 1},
    {"UTP": -1, "H2O": -1, "UDP": 1, "H": 1, "Phosphate": 1},
    {"ITP": -1, "H2O": -1, "IDP": 1, "H": 1, "Phosphate": 1},
    {"NADH": -1, "H": 1, "NAD": 1},
    {"NADPH": -1, "H": 1, "NADP": 1},
    {"FADH2": -1, "H": 2, "FAD": 1},
    {"FMNH2": -1, "H": 2, "FMN": 1},
    {"Ubiquinol-8": -1, "H": 2, "Ubiquinone-8": 1},
    {"Menaquinol-8": -1, "H": 2, "Menaquinone-8": 1},
    {"2-Demethylmenaquinol-8": -1, "H": 2, "2-Demethylmenaquinone-8": 1},
    {"H2O": -1, "ACCOA": -1, "H": 1, "Acetate": 1, "COA": 1},
    {"L-Glutamate": -1, "H2O": -1, "2-Oxoglutarate": 1, "Ammonium": 1, "H": 2},
    {"H[external]": -1, "H": 1},
]


class CheckResult(object):
    """Outcome of a single model test

    Args:
        name (str):
            Name of the test.

        passed (bool):
            Whether the model passed the test.

        details (optional):
            Test specific findings, e.g. the list of unbalanced reactions.
    """

    def __init__(self, name, passed, details=None):
        self.name = name
        self.passed = bool(passed)
        self.details = details

    def __repr__(self):
        return 'CheckResult(' + self.name + ': ' + ('passed' if self.passed else 'failed') + ')'


class QualityReport(dict):
    """Collection of CheckResults, keyed by test name"""

    def add(self, result: CheckResult):
        self[result.name] = result
        logging.info('  ' + repr(result))

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.values())

    def failed(self) -> List[str]:
        return sorted(k for k, r in self.items() if not r.passed)


def _internal_reactions(model, ignored) -> List[int]:
    skip = set(ignored) | set(find_exchange_reactions(model)) | set(find_biomass_reactions(model))
    return [j for j, r in enumerate(model.reactions) if r.id not in skip]


def model_is_consistent(model, solver=None, config: Optional[ConsistencyConfig] = None) -> bool:
    """Test the stoichiometric consistency of a model

    A model is stoichiometrically consistent if a strictly positive mass can be assigned to every
    metabolite such that all internal reactions conserve mass. This is tested with the LP

        min sum(m)  s.t.  S_int^T m = 0,  m >= 1

    over the metabolites of the internal reactions S_int. The model is consistent iff the LP is
    feasible. Exchange, biomass and config.consistency_ignored_reactions are not internal.

    Stoichiometric consistency does not imply that the reactions are mass balanced, but it can be
    tested without knowing the metabolite formulas.

    Example:
        consistent = model_is_consistent(model, solver='glpk')

    Args:
        model (cobra.Model):
            A metabolic model.

        solver (optional (str)):
            The solver that should be used.

        config (optional (ConsistencyConfig)):
            Test configuration.

    Returns:
        (bool):
            True if the model is stoichiometrically consistent.
    """
    config = config or ConsistencyConfig()
    internal = _internal_reactions(model, config.consistency_ignored_reactions)
    if not internal:
        logging.warning('Model has no internal reactions. Consistency test is skipped.')
        return True
    S = sparse.csc_matrix(create_stoichiometric_matrix(model, array_type='dok'))[:, internal]
    met_idx = unique(S.nonzero()[0])
    interface = solvers[solver_interface_name(select_solver(solver, model))]

    lp = interface.Model()
    masses = {i: interface.Variable('m_' + str(i), lb=1) for i in met_idx}
    lp.add(list(masses.values()))
    conservation = [interface.Constraint(Zero, lb=0, ub=0, name='r_' + str(j)) for j in range(S.shape[1])]
    lp.add(conservation)
    lp.update()
    for j, constraint in enumerate(conservation):
        column = S.getcol(j).tocoo()
        constraint.set_linear_coefficients({masses[i]: float(v) for i, v in zip(column.row, column.data)})
    lp.objective = interface.Objective(Zero, direction='min')
    lp.objective.set_linear_coefficients({m: 1.0 for m in masses.values()})

    status = lp.optimize()
    if status == OPTIMAL:
        return True
    if status == INFEASIBLE:
        return False
    raise Exception('Stoichiometric consistency LP could not be solved (status: ' + str(status) + ').')


def _dissipation_reaction(model, stoichiometry: Dict[str, float], rid: str, name_space=None):
    """Build an energy dissipating reaction, None if one of its metabolites is missing in the model"""
    if name_space is not None:
        if not all(k in name_space for k in stoichiometry):
            return None
        stoichiometry = {name_space[k]: v for k, v in stoichiometry.items()}
    if not all(model.metabolites.has_id(k) for k in stoichiometry):
        return None
    reaction = Reaction(rid, lower_bound=0.0, upper_bound=1.0)
    reaction.add_metabolites({model.metabolites.get_by_id(k): v for k, v in stoichiometry.items()})
    return reaction


def model_has_no_erroneous_energy_generating_cycles(model, solver=None, config: Optional[ConsistencyConfig] = None) -> bool:
    """Test a model for erroneous energy generating cycles (EGCs)

    On a copy of the model, boundary and ignored reactions are removed, all remaining exchange
    reactions are closed and all flux bounds are scaled to the unit interval. Energy dissipating
    reactions (e.g. ATP + H2O --> ADP + H + Phosphate) are added for all energy carriers present in
    the model and the sum of their fluxes is maximized. Without energy generating cycles, no energy
    can be dissipated in a closed network and the maximum is zero.

    The canonical carrier names are mapped to the model through
    config.energy_dissipating_metabolites. A dissipating reaction is only used if all its
    metabolites exist in the model. Additional reactions from
    config.additional_energy_generating_reactions are added under the same condition, and
    config.optimizer_modifications are applied to the copy before optimization.

    Example:
        no_egc = model_has_no_erroneous_energy_generating_cycles(model, solver='glpk')

    Args:
        model (cobra.Model):
            A metabolic model.

        solver (optional (str)):
            The solver that should be used.

        config (optional (ConsistencyConfig)):
            Test configuration.

    Returns:
        (bool):
            True if the model is free of energy generating cycles.
    """
    config = config or ConsistencyConfig()
    boundary = config.boundary_reactions if config.boundary_reactions is not None else find_exchange_reactions(model)
    ignored = config.ignored_energy_reactions if config.ignored_energy_reactions is not None else find_biomass_reactions(model)

    work = working_copy(model, solver)
    work.remove_reactions([rid for rid in set(boundary) | set(ignored) if work.reactions.has_id(rid)])
    for r in work.reactions:
        r.bounds = (-1.0 if r.lower_bound < 0 else 0.0, 1.0 if r.upper_bound > 0 else 0.0)
    for rid in find_exchange_reactions(work):
        work.reactions.get_by_id(rid).bounds = (0.0, 0.0)

    dissipating = []
    for i, stoichiometry in enumerate(ENERGY_DISSIPATING_REACTIONS):
        reaction = _dissipation_reaction(work, stoichiometry, 'EGC_dissipation_' + str(i), config.energy_dissipating_metabolites)
        if reaction is not None:
            dissipating.append(reaction)
    for i, extra in enumerate(config.additional_energy_generating_reactions):
        if isinstance(extra, Reaction):
            reaction = _dissipation_reaction(work, {m.id: c for m, c in extra.metabolites.items()}, 'EGC_' + extra.id)
        else:
            reaction = _dissipation_reaction(work, extra, 'EGC_additional_' + str(i))
        if reaction is not None:
            dissipating.append(reaction)
    if not dissipating:
        logging.warning('None of the energy dissipating reactions could be built for this model.')
        return True
    logging.info('  Testing ' + str(len(dissipating)) + ' energy dissipating reactions for energy generating cycles.')
    work.add_reactions(dissipating)

    for modification in config.optimizer_modifications:
        modification(work)
    with ScopedObjective(work, {r.id: 1.0 for r in dissipating}, MAXIMIZE):
        dissipated = optimize_value(work)
    if dissipated is None:
        raise Exception('Energy generating cycle LP could not be solved.')
    return abs(dissipated) <= config.tolerance


def test_consistency(model, solver=None, config: Optional[ConsistencyConfig] = None) -> QualityReport:
    """Run the stoichiometric consistency, energy cycle, mass and charge balance tests

    Returns:
        (QualityReport):
            The results of the four tests: 'stoichiometric_consistency',
            'no_energy_generating_cycles', 'mass_balance', 'charge_balance'. For the balance tests,
            the details contain the unbalanced reactions.
    """
    config = config or ConsistencyConfig()
    report = QualityReport()
    report.add(CheckResult('stoichiometric_consistency', model_is_consistent(model, solver, config)))
    report.add(CheckResult('no_energy_generating_cycles',
                           model_has_no_erroneous_energy_generating_cycles(model, solver, config)))
    unbalanced = reactions_mass_unbalanced(model, config.mass_ignored_reactions, config.tolerance)
    report.add(CheckResult('mass_balance', not unbalanced, unbalanced))
    unbalanced = reactions_charge_unbalanced(model, config.charge_ignored_reactions, config.tolerance)
    report.add(CheckResult('charge_balance', not unbalanced, unbalanced))
    return report
