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
"""Helper functions shared by the model tests and the FROG report generator"""

from cobra import Configuration
from cobra.util.solver import linear_reaction_coefficients, solvers
from contextlib import redirect_stdout, redirect_stderr
from io import StringIO
from re import search
from typing import Dict, List, Optional, Union
from fbcmodeltests import avail_solvers, DisableLogger
from fbcmodeltests.names import *
import logging

# SBO terms of reactions that do not conserve mass
EXCHANGE_SBO_TERMS = {
    "SBO:0000627",  # exchange
    "SBO:0000628",  # demand
    "SBO:0000632",  # sink
}
BIOMASS_SBO_TERMS = {"SBO:0000629"}

# Absolute values below this threshold are reported as zero
ZERO_CUTOFF = 1e-11


def _default_solver() -> str:
    return next(s for s in [GLPK, CPLEX, GUROBI, SCIP] if s in avail_solvers)


def select_solver(solver=None, model=None) -> str:
    """Select a solver for subsequent LP computations

    If no argument is provided, this function will try to determine the currently selected solver
    from the model or, if unavailable, from the COBRA configuration. The solver is chosen from the
    solvers that were found at package initialization. If a solver is passed but unavailable, a
    warning is logged and an available solver is used instead.

    Example:
        solver = select_solver('glpk', model)

    Args:
        solver (optional (str)):
            A user preferred solver: 'glpk', 'cplex', 'gurobi' or 'scip'.

        model (optional (cobra.Model)):
            A metabolic model. Its field model.solver is used to determine the solver if no solver
            was passed.

    Returns:
        (str):
            The selected solver name.
    """
    if not avail_solvers:
        raise Exception('No LP solver available. Please install one of: glpk, cplex, gurobi, scip.')
    if solver:
        if solver in avail_solvers:
            return solver
        logging.warning('Selected solver ' + solver + ' not available. Using ' + _default_solver() + " instead.")
    pattern = '(' + '|'.join(sorted(avail_solvers)) + ')(_exact|opt)?_interface$'
    if hasattr(model, 'solver') and hasattr(model.solver, 'interface'):
        found = search(pattern, model.solver.interface.__name__)
        if found is not None:
            return found[1]
        logging.warning('Solver specified in model (' + model.solver.interface.__name__ + ') unavailable')
    cobra_conf = Configuration()
    if hasattr(cobra_conf, 'solver'):
        found = search(pattern, cobra_conf.solver.__name__)
        if found is not None:
            return found[1]
    return _default_solver()


def solver_interface_name(solver: str) -> str:
    """Name under which cobra registers the optlang interface of a solver (e.g. 'scipopt' for 'scip')"""
    for key in (solver, solver + 'opt'):
        if key in solvers:
            return key
    raise Exception('Solver ' + solver + ' has no optlang interface.')


def working_copy(model, solver=None):
    """Copy a model and attach the selected solver to the copy

    The original model is never modified by analyses that run on the copy.
    """
    solver = select_solver(solver, model)
    with redirect_stdout(StringIO()), redirect_stderr(StringIO()), DisableLogger():  # suppress output from copying the model
        model_copy = model.copy()
    if select_solver(None, model_copy) != solver:
        model_copy.solver = solver_interface_name(solver)
    return model_copy


def objective_coefficients(model, objective: Union[str, Dict[str, float], None] = None) -> Dict[str, float]:
    """Translate an objective argument into a dict of reaction identifiers and coefficients

    Args:
        model (cobra.Model):
            A metabolic model.

        objective (optional (str) or (dict)):
            A reaction identifier or a dict {reaction_id: coefficient}. If None, the linear
            objective of the model is returned.

    Returns:
        (dict):
            {reaction_id: coefficient}
    """
    if objective is None:
        return {r.id: c for r, c in linear_reaction_coefficients(model).items()}
    if isinstance(objective, str):
        objective = {objective: 1.0}
    for rid in objective:
        if not model.reactions.has_id(rid):
            raise KeyError('Objective reaction ' + rid + ' is not part of the model.')
    return {k: float(v) for k, v in objective.items() if v != 0}


class ScopedObjective():
    """Environment in which the objective of a model is temporarily replaced

    The previous objective expression and direction are stored on entry and restored on exit,
    also when the block is left through an exception.

    Example:
        with ScopedObjective(model, {'ATPM': 1.0}, MAXIMIZE):
            value = optimize_value(model)

    Args:
        model (cobra.Model):
            The model whose objective is overridden.

        objective (str or dict):
            A reaction identifier or a dict {reaction_id: coefficient}.

        direction (optional (str)):
            'maximize'/'max' or 'minimize'/'min'. If None, the current direction is kept.
    """

    def __init__(self, model, objective, direction=None):
        self.model = model
        self.objective = objective_coefficients(model, objective)
        self.direction = direction
        self._previous = None

    def __enter__(self):
        interface = self.model.problem
        self._previous = interface.Objective(self.model.solver.objective.expression,
                                             direction=self.model.solver.objective.direction,
                                             sloppy=True)
        self.model.objective = {self.model.reactions.get_by_id(k): v for k, v in self.objective.items()}
        if self.direction is not None:
            self.model.objective_direction = 'min' if self.direction in ['min', MINIMIZE] else 'max'
        return self.model

    def __exit__(self, exit_type, exit_value, exit_traceback):
        self.model.objective = self._previous
        self._previous = None


def optimize_value(model) -> Optional[float]:
    """Solve the LP of a model and return the objective value

    Infeasible, unbounded or otherwise non-optimal problems yield None. Errors raised by the solver
    itself (e.g. an unavailable solver library) are not caught.
    """
    status = model.solver.optimize()
    if status != OPTIMAL:
        logging.debug('  LP not solved to optimality (' + str(status) + ').')
        return None
    return snap_to_zero(model.solver.objective.value)


def snap_to_zero(value):
    if value is None:
        return None
    value = float(value)
    return value if abs(value) >= ZERO_CUTOFF else 0.0


def _sbo_term(element) -> Optional[str]:
    sbo = element.annotation.get('sbo')
    if isinstance(sbo, list):
        return sbo[0] if sbo else None
    return sbo


def find_exchange_reactions(model) -> List[str]:
    """Identifiers of boundary reactions (exchange, demand and sink reactions)

    A reaction is a boundary reaction if it only has one metabolite or if its SBO term marks it as
    exchange, demand or sink reaction.
    """
    return [r.id for r in model.reactions if len(r.metabolites) == 1 or _sbo_term(r) in EXCHANGE_SBO_TERMS]


def find_biomass_reactions(model) -> List[str]:
    """Identifiers of biomass reactions (by SBO term or by 'biomass' in the identifier)"""
    return [r.id for r in model.reactions if _sbo_term(r) in BIOMASS_SBO_TERMS or 'biomass' in r.id.lower()]
