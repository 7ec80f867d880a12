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
"""Network topology tests: orphan and dead-end metabolites, blocked reactions"""

from contextlib import redirect_stdout, redirect_stderr
from io import StringIO
from typing import List, Optional, Tuple
from fbcmodeltests.names import *
from fbcmodeltests.pool import map_tasks
from fbcmodeltests.utils import working_copy, optimize_value, ScopedObjective
import logging

# model of the current worker, set by blocked_worker_init
blocked_glob = None


def _can_produce(reaction, coeff) -> bool:
    return (coeff > 0 and reaction.upper_bound > 0) or (coeff < 0 and reaction.lower_bound < 0)


def _can_consume(reaction, coeff) -> bool:
    return (coeff < 0 and reaction.upper_bound > 0) or (coeff > 0 and reaction.lower_bound < 0)


def find_orphan_metabolites(model) -> List[str]:
    """Metabolites that can be consumed but not produced by any reaction (respecting bounds)"""
    orphans = []
    for m in model.metabolites:
        reactions = [(r, r.metabolites[m]) for r in m.reactions]
        if any(_can_consume(r, c) for r, c in reactions) and not any(_can_produce(r, c) for r, c in reactions):
            orphans.append(m.id)
    return sorted(orphans)


def find_deadend_metabolites(model) -> List[str]:
    """Metabolites that can be produced but not consumed by any reaction (respecting bounds)"""
    deadends = []
    for m in model.metabolites:
        reactions = [(r, r.metabolites[m]) for r in m.reactions]
        if any(_can_produce(r, c) for r, c in reactions) and not any(_can_consume(r, c) for r, c in reactions):
            deadends.append(m.id)
    return sorted(deadends)


def blocked_worker_init(model):
    """Helper function for the parallel search of blocked reactions. Stores the model of a worker."""
    global blocked_glob
    blocked_glob = model


def blocked_worker_compute(task) -> Tuple[Tuple[str, str], Optional[float]]:
    """Helper function for the parallel search of blocked reactions. Minimizes or maximizes one flux."""
    global blocked_glob
    sense, rid = task
    with redirect_stdout(StringIO()), redirect_stderr(StringIO()):
        with ScopedObjective(blocked_glob, {rid: 1.0}, sense):
            value = optimize_value(blocked_glob)
    return (sense, rid), value


def find_blocked_reactions(model, solver=None, workers=None, tolerance=1e-9) -> List[str]:
    """Reactions that cannot carry any flux at steady state

    Every reaction is minimized and maximized without regard to the objective of the model
    (flux variability analysis). A reaction is blocked if both extremes are zero. Unbounded
    directions are never blocked. If the model itself is infeasible, all reactions are blocked.

    Args:
        model (cobra.Model):
            A metabolic model. It is not modified.

        solver, workers (optional):
            The solver and the number of worker processes.

        tolerance (optional (float)): (Default: 1e-9)
            Fluxes with smaller absolute value are treated as zero.

    Returns:
        (list of str):
            Sorted identifiers of blocked reactions.
    """
    global blocked_glob
    work = working_copy(model, solver)
    with ScopedObjective(work, {}):
        if optimize_value(work) is None:
            logging.warning('Model is infeasible, all reactions are blocked.')
            return sorted(r.id for r in work.reactions)
    tasks = [(sense, r.id) for r in work.reactions for sense in [MINIMIZE, MAXIMIZE]]
    try:
        values = dict(map_tasks(blocked_worker_compute, tasks, workers, initializer=blocked_worker_init, initargs=(work,)))
    finally:
        blocked_glob = None

    def zero(value):
        return value is not None and abs(value) <= tolerance

    return sorted(r.id for r in work.reactions if zero(values[(MINIMIZE, r.id)]) and zero(values[(MAXIMIZE, r.id)]))
