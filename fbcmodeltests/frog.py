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
"""Generation of FROG reproducibility reports (FBA, FVA, reaction and gene deletions)"""

from cobra.io import read_sbml_model
from contextlib import redirect_stdout, redirect_stderr
from io import StringIO
from os.path import basename
from typing import Dict, Optional, Tuple, Union
import cobra
import hashlib
import platform
import libsbml
import logging
from fbcmodeltests import __version__
from fbcmodeltests.names import *
from fbcmodeltests.frog_types import FROGReactionReport, FROGObjectiveReport, FROGReportData, FROGMetadata
from fbcmodeltests.frog_io import frog_write_to_directory
from fbcmodeltests.gpr import reactions_knocked_out_by_genes
from fbcmodeltests.pool import map_tasks
from fbcmodeltests.utils import select_solver, working_copy, objective_coefficients, optimize_value, \
                                snap_to_zero, ScopedObjective

REACTION_DELETION = 'reaction_deletion'
GENE_DELETION = 'gene_deletion'

# models of the current worker, set by frog_worker_init
frog_glob = None


def frog_worker_init(model, optimum, fraction_of_optimum):
    """Helper function for parallel FROG analyses

    Store the model copies that the tasks of a worker operate on. The deletion model is the
    model as it was passed. The FVA model is a copy in which the objective is additionally
    bounded to fraction_of_optimum of the optimum. Is executed on workers, or once on the main
    thread if no pool is used.

    Args:
        model (cobra.Model):
            A private copy of the model with the analyzed objective set.
        optimum (float or None):
            Optimal objective value. FVA tasks require a value.
        fraction_of_optimum (float):
            Fraction of the optimum that FVA solutions must reach.
    """
    global frog_glob
    # redirect output to empty stream, solvers may print to the console of the workers
    with redirect_stdout(StringIO()), redirect_stderr(StringIO()):
        fva_model = None
        if optimum is not None:
            fva_model = model.copy()
            expression = fva_model.solver.objective.expression
            gap = abs(optimum) * (1.0 - fraction_of_optimum)
            if fva_model.solver.objective.direction == 'max':
                bound = fva_model.problem.Constraint(expression, lb=optimum - gap, name='frog_objective_bound')
            else:
                bound = fva_model.problem.Constraint(expression, ub=optimum + gap, name='frog_objective_bound')
            fva_model.add_cons_vars(bound)
        frog_glob = {'knockout': model, 'fva': fva_model}


def frog_worker_compute(task) -> Tuple[Tuple[str, str], Optional[float]]:
    """Helper function for parallel FROG analyses

    Run a single LP. Tasks are tuples (kind, identifier, reactions):
        ('minimize' | 'maximize', reaction_id, ()): FVA step of one reaction
        ('reaction_deletion', reaction_id, (reaction_id,)): reaction knockout
        ('gene_deletion', gene_id, (reaction_id, ...)): knockout of the reactions that depend on a gene

    Bounds and objectives are only changed within a scope, the stored models are restored after
    every task.

    Returns:
        ((kind, identifier), value) with value None if the LP was not solved to optimality.
    """
    global frog_glob
    kind, key, reactions = task
    with redirect_stdout(StringIO()), redirect_stderr(StringIO()):
        if kind in [MINIMIZE, MAXIMIZE]:
            model = frog_glob['fva']
            with ScopedObjective(model, {key: 1.0}, kind):
                value = optimize_value(model)
        else:
            model = frog_glob['knockout']
            with model:
                for rid in reactions:
                    model.reactions.get_by_id(rid).bounds = (0.0, 0.0)
                value = optimize_value(model)
    return (kind, key), value


def frog_objective_report(model,
                          objective: Union[str, Dict[str, float], None] = None,
                          solver=None,
                          workers=None,
                          fraction_of_optimum=1.0,
                          direction=None) -> FROGObjectiveReport:
    """Compute the FROG reproducibility data for a single objective

    The objective is optimized (FBA) and the fluxes of the optimum are stored. Then, for every
    reaction, the minimal and maximal flux is computed while the objective is held at its optimum
    (FVA), and the optimum is recomputed with the reaction blocked (reaction deletion). For every
    gene, all reactions whose GPR rule becomes false without the gene are blocked and the optimum
    is recomputed (gene deletion). FVA and deletion LPs are independent and are distributed on a
    process pool if more than one worker is used. Infeasible or unbounded LPs give None.

    Example:
        report = frog_objective_report(model, 'BIOMASS_Ecoli_core_w_GAM', solver='glpk', workers=4)

    Args:
        model (cobra.Model):
            A metabolic model. It is not modified.

        objective (optional (str) or (dict)):
            A reaction identifier or a dict {reaction_id: coefficient}. (Default: objective of the model)

        solver (optional (str)):
            The solver that should be used.

        workers (optional (int)):
            Number of worker processes. (Default: cobra.Configuration().processes)

        fraction_of_optimum (optional (float)): (Default: 1.0)
            Fraction of the optimum that the objective must reach in FVA.

        direction (optional (str)):
            'maximize' or 'minimize'. (Default: direction of the model)

    Returns:
        (FROGObjectiveReport)
    """
    global frog_glob
    work = working_copy(model, solver)
    reaction_ids = [r.id for r in work.reactions]
    with ScopedObjective(work, objective_coefficients(work, objective), direction):
        optimum = optimize_value(work)
        fluxes = {}
        if optimum is None:
            logging.warning('FBA problem not solved to optimality. Fluxes and flux ranges are not available.')
        else:
            primals = work.solver.primal_values
            fluxes = {r.id: snap_to_zero(primals[r.forward_variable.name] - primals[r.reverse_variable.name]) for r in work.reactions}

        tasks = []
        if optimum is not None:
            tasks += [(sense, rid, ()) for rid in reaction_ids for sense in [MINIMIZE, MAXIMIZE]]
        tasks += [(REACTION_DELETION, rid, (rid,)) for rid in reaction_ids]
        tasks += [(GENE_DELETION, g.id, tuple(reactions_knocked_out_by_genes(work, [g.id]))) for g in work.genes]
        logging.info('  Running FVA, reaction and gene deletions (' + str(len(tasks)) + ' LPs).')
        try:
            values = dict(map_tasks(frog_worker_compute, tasks, workers,
                                    initializer=frog_worker_init,
                                    initargs=(work, optimum, fraction_of_optimum)))
        finally:
            frog_glob = None

    reactions = {}
    for rid in reaction_ids:
        vmin = values.get((MINIMIZE, rid))
        vmax = values.get((MAXIMIZE, rid))
        if vmin is not None and vmax is not None and vmin > vmax:
            logging.debug('  Flux range of ' + rid + ' inverted by numerical noise.')
            vmin, vmax = vmax, vmin
        reactions[rid] = FROGReactionReport(flux=fluxes.get(rid),
                                            variability_min=vmin,
                                            variability_max=vmax,
                                            deletion=values[(REACTION_DELETION, rid)])
    gene_deletions = {g.id: values[(GENE_DELETION, g.id)] for g in work.genes}
    return FROGObjectiveReport(optimum=optimum,
                               reactions=reactions,
                               gene_deletions=gene_deletions,
                               fraction_of_optimum=fraction_of_optimum)


def frog_model_report(model, objectives=None, solver=None, workers=None, fraction_of_optimum=1.0) -> FROGReportData:
    """Compute the FROG reproducibility data for all objectives of a model

    Args:
        model (cobra.Model):
            A metabolic model.

        objectives (optional (dict)):
            {objective name: objective}, every objective being a reaction identifier, a dict
            {reaction_id: coefficient} or a tuple (objective, direction) as returned by
            frog_sbml_objectives. (Default: {'obj': objective of the model})

        solver, workers, fraction_of_optimum (optional):
            See frog_objective_report.

    Returns:
        (dict):
            {objective name: FROGObjectiveReport}
    """
    if objectives is None:
        objectives = {DEFAULT_OBJECTIVE: None}
    report = {}
    for name, objective in objectives.items():
        direction = None
        if isinstance(objective, tuple):
            objective, direction = objective
        logging.info('Computing FROG report for objective ' + name + '.')
        report[name] = frog_objective_report(model,
                                             objective,
                                             solver=solver,
                                             workers=workers,
                                             fraction_of_optimum=fraction_of_optimum,
                                             direction=direction)
    return report


def _model_reaction_id(model, sid: str) -> str:
    # cobra strips the 'R_' prefix of SBML reaction ids
    if model.reactions.has_id(sid):
        return sid
    if sid.startswith('R_') and model.reactions.has_id(sid[2:]):
        return sid[2:]
    raise KeyError('Objective reaction ' + sid + ' is not part of the model.')


def frog_sbml_objectives(filename: str, model) -> Dict[str, Tuple[Dict[str, float], str]]:
    """Read all flux objectives (SBML fbc package) of an SBML file

    cobra only loads the active objective of a model. FROG reports cover every objective of the
    file, each under its own identifier.

    Args:
        filename (str):
            Path of the SBML model.

        model (cobra.Model):
            The model read from that file, used to translate SBML reaction ids.

    Returns:
        (dict):
            {objective id: ({reaction_id: coefficient}, 'maximize' or 'minimize')}, empty if the
            file defines no objectives.
    """
    document = libsbml.readSBMLFromFile(filename)
    sbml_model = document.getModel()
    fbc = sbml_model.getPlugin('fbc') if sbml_model is not None else None
    if fbc is None:
        return {}
    objectives = {}
    for i in range(fbc.getNumObjectives()):
        objective = fbc.getObjective(i)
        coefficients = {}
        for j in range(objective.getNumFluxObjectives()):
            flux_objective = objective.getFluxObjective(j)
            rid = _model_reaction_id(model, flux_objective.getReaction())
            coefficients[rid] = coefficients.get(rid, 0.0) + flux_objective.getCoefficient()
        direction = MINIMIZE if objective.getType() == libsbml.OBJECTIVE_TYPE_MINIMIZE else MAXIMIZE
        objectives[objective.getId()] = (coefficients, direction)
    return objectives


def _file_digest(filename, algorithm) -> str:
    digest = hashlib.new(algorithm)
    with open(filename, 'rb') as f:
        for chunk in iter(lambda: f.read(1 << 20), b''):
            digest.update(chunk)
    return digest.hexdigest()


def frog_metadata(filename: str, solver=None, basefilename: Optional[str] = None) -> FROGMetadata:
    """Metadata of a FROG report: software, environment, model file and its checksums, solver"""
    solver = select_solver(solver)
    return {
        SOFTWARE_NAME: 'fbcmodeltests',
        SOFTWARE_VERSION: __version__,
        ENVIRONMENT: platform.platform() + ' Python ' + platform.python_version(),
        MODEL_FILENAME: basefilename or basename(filename),
        MODEL_MD5: _file_digest(filename, 'md5'),
        MODEL_SHA256: _file_digest(filename, 'sha256'),
        SOLVER_NAME: 'cobrapy ' + cobra.__version__ + ' (' + solver + ')',
    }


def frog_generate_report(filename: str,
                         report_dir: str,
                         solver=None,
                         workers=None,
                         basefilename: Optional[str] = None,
                         fraction_of_optimum=1.0):
    """Read an SBML model, compute its FROG report and write it to a directory

    This is a one-shot wrapper around frog_sbml_objectives, frog_model_report, frog_metadata and
    frog_write_to_directory. Every objective of the SBML file is reported under its own id. Files
    without objectives are reported for the objective of the loaded model, named 'obj'.

    Example:
        frog_generate_report('e_coli_core.xml', 'report/', solver='glpk', workers=4)

    Args:
        filename (str):
            Path of the SBML model.

        report_dir (str):
            Output directory, created if it does not exist.

        solver, workers, fraction_of_optimum (optional):
            See frog_objective_report.

        basefilename (optional (str)):
            Model name written to the report. (Default: base name of filename)
    """
    basefilename = basefilename or basename(filename)
    logging.info('Loading model ' + filename + '.')
    model = read_sbml_model(filename)
    objectives = frog_sbml_objectives(filename, model) or None
    metadata = frog_metadata(filename, solver=solver, basefilename=basefilename)
    report = frog_model_report(model, objectives, solver=solver, workers=workers, fraction_of_optimum=fraction_of_optimum)
    frog_write_to_directory(report, metadata, report_dir, basefilename=basefilename)
    logging.info('FROG report written to ' + report_dir + '.')
