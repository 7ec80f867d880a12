"""Test the computation of FROG reports (FBA, FVA, reaction and gene deletions)."""
from .test_01_load_models_and_solvers import *
from cobra.io import write_sbml_model
from os.path import isfile, join
import fbcmodeltests as fmt
import hashlib
import libsbml


def rounded(value):
    return None if value is None else round(value, 6)


def test_frog_objective_report(curr_solver, model_linear):
    report = fmt.frog_objective_report(model_linear, solver=curr_solver, workers=1)
    assert (rounded(report.optimum) == 10.0)
    reactions = report.reactions
    assert (sorted(reactions) == sorted(r.id for r in model_linear.reactions))
    assert (rounded(reactions['EX_C'].flux) == 10.0)
    assert (rounded(reactions['EX_A'].flux) == -10.0)
    assert (rounded(reactions['R1'].flux + reactions['R3'].flux) == 10.0)
    assert (rounded(reactions['R1'].flux) == rounded(reactions['R2'].flux))
    fva = {rid: (rounded(r.variability_min), rounded(r.variability_max)) for rid, r in reactions.items()}
    assert (fva == {
        'EX_A': (-10.0, -10.0),
        'T_A': (10.0, 10.0),
        'R1': (0.0, 10.0),
        'R2': (0.0, 10.0),
        'R3': (0.0, 10.0),
        'R4': (0.0, 0.0),
        'EX_C': (10.0, 10.0)
    })
    deletions = {rid: rounded(r.deletion) for rid, r in reactions.items()}
    assert (deletions == {'EX_A': 0.0, 'T_A': 0.0, 'R1': 10.0, 'R2': 10.0, 'R3': 10.0, 'R4': 10.0, 'EX_C': 0.0})
    genes = {gid: rounded(v) for gid, v in report.gene_deletions.items()}
    assert (genes == {'g1': 10.0, 'g2': 10.0, 'g3': 10.0, 'g4': 10.0, 'g5': 10.0, 'g6': 0.0})


def test_frog_model_unchanged(curr_solver, model_linear):
    fmt.frog_objective_report(model_linear, 'R1', solver=curr_solver, workers=1)
    assert (fmt.objective_coefficients(model_linear) == {'EX_C': 1.0})
    assert (model_linear.reactions.EX_A.bounds == (-10.0, 1000.0))
    assert (len(model_linear.solver.constraints) == 5)


def test_frog_fraction_of_optimum(curr_solver, model_linear):
    report = fmt.frog_objective_report(model_linear, solver=curr_solver, workers=1, fraction_of_optimum=0.5)
    assert (rounded(report.reactions['EX_C'].variability_min) == 5.0)
    assert (rounded(report.reactions['EX_C'].variability_max) == 10.0)
    assert (rounded(report.reactions['EX_A'].variability_max) == -5.0)
    assert (report.fraction_of_optimum == 0.5)


def test_frog_infeasible_deletions(curr_solver, model_linear):
    """Deletions that make the model infeasible are absent, not zero."""
    model_linear.reactions.EX_C.lower_bound = 1.0
    report = fmt.frog_objective_report(model_linear, solver=curr_solver, workers=1)
    assert (report.reactions['T_A'].deletion is None)
    assert (report.reactions['EX_A'].deletion is None)
    # deleting EX_C also lifts the forced secretion
    assert (rounded(report.reactions['EX_C'].deletion) == 0.0)
    assert (rounded(report.reactions['R1'].deletion) == 10.0)
    assert (report.gene_deletions['g6'] is None)
    assert (rounded(report.gene_deletions['g1']) == 10.0)


def test_frog_infeasible_model(curr_solver, model_linear):
    model_linear.reactions.EX_C.lower_bound = 20.0
    report = fmt.frog_objective_report(model_linear, solver=curr_solver, workers=1)
    assert (report.optimum is None)
    for rid, r in report.reactions.items():
        assert (r.flux is None and r.variability_min is None and r.variability_max is None)
        if rid != 'EX_C':
            assert (r.deletion is None)
    assert (rounded(report.reactions['EX_C'].deletion) == 0.0)
    assert (all(v is None for v in report.gene_deletions.values()))


def test_frog_model_report_objectives(curr_solver, model_linear):
    report = fmt.frog_model_report(model_linear, objectives={DEFAULT_OBJECTIVE: None, 'r1': 'R1'}, solver=curr_solver, workers=1)
    assert (sorted(report) == [DEFAULT_OBJECTIVE, 'r1'])
    assert (rounded(report['r1'].optimum) == 10.0)
    assert (rounded(report['r1'].reactions['R3'].variability_max) == 0.0)
    assert (rounded(report['r1'].reactions['R1'].deletion) == 0.0)
    assert (rounded(report[DEFAULT_OBJECTIVE].reactions['R1'].deletion) == 10.0)


def test_frog_metadata(curr_solver, model_linear, tmp_path):
    filename = str(tmp_path / 'linear.xml')
    write_sbml_model(model_linear, filename)
    metadata = fmt.frog_metadata(filename, solver=curr_solver)
    with open(filename, 'rb') as f:
        content = f.read()
    assert (metadata[MODEL_FILENAME] == 'linear.xml')
    assert (metadata[MODEL_MD5] == hashlib.md5(content).hexdigest())
    assert (metadata[MODEL_SHA256] == hashlib.sha256(content).hexdigest())
    assert (metadata[SOFTWARE_NAME] == 'fbcmodeltests')
    assert (curr_solver in metadata[SOLVER_NAME])
    assert (all(isinstance(v, str) for v in metadata.values()))


def test_frog_generate_report(curr_solver, model_linear, tmp_path):
    filename = str(tmp_path / 'linear.xml')
    report_dir = str(tmp_path / 'report')
    write_sbml_model(model_linear, filename)
    fmt.frog_generate_report(filename, report_dir, solver=curr_solver, workers=1)
    for f in [FROG_OBJECTIVE_FILE, FROG_FVA_FILE, FROG_GENE_DELETION_FILE, FROG_REACTION_DELETION_FILE, FROG_METADATA_FILE]:
        assert (isfile(join(report_dir, f)))
    metadata, report = fmt.frog_read_from_directory(report_dir)
    assert (metadata[MODEL_FILENAME] == 'linear.xml')
    assert (sorted(report) == [DEFAULT_OBJECTIVE])
    assert (rounded(report[DEFAULT_OBJECTIVE].optimum) == 10.0)
    assert (rounded(report[DEFAULT_OBJECTIVE].gene_deletions['g6']) == 0.0)
    assert (fmt.frog_compare_reports(report_dir, report_dir).passed)


def write_sbml_with_objectives(model, filename):
    """Write a model whose objective is renamed to 'biomass_max', with a second objective 'r1_min'."""
    write_sbml_model(model, filename)
    document = libsbml.readSBMLFromFile(filename)
    fbc = document.getModel().getPlugin('fbc')
    fbc.getObjective(0).setId('biomass_max')
    fbc.setActiveObjectiveId('biomass_max')
    objective = fbc.createObjective()
    objective.setId('r1_min')
    objective.setType(libsbml.OBJECTIVE_TYPE_MINIMIZE)
    flux_objective = objective.createFluxObjective()
    flux_objective.setReaction('R_R1')
    flux_objective.setCoefficient(1.0)
    libsbml.writeSBMLToFile(document, filename)


def test_frog_sbml_objectives(model_linear, tmp_path):
    filename = str(tmp_path / 'linear.xml')
    write_sbml_with_objectives(model_linear, filename)
    objectives = fmt.frog_sbml_objectives(filename, model_linear)
    assert (objectives == {'biomass_max': ({'EX_C': 1.0}, MAXIMIZE), 'r1_min': ({'R1': 1.0}, MINIMIZE)})


def test_frog_generate_report_objectives(curr_solver, model_linear, tmp_path):
    """Every objective of the SBML file is reported under its own id and direction."""
    filename = str(tmp_path / 'linear.xml')
    report_dir = str(tmp_path / 'report')
    write_sbml_with_objectives(model_linear, filename)
    fmt.frog_generate_report(filename, report_dir, solver=curr_solver, workers=1)
    _, report = fmt.frog_read_from_directory(report_dir)
    assert (sorted(report) == ['biomass_max', 'r1_min'])
    assert (rounded(report['biomass_max'].optimum) == 10.0)
    assert (rounded(report['r1_min'].optimum) == 0.0)
    assert (rounded(report['r1_min'].reactions['R1'].variability_max) == 0.0)
    assert (rounded(report['r1_min'].reactions['R3'].variability_max) == 10.0)


def test_frog_generate_report_fraction_of_optimum(curr_solver, model_linear, tmp_path):
    filename = str(tmp_path / 'linear.xml')
    report_dir = str(tmp_path / 'report')
    write_sbml_model(model_linear, filename)
    fmt.frog_generate_report(filename, report_dir, solver=curr_solver, workers=1, fraction_of_optimum=0.5)
    _, report = fmt.frog_read_from_directory(report_dir)
    assert (report[DEFAULT_OBJECTIVE].fraction_of_optimum == 0.5)
    assert (rounded(report[DEFAULT_OBJECTIVE].reactions['EX_C'].variability_min) == 5.0)


def test_frog_unbounded_model(curr_solver):
    """Unbounded problems give absent values, not numbers."""
    model = Model('unbounded')
    add_reaction(model, 'R1', {'A_c': -1, 'B_c': 1}, ub=float('inf'))
    add_reaction(model, 'R2', {'B_c': -1, 'A_c': 1}, ub=float('inf'))
    model.objective = 'R1'
    report = fmt.frog_objective_report(model, solver=curr_solver, workers=1)
    assert (report.optimum is None)
    for r in report.reactions.values():
        assert (r.flux is None and r.variability_min is None and r.variability_max is None)
    assert (rounded(report.reactions['R2'].deletion) == 0.0)


def test_frog_worker_state_cleared_on_error(model_linear, monkeypatch):
    import fbcmodeltests.frog

    def failing_map_tasks(compute, tasks, workers=None, initializer=None, initargs=()):
        initializer(*initargs)
        raise RuntimeError('solver failure')

    monkeypatch.setattr(fbcmodeltests.frog, 'map_tasks', failing_map_tasks)
    with pytest.raises(RuntimeError):
        fmt.frog_objective_report(model_linear, workers=1)
    assert (fbcmodeltests.frog.frog_glob is None)
