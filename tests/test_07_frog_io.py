"""Test writing and reading FROG report directories."""
from .test_01_load_models_and_solvers import *
from os import remove
from os.path import join
from dataclasses import replace
from pandas import read_csv
import fbcmodeltests as fmt
import json


def test_write_and_read(frog_report, frog_metadata, tmp_path):
    report_dir = str(tmp_path / 'report')
    fmt.frog_write_to_directory(frog_report, frog_metadata, report_dir, basefilename='e_coli_core.xml')
    metadata, report = fmt.frog_read_from_directory(report_dir)
    assert (metadata == frog_metadata)
    assert (report == frog_report)


def test_table_layout(frog_report, frog_metadata, tmp_path):
    report_dir = str(tmp_path)
    frog_report[DEFAULT_OBJECTIVE] = replace(frog_report[DEFAULT_OBJECTIVE], fraction_of_optimum=0.9)
    fmt.frog_write_to_directory(frog_report, frog_metadata, report_dir, basefilename='e_coli_core.xml')
    for filename, columns in fmt.FROG_COLUMNS.items():
        table = read_csv(join(report_dir, filename), sep='\t', dtype=str, keep_default_na=False)
        assert (list(table.columns) == columns)
    objectives = read_csv(join(report_dir, FROG_OBJECTIVE_FILE), sep='\t', dtype=str, keep_default_na=False)
    assert (list(objectives[OBJECTIVE]) == ['atp', DEFAULT_OBJECTIVE])
    assert (list(objectives[STATUS]) == [INFEASIBLE, OPTIMAL])
    assert (list(objectives[VALUE]) == ['', '0.8739215069684301'])
    assert (set(objectives[MODEL]) == {'e_coli_core.xml'})
    fva = read_csv(join(report_dir, FROG_FVA_FILE), sep='\t', dtype=str, keep_default_na=False)
    assert (set(fva[fva[OBJECTIVE] == DEFAULT_OBJECTIVE][FRACTION_OPTIMUM]) == {'0.9'})
    assert (set(fva[fva[OBJECTIVE] == 'atp'][FRACTION_OPTIMUM]) == {'1.0'})
    assert (fmt.frog_read_from_directory(report_dir)[1] == frog_report)
    genes = read_csv(join(report_dir, FROG_GENE_DELETION_FILE), sep='\t', dtype=str, keep_default_na=False)
    row = genes[(genes[OBJECTIVE] == DEFAULT_OBJECTIVE) & (genes[GENE] == 'b0002')].iloc[0]
    assert (row[STATUS] == INFEASIBLE and row[VALUE] == '')
    with open(join(report_dir, FROG_METADATA_FILE)) as f:
        assert (json.load(f) == frog_metadata)


def test_empty_gene_table(frog_metadata, tmp_path):
    report = {DEFAULT_OBJECTIVE: fmt.FROGObjectiveReport(optimum=1.0, reactions={'R1': fmt.FROGReactionReport(1.0, 0.0, 1.0, 0.0)})}
    fmt.frog_write_to_directory(report, frog_metadata, str(tmp_path))
    assert (fmt.frog_read_from_directory(str(tmp_path))[1] == report)


def test_missing_file(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    remove(join(str(tmp_path), FROG_GENE_DELETION_FILE))
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_from_directory(str(tmp_path))


def test_missing_metadata(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    remove(join(str(tmp_path), FROG_METADATA_FILE))
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_from_directory(str(tmp_path))


def test_invalid_metadata(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    with open(join(str(tmp_path), FROG_METADATA_FILE), 'w') as f:
        json.dump({MODEL_FILENAME: 1}, f)
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_metadata(str(tmp_path))
    with open(join(str(tmp_path), FROG_METADATA_FILE), 'w') as f:
        f.write('{"model.filename": ')
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_metadata(str(tmp_path))


def test_unparsable_value(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    with open(join(str(tmp_path), FROG_OBJECTIVE_FILE), 'w') as f:
        f.write('model\tobjective\tstatus\tvalue\ne_coli_core.xml\tobj\toptimal\tnot_a_number\n')
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_from_directory(str(tmp_path))


def test_missing_column(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    with open(join(str(tmp_path), FROG_OBJECTIVE_FILE), 'w') as f:
        f.write('model\tobjective\tvalue\ne_coli_core.xml\tobj\t1.0\n')
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_from_directory(str(tmp_path))


def test_unknown_objective(frog_report, frog_metadata, tmp_path):
    """All tables must refer to objectives of the objective table."""
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    with open(join(str(tmp_path), FROG_GENE_DELETION_FILE), 'a') as f:
        f.write('e_coli_core.xml\tother\tb0001\toptimal\t1.0\n')
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_from_directory(str(tmp_path))


def test_mismatching_reactions(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    with open(join(str(tmp_path), FROG_REACTION_DELETION_FILE), 'a') as f:
        f.write('model.xml\tobj\tEXTRA\toptimal\t1.0\n')
    with pytest.raises(ValueError):
        fmt.frog_read_from_directory(str(tmp_path))


def test_inconsistent_fraction_of_optimum(frog_report, frog_metadata, tmp_path):
    fmt.frog_write_to_directory(frog_report, frog_metadata, str(tmp_path))
    with open(join(str(tmp_path), FROG_FVA_FILE), 'a') as f:
        f.write('model.xml\tobj\tEXTRA\t1.0\toptimal\t0.0\t1.0\t0.5\n')
    with open(join(str(tmp_path), FROG_REACTION_DELETION_FILE), 'a') as f:
        f.write('model.xml\tobj\tEXTRA\toptimal\t1.0\n')
    with pytest.raises(fmt.FROGReadError):
        fmt.frog_read_from_directory(str(tmp_path))
