"""Test the comparison of FROG reports and their metadata."""
from .test_01_load_models_and_solvers import *
from dataclasses import replace
import fbcmodeltests as fmt


def perturb(report, objective, reaction=None, gene=None, **fields):
    """Copy of a report in which single values are replaced."""
    o = report[objective]
    reactions = dict(o.reactions)
    gene_deletions = dict(o.gene_deletions)
    if reaction is not None:
        reactions[reaction] = replace(reactions[reaction], **fields)
    if gene is not None:
        gene_deletions[gene] = fields['value']
    copy = dict(report)
    copy[objective] = replace(o, reactions=reactions, gene_deletions=gene_deletions)
    return copy


@pytest.mark.parametrize("tolerances", [(0.0, 0.0), (1e-6, 1e-4), (1e-3, 0.0), (0.0, 1e-2)])
def test_report_equals_itself(frog_report, tolerances):
    result = fmt.frog_test_report_equality(frog_report, frog_report, *tolerances)
    assert (result.passed)
    assert (bool(result))
    assert (result.mismatches == [])


def test_values_within_tolerance(frog_report):
    b = perturb(frog_report, DEFAULT_OBJECTIVE, 'PGI', flux=4.8613)
    assert (fmt.frog_test_report_equality(frog_report, b).passed)
    assert (not fmt.frog_test_report_equality(frog_report, b, 1e-6, 0.0).passed)
    assert (fmt.frog_test_report_equality(frog_report, b, 1e-3, 0.0).passed)


def test_value_beyond_tolerance(frog_report):
    b = perturb(frog_report, DEFAULT_OBJECTIVE, 'PGI', flux=4.87)
    result = fmt.frog_test_report_equality(frog_report, b)
    assert (not result.passed)
    assert (len(result.mismatches) == 1)
    mismatch = result.mismatches[0]
    assert (mismatch.path == (DEFAULT_OBJECTIVE, 'reactions', 'PGI', 'flux'))
    assert (mismatch.a == 4.860861146496871 and mismatch.b == 4.87)


def test_comparison_is_symmetric(frog_report):
    b = perturb(frog_report, DEFAULT_OBJECTIVE, 'ATPM', variability_max=8.5, deletion=None)
    ab = fmt.frog_test_report_equality(frog_report, b)
    ba = fmt.frog_test_report_equality(b, frog_report)
    assert (sorted(m.path for m in ab.mismatches) == sorted(m.path for m in ba.mismatches))
    assert (len(ab.mismatches) == 2)


def test_fraction_of_optimum_differs(frog_report):
    b = dict(frog_report)
    b[DEFAULT_OBJECTIVE] = replace(frog_report[DEFAULT_OBJECTIVE], fraction_of_optimum=0.9)
    result = fmt.frog_test_report_equality(frog_report, b)
    assert ([m.path for m in result.mismatches] == [(DEFAULT_OBJECTIVE, 'fraction_of_optimum')])


def test_absent_values(frog_report):
    """None is distinct from 0.0, NaN counts as absent."""
    b = perturb(frog_report, DEFAULT_OBJECTIVE, gene='b0003', value=None)
    result = fmt.frog_test_report_equality(frog_report, b)
    assert ([m.path for m in result.mismatches] == [(DEFAULT_OBJECTIVE, 'gene_deletions', 'b0003')])
    b = perturb(frog_report, DEFAULT_OBJECTIVE, gene='b0002', value=float('nan'))
    assert (fmt.frog_test_report_equality(frog_report, b, 0.0, 0.0).passed)


def test_all_mismatches_are_reported(frog_report):
    b = perturb(frog_report, DEFAULT_OBJECTIVE, 'PGI', flux=1.0, deletion=2.0)
    b = perturb(b, 'atp', gene='b0001', value=3.0)
    b = dict(b)
    del b['atp'].reactions['BLOCKED']
    b['extra'] = fmt.FROGObjectiveReport(optimum=1.0)
    result = fmt.frog_test_report_equality(frog_report, b)
    paths = sorted(m.path for m in result.mismatches)
    assert (paths == sorted([
        (DEFAULT_OBJECTIVE, 'reactions', 'PGI', 'flux'),
        (DEFAULT_OBJECTIVE, 'reactions', 'PGI', 'deletion'),
        ('atp', 'gene_deletions', 'b0001'),
        ('atp', 'reactions', 'BLOCKED'),
        ('extra',),
    ]))


def test_negative_tolerance(frog_report):
    with pytest.raises(ValueError):
        fmt.frog_test_report_equality(frog_report, frog_report, -1e-6, 1e-4)


def test_metadata_compatibility(frog_metadata):
    assert (fmt.frog_test_metadata_compatibility(frog_metadata, frog_metadata).passed)
    b = dict(frog_metadata)
    b[MODEL_FILENAME] = '/data/models/e_coli_core.xml'
    b[MODEL_MD5] = frog_metadata[MODEL_MD5].upper()
    b[SOLVER_NAME] = 'cobrapy 0.29.0 (cplex)'
    b[ENVIRONMENT] = 'Windows'
    assert (fmt.frog_test_metadata_compatibility(frog_metadata, b).passed)


def test_metadata_incompatibility(frog_metadata):
    b = dict(frog_metadata)
    b[MODEL_SHA256] = '0' * 64
    b[MODEL_FILENAME] = 'iML1515.xml'
    result = fmt.frog_test_metadata_compatibility(frog_metadata, b)
    assert (sorted(m.path for m in result.mismatches) == [(MODEL_FILENAME,), (MODEL_SHA256,)])
    del b[MODEL_MD5]
    assert (len(fmt.frog_test_metadata_compatibility(frog_metadata, b).mismatches) == 3)
    a = {k: v for k, v in frog_metadata.items() if k != MODEL_MD5}
    assert (fmt.frog_test_metadata_compatibility(a, {k: v for k, v in a.items()}).passed)


def test_compare_directories(frog_report, frog_metadata, tmp_path):
    dir_a, dir_b = str(tmp_path / 'a'), str(tmp_path / 'b')
    fmt.frog_write_to_directory(frog_report, frog_metadata, dir_a)
    fmt.frog_write_to_directory(frog_report, frog_metadata, dir_b)
    assert (fmt.frog_compare_reports(dir_a, dir_b).passed)
    fmt.frog_write_to_directory(perturb(frog_report, 'atp', 'ATPM', deletion=None), dict(frog_metadata, **{MODEL_MD5: 'ff'}), dir_b)
    result = fmt.frog_compare_reports(dir_a, dir_b)
    assert (sorted(m.path for m in result.mismatches) == [('atp', 'reactions', 'ATPM', 'deletion'), (MODEL_MD5,)])
