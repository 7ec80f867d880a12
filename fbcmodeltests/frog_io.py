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
"""Reading and writing of FROG reports

A FROG report directory contains four tab-separated tables and a metadata file:

    01_objective.tsv            model, objective, status, value
    02_fva.tsv                  model, objective, reaction, flux, status, minimum, maximum, fraction_optimum
    03_gene_deletion.tsv        model, objective, gene, status, value
    04_reaction_deletion.tsv    model, objective, reaction, status, value
    metadata.json               JSON object of strings

Values that are not available are written as empty cells with the status 'infeasible'.
"""

from os import makedirs
from os.path import isfile, join
from math import isnan
from typing import Dict, Optional, Tuple
from pandas import DataFrame, read_csv
from fbcmodeltests.names import *
from fbcmodeltests.frog_types import FROGReactionReport, FROGObjectiveReport, FROGReportData, FROGMetadata
import json
import logging

FROG_COLUMNS = {
    FROG_OBJECTIVE_FILE: [MODEL, OBJECTIVE, STATUS, VALUE],
    FROG_FVA_FILE: [MODEL, OBJECTIVE, REACTION, FLUX, STATUS, MINIMUM, MAXIMUM, FRACTION_OPTIMUM],
    FROG_GENE_DELETION_FILE: [MODEL, OBJECTIVE, GENE, STATUS, VALUE],
    FROG_REACTION_DELETION_FILE: [MODEL, OBJECTIVE, REACTION, STATUS, VALUE],
}


class FROGReadError(ValueError):
    """A FROG report directory is incomplete or malformed"""


def _format_value(value: Optional[float]) -> str:
    return '' if value is None else repr(float(value))


def _status(*values) -> str:
    return OPTIMAL if all(v is not None for v in values) else INFEASIBLE


def _write_table(report_dir, filename, rows):
    DataFrame(rows, columns=FROG_COLUMNS[filename]).to_csv(join(report_dir, filename), sep='\t', index=False)


def frog_write_to_directory(report: FROGReportData,
                            metadata: FROGMetadata,
                            report_dir: str,
                            basefilename: str = 'model.xml'):
    """Write a FROG report and its metadata to a directory

    Numbers are written with full precision, so that reading the report back reproduces the
    same values. The fraction of the optimum of each objective goes into the
    'fraction_optimum' column of the FVA table.

    Args:
        report (dict):
            {objective name: FROGObjectiveReport}

        metadata (dict):
            {key: value}, strings only.

        report_dir (str):
            Output directory, created if it does not exist.

        basefilename (optional (str)):
            Model name written into the 'model' column.
    """
    makedirs(report_dir, exist_ok=True)
    objective_rows, fva_rows, gene_rows, reaction_rows = [], [], [], []
    for objective in sorted(report):
        o = report[objective]
        objective_rows.append([basefilename, objective, _status(o.optimum), _format_value(o.optimum)])
        for rid in sorted(o.reactions):
            r = o.reactions[rid]
            fva_rows.append([
                basefilename, objective, rid,
                _format_value(r.flux),
                _status(r.variability_min, r.variability_max),
                _format_value(r.variability_min),
                _format_value(r.variability_max),
                _format_value(o.fraction_of_optimum)
            ])
            reaction_rows.append([basefilename, objective, rid, _status(r.deletion), _format_value(r.deletion)])
        for gid in sorted(o.gene_deletions):
            value = o.gene_deletions[gid]
            gene_rows.append([basefilename, objective, gid, _status(value), _format_value(value)])
    _write_table(report_dir, FROG_OBJECTIVE_FILE, objective_rows)
    _write_table(report_dir, FROG_FVA_FILE, fva_rows)
    _write_table(report_dir, FROG_GENE_DELETION_FILE, gene_rows)
    _write_table(report_dir, FROG_REACTION_DELETION_FILE, reaction_rows)
    with open(join(report_dir, FROG_METADATA_FILE), 'w') as f:
        json.dump(dict(sorted(metadata.items())), f, indent=2)
    logging.info('  Wrote FROG report with ' + str(len(report)) + ' objective(s) to ' + report_dir + '.')


def _read_table(report_dir, filename) -> DataFrame:
    path = join(report_dir, filename)
    if not isfile(path):
        raise FROGReadError('FROG report file ' + path + ' is missing.')
    try:
        table = read_csv(path, sep='\t', dtype=str, keep_default_na=False)
    except ValueError as e:
        raise FROGReadError('FROG report file ' + path + ' could not be parsed: ' + str(e)) from e
    missing = [c for c in FROG_COLUMNS[filename] if c not in table.columns]
    if missing:
        raise FROGReadError('FROG report file ' + path + ' lacks the column(s) ' + ', '.join(missing) + '.')
    return table


def _parse_value(text: str, where: str) -> Optional[float]:
    if text.strip() == '':
        return None
    try:
        value = float(text)
    except ValueError:
        raise FROGReadError('Value ' + repr(text) + ' in ' + where + ' is not a number.') from None
    return None if isnan(value) else value


def _read_keyed_values(report_dir, filename, key_column, objectives) -> Dict[str, Dict[str, Dict[str, str]]]:
    """Rows of a table as {objective: {key: row}}, rejecting unknown objectives and duplicate keys"""
    table = _read_table(report_dir, filename)
    rows = {o: {} for o in objectives}
    for row in table.to_dict('records'):
        objective, key = row[OBJECTIVE], row[key_column]
        if objective not in rows:
            raise FROGReadError(filename + ' refers to objective ' + objective + ' which is not in ' + FROG_OBJECTIVE_FILE + '.')
        if key in rows[objective]:
            raise FROGReadError(filename + ' contains ' + key + ' twice for objective ' + objective + '.')
        rows[objective][key] = row
    return rows


def frog_read_metadata(report_dir: str) -> FROGMetadata:
    path = join(report_dir, FROG_METADATA_FILE)
    if not isfile(path):
        raise FROGReadError('FROG metadata file ' + path + ' is missing.')
    with open(path) as f:
        try:
            metadata = json.load(f)
        except ValueError as e:
            raise FROGReadError('FROG metadata file ' + path + ' could not be parsed: ' + str(e)) from e
    if not isinstance(metadata, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in metadata.items()):
        raise FROGReadError('FROG metadata must be a JSON object of strings.')
    return metadata


def frog_read_from_directory(report_dir: str) -> Tuple[FROGMetadata, FROGReportData]:
    """Read a FROG report and its metadata from a directory (reverse of frog_write_to_directory)

    Args:
        report_dir (str):
            Directory containing the four FROG tables and metadata.json.

    Returns:
        (tuple):
            (metadata, report) with metadata {key: value} and report {objective name: FROGObjectiveReport}.

    Raises:
        FROGReadError: if a file is missing or malformed, a number cannot be parsed, or the tables
        refer to objectives or reactions that are missing in the objective or FVA table.
    """
    metadata = frog_read_metadata(report_dir)

    optima = {}
    for row in _read_table(report_dir, FROG_OBJECTIVE_FILE).to_dict('records'):
        if row[OBJECTIVE] in optima:
            raise FROGReadError(FROG_OBJECTIVE_FILE + ' contains objective ' + row[OBJECTIVE] + ' twice.')
        optima[row[OBJECTIVE]] = _parse_value(row[VALUE], FROG_OBJECTIVE_FILE)

    fva = _read_keyed_values(report_dir, FROG_FVA_FILE, REACTION, optima)
    deletions = _read_keyed_values(report_dir, FROG_REACTION_DELETION_FILE, REACTION, optima)
    genes = _read_keyed_values(report_dir, FROG_GENE_DELETION_FILE, GENE, optima)

    report = {}
    for objective, optimum in optima.items():
        if set(fva[objective]) != set(deletions[objective]):
            raise FROGReadError('Reactions in ' + FROG_FVA_FILE + ' and ' + FROG_REACTION_DELETION_FILE +
                                ' differ for objective ' + objective + '.')
        reactions = {}
        for rid, row in fva[objective].items():
            reactions[rid] = FROGReactionReport(
                flux=_parse_value(row[FLUX], FROG_FVA_FILE),
                variability_min=_parse_value(row[MINIMUM], FROG_FVA_FILE),
                variability_max=_parse_value(row[MAXIMUM], FROG_FVA_FILE),
                deletion=_parse_value(deletions[objective][rid][VALUE], FROG_REACTION_DELETION_FILE))
        gene_deletions = {gid: _parse_value(row[VALUE], FROG_GENE_DELETION_FILE) for gid, row in genes[objective].items()}
        fractions = {_parse_value(row[FRACTION_OPTIMUM], FROG_FVA_FILE) for row in fva[objective].values()} - {None}
        if len(fractions) > 1:
            raise FROGReadError(FROG_FVA_FILE + ' contains several fractions of the optimum for objective ' + objective + '.')
        report[objective] = FROGObjectiveReport(optimum=optimum,
                                                reactions=reactions,
                                                gene_deletions=gene_deletions,
                                                fraction_of_optimum=fractions.pop() if fractions else 1.0)
    return metadata, report
