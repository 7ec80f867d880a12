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
"""Tolerance-based comparison of FROG reports

Comparisons do not stop at the first difference. All differing fields are collected in a
FROGComparison, so that a failed comparison can be inspected as a whole.
"""

from math import isnan
from re import split
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple
from fbcmodeltests.names import *
from fbcmodeltests.frog_types import FROGReportData, FROGMetadata
from fbcmodeltests.frog_io import frog_read_from_directory
import logging

# Metadata entries that must agree between two compared reports
REQUIRED_METADATA_KEYS = [MODEL_FILENAME, MODEL_MD5, MODEL_SHA256]


class Mismatch(NamedTuple):
    """A single difference between two reports

    path: location of the difference, e.g. ('obj', 'reactions', 'PGI', 'variability_max')
    a, b: the values found in the first and second report (None if absent)
    reason: short description of the difference
    """
    path: Tuple[str, ...]
    a: Any
    b: Any
    reason: str


class FROGComparison(object):
    """Result of a comparison of FROG reports or their metadata

    The comparison has passed if no mismatches were found.
    """

    def __init__(self, mismatches: Optional[Iterable[Mismatch]] = None):
        self.mismatches = list(mismatches or [])

    def add(self, path, a, b, reason):
        self.mismatches.append(Mismatch(tuple(path), a, b, reason))

    @property
    def passed(self) -> bool:
        return not self.mismatches

    def __bool__(self):
        return self.passed

    def merge(self, other: 'FROGComparison') -> 'FROGComparison':
        """New comparison holding the mismatches of both"""
        return FROGComparison(self.mismatches + other.mismatches)

    def __repr__(self):
        return 'FROGComparison(' + ('passed' if self.passed else str(len(self.mismatches)) + ' mismatches') + ')'


def _file_basename(path: str) -> str:
    return split(r'[\\/]', path)[-1]


def _metadata_values_compatible(key, a: str, b: str) -> bool:
    if key == MODEL_FILENAME:
        return _file_basename(a) == _file_basename(b)
    return a.strip().lower() == b.strip().lower()


def frog_test_metadata_compatibility(a: FROGMetadata, b: FROGMetadata) -> FROGComparison:
    """Test whether two reports were computed from the same model

    For each of the keys model.filename, model.md5 and model.sha256, the key must be present in
    both or in none of the metadata. If present, the file names must have the same base name and
    the checksums must agree (ignoring case). Other keys are not compared.
    """
    result = FROGComparison()
    for key in REQUIRED_METADATA_KEYS:
        if (key in a) != (key in b):
            result.add((key,), a.get(key), b.get(key), 'metadata key present in only one report')
        elif key in a and not _metadata_values_compatible(key, a[key], b[key]):
            result.add((key,), a[key], b[key], 'metadata values are incompatible')
    return result


def _absent(value) -> bool:
    return value is None or (isinstance(value, float) and isnan(value))


def _compare_values(result: FROGComparison, path, x, y, absolute_tolerance, relative_tolerance):
    if _absent(x) and _absent(y):
        return
    if _absent(x) or _absent(y):
        result.add(path, x, y, 'value present in only one report')
    elif not (x == y or abs(x - y) <= absolute_tolerance + relative_tolerance * max(abs(x), abs(y))):
        result.add(path, x, y, 'values differ beyond tolerance')


def _common_keys(result: FROGComparison, path, a, b) -> List[str]:
    for key in sorted(set(a) - set(b)):
        result.add(path + (key,), key, None, 'missing in the second report')
    for key in sorted(set(b) - set(a)):
        result.add(path + (key,), None, key, 'missing in the first report')
    return sorted(set(a) & set(b))


def frog_test_report_equality(a: FROGReportData,
                              b: FROGReportData,
                              absolute_tolerance=1e-6,
                              relative_tolerance=1e-4) -> FROGComparison:
    """Compare two FROG reports within numerical tolerances

    Both reports must contain the same objectives and, for each objective, the same reactions and
    genes. Two numbers x and y are equal if |x - y| <= absolute_tolerance + relative_tolerance *
    max(|x|, |y|). A value that is absent in one report must be absent in the other one as well.

    Example:
        result = frog_test_report_equality(report_a, report_b, absolute_tolerance=1e-5)
        if not result.passed:
            print(result.mismatches)

    Args:
        a, b (dict):
            {objective name: FROGObjectiveReport}

        absolute_tolerance (optional (float)): (Default: 1e-6)

        relative_tolerance (optional (float)): (Default: 1e-4)

    Returns:
        (FROGComparison):
            All differences between the reports.
    """
    if absolute_tolerance < 0 or relative_tolerance < 0:
        raise ValueError('Tolerances must not be negative.')
    tol = (absolute_tolerance, relative_tolerance)
    result = FROGComparison()
    for objective in _common_keys(result, (), a, b):
        oa, ob = a[objective], b[objective]
        _compare_values(result, (objective, 'optimum'), oa.optimum, ob.optimum, *tol)
        _compare_values(result, (objective, 'fraction_of_optimum'), oa.fraction_of_optimum, ob.fraction_of_optimum, *tol)
        for rid in _common_keys(result, (objective, 'reactions'), oa.reactions, ob.reactions):
            ra, rb = oa.reactions[rid], ob.reactions[rid]
            for field in ['flux', 'variability_min', 'variability_max', 'deletion']:
                _compare_values(result, (objective, 'reactions', rid, field), getattr(ra, field), getattr(rb, field), *tol)
        for gid in _common_keys(result, (objective, 'gene_deletions'), oa.gene_deletions, ob.gene_deletions):
            _compare_values(result, (objective, 'gene_deletions', gid), oa.gene_deletions[gid], ob.gene_deletions[gid], *tol)
    return result


def frog_compare_reports(report_dir_a: str, report_dir_b: str, absolute_tolerance=1e-6, relative_tolerance=1e-4) -> FROGComparison:
    """Compare two FROG report directories: metadata compatibility and report equality"""
    metadata_a, report_a = frog_read_from_directory(report_dir_a)
    metadata_b, report_b = frog_read_from_directory(report_dir_b)
    result = frog_test_metadata_compatibility(metadata_a, metadata_b)
    result = result.merge(frog_test_report_equality(report_a, report_b, absolute_tolerance, relative_tolerance))
    if result.passed:
        logging.info('FROG reports ' + report_dir_a + ' and ' + report_dir_b + ' agree.')
    else:
        logging.warning('FROG reports ' + report_dir_a + ' and ' + report_dir_b + ' differ in ' +
                        str(len(result.mismatches)) + ' field(s).')
        for m in result.mismatches:
            logging.debug('  ' + '/'.join(m.path) + ': ' + m.reason + ' (' + repr(m.a) + ' vs. ' + repr(m.b) + ')')
    return result
