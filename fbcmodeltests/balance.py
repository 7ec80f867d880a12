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
"""Structural quality tests of metabolic models that do not require an LP solver

Mass and charge balances, metabolites without formula or charge, duplicated metabolites,
medium components, GPR rules and transport reactions.
"""

from collections import defaultdict
from math import isnan
from typing import Dict, List, Optional, Set
from fbcmodeltests.config import MetaboliteConfig, ReactionConfig, MemoteConfig
from fbcmodeltests.gpr import gpr_tree, gpr_genes
from fbcmodeltests.utils import find_biomass_reactions, find_exchange_reactions, _sbo_term
import logging


def _skipped_reactions(model, ignored) -> Set[str]:
    return set(ignored or []) | set(find_biomass_reactions(model)) | set(find_exchange_reactions(model))


def _metabolite_elements(metabolite) -> Optional[Dict[str, float]]:
    """Element composition of a metabolite, None if the formula is missing or cannot be parsed"""
    if not metabolite.formula:
        return None
    return metabolite.elements


def _metabolite_charge(metabolite) -> Optional[float]:
    charge = metabolite.charge
    if charge is None or isnan(float(charge)):
        return None
    return float(charge)


def _annotation_values(element, key: str) -> Set[str]:
    value = element.annotation.get(key)
    if value is None:
        return set()
    if isinstance(value, str):
        return {value}
    return set(value)


def reactions_mass_unbalanced(model, ignored=None, tolerance=1e-7) -> List[str]:
    """Identifiers of reactions that are not mass balanced

    For every reaction, the element counts of all participating metabolites, weighted with their
    stoichiometric coefficients, must add up to zero. A reaction with a metabolite whose formula
    is missing or cannot be parsed is reported as unbalanced. Biomass and exchange reactions are
    always skipped.

    Example:
        unbalanced = reactions_mass_unbalanced(model, ignored=config.mass_ignored_reactions)

    Args:
        model (cobra.Model):
            A metabolic model.

        ignored (optional (list of str)):
            Further reactions that should not be tested.

        tolerance (optional (float)): (Default: 1e-7)
            Largest accepted absolute net count per element.

    Returns:
        (list of str):
            Sorted identifiers of unbalanced reactions, empty if the test passes.
    """
    skip = _skipped_reactions(model, ignored)
    unbalanced = []
    for r in model.reactions:
        if r.id in skip:
            continue
        balance = defaultdict(float)
        for met, coeff in r.metabolites.items():
            elements = _metabolite_elements(met)
            if elements is None:
                logging.debug('  Metabolite ' + met.id + ' has no usable formula, ' + r.id + ' fails the mass balance.')
                unbalanced.append(r.id)
                break
            for element, count in elements.items():
                balance[element] += coeff * count
        else:
            if any(abs(v) > tolerance for v in balance.values()):
                unbalanced.append(r.id)
    return sorted(unbalanced)


def reactions_charge_unbalanced(model, ignored=None, tolerance=1e-7) -> List[str]:
    """Identifiers of reactions that are not charge balanced

    Like reactions_mass_unbalanced, but with metabolite charges. A reaction with a metabolite
    without charge is reported as unbalanced.
    """
    skip = _skipped_reactions(model, ignored)
    unbalanced = []
    for r in model.reactions:
        if r.id in skip:
            continue
        charges = [_metabolite_charge(m) for m in r.metabolites]
        if any(c is None for c in charges):
            unbalanced.append(r.id)
            continue
        net = sum(coeff * charge for coeff, charge in zip(r.metabolites.values(), charges))
        if abs(net) > tolerance:
            unbalanced.append(r.id)
    return sorted(unbalanced)


def metabolites_no_formula(model, config: Optional[MetaboliteConfig] = None) -> List[str]:
    """Metabolites without a (parsable) formula

    Formulas listed in config.formula_corner_cases are accepted as they are.
    """
    config = config or MetaboliteConfig()
    return sorted(m.id for m in model.metabolites
                  if m.formula not in config.formula_corner_cases and _metabolite_elements(m) is None)


def metabolites_no_charge(model, config: Optional[MetaboliteConfig] = None) -> List[str]:
    """Metabolites without charge or with a non-integer charge

    Charges listed in config.charge_corner_cases are accepted as they are.
    """
    config = config or MetaboliteConfig()
    missing = []
    for m in model.metabolites:
        charge = _metabolite_charge(m)
        if charge is None:
            missing.append(m.id)
        elif charge != int(charge) and charge not in config.charge_corner_cases:
            missing.append(m.id)
    return sorted(missing)


def metabolites_duplicated_in_compartment(model, config: Optional[MetaboliteConfig] = None) -> Dict[str, List[List[str]]]:
    """Groups of metabolites that seem to describe the same species within one compartment

    Two metabolites of the same compartment are duplicates if they share at least one value of the
    annotation config.test_annotation. If one of the two metabolites lacks this annotation, they are
    also treated as duplicates, since their identity cannot be told apart. Duplicates are joined
    transitively into groups.

    Returns:
        (dict):
            {compartment: [[metabolite_id, ...], ...]} for compartments with at least one group.
    """
    config = config or MetaboliteConfig()
    by_compartment = defaultdict(list)
    for m in model.metabolites:
        by_compartment[m.compartment].append(m)

    duplicates = {}
    for compartment, mets in by_compartment.items():
        annotations = [_annotation_values(m, config.test_annotation) for m in mets]
        parent = list(range(len(mets)))

        def find(i):
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        for i in range(len(mets)):
            for j in range(i + 1, len(mets)):
                if not annotations[i] or not annotations[j] or annotations[i] & annotations[j]:
                    parent[find(j)] = find(i)
        groups = defaultdict(list)
        for i, m in enumerate(mets):
            groups[find(i)].append(m.id)
        groups = sorted(sorted(g) for g in groups.values() if len(g) > 1)
        if groups:
            duplicates[compartment] = groups
    return duplicates


def metabolites_medium_components(model, config: Optional[MetaboliteConfig] = None) -> List[str]:
    """Metabolites that can enter the model through boundary reactions under the default bounds

    A boundary reaction with metabolite coefficient c imports the metabolite if c < 0 and the lower
    bound is negative, or if c > 0 and the upper bound is positive. With
    config.medium_only_imported set to False, the metabolites of all boundary reactions are returned.
    """
    config = config or MetaboliteConfig()
    medium = set()
    for rid in find_exchange_reactions(model):
        r = model.reactions.get_by_id(rid)
        if len(r.metabolites) != 1:
            continue
        met, coeff = next(iter(r.metabolites.items()))
        imports = (coeff < 0 and r.lower_bound < 0) or (coeff > 0 and r.upper_bound > 0)
        if imports or not config.medium_only_imported:
            medium.add(met.id)
    return sorted(medium)


def _has_sensible_gpr(model, reaction_id: str) -> bool:
    """True if the reaction has a non-empty GPR rule and all its genes are part of the model"""
    tree = gpr_tree(model.reactions.get_by_id(reaction_id))
    if tree is None:
        return False
    genes = gpr_genes(tree)
    return bool(genes) and all(model.genes.has_id(g) for g in genes)


def reactions_without_gpr(model, config: Optional[ReactionConfig] = None) -> List[str]:
    """Reactions without a sensible GPR rule (see _has_sensible_gpr)"""
    config = config or ReactionConfig()
    ignored = set(config.gpr_ignored_reactions)
    return sorted(r.id for r in model.reactions if r.id not in ignored and not _has_sensible_gpr(model, r.id))


def _same_species(met_a, met_b, annotation_key: str) -> bool:
    if met_a.formula and met_a.formula == met_b.formula:
        return True
    return bool(_annotation_values(met_a, annotation_key) & _annotation_values(met_b, annotation_key))


def _probably_transport_reaction(model, reaction_id: str, config: Optional[MemoteConfig] = None) -> bool:
    """Heuristic test whether a reaction transports a metabolite between compartments

    A reaction is considered a transport reaction if it carries a transport SBO term, its
    metabolites are located in at least two compartments and at least one metabolite appears
    unchanged (same formula or shared annotation) on both sides in different compartments.
    Transport reactions that are not annotated are missed.
    """
    config = config or MemoteConfig()
    r = model.reactions.get_by_id(reaction_id)
    if _sbo_term(r) not in config.reaction.transport_annotation_terms:
        return False
    if len({m.compartment for m in r.metabolites}) < 2:
        return False
    substrates = [m for m, c in r.metabolites.items() if c < 0]
    products = [m for m, c in r.metabolites.items() if c > 0]
    return any(s.compartment != p.compartment and _same_species(s, p, config.metabolite.test_annotation)
               for s in substrates for p in products)


def find_transport_reactions(model, config: Optional[MemoteConfig] = None) -> List[str]:
    """Reactions that are probably transport reactions (see _probably_transport_reaction)"""
    return sorted(r.id for r in model.reactions if _probably_transport_reaction(model, r.id, config))
