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
"""Configuration of the model quality tests

Each group of tests has its own configuration class with defaults. Configurations are passed
explicitly to the test functions; there is no global configuration state.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

# Canonical names of energy carriers and their default (BiGG) identifiers
DEFAULT_ENERGY_DISSIPATING_METABOLITES = {
    "ATP": "atp_c",
    "CTP": "ctp_c",
    "GTP": "gtp_c",
    "UTP": "utp_c",
    "ITP": "itp_c",
    "ADP": "adp_c",
    "CDP": "cdp_c",
    "GDP": "gdp_c",
    "UDP": "udp_c",
    "IDP": "idp_c",
    "NADH": "nadh_c",
    "NAD": "nad_c",
    "NADPH": "nadph_c",
    "NADP": "nadp_c",
    "FADH2": "fadh2_c",
    "FAD": "fad_c",
    "FMNH2": "fmnh2_c",
    "FMN": "fmn_c",
    "Ubiquinol-8": "q8h2_c",
    "Ubiquinone-8": "q8_c",
    "Menaquinol-8": "mql8_c",
    "Menaquinone-8": "mqn8_c",
    "2-Demethylmenaquinol-8": "2dmmql8_c",
    "2-Demethylmenaquinone-8": "2dmmq8_c",
    "ACCOA": "accoa_c",
    "COA": "coa_c",
    "L-Glutamate": "glu__L_c",
    "2-Oxoglutarate": "akg_c",
    "Ammonium": "nh4_c",
    "H": "h_c",
    "H[external]": "h_p",
    "H2O": "h2o_c",
    "Phosphate": "pi_c",
    "Acetate": "ac_c",
}

# SBO terms that mark transport reactions
TRANSPORT_SBO_TERMS = [
    "SBO:0000185",
    "SBO:0000654",
    "SBO:0000655",
    "SBO:0000657",
    "SBO:0000658",
    "SBO:0000659",
    "SBO:0000660",
]


@dataclass
class ConsistencyConfig:
    """Parameters of the stoichiometric consistency, energy cycle and balance tests

    mass_ignored_reactions, charge_ignored_reactions, consistency_ignored_reactions:
        Reactions excluded from the respective test in addition to biomass and exchange reactions.
    boundary_reactions:
        Reactions removed before energy cycle detection. None: all exchange reactions.
    ignored_energy_reactions:
        Further reactions removed before energy cycle detection. None: all biomass reactions.
    energy_dissipating_metabolites:
        Maps canonical energy carrier names to the metabolite identifiers of the model.
    additional_energy_generating_reactions:
        Extra energy dissipating reactions, as cobra.Reaction objects or as dicts
        {metabolite_id: coefficient} in the name space of the model.
    optimizer_modifications:
        Functions f(model) that are applied to the working copy before it is optimized.
    tolerance:
        Numerical tolerance for balances and for the energy dissipating flux.
    """
    mass_ignored_reactions: List[str] = field(default_factory=list)
    charge_ignored_reactions: List[str] = field(default_factory=list)
    consistency_ignored_reactions: List[str] = field(default_factory=list)
    boundary_reactions: Optional[List[str]] = None
    ignored_energy_reactions: Optional[List[str]] = None
    energy_dissipating_metabolites: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_ENERGY_DISSIPATING_METABOLITES))
    additional_energy_generating_reactions: list = field(default_factory=list)
    optimizer_modifications: List[Callable] = field(default_factory=list)
    tolerance: float = 1e-7


@dataclass
class MetaboliteConfig:
    """Parameters of the metabolite tests

    formula_corner_cases, charge_corner_cases:
        Non-standard values that are accepted as valid formula or charge.
    medium_only_imported:
        Medium detection considers only boundary reactions that can import the metabolite.
    test_annotation:
        Annotation key that identifies equal metabolites in the duplication test.
    """
    formula_corner_cases: List[str] = field(default_factory=lambda: ["X", "Y", "*", "R"])
    charge_corner_cases: List[float] = field(default_factory=list)
    medium_only_imported: bool = True
    test_annotation: str = "inchi_key"


@dataclass
class ReactionConfig:
    """Parameters of the reaction tests"""
    gpr_ignored_reactions: List[str] = field(default_factory=list)
    transport_annotation_terms: List[str] = field(default_factory=lambda: list(TRANSPORT_SBO_TERMS))


@dataclass
class MemoteConfig:
    """Configuration of a complete quality test run"""
    consistency: ConsistencyConfig = field(default_factory=ConsistencyConfig)
    metabolite: MetaboliteConfig = field(default_factory=MetaboliteConfig)
    reaction: ReactionConfig = field(default_factory=ReactionConfig)
