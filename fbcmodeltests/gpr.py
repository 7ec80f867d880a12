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
"""Evaluation of gene-protein-reaction (GPR) rules

GPR rules are handled as boolean expression trees, as provided by cobra (reaction.gpr.body):
gene identifiers are ast.Name leaves, 'and'/'or' are ast.BoolOp nodes.
"""

import ast
import logging
from typing import Dict, List, Optional, Set
from cobra.core.gene import GPR


def parse_gpr(rule: str):
    """Parse a GPR rule string into its expression tree (None for an empty rule)"""
    if not rule or not rule.strip():
        return None
    return GPR.from_string(rule).body


def gpr_tree(reaction):
    """Expression tree of the GPR rule of a reaction (None if the reaction has no rule)"""
    if not reaction.gene_reaction_rule or not reaction.gpr or not reaction.gpr.body:
        return None
    return reaction.gpr.body


def evaluate_gpr(node, gene_states: Dict[str, bool]) -> Optional[bool]:
    """Evaluate a GPR expression tree for given gene states

    Genes that are missing in gene_states are undetermined. The result is True or False if it
    follows from the determined genes alone, otherwise None.

    Args:
        node (ast.AST):
            A GPR expression tree.

        gene_states (dict):
            {gene_id: True/False}

    Returns:
        (bool or None)
    """
    if isinstance(node, ast.Name):
        return gene_states.get(node.id, None)
    elif isinstance(node, ast.BoolOp):
        results = [evaluate_gpr(child, gene_states) for child in node.values]
        if isinstance(node.op, ast.And):
            if any(r is False for r in results):
                return False
            elif all(r is True for r in results):
                return True
            return None
        elif isinstance(node.op, ast.Or):
            if any(r is True for r in results):
                return True
            elif all(r is False for r in results):
                return False
            return None
    raise ValueError(f"Unsupported AST node type: {type(node)}")


def gpr_genes(node) -> Set[str]:
    """Set of gene identifiers that occur in a GPR expression tree"""
    if node is None:
        return set()
    if isinstance(node, ast.Name):
        return {node.id}
    elif isinstance(node, ast.BoolOp):
        genes = set()
        for child in node.values:
            genes.update(gpr_genes(child))
        return genes
    raise ValueError(f"Unsupported AST node type: {type(node)}")


def reaction_knocked_out(reaction, knocked_genes: Set[str]) -> bool:
    """True if the GPR rule of the reaction is false when the given genes are removed

    All genes not in knocked_genes are considered present. Reactions without GPR rule are
    never knocked out.
    """
    tree = gpr_tree(reaction)
    if tree is None:
        return False
    states = {g: g not in knocked_genes for g in gpr_genes(tree)}
    return evaluate_gpr(tree, states) is False


def reactions_knocked_out_by_genes(model, gene_ids) -> List[str]:
    """Identifiers of reactions that cannot carry flux once the given genes are removed"""
    knocked = set(gene_ids)
    candidates = set()
    for gid in knocked:
        if not model.genes.has_id(gid):
            logging.warning('Gene ' + gid + ' is not part of the model.')
            continue
        candidates.update(model.genes.get_by_id(gid).reactions)
    return sorted(r.id for r in candidates if reaction_knocked_out(r, knocked))
