#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
@author: Haoyue
@file: BES_tools.py
@time: 10/19/2026
@desc: backward equivalence search (the second phase of GES) driven by d-separation in the input DAGs,
       instead of a score on data. it removes edges from the consensus union while the removal
       is supported by the independencies of (a fraction of) the input DAGs.
"""

import networkx as nx
from DAG_tools import (
    InvalidInput,
    validate_dag,
    validate_dag_list,
    validate_bes_config,
    is_d_separated,
    dsep_key,
    bounded_subsets)
from PDAG_tools import (
    AROW, DASH,
    pdag_from_dag,
    rebuild_pattern,
    get_parents,
    get_na_yx,
    is_clique,
    apply_delete_operator,
    pdag_to_dag)


def backward_equivalence_search(
    union_dag,
    initial_dags,
    transformed_dags=None,
    max_cond_set_size=None,
    acceptance_threshold=1.0,
    verbose=False
):
    '''
    :param union_dag:
        networkx.DiGraph, the consensus union to be refined. not modified.
    :param initial_dags:
        a list of networkx.DiGraph over the same nodes, the original input DAGs.
        they are the ground truth for the d-separation queries.
    :param transformed_dags:
        a list of networkx.DiGraph, the input DAGs after beta_to_alpha. only used for bookkeeping:
        each deletion adds to the count the number of transformed DAGs having that edge.
        default: None, i.e., nothing is counted.
    :param max_cond_set_size:
        int or None, the maximum size of the subsets H enumerated for each deletion x -> y.
        default: None, i.e., no constraint (exact, but may be slow).
        for speedup on dense graphs, you may want to set it to a small number like 2.
    :param acceptance_threshold:
        float in [0, 1], the minimum fraction of input DAGs in which x and y must be d-separated for the deletion
        to be considered. default: 1.0, i.e., all input DAGs must agree.
        a value like 0.5 allows deletions supported by half of the inputs.
    :param verbose:
        bool, whether to print out messages.

    :return:
        (fused_dag, num_removed_edges):
            fused_dag is a networkx.DiGraph, a consistent extension of the final pattern; always acyclic.
            num_removed_edges is the bookkeeping count described in transformed_dags.
    '''
    # first check everything, before any computation
    validate_bes_config(max_cond_set_size, acceptance_threshold)
    validate_dag(union_dag, name='The union DAG')
    initial_dags = list(initial_dags) if initial_dags is not None else None
    nodelist = validate_dag_list(initial_dags, min_num_of_dags=1)
    if set(union_dag.nodes) != set(nodelist):
        raise InvalidInput('The union DAG must have the same nodes as the input DAGs.')
    transformed_dags = list(transformed_dags) if transformed_dags is not None else []

    nodelist, CURREDGES = pdag_from_dag(union_dag)
    LOCALSCORES = {}
    num_removed_edges = 0

    def delete_eval(x, y, H):
        # fraction of input DAGs in which x ⊥ y | (NA_yx \ H) ∪ Pa(y) \ {x}
        Z = set(get_na_yx(nodelist, CURREDGES, x, y)) - H
        Z |= set(get_parents(nodelist, CURREDGES, y))
        Z.discard(x)
        key = dsep_key(x, y, Z)
        if key not in LOCALSCORES:
            num_separated = sum(1 for g in initial_dags if is_d_separated(g, x, y, Z))
            LOCALSCORES[key] = num_separated / len(initial_dags)
        return LOCALSCORES[key]

    def get_candidate_edges():
        # x -> y as is; x -- y as both x -> y and y -> x
        return [(x, y) for x in nodelist for y in nodelist if CURREDGES.get((x, y)) in [(DASH, AROW), (DASH, DASH)]]

    def find_best_deletion(score):
        best_candidate, best_score = None, score
        for x, y in get_candidate_edges():
            na_yx = get_na_yx(nodelist, CURREDGES, x, y)
            for H in bounded_subsets(na_yx, max_cond_set_size):
                if not is_clique([z for z in na_yx if z not in H], CURREDGES): continue
                delete_score = delete_eval(x, y, H)
                if delete_score < acceptance_threshold: delete_score = 0.0
                eval_score = score + delete_score
                if not eval_score > best_score: continue
                best_candidate, best_score = (x, y, H), eval_score
        return best_candidate, best_score

    rebuild_pattern(nodelist, CURREDGES)
    score = 0.0
    num_of_deletions = 0
    while True:
        best_candidate, best_score = find_best_deletion(score)
        if best_candidate is None: break
        x, y, H = best_candidate
        if verbose:
            print(f"[INFO] [BES] Deleting '{x}' -> '{y}' with H={set(H)} (score gain {best_score - score:.3f}).")
        apply_delete_operator(CURREDGES, x, y, H)
        rebuild_pattern(nodelist, CURREDGES)
        num_removed_edges += sum(1 for g in transformed_dags if g.has_edge(x, y) or g.has_edge(y, x))
        num_of_deletions += 1
        score = best_score

    fused_dag = pdag_to_dag(nodelist, CURREDGES, verbose=verbose)
    assert nx.is_directed_acyclic_graph(fused_dag)
    if verbose:
        print(f"[INFO] [BES] Done: {num_of_deletions} deletions, {len(LOCALSCORES)} cached d-separation queries, "
              f"{fused_dag.number_of_edges()} edges left.")
    return fused_dag, num_removed_edges
