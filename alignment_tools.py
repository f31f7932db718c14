#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
@author: Haoyue
@file: alignment_tools.py
@time: 10/19/2026
@desc: the first half of consensus fusion: the greedy ancestral (alpha) order over all input DAGs,
       the transformation of each DAG into a minimal I-map compatible with alpha, and their union.
"""

import networkx as nx
from collections import deque
from DAG_tools import (
    InvalidInput,
    validate_dag,
    validate_dag_list,
    validate_order)


def is_adjacent(dag, node1, node2):
    return dag.has_edge(node1, node2) or dag.has_edge(node2, node1)


def reverse_covered_edge(dag, tail, head):
    '''
    reverse tail -> head after covering it, so that no independence of dag is lost:
        every parent of tail becomes a parent of head, and every other parent of head becomes a parent of tail.
    :param dag: networkx.DiGraph; modified in place.
    :return: int, the number of inserted edges (the reversed edge itself not counted).
    '''
    tail_parents = list(dag.predecessors(tail))
    head_parents = [p for p in dag.predecessors(head) if p != tail]
    dag.remove_edge(tail, head)
    dag.add_edge(head, tail)
    num_inserted_edges = 0
    for p in tail_parents:
        if not is_adjacent(dag, p, head):
            dag.add_edge(p, head)
            num_inserted_edges += 1
    for p in head_parents:
        if not is_adjacent(dag, p, tail):
            dag.add_edge(p, tail)
            num_inserted_edges += 1
    return num_inserted_edges


# ============================= alpha order ======================================
def _count_changes_as_sink(dag, node):
    # inversions: -1 rewards nodes that are already sinks
    children = list(dag.successors(node))
    parents = list(dag.predecessors(node))
    inversions = len(children) - 1
    additions = 0
    inserted = set()
    for child in children:
        additions += sum(1 for p in parents if not is_adjacent(dag, p, child))
        for coparent in dag.predecessors(child):
            if coparent == node or is_adjacent(dag, coparent, node): continue
            if frozenset((coparent, node)) in inserted: continue
            inserted.add(frozenset((coparent, node)))
            additions += 1
    return inversions + additions


def _select_reversible_child(dag, node, children):
    # a child whose edge can be reversed without a cycle: no other directed path node ~> child
    for child in children:
        dag.remove_edge(node, child)
        has_other_path = nx.has_path(dag, node, child)
        dag.add_edge(node, child)
        if not has_other_path: return child
    assert False, f"no edge out of '{node}' can be reversed without creating a cycle"


def _remove_node_by_reversals(dag, node):
    # turn node into a sink by covered reversals of all its outgoing edges, then delete it
    children = list(dag.successors(node))
    while children:
        child = _select_reversible_child(dag, node, children)
        reverse_covered_edge(dag, node, child)
        children.remove(child)
    dag.remove_node(node)


def alpha_order(dags, rng=None, verbose=False):
    '''
    greedy heuristic order (GHO) over the nodes of a set of DAGs.
        the order is built from the sinks upwards: at each step, the node that needs the fewest changes
        (edge inversions and additions, summed over all DAGs) to become a sink is put at the beginning of the order,
        and is then removed from every DAG by covered edge reversals.
    :param dags:
        a list of >= 2 networkx.DiGraph over the same node set. not modified.
    :param rng:
        None, or a numpy.random.Generator.
        default: None, i.e., ties are broken by the first node in the node order of dags[0].
        if given, ties are broken uniformly at random with this generator.
    :param verbose:
        bool, whether to print out messages.
    :return:
        a list of all nodes; earlier nodes are ancestors-to-be of later ones.
    '''
    nodelist = validate_dag_list(dags)
    AUXDAGS = [dag.copy() for dag in dags]
    REMAINING = list(nodelist)
    alpha = deque()
    while REMAINING:
        changes = [sum(_count_changes_as_sink(g, node) for g in AUXDAGS) for node in REMAINING]
        min_changes = min(changes)
        tied_ids = [i for i, num in enumerate(changes) if num == min_changes]
        index_alpha = tied_ids[0] if rng is None else tied_ids[int(rng.integers(len(tied_ids)))]
        node_alpha = REMAINING.pop(index_alpha)
        alpha.appendleft(node_alpha)
        for g in AUXDAGS:
            _remove_node_by_reversals(g, node_alpha)
        if verbose:
            print(f"[INFO] [ALPHA] Next sink '{node_alpha}' with {min_changes} changes ({len(tied_ids)} tied).")
    return list(alpha)


def random_order(nodelist, rng):
    '''
    :param nodelist: enumerate of nodes.
    :param rng: a numpy.random.Generator.
    :return: a random permutation of nodelist, e.g., an arbitrary alpha order for tests.
    '''
    nodelist = list(nodelist)
    return [nodelist[i] for i in rng.permutation(len(nodelist))]


# ============================= beta to alpha ======================================
def _beta_order(dag, alpha_index):
    AUXDAG = dag.copy()
    sink_nodes = [nd for nd in AUXDAG.nodes if AUXDAG.out_degree(nd) == 0]
    beta = []
    while AUXDAG.number_of_nodes() > 0:
        sink = sink_nodes.pop(0)
        parents = list(AUXDAG.predecessors(sink))
        AUXDAG.remove_node(sink)
        sink_nodes.extend(p for p in parents if AUXDAG.out_degree(p) == 0)
        # insert before the first node that is later in alpha or is a child of sink
        insert_index = 0
        while insert_index < len(beta):
            current = beta[insert_index]
            if alpha_index[current] > alpha_index[sink] or dag.has_edge(sink, current): break
            insert_index += 1
        beta.insert(insert_index, sink)
    return beta


def get_beta_order(dag, alpha):
    '''
    :return: a topological order of dag that is as close as possible to alpha.
    '''
    validate_dag(dag)
    validate_order(list(dag.nodes), alpha)
    return _beta_order(dag, {node: i for i, node in enumerate(alpha)})


def beta_to_alpha(dag, alpha, verbose=False):
    '''
    transform a DAG into a minimal I-map compatible with the order alpha.
        first a topological order beta close to alpha is built; then beta is insertion-sorted into alpha,
        and every time two consecutive nodes z, y are swapped with z -> y in the DAG,
        the edge is covered and reversed. all independencies encoded in the transformed DAG hold in the input.
    :param dag: networkx.DiGraph. not modified.
    :param alpha: list of all nodes of dag.
    :param verbose: bool, whether to print out messages.
    :return:
        (transformed_dag, num_inserted_edges):
            transformed_dag is a networkx.DiGraph whose every edge goes from earlier to later in alpha;
            num_inserted_edges is the number of edges added by the covering steps.
    '''
    validate_dag(dag)
    validate_order(list(dag.nodes), alpha)
    dag = dag.copy()
    alpha_index = {node: i for i, node in enumerate(alpha)}
    beta = _beta_order(dag, alpha_index)

    num_inserted_edges = 0
    ordered_nodes = []
    for node in beta:
        ordered_nodes.append(node)
        i = len(ordered_nodes)
        while i > 1:
            node_y, node_z = ordered_nodes[i - 1], ordered_nodes[i - 2]
            if alpha_index[node_z] <= alpha_index[node_y]: break
            if dag.has_edge(node_z, node_y):
                num_inserted_edges += reverse_covered_edge(dag, node_z, node_y)
            ordered_nodes[i - 2], ordered_nodes[i - 1] = node_y, node_z
            i -= 1
    assert ordered_nodes == list(alpha)
    assert nx.is_directed_acyclic_graph(dag)
    if verbose:
        print(f"[INFO] [BETA2ALPHA] Transformed DAG with {dag.number_of_edges()} edges; {num_inserted_edges} inserted.")
    return dag, num_inserted_edges


def transform_dags(dags, alpha, verbose=False):
    '''
    :return: (list of transformed DAGs, total number of inserted edges over all DAGs).
    '''
    transformed_dags, num_inserted_edges = [], 0
    for dag in dags:
        transformed_dag, num_inserted = beta_to_alpha(dag, alpha, verbose=verbose)
        transformed_dags.append(transformed_dag)
        num_inserted_edges += num_inserted
    return transformed_dags, num_inserted_edges


# ============================= consensus union ======================================
def consensus_union(transformed_dags, alpha):
    '''
    union of DAGs that are all compatible with alpha: taking nodes in alpha order, each node gets every parent
        it has in any of the DAGs. all edges go forward in alpha, so the union is acyclic.
    :param transformed_dags: a non-empty list of networkx.DiGraph, e.g., the outputs of beta_to_alpha.
    :param alpha: list of all nodes.
    :return: networkx.DiGraph with nodes in alpha order.
    '''
    if not transformed_dags:
        raise InvalidInput('The set of transformed DAGs is empty.')
    alpha_index = {node: i for i, node in enumerate(alpha)}
    for dag_id, dag in enumerate(transformed_dags):
        validate_order(list(dag.nodes), alpha)
        if any(alpha_index[x] > alpha_index[y] for x, y in dag.edges):
            raise InvalidInput(f'DAG #{dag_id} has an edge against the alpha order; transform it first.')

    union_dag = nx.DiGraph()
    union_dag.add_nodes_from(alpha)
    for node in alpha:
        for dag in transformed_dags:
            for parent in dag.predecessors(node):
                if not union_dag.has_edge(parent, node):
                    union_dag.add_edge(parent, node)
    assert nx.is_directed_acyclic_graph(union_dag)
    return union_dag
