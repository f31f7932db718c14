#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
@author: Haoyue
@file: consensusBN.py
@time: 10/19/2026
@desc: main entrance for the consensus fusion of Bayesian network structures (ConsensusBES).
"""

import networkx as nx
import numpy as np
from causallearn.graph.Dag import Dag
from causallearn.graph.Endpoint import Endpoint
from causallearn.graph.GraphNode import GraphNode
from DAG_tools import (
    InvalidInput,
    validate_dag,
    validate_dag_list,
    validate_order,
    validate_bes_config,
    dag_from_adjacency)
from alignment_tools import (
    alpha_order,
    beta_to_alpha,
    transform_dags,
    consensus_union)
from BES_tools import backward_equivalence_search


# short names of the pipeline steps
order_heuristic = alpha_order
align = beta_to_alpha
refine = backward_equivalence_search


def build_consensus(aligned_dags, order):
    return consensus_union(aligned_dags, order)


def consensus_bes(
    dags,
    max_cond_set_size=None,
    acceptance_threshold=1.0,
    alpha=None,
    rng=None,
    verbose=False
):
    '''
    :param dags:
        a list of >= 2 networkx.DiGraph over the same node set, e.g., structures learned on bootstrap samples,
        by distributed learners, or elicited from experts. they are copied and never modified.
    :param max_cond_set_size, acceptance_threshold:
        see description in BES_tools.backward_equivalence_search.
        the defaults (None, 1.0) give the exact fusion; a cap and/or a threshold < 1.0 give the heuristic one.
    :param alpha:
        None, or a list of all nodes to be used as the ancestral order instead of the greedy heuristic one.
    :param rng:
        None, or a numpy.random.Generator to break ties in the greedy heuristic order.
    :param verbose:
        bool, whether to print out messages.

    :return:
        a dictionary containing the following key-value pairs:
            'fused_DAG': networkx.DiGraph, the consensus DAG.
            'union_DAG': networkx.DiGraph, the consensus union before the backward search.
            'alpha_order': list, the ancestral order used to align the inputs.
            'transformed_DAGs': list of networkx.DiGraph, the inputs aligned to alpha.
            'num_inserted_edges': int, edges inserted by the alignment minus those removed by the backward search.
            'num_removed_edges': int, see description in BES_tools.backward_equivalence_search.
            'fusion_order': list, a topological order of the fused DAG.
    '''
    # fail fast on every input problem
    nodelist = validate_dag_list(dags)
    validate_bes_config(max_cond_set_size, acceptance_threshold)
    if alpha is not None: validate_order(nodelist, alpha)
    input_dags = [dag.copy() for dag in dags]

    # step 1. the ancestral order
    if alpha is None:
        alpha = alpha_order(input_dags, rng=rng, verbose=verbose)
    alpha = list(alpha)

    # step 2. minimal I-maps compatible with alpha, and their union
    transformed_dags, num_inserted_edges = transform_dags(input_dags, alpha, verbose=verbose)
    union_dag = consensus_union(transformed_dags, alpha)
    if verbose:
        print(f"[INFO] [UNION] Union of {len(transformed_dags)} DAGs has {union_dag.number_of_edges()} edges; "
              f"{num_inserted_edges} edges inserted by the alignment.")

    # step 3. backward equivalence search with d-separation in the inputs
    fused_dag, num_removed_edges = backward_equivalence_search(
        union_dag,
        input_dags,
        transformed_dags,
        max_cond_set_size=max_cond_set_size,
        acceptance_threshold=acceptance_threshold,
        verbose=verbose)

    return {
        'fused_DAG': fused_dag,
        'union_DAG': union_dag,
        'alpha_order': alpha,
        'transformed_DAGs': transformed_dags,
        'num_inserted_edges': num_inserted_edges - num_removed_edges,
        'num_removed_edges': num_removed_edges,
        'fusion_order': list(nx.topological_sort(fused_dag)),
    }


# ============================= causal-learn interop ======================================
def dag_from_causallearn(graph):
    '''
    :param graph: a causallearn GeneralGraph (or Dag) whose edges are all directed, e.g., a DAG picked from a learned CPDAG.
    :return: networkx.DiGraph keyed by the node names.
    '''
    dag = nx.DiGraph()
    dag.add_nodes_from(node.get_name() for node in graph.get_nodes())
    for edge in graph.get_graph_edges():
        node1, node2 = edge.get_node1().get_name(), edge.get_node2().get_name()
        type1, type2 = edge.get_endpoint1(), edge.get_endpoint2()
        if type1 == Endpoint.TAIL and type2 == Endpoint.ARROW:
            dag.add_edge(node1, node2)
        elif type1 == Endpoint.ARROW and type2 == Endpoint.TAIL:
            dag.add_edge(node2, node1)
        else:
            raise InvalidInput(f'Edge between {node1} and {node2} is not directed; only DAGs can be fused.')
    validate_dag(dag)
    return dag


def dag_to_causallearn(dag):
    nodes = {node: GraphNode(str(node)) for node in dag.nodes}
    causallearn_dag = Dag(list(nodes.values()))
    for x, y in dag.edges:
        causallearn_dag.add_directed_edge(nodes[x], nodes[y])
    return causallearn_dag


def consensus_bes_from_causallearn(graphs, **kwargs):
    '''
    fuse causal-learn DAGs; kwargs are passed to consensus_bes.
    :return: see description in consensus_bes; 'fused_DAG' is additionally given as a causal-learn Dag in 'fused_causallearn_DAG'.
    '''
    if graphs is None:
        raise InvalidInput('The set of DAGs is None.')
    results = consensus_bes([dag_from_causallearn(graph) for graph in graphs], **kwargs)
    results['fused_causallearn_DAG'] = dag_to_causallearn(results['fused_DAG'])
    return results


if __name__ == '__main__':
    print('In what follows we show several examples of fusing DAGs over the same variables,\n'
          '    and see which edges survive in the consensus.\n')

    print('Eg1, one input has A->B->C, the other has A->B and A->C:')
    G1 = nx.DiGraph([('A', 'B'), ('B', 'C')])
    G2 = nx.DiGraph([('A', 'B'), ('A', 'C')])
    results = consensus_bes([G1, G2])
    print('  alpha order:', results['alpha_order'])
    print('  union:', sorted(results['union_DAG'].edges))
    print('  fused:', sorted(results['fused_DAG'].edges))
    print('=> No edge of the union can be removed: A and C are dependent given B in the second input, '
          'and B and C are dependent given A in the first.')
    results = consensus_bes([G1, G2], acceptance_threshold=0.5)
    print('  fused (acceptance_threshold=0.5):', sorted(results['fused_DAG'].edges))
    print('=> With half of the inputs enough, A and C are separated by B, as in the first input.')

    print('\nEg2, the second input reverses every edge of the first:')
    G1 = nx.DiGraph([('A', 'B'), ('A', 'C'), ('B', 'D'), ('C', 'D')])
    G2 = nx.DiGraph([('D', 'C'), ('D', 'B'), ('C', 'A'), ('B', 'A')])
    results = consensus_bes([G1, G2])
    print('  alpha order:', results['alpha_order'])
    print('  fused:', sorted(results['fused_DAG'].edges))
    print('  edges inserted by the alignment and kept:', results['num_inserted_edges'])

    print('\nEg3, five random DAGs over 8 variables, given as adjacency matrices:')
    rng = np.random.default_rng(0)
    dags = []
    for _ in range(5):
        adjmat = np.triu(rng.random((8, 8)) < 0.3, k=1).astype(int)
        perm = rng.permutation(8)
        dags.append(dag_from_adjacency(adjmat[np.ix_(perm, perm)], [f'X{i}' for i in range(8)]))
    for acceptance_threshold in [1.0, 0.6]:
        results = consensus_bes(dags, acceptance_threshold=acceptance_threshold, max_cond_set_size=2, rng=rng)
        print(f'  acceptance_threshold={acceptance_threshold}: union has {results["union_DAG"].number_of_edges()} edges, '
              f'fused has {results["fused_DAG"].number_of_edges()} edges.')
