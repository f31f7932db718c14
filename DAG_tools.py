#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
@author: Haoyue
@file: DAG_tools.py
@time: 10/19/2026
@desc: basic tools on DAGs (as networkx.DiGraph) shared by the fusion pipeline:
       input validation, the d-separation oracle, and bounded subset enumeration.
"""

import networkx as nx
import numpy as np
from itertools import combinations
from collections import deque
from math import comb


class InvalidInput(ValueError):
    '''
    raised for every input-validation failure of the fusion pipeline, before any computation starts.
    '''
    pass


def validate_dag(dag, name='DAG'):
    if not isinstance(dag, nx.DiGraph):
        raise InvalidInput(f'{name} must be a networkx.DiGraph, got {type(dag).__name__}.')
    if not nx.is_directed_acyclic_graph(dag):
        raise InvalidInput(f'{name} contains a directed cycle.')


def validate_dag_list(dags, min_num_of_dags=2):
    '''
    :param dags: a list of networkx.DiGraph, expected to share one node set.
    :param min_num_of_dags: int, the minimum number of DAGs accepted.
    :return:
        the node list of the first DAG. it fixes the iteration order over nodes in all later steps,
        so that the greedy tie-breaks are deterministic.
    '''
    if dags is None:
        raise InvalidInput('The set of DAGs is None.')
    dags = list(dags)
    if len(dags) == 0:
        raise InvalidInput('The set of DAGs is empty.')
    if len(dags) < min_num_of_dags:
        raise InvalidInput(f'At least {min_num_of_dags} DAGs are needed, got {len(dags)}.')
    for dag_id, dag in enumerate(dags):
        validate_dag(dag, name=f'DAG #{dag_id}')
    nodelist = list(dags[0].nodes)
    for dag_id, dag in enumerate(dags[1:], start=1):
        if set(dag.nodes) != set(nodelist):
            raise InvalidInput(f'All DAGs must have the same nodes. DAG #{dag_id} has different nodes than DAG #0.')
    return nodelist


def validate_order(nodelist, order):
    if order is None or len(order) != len(nodelist) or set(order) != set(nodelist):
        raise InvalidInput('The order must contain every node of the DAGs exactly once.')


def validate_bes_config(max_cond_set_size, acceptance_threshold):
    if max_cond_set_size is not None:
        if isinstance(max_cond_set_size, bool) or not isinstance(max_cond_set_size, (int, np.integer)):
            raise InvalidInput(f'max_cond_set_size must be an int or None, got {max_cond_set_size!r}.')
        if max_cond_set_size < 0:
            raise InvalidInput(f'max_cond_set_size must be non-negative, got {max_cond_set_size}.')
    if not 0.0 <= acceptance_threshold <= 1.0:
        raise InvalidInput(f'acceptance_threshold must be in [0, 1], got {acceptance_threshold}.')


# ============================= d-separation oracle ======================================
def get_ancestral_set(dag, nodes):
    '''
    backward breadth-first traversal along parent edges.
    :return: set of the given nodes together with all their ancestors.
    '''
    visited = set()
    queue = deque(nodes)
    while queue:
        current = queue.popleft()
        if current in visited: continue
        visited.add(current)
        queue.extend(p for p in dag.predecessors(current) if p not in visited)
    return visited


def is_d_separated(dag, x, y, Z=()):
    '''
    d-separation by the ancestral moral graph: x and y are d-separated given Z in a DAG iff
        they are disconnected in the moralized subgraph induced by An({x, y} ∪ Z), after removing Z.
    :param dag: networkx.DiGraph, assumed acyclic.
    :param x, y: two distinct nodes of dag.
    :param Z: enumerate of nodes, the conditioning set; must not contain x or y.
    :return: boolean.
    '''
    Z = set(Z)
    assert x != y and x not in Z and y not in Z
    relevant_nodes = get_ancestral_set(dag, {x, y} | Z)
    moral_graph = nx.Graph()  # undirected
    moral_graph.add_nodes_from(relevant_nodes)
    for child in relevant_nodes:
        # the ancestral set is closed under parents, so no parent falls outside
        parents = list(dag.predecessors(child))
        moral_graph.add_edges_from((p, child) for p in parents)
        moral_graph.add_edges_from(combinations(parents, 2))
    moral_graph.remove_nodes_from(Z)
    return not nx.has_path(moral_graph, x, y)


def dsep_key(x, y, Z):
    '''
    cache key of the query x ⊥ y | Z; symmetric in x and y.
    '''
    return frozenset((x, y)), frozenset(Z)


# ============================= subset enumeration ======================================
def bounded_subsets(nodes, max_size=None):
    '''
    enumerate every subset of `nodes` with size <= max_size, each exactly once.
    subsets are grown from already produced ones by adding elements of higher index (bitmask growth),
        in breadth-first order: sizes never decrease, and a subset always comes before its supersets.
    :param nodes: a list of distinct nodes.
    :param max_size: int or None; None means no limit. values larger than len(nodes) are clamped.
    :return: generator of frozensets.
    '''
    nodes = list(nodes)
    if max_size is None: max_size = len(nodes)
    if max_size < 0:
        raise InvalidInput(f'max_size must be non-negative, got {max_size}.')
    max_size = min(max_size, len(nodes))
    queue = deque([(0, -1, 0)])  # (bitmask, highest index used, number of ones)
    while queue:
        mask, last_index, size = queue.popleft()
        yield frozenset(nodes[i] for i in range(len(nodes)) if mask >> i & 1)
        if size >= max_size: continue
        for i in range(last_index + 1, len(nodes)):
            queue.append((mask | (1 << i), i, size + 1))


def count_bounded_subsets(num_of_nodes, max_size=None):
    if max_size is None: max_size = num_of_nodes
    return sum(comb(num_of_nodes, i) for i in range(min(max_size, num_of_nodes) + 1))


# ============================= numpy interop ======================================
def dag_from_adjacency(adjmat, nodelist=None):
    '''
    :param adjmat: np.ndarray of shape (n, n); adjmat[i, j] != 0 means i -> j.
    :param nodelist: list of n node labels; default: 0, ..., n-1.
    :return: networkx.DiGraph.
    '''
    adjmat = np.asarray(adjmat)
    if adjmat.ndim != 2 or adjmat.shape[0] != adjmat.shape[1]:
        raise InvalidInput(f'Adjacency matrix must be square, got shape {adjmat.shape}.')
    if nodelist is None: nodelist = list(range(adjmat.shape[0]))
    if len(nodelist) != adjmat.shape[0]:
        raise InvalidInput(f'Got {len(nodelist)} node labels for a {adjmat.shape[0]}-node adjacency matrix.')
    dag = nx.DiGraph()
    dag.add_nodes_from(nodelist)
    dag.add_edges_from((nodelist[i], nodelist[j]) for i, j in zip(*np.nonzero(adjmat)))
    validate_dag(dag)
    return dag


def dag_to_adjacency(dag, nodelist=None):
    if nodelist is None: nodelist = list(dag.nodes)
    return nx.to_numpy_array(dag, nodelist=nodelist, weight=None, dtype=int)
