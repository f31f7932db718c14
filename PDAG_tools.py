#!/usr/bin/python3
# -*- coding: utf-8 -*-
"""
@author: Haoyue
@file: PDAG_tools.py
@time: 10/19/2026
@desc: tools on partially directed acyclic graphs (PDAGs), used by the backward equivalence search:
       rebuilding the pattern (CPDAG) with Meek rules, the delete operator, and the consistent extension to a DAG.

A PDAG is represented as (nodelist, CURREDGES), where CURREDGES is a dict {(node1, node2): (type1, type2)}
    stored symmetrically, i.e., CURREDGES[(node2, node1)] == (type2, type1).
    type1 is the endpoint at node1, and type2 at node2. x -> y is (DASH, AROW); x -- y is (DASH, DASH).
"""

import networkx as nx
from itertools import combinations
from collections import deque


AROW, DASH = 'AROW', 'DASH'


def update_edge(CURREDGES, node1, node2, type1, type2):
    CURREDGES[(node1, node2)] = (type1, type2)
    CURREDGES[(node2, node1)] = (type2, type1)


def remove_edge(CURREDGES, node1, node2):
    CURREDGES.pop((node1, node2), None)
    CURREDGES.pop((node2, node1), None)


def is_directed(CURREDGES, node1, node2):
    # node1 -> node2
    return CURREDGES.get((node1, node2)) == (DASH, AROW)


def is_undirected(CURREDGES, node1, node2):
    return CURREDGES.get((node1, node2)) == (DASH, DASH)


def get_parents(nodelist, CURREDGES, node):
    return [p for p in nodelist if is_directed(CURREDGES, p, node)]


def get_children(nodelist, CURREDGES, node):
    return [c for c in nodelist if is_directed(CURREDGES, node, c)]


def get_adjacents(nodelist, CURREDGES, node):
    return [a for a in nodelist if (a, node) in CURREDGES]


def get_undirected_neighbors(nodelist, CURREDGES, node):
    return [n for n in nodelist if is_undirected(CURREDGES, n, node)]


def is_clique(nodes, CURREDGES):
    return all((a, b) in CURREDGES for a, b in combinations(nodes, 2))


def exists_directed_path(nodelist, CURREDGES, start, end):
    # only fully directed edges are followed
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for child in get_children(nodelist, CURREDGES, current):
            if child == end: return True
            if child in visited: continue
            visited.add(child)
            queue.append(child)
    return False


def pdag_from_dag(dag):
    '''
    :param dag: networkx.DiGraph.
    :return: (nodelist, CURREDGES), a fresh PDAG owned by the caller.
    '''
    CURREDGES = {}
    for x, y in dag.edges:
        update_edge(CURREDGES, x, y, DASH, AROW)
    return list(dag.nodes), CURREDGES


def pdag_to_edge_sets(CURREDGES):
    '''
    :return: a dictionary like {'->': {(x, y), ...}, '--': {(x, y), ...}}; undirected edges have symmetric repeats.
    '''
    pdag_edges = {'->': set(), '--': set()}
    for (node1, node2), types in CURREDGES.items():
        if types == (DASH, AROW):
            pdag_edges['->'].add((node1, node2))
        elif types == (DASH, DASH):
            pdag_edges['--'].add((node1, node2))
    return pdag_edges


# ============================= pattern rebuild ======================================
def basic_cpdag(nodelist, CURREDGES):
    '''
    keep a directed edge x -> y only if it takes part in an unshielded collider x -> y <- p (p, x nonadjacent);
        every other directed edge becomes undirected. undirected edges are left untouched.
    '''
    to_undirect = []
    for (x, y), types in CURREDGES.items():
        if types != (DASH, AROW): continue
        if all(p == x or (p, x) in CURREDGES for p in get_parents(nodelist, CURREDGES, y)):
            to_undirect.append((x, y))
    for x, y in to_undirect:
        update_edge(CURREDGES, x, y, DASH, DASH)


def apply_meek_rules(nodelist, CURREDGES, rules_to_use=None):
    '''
    orient undirected edges implied by Meek rules R1-R4, until no more changes.
        an orientation that would close a directed cycle is never applied.
    :param nodelist: enumerate of nodes.
    :param CURREDGES: the PDAG edges; modified in place.
    :param rules_to_use: None, or subset of [1, .., 4].
    :return: boolean, whether any edge was oriented.
    '''

    def orient(alpha, beta):
        if not is_undirected(CURREDGES, alpha, beta): return False
        if exists_directed_path(nodelist, CURREDGES, beta, alpha): return False
        update_edge(CURREDGES, alpha, beta, DASH, AROW)
        return True

    def _R1():
        # If α → β -- γ, and α and γ are not adjacent, then orient β -- γ as β → γ.
        changed_something = False
        for alpha in nodelist:
            for beta in get_children(nodelist, CURREDGES, alpha):
                for gamma in [gm for gm in get_undirected_neighbors(nodelist, CURREDGES, beta) if
                              gm != alpha and (alpha, gm) not in CURREDGES]:
                    changed_something |= orient(beta, gamma)
        return changed_something

    def _R2():
        # If α → β → γ, and α -- γ, then orient α -- γ as α → γ.
        changed_something = False
        for alpha in nodelist:
            for beta in get_children(nodelist, CURREDGES, alpha):
                for gamma in get_children(nodelist, CURREDGES, beta):
                    if is_undirected(CURREDGES, alpha, gamma):
                        changed_something |= orient(alpha, gamma)
        return changed_something

    def _R3():
        # If α -- β, α -- γ → β, α -- θ → β, and γ and θ are not adjacent, then orient α -- β as α → β.
        changed_something = False
        for alpha in nodelist:
            for beta in get_undirected_neighbors(nodelist, CURREDGES, alpha):
                side_nodes = [sd for sd in get_undirected_neighbors(nodelist, CURREDGES, alpha) if
                              sd != beta and is_directed(CURREDGES, sd, beta)]
                for gamma, theta in combinations(side_nodes, 2):
                    if (gamma, theta) not in CURREDGES:
                        changed_something |= orient(alpha, beta)
                        break
        return changed_something

    def _R4():
        # If α -- β, α -- γ → θ → β, α and θ are adjacent, and γ and β are not adjacent, then orient α -- β as α → β.
        changed_something = False
        for alpha in nodelist:
            for beta in get_undirected_neighbors(nodelist, CURREDGES, alpha):
                for gamma in [gm for gm in get_undirected_neighbors(nodelist, CURREDGES, alpha) if
                              gm != beta and (gm, beta) not in CURREDGES]:
                    if any(th != alpha and (alpha, th) in CURREDGES and is_directed(CURREDGES, th, beta)
                           for th in get_children(nodelist, CURREDGES, gamma)):
                        changed_something |= orient(alpha, beta)
        return changed_something

    rule_id_to_func = {1: _R1, 2: _R2, 3: _R3, 4: _R4}
    if rules_to_use is None: rules_to_use = list(range(1, 5))
    RULES = [rule_id_to_func[rule_id] for rule_id in rules_to_use]
    oriented_anything = False
    while True:
        changed_something = False
        for rule in RULES:
            changed_something |= rule()
        if not changed_something:
            break
        oriented_anything = True
    return oriented_anything


def rebuild_pattern(nodelist, CURREDGES):
    basic_cpdag(nodelist, CURREDGES)
    apply_meek_rules(nodelist, CURREDGES)


# ============================= operators used by the backward search ======================================
def get_na_yx(nodelist, CURREDGES, x, y):
    '''
    NA_{Y,X}: the nodes adjacent to x that are connected to y by an undirected edge.
    '''
    return [z for z in nodelist if
            z != x and z != y and (z, x) in CURREDGES and is_undirected(CURREDGES, y, z)]


def apply_delete_operator(CURREDGES, x, y, H):
    '''
    the delete operator of Chickering (2002): remove the edge between x and y, and for every z in H
        orient x -- z as x -> z and y -- z as y -> z. edges already directed between x and z are kept.
    '''
    remove_edge(CURREDGES, x, y)
    for z in H:
        if not is_directed(CURREDGES, z, x) and not is_directed(CURREDGES, x, z):
            update_edge(CURREDGES, x, z, DASH, AROW)
        update_edge(CURREDGES, y, z, DASH, AROW)


def _is_removable_sink(nodelist, CURREDGES, node, strict):
    if get_children(nodelist, CURREDGES, node): return False
    neighbors = get_undirected_neighbors(nodelist, CURREDGES, node)
    if not neighbors: return True
    adjacents = get_adjacents(nodelist, CURREDGES, node)  # neighbors and parents
    if strict: return is_clique(adjacents, CURREDGES)
    return all((nb, other) in CURREDGES for nb in neighbors for other in adjacents if other != nb)


def pdag_to_dag(nodelist, CURREDGES, verbose=False):
    '''
    a consistent extension of the PDAG, by Dor and Tarsi (1992):
        repeatedly pick a node x without outgoing directed edges such that, if x has undirected neighbors,
        these neighbors together with the parents of x form a clique; orient all undirected edges incident to x
        into x, and remove x from the PDAG.
        when no node passes the clique test, the weaker condition of Dor and Tarsi is used:
        every undirected neighbor of x is adjacent to all other nodes adjacent to x.
    nodes are removed in a reverse topological order of the output, so the output is always acyclic.
        if the PDAG admits no consistent extension, the first sink (or first node) is taken anyway.
    :param nodelist: enumerate of nodes.
    :param CURREDGES: the PDAG edges; not modified.
    :param verbose: bool, whether to print out warnings.
    :return: networkx.DiGraph.
    '''
    dag = nx.DiGraph()
    dag.add_nodes_from(nodelist)
    AUXEDGES = dict(CURREDGES)
    REMAINING = list(nodelist)
    while REMAINING:
        chosen = None
        for strict in [True, False]:
            removable = [nd for nd in REMAINING if _is_removable_sink(REMAINING, AUXEDGES, nd, strict)]
            if removable:
                chosen = removable[0]
                break
        if chosen is None:
            sinks = [nd for nd in REMAINING if not get_children(REMAINING, AUXEDGES, nd)]
            chosen = sinks[0] if sinks else REMAINING[0]
            if verbose:
                print(f"[WARNING] [DOR-TARSI] No consistent extension exists; orienting all edges into '{chosen}'.")
        for other in get_adjacents(REMAINING, AUXEDGES, chosen):
            dag.add_edge(other, chosen)
            remove_edge(AUXEDGES, other, chosen)
        REMAINING.remove(chosen)
    assert nx.is_directed_acyclic_graph(dag)
    return dag
