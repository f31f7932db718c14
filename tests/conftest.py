"""
Shared fixtures: small hand-made DAGs and a seeded random DAG generator.
"""

import networkx as nx
import numpy as np
import pytest


def _random_dag_list(num_variables, num_dags, edge_prob=0.3, seed=0):
    """DAGs over the same nodes Node0..Node{n-1}, each with its own random causal order."""
    rng = np.random.default_rng(seed)
    nodelist = [f"Node{i}" for i in range(num_variables)]
    dags = []
    for _ in range(num_dags):
        causal_order = rng.permutation(num_variables)
        dag = nx.DiGraph()
        dag.add_nodes_from(nodelist)
        for i in range(num_variables):
            for j in range(i + 1, num_variables):
                if rng.random() < edge_prob:
                    dag.add_edge(nodelist[causal_order[i]], nodelist[causal_order[j]])
        dags.append(dag)
    return dags


@pytest.fixture
def make_random_dags():
    return _random_dag_list


@pytest.fixture
def chain_and_fork():
    """G1: A -> B -> C; G2: A -> B, A -> C."""
    g1 = nx.DiGraph()
    g1.add_nodes_from(["A", "B", "C"])
    g1.add_edges_from([("A", "B"), ("B", "C")])
    g2 = nx.DiGraph()
    g2.add_nodes_from(["A", "B", "C"])
    g2.add_edges_from([("A", "B"), ("A", "C")])
    return g1, g2


@pytest.fixture
def diamond_and_reversed():
    """G1: A -> B, A -> C, B -> D, C -> D; G2 reverses every edge."""
    g1 = nx.DiGraph()
    g1.add_nodes_from(["A", "B", "C", "D"])
    g1.add_edges_from([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
    g2 = nx.DiGraph()
    g2.add_nodes_from(["A", "B", "C", "D"])
    g2.add_edges_from([("D", "C"), ("D", "B"), ("C", "A"), ("B", "A")])
    return g1, g2
