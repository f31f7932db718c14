"""
Tests for BES_tools: the backward equivalence search driven by d-separation in the input DAGs.
"""

import networkx as nx
import pytest

from DAG_tools import InvalidInput, is_d_separated
from PDAG_tools import pdag_from_dag, rebuild_pattern, pdag_to_edge_sets
from alignment_tools import alpha_order, transform_dags, consensus_union
from BES_tools import backward_equivalence_search


def _union_of(dags):
    alpha = alpha_order(dags)
    transformed, _ = transform_dags(dags, alpha)
    return consensus_union(transformed, alpha), transformed


def _skeleton(dag):
    return {frozenset(e) for e in dag.edges}


def _pattern_edges(dag):
    nodelist, CURREDGES = pdag_from_dag(dag)
    rebuild_pattern(nodelist, CURREDGES)
    edge_sets = pdag_to_edge_sets(CURREDGES)
    return edge_sets['->'], {frozenset(e) for e in edge_sets['--']}


class TestBackwardSearch:

    def test_unsupported_edge_is_removed(self):
        empty1, empty2 = nx.DiGraph(), nx.DiGraph()
        empty1.add_nodes_from(["A", "B"])
        empty2.add_nodes_from(["A", "B"])
        union = nx.DiGraph([("A", "B")])
        fused, num_removed = backward_equivalence_search(union, [empty1, empty2])
        assert fused.number_of_edges() == 0
        assert set(fused.nodes) == {"A", "B"}
        assert num_removed == 0

    def test_union_is_not_modified(self):
        empty = nx.DiGraph()
        empty.add_nodes_from(["A", "B"])
        union = nx.DiGraph([("A", "B")])
        backward_equivalence_search(union, [empty])
        assert set(union.edges) == {("A", "B")}

    def test_chain_and_fork_keeps_all_edges(self, chain_and_fork):
        union, transformed = _union_of(list(chain_and_fork))
        fused, num_removed = backward_equivalence_search(union, list(chain_and_fork), transformed)
        assert _skeleton(fused) == {frozenset("AB"), frozenset("AC"), frozenset("BC")}
        assert num_removed == 0

    def test_chain_and_fork_with_half_support(self, chain_and_fork):
        union, transformed = _union_of(list(chain_and_fork))
        fused, num_removed = backward_equivalence_search(union, list(chain_and_fork), transformed,
                                                         acceptance_threshold=0.5)
        assert _skeleton(fused) == {frozenset("AB"), frozenset("BC")}
        # only the fork has A -> C
        assert num_removed == 1

    def test_search_is_idempotent(self, chain_and_fork):
        union, _ = _union_of(list(chain_and_fork))
        fused, _ = backward_equivalence_search(union, list(chain_and_fork), acceptance_threshold=0.5)
        refused, num_removed = backward_equivalence_search(fused, list(chain_and_fork), [fused],
                                                           acceptance_threshold=0.5)
        assert _skeleton(refused) == _skeleton(fused)
        assert num_removed == 0

    def test_identical_inputs_are_recovered(self, make_random_dags):
        for dag in make_random_dags(7, 2, edge_prob=0.4, seed=31):
            union, transformed = _union_of([dag, dag.copy()])
            fused, _ = backward_equivalence_search(union, [dag, dag.copy()], transformed)
            # same Markov equivalence class as the input
            assert _pattern_edges(fused) == _pattern_edges(dag)

    def test_random_inputs_give_subgraph_of_union(self, make_random_dags):
        dags = make_random_dags(8, 3, edge_prob=0.3, seed=12)
        union, transformed = _union_of(dags)
        fused, _ = backward_equivalence_search(union, dags, transformed)
        assert nx.is_directed_acyclic_graph(fused)
        assert _skeleton(fused) <= _skeleton(union)

    @pytest.mark.parametrize("max_cond_set_size", [0, 1, 2, None])
    def test_capped_search_gives_dag(self, make_random_dags, max_cond_set_size):
        dags = make_random_dags(8, 3, edge_prob=0.35, seed=6)
        union, transformed = _union_of(dags)
        fused, num_removed = backward_equivalence_search(union, dags, transformed,
                                                         max_cond_set_size=max_cond_set_size,
                                                         acceptance_threshold=0.6)
        assert nx.is_directed_acyclic_graph(fused)
        assert set(fused.nodes) == set(union.nodes)
        assert num_removed >= 0

    def test_verbose_prints_tagged_messages(self, chain_and_fork, capsys):
        union, _ = _union_of(list(chain_and_fork))
        backward_equivalence_search(union, list(chain_and_fork), acceptance_threshold=0.5, verbose=True)
        out = capsys.readouterr().out
        assert "[INFO] [BES]" in out

    def test_deleted_pair_is_separated(self, chain_and_fork):
        g1, _ = chain_and_fork
        union, _ = _union_of(list(chain_and_fork))
        fused, _ = backward_equivalence_search(union, list(chain_and_fork), acceptance_threshold=0.5)
        assert not (fused.has_edge("A", "C") or fused.has_edge("C", "A"))
        assert is_d_separated(g1, "A", "C", {"B"})


class TestBackwardSearchValidation:

    @pytest.mark.parametrize("kwargs", [
        {"max_cond_set_size": -1},
        {"max_cond_set_size": 1.5},
        {"acceptance_threshold": 1.2},
        {"acceptance_threshold": -0.5},
    ])
    def test_bad_config(self, chain_and_fork, kwargs):
        union, _ = _union_of(list(chain_and_fork))
        with pytest.raises(InvalidInput):
            backward_equivalence_search(union, list(chain_and_fork), **kwargs)

    def test_bad_inputs(self, chain_and_fork):
        union, _ = _union_of(list(chain_and_fork))
        with pytest.raises(InvalidInput):
            backward_equivalence_search(union, None)
        with pytest.raises(InvalidInput):
            backward_equivalence_search(union, [])
        with pytest.raises(InvalidInput):
            backward_equivalence_search(nx.DiGraph([("A", "B")]), list(chain_and_fork))
        with pytest.raises(InvalidInput):
            backward_equivalence_search(nx.DiGraph([("A", "B"), ("B", "C"), ("C", "A")]), list(chain_and_fork))
