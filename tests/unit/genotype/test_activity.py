"""
Unit tests for the ActivityMap class (genotype => phenotype map).
"""

import random
import pytest
from cgpgrad.genotype import ActivityMap, Genome, GenomeLayout


def active_closure_holds(genome, activity):
    """Every input of an active internal node is active."""
    for node_id in activity.active_nodes:
        if node_id >= genome.layout.n:
            if not all(activity.is_active(source) for source in genome.inputs(node_id)):
                return False
    return True


class TestActivityMap:
    """Test active node and gene computation."""

    def test_chain(self):
        layout = GenomeLayout(1, 1, 1, 2, 1, 1, 1)
        genome = Genome(layout, [0, 0, 0, 1, 2])
        activity = ActivityMap.from_genome(genome)
        assert activity.active_nodes == (0, 1, 2)
        assert activity.active_genes == (0, 1, 2, 3, 4)

    def test_inactive_node_excluded(self):
        layout = GenomeLayout(1, 1, 2, 2, 1, 2, 1)
        genome = Genome(layout, [0, 0, 0, 0, 0, 0, 0, 1, 2, 0, 1, 2, 3])
        activity = ActivityMap.from_genome(genome)
        assert activity.active_nodes == (0, 1, 2, 3)
        assert activity.active_genes == (0, 1, 2, 3, 4, 5, 6, 7, 8, 12)
        assert not activity.is_active(4)

    def test_output_reading_input(self):
        """An output selecting an input makes only that input active."""
        layout = GenomeLayout(2, 1, 1, 2, 3, 1, 1)
        genome = Genome(layout, [0, 0, 0, 2, 1])
        activity = ActivityMap.from_genome(genome)
        assert activity.active_nodes == (1,)
        assert activity.active_genes == (4,)

    def test_shared_nodes_counted_once(self):
        """Nodes reachable through several paths appear once."""
        layout = GenomeLayout(1, 2, 1, 3, 3, 2, 1)
        genome = Genome(layout, [0, 0, 0, 0, 1, 1, 0, 2, 1, 3, 3])
        activity = ActivityMap.from_genome(genome)
        assert activity.active_nodes == (0, 1, 2, 3)
        assert len(set(activity.active_genes)) == len(activity.active_genes)

    def test_random_genomes_sorted_unique_and_closed(self):
        layout = GenomeLayout(3, 2, 3, 5, 2, 2, 4)
        rng = random.Random(11)
        for _ in range(50):
            genome = Genome.from_random(layout, rng)
            activity = ActivityMap.from_genome(genome)
            assert list(activity.active_nodes) == sorted(set(activity.active_nodes))
            assert list(activity.active_genes) == sorted(set(activity.active_genes))
            assert active_closure_holds(genome, activity)
            assert all(activity.is_active(node_id) for node_id in genome.outputs())

    def test_recomputation_is_idempotent(self):
        layout = GenomeLayout(2, 1, 2, 3, 2, 2, 3)
        genome = Genome.from_random(layout, random.Random(5))
        assert ActivityMap.from_genome(genome) == ActivityMap.from_genome(genome)
