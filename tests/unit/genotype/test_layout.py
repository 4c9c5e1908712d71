"""
Unit tests for the GenomeLayout class (node table and bounds).
"""

import pytest
from cgpgrad.genotype import GenomeLayout


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def layout():
    """2 inputs, 1 output, 2 rows, 3 columns, levels-back 2, arity 2, 4 kernels."""
    return GenomeLayout(2, 1, 2, 3, 2, 2, 4)


# ============================================================================
# Test Validation
# ============================================================================

class TestLayoutValidation:
    """Test rejection of invalid structural parameters."""

    @pytest.mark.parametrize("params", [
        (0, 1, 1, 1, 1),
        (1, 0, 1, 1, 1),
        (1, 1, 0, 1, 1),
        (1, 1, 1, 0, 1),
        (1, 1, 1, 1, 0),
    ])
    def test_zero_dimension_raises(self, params):
        with pytest.raises(ValueError, match="must be positive"):
            GenomeLayout(*params, 2, 1)

    def test_no_kernels_raises(self):
        with pytest.raises(ValueError, match="Number of kernels is 0"):
            GenomeLayout(1, 1, 1, 1, 1, 2, 0)

    def test_zero_arity_raises(self):
        with pytest.raises(ValueError, match="Arity must be at least 1"):
            GenomeLayout(1, 1, 1, 2, 1, 0, 1)

    def test_arity_below_kernel_minimum_raises(self):
        with pytest.raises(ValueError, match="Arity must be at least 2"):
            GenomeLayout(1, 1, 1, 2, 1, [2, 1], 1, min_arity=2)

    def test_arity_list_wrong_length_raises(self):
        with pytest.raises(ValueError, match="one per column"):
            GenomeLayout(1, 1, 1, 3, 1, [2, 2], 1)


# ============================================================================
# Test Bounds
# ============================================================================

class TestLayoutBounds:
    """Test the bounds table."""

    def test_genome_length(self, layout):
        # 6 nodes x (1 function + 2 connections) + 1 output
        assert layout.num_genes == 19
        assert len(layout.ub) == 19
        assert layout.output_gene_idx == 18

    def test_bounds(self, layout):
        assert layout.lb == [0, 0, 0, 0, 0, 0,
                             0, 0, 0, 0, 0, 0,
                             0, 2, 2, 0, 2, 2,
                             4]
        assert layout.ub == [3, 1, 1, 3, 1, 1,
                             3, 3, 3, 3, 3, 3,
                             3, 5, 5, 3, 5, 5,
                             7]

    def test_lower_bound_never_exceeds_upper_bound(self):
        for l in range(1, 6):
            layout = GenomeLayout(3, 2, 2, 4, l, 3, 2)
            assert all(lo <= hi for lo, hi in zip(layout.lb, layout.ub))

    def test_levels_back_larger_than_columns(self):
        """Output genes may select inputs when levels-back exceeds the columns."""
        layout = GenomeLayout(1, 1, 1, 2, 5, 1, 1)
        assert layout.lb[-1] == 0
        assert layout.ub[-1] == 2

    def test_function_gene_bounds(self):
        layout = GenomeLayout(1, 1, 1, 1, 1, 1, 5)
        assert (layout.lb[0], layout.ub[0]) == (0, 4)

    def test_single_function_gene_is_fixed(self):
        layout = GenomeLayout(1, 1, 1, 1, 1, 1, 1)
        assert layout.lb[0] == layout.ub[0] == 0

    def test_variable_arity(self):
        layout = GenomeLayout(1, 1, 1, 3, 3, [1, 3, 2], 2)
        assert layout.gene_idx == [0, 0, 2, 6]
        assert layout.num_genes == 2 + 4 + 3 + 1
        assert layout.num_connections == 6


# ============================================================================
# Test Node Table
# ============================================================================

class TestLayoutNodes:
    """Test node addressing."""

    def test_gene_idx(self, layout):
        assert layout.gene_idx == [0, 0, 0, 3, 6, 9, 12, 15]

    def test_num_nodes(self, layout):
        assert layout.num_nodes == 8

    def test_column(self, layout):
        assert [layout.column(node_id) for node_id in range(2, 8)] == [0, 0, 1, 1, 2, 2]

    def test_connection_genes(self, layout):
        assert list(layout.connection_genes(4)) == [7, 8]

    def test_input_node_has_no_genes(self, layout):
        with pytest.raises(ValueError, match="not an internal node"):
            layout.function_gene(1)

    def test_unknown_node_raises(self, layout):
        with pytest.raises(ValueError):
            layout.node_arity(8)
        with pytest.raises(ValueError, match="does not exist"):
            layout.is_input(-1)

    def test_is_input(self, layout):
        assert layout.is_input(0)
        assert not layout.is_input(2)

    def test_weight_and_bias_slots(self, layout):
        assert [layout.weight_idx(node_id) for node_id in range(2, 8)] == [0, 2, 4, 6, 8, 10]
        assert [layout.bias_idx(node_id) for node_id in range(2, 8)] == [0, 1, 2, 3, 4, 5]
        assert layout.num_connections == 12

    def test_gene_kinds(self, layout):
        assert layout.is_function_gene(3)
        assert not layout.is_function_gene(4)
        assert not layout.is_function_gene(18)
        assert layout.is_output_gene(18)
        assert not layout.is_output_gene(17)


class TestLayoutRepresentation:
    """Test dictionary conversion and equality."""

    def test_to_dict(self, layout):
        assert layout.to_dict() == {"inputs": 2, "outputs": 1, "rows": 2, "columns": 3,
                                    "levels_back": 2, "arity": [2, 2, 2]}

    def test_equality(self, layout):
        assert layout == GenomeLayout(2, 1, 2, 3, 2, [2, 2, 2], 4)
        assert layout != GenomeLayout(2, 1, 2, 3, 2, 2, 3)
