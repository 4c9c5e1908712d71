"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add the source directory to the Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture
def tanh_chain():
    """
    1 input, 1 output, 1 row, 2 columns, arity 1, levels-back 1: the output
    reads node 2, which reads node 1, which reads the input.
    """
    from cgpgrad.phenotype import ExpressionANN

    ex = ExpressionANN(1, 1, 1, 2, 1, 1, ["tanh"], seed=0)
    ex.set([0, 0, 0, 1, 2])
    ex.set_weights([0.1, 0.2])
    ex.set_biases([0.3, 0.4])
    return ex


@pytest.fixture
def grid_ann():
    """
    1 input, 1 output, 2 rows, 2 columns, arity 2, levels-back 1:
    nodes 1 and 2 read the input twice, node 3 reads nodes 1 and 2,
    node 4 is inactive.
    """
    from cgpgrad.phenotype import ExpressionANN

    ex = ExpressionANN(1, 1, 2, 2, 1, 2, ["tanh"], seed=0)
    ex.set([0, 0, 0, 0, 0, 0, 0, 1, 2, 0, 1, 2, 3])
    ex.set_weights([0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8])
    ex.set_biases([0.9, 1.1, 1.2, 1.3])
    return ex
