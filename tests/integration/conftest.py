"""
Shared fixtures for integration tests.
"""

import os
import pytest
import numpy as np
from cgpgrad.run.config import Config


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Set random seeds for reproducibility of anything drawing from the global generators."""
    import random

    np.random.seed(42)
    random.seed(42)

    yield

    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def regression_config(tmp_path):
    """A config file for a 1-input regression network."""
    path = tmp_path / "regression.ini"
    path.write_text(
        "[STRUCTURE]\n"
        "num_inputs  = 1\n"
        "num_outputs = 1\n"
        "rows        = 3\n"
        "columns     = 4\n"
        "levels_back = 4\n"
        "arity       = 2\n"
        "kernels     = tanh, sigmoid, sum\n"
        "seed        = 21\n"
        "\n"
        "[TRAINING]\n"
        "learning_rate     = 0.1\n"
        "batch_size        = 8\n"
        "loss              = MSE\n"
        "epochs            = 60\n"
        "weight_init_stdev = 0.5\n"
        "output_activation = tanh\n"
    )
    return Config(os.fspath(path))
