"""
Integration tests: configuration => expression => training / evolution.
"""

import json
import pytest
import numpy as np

from cgpgrad.phenotype import Expression, ExpressionANN
from cgpgrad.run       import Config, Evolver, Trainer


# ============================================================================
# Regression
# ============================================================================

class TestRegression:
    """Train a network on a smooth 1-D target."""

    def test_trained_network_improves(self, regression_config):
        points = np.linspace(-1, 1, 40).reshape(-1, 1)
        labels = 0.5 * np.sin(2 * points)

        ex = ExpressionANN.from_config(regression_config)
        trainer = Trainer(regression_config, suppress_output=True)
        history = trainer.run(ex, points, labels)

        assert len(history) == 60
        assert np.mean(history[-5:]) < np.mean(history[:5])
        assert trainer.evaluate(ex, points, labels) == pytest.approx(ex.loss(points, labels, "MSE"))

    def test_serialized_network_predicts_the_same(self, regression_config):
        points = np.linspace(-1, 1, 16).reshape(-1, 1)
        ex = ExpressionANN.from_config(regression_config)
        Trainer(regression_config, suppress_output=True).run(ex, points, 0.2 * points)

        restored = ExpressionANN.from_dict(json.loads(json.dumps(ex.to_dict())))
        for p in points:
            assert restored(list(p)) == pytest.approx(ex(list(p)))


# ============================================================================
# Classification
# ============================================================================

class TestClassification:
    """Train a two-class softmax classifier."""

    def test_cross_entropy_decreases(self):
        rng = np.random.default_rng(5)
        points = rng.uniform(-1, 1, (40, 2))
        classes = (points[:, 0] + points[:, 1] > 0).astype(int)
        labels = np.eye(2)[classes]

        config = Config()
        config.num_inputs  = 2
        config.num_outputs = 2
        config.rows        = 2
        config.columns     = 3
        config.levels_back = 3
        config.kernels     = "tanh, sum"
        config.seed        = 8
        config.loss        = "CE"
        config.epochs      = 40
        config.batch_size  = 10
        config.learning_rate = 0.2

        ex = ExpressionANN.from_config(config)
        ex.randomise_weights(0.0, 0.5, seed=1)
        ex.randomise_biases(0.0, 0.1, seed=2)
        initial = ex.loss(points, labels, "CE")
        Trainer(config, suppress_output=True).run(ex, points, labels, initialise=False)
        assert ex.loss(points, labels, "CE") < initial


# ============================================================================
# Evolution
# ============================================================================

class TestEvolution:
    """Evolve a symbolic expression."""

    def test_evolution_improves_fit(self):
        points = np.linspace(-2, 2, 21).reshape(-1, 1)
        labels = points ** 2 + points

        config = Config()
        config.columns     = 8
        config.levels_back = 8
        config.kernels     = "sum, diff, mul"
        config.seed        = 2
        config.generations = 200
        config.offspring   = 4
        config.mutation_count = 2

        ex = Expression.from_config(config)
        evolver = Evolver(config, suppress_output=True)
        best = evolver.run(ex, points, labels)

        assert evolver.fitness(best, points, labels) <= evolver.fitness(ex, points, labels)
        assert isinstance(best(["x"])[0], str)
