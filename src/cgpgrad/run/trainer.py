"""
Training Module

This module defines the Trainer class, which trains the weights and biases of
an ExpressionANN by mini-batch stochastic gradient descent, as configured in
the [TRAINING] section of a Config.

Classes:
    Trainer: Epoch loop around ExpressionANN.sgd with progress reporting
"""

import logging
import numpy as np
from typing import TYPE_CHECKING

from cgpgrad.run.config import Config
if TYPE_CHECKING:
    from cgpgrad.phenotype import ExpressionANN

logger = logging.getLogger(__name__)

class Trainer:
    """
    Trains an ExpressionANN on a labelled data set.

    Each run initializes the parameters of the expression from the config
    (unless told otherwise), then performs 'epochs' passes of mini-batch
    gradient descent, optionally shuffling the data before each pass with a
    generator seeded from the config.

    Public Attributes:
        loss_history: Mean training loss of each epoch of the last run

    Public Methods:
        run(expression, points, labels): Train the expression
        evaluate(expression, points, labels): Mean loss on a data set
    """

    def __init__(self, config: Config, suppress_output: bool = False):
        """
        Initialize the trainer.

        Parameters:
            config:          Configuration parameters ([TRAINING] section)
            suppress_output: If True, suppress progress and final reports
        """
        self._config         : Config      = config
        self._suppress_output: bool        = suppress_output
        self.loss_history    : list[float] = []

    def run(self,
            expression: 'ExpressionANN',
            points,
            labels,
            initialise: bool = True) -> list[float]:
        """
        Train the expression.

        Parameters:
            expression: The expression to train (its weights and biases are updated in place)
            points:     Input points (N, n)
            labels:     Target values (N, m)
            initialise: If True, draw weights and biases from the distributions in the config first

        Returns:
            The mean training loss of each epoch

        Raises:
            ValueError: If points and labels do not match or the training parameters are invalid
        """
        config = self._config
        points = np.asarray(points, dtype=float)
        labels = np.asarray(labels, dtype=float)
        if len(points) != len(labels):
            raise ValueError(f"Data and label size mismatch: {len(points)} points, {len(labels)} labels")

        if initialise:
            bias_seed = None if config.seed is None else config.seed + 1
            expression.randomise_weights(config.weight_init_mean, config.weight_init_stdev, config.seed)
            expression.randomise_biases(config.bias_init_mean, config.bias_init_stdev, bias_seed)

        rng = np.random.default_rng(config.seed)
        self.loss_history = []
        for epoch in range(config.epochs):
            if config.shuffle:
                order = rng.permutation(len(points))
                epoch_points, epoch_labels = points[order], labels[order]
            else:
                epoch_points, epoch_labels = points, labels

            value = expression.sgd(epoch_points, epoch_labels, config.learning_rate,
                                   config.batch_size, config.loss, config.n_jobs)
            self.loss_history.append(value)
            logger.debug("Epoch %d: loss %g", epoch, value)

            if not self._suppress_output:
                self._report_progress(epoch, value)

        if not self._suppress_output:
            self._final_report(expression, points, labels)

        return self.loss_history

    def evaluate(self, expression: 'ExpressionANN', points, labels) -> float:
        """
        Mean loss of the expression on a data set (e.g. held-out data).
        """
        return expression.loss(points, labels, self._config.loss, self._config.n_jobs)

    def _report_progress(self, epoch: int, value: float):
        print(f"Epoch {epoch + 1:4d}/{self._config.epochs}: {self._config.loss} = {value:.6f}")

    def _final_report(self, expression: 'ExpressionANN', points, labels):
        print("\nTraining finished")
        print(f"Final {self._config.loss}:   {self.evaluate(expression, points, labels):.6f}")
        print(f"Active nodes: {expression.get_active_nodes()}")
        print(f"Active weights: {expression.n_active_weights()}")
