"""
Evolution Module

This module defines the Evolver class: a (1 + lambda) evolution strategy over
the genome of an expression, the usual way of searching CGP topologies. Each
generation the parent produces 'offspring' mutated copies (mutation kind and
count taken from the [MUTATION] section of the Config); the best offspring
replaces the parent if it is at least as good, which lets neutral mutations
(e.g. in inactive genes) drift the genome.

Classes:
    Evolver: (1 + lambda) evolution strategy driven by a Config
"""

import copy
import logging
import random
import numpy as np
from typing import TYPE_CHECKING

from cgpgrad.phenotype  import LossType
from cgpgrad.run.config import Config
if TYPE_CHECKING:
    from cgpgrad.phenotype import Expression

logger = logging.getLogger(__name__)

class Evolver:
    """
    (1 + lambda) evolution strategy over CGP genomes.

    Public Attributes:
        loss_history: Loss of the parent after each generation of the last run

    Public Methods:
        run(expression, points, labels): Evolve the expression, returning the best one found
        fitness(expression, points, labels): Mean loss of an expression on a data set
    """

    def __init__(self, config: Config, suppress_output: bool = False):
        """
        Initialize the evolver.

        Parameters:
            config:          Configuration parameters ([MUTATION] and [EVOLUTION] sections)
            suppress_output: If True, suppress progress and final reports
        """
        self._config         : Config      = config
        self._suppress_output: bool        = suppress_output
        self.loss_history    : list[float] = []

    def fitness(self, expression: 'Expression', points, labels) -> float:
        """
        Mean loss (as set in the config) of the expression over a data set.

        Non-finite losses (e.g. from an unprotected division) are reported as infinity.
        """
        loss_type = LossType.from_string(self._config.loss)
        points = np.asarray(points, dtype=float)
        labels = np.asarray(labels, dtype=float)
        if len(points) != len(labels) or len(points) == 0:
            raise ValueError(f"Data and label size mismatch or empty: {len(points)} points, {len(labels)} labels")
        with np.errstate(all='ignore'):
            value = float(np.mean([loss_type.value_of(expression(list(p)), y) for p, y in zip(points, labels)]))
        return value if np.isfinite(value) else float('inf')

    def run(self, expression: 'Expression', points, labels) -> 'Expression':
        """
        Evolve the genome of the expression.

        Parameters:
            expression: The initial parent (left unchanged)
            points:     Input points (N, n)
            labels:     Target values (N, m)

        Returns:
            The best expression found
        """
        config = self._config
        rng    = random.Random(config.seed)
        mutate = Config.MUTATION_TYPES[config.mutation_type]

        parent      = copy.deepcopy(expression)
        parent_loss = self.fitness(parent, points, labels)
        self.loss_history = []

        for generation in range(config.generations):
            best, best_loss = None, float('inf')
            for _ in range(config.offspring):
                child = copy.deepcopy(parent)
                getattr(child, mutate)(config.mutation_count, rng)
                child_loss = self.fitness(child, points, labels)
                if best is None or child_loss < best_loss:
                    best, best_loss = child, child_loss

            if best is not None and best_loss <= parent_loss:
                parent, parent_loss = best, best_loss
            self.loss_history.append(parent_loss)
            logger.debug("Generation %d: loss %g", generation, parent_loss)

            if not self._suppress_output:
                print(f"Generation {generation + 1:4d}/{config.generations}: {config.loss} = {parent_loss:.6f}")

            if parent_loss <= config.target_loss:
                break

        if not self._suppress_output:
            print(f"\nEvolution finished, best {config.loss}: {parent_loss:.6f}")
            print(f"Best expression: {parent(['x' + str(i) for i in range(parent.n)])}")

        return parent
