"""
cgpgrad - Differentiable Cartesian Genetic Programming in Python.

This package encodes mathematical expressions as Cartesian Genetic Programs:
a fixed grid of nodes whose functions and wiring are given by an integer
genome. Expressions can be evaluated numerically or symbolically, mutated
within the bounds of the genome, and (in their weighted variant,
ExpressionANN) trained by gradient descent.

Main components:
- kernels: Node functions and kernel sets
- genotype: Genome layout and bounds, chromosome, active nodes
- phenotype: Expression and ExpressionANN
- run: Configuration, training and evolution

Example:
    >>> from cgpgrad import ExpressionANN
    >>> ex = ExpressionANN(1, 1, 2, 5, 5, 2, ["tanh", "sum"], seed=42)
    >>> ex.randomise_weights(seed=0)
    >>> loss = ex.sgd(points, labels, lr=0.1, batch_size=8, loss="MSE")
"""

__version__ = "0.1.0"

# Import main classes for convenient access
from cgpgrad.kernels   import Kernel, KernelSet, ValueKind, kernels
from cgpgrad.genotype  import ActivityMap, Genome, GenomeLayout
from cgpgrad.phenotype import Expression, ExpressionANN, LossType
from cgpgrad.run       import Config, Evolver, Trainer

__all__ = [
    "Kernel",
    "KernelSet",
    "ValueKind",
    "kernels",
    "ActivityMap",
    "Genome",
    "GenomeLayout",
    "Expression",
    "ExpressionANN",
    "LossType",
    "Config",
    "Evolver",
    "Trainer",
]
