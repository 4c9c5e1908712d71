"""
CGP Phenotype Package

This package turns CGP genomes into computable expressions.

Modules:
    expression:     Expression class (evaluation, differentiation, mutation)
    expression_ann: ExpressionANN class (weighted expression trained by gradient descent)
    losses:         LossType enumeration (MSE, cross entropy)

Exported Classes:
    Expression:      CGP-encoded expression
    ExpressionANN:   CGP-encoded artificial neural network
    ConnectionTable: Consumers of every node of an active graph
    LossType:        Losses available for training
"""

from cgpgrad.phenotype.expression     import Expression
from cgpgrad.phenotype.expression_ann import ConnectionTable, ExpressionANN
from cgpgrad.phenotype.losses         import LossType

__all__ = ['ConnectionTable',
           'Expression',
           'ExpressionANN',
           'LossType']
