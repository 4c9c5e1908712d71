"""
Run Package

Modules:
    config:  Config class (INI-driven parameters)
    trainer: Trainer class (gradient descent training of an ExpressionANN)
    evolver: Evolver class ((1 + lambda) evolution strategy over genomes)
"""

from cgpgrad.run.config  import Config
from cgpgrad.run.evolver import Evolver
from cgpgrad.run.trainer import Trainer

__all__ = ['Config',
           'Evolver',
           'Trainer']
