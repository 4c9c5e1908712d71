"""
CGP Genotype Package

This package implements the genotype of a Cartesian Genetic Program: the integer
chromosome, the structural layout fixing its length and the bounds of each
gene, and the map from a chromosome to its active nodes (the phenotype).

Modules:
    layout:   GenomeLayout class (structural parameters, node table, bounds table)
    genome:   Genome class (validated chromosome, single gene mutation)
    activity: ActivityMap class (active nodes and genes of a genome)

Exported Classes:
    GenomeLayout: Structural parameters, node addressing and bounds
    Genome:       Bounded integer chromosome
    ActivityMap:  Active nodes and genes of a genome
"""

from cgpgrad.genotype.activity import ActivityMap
from cgpgrad.genotype.genome   import Genome
from cgpgrad.genotype.layout   import GenomeLayout

__all__ = ['ActivityMap',
           'Genome',
           'GenomeLayout']
