"""
CGP Genome Module

This module implements the Genome class: the integer chromosome of a CGP
expression together with the rules that keep it valid.

Classes:
    Genome: Bounded integer chromosome with the single-gene mutation primitive
"""

import numbers
import random
from typing import Sequence

from cgpgrad.genotype.layout import GenomeLayout

class Genome:
    """
    The integer chromosome encoding a CGP expression.

    Every gene always lies within the bounds given by the layout. This holds for
    genomes supplied from outside (validated by 'set') and after every mutation
    (new values are drawn within bounds).

    Public Attributes:
        layout: The GenomeLayout fixing the genome length and gene bounds

    Public Methods:
        is_valid(genes):        Check length and bounds of a candidate chromosome
        set(genes):             Replace the chromosome (validated)
        set_gene(idx, value):   Replace a single gene (validated)
        mutate_gene(idx, rng):  Redraw one gene uniformly within bounds
        function(node_id):      Function gene of an internal node
        inputs(node_id):        Node ids feeding an internal node
        outputs():              Node ids selected by the output genes

    Class Methods:
        from_random(layout, rng): Create a genome with every gene drawn uniformly within bounds
    """

    def __init__(self, layout: GenomeLayout, genes: Sequence[int]):
        """
        Initialize a genome.

        Parameters:
            layout: The layout fixing length and bounds
            genes:  The chromosome

        Raises:
            ValueError: If the chromosome is incompatible with the layout
        """
        self.layout: GenomeLayout = layout
        self._genes: list[int]    = []
        self.set(genes)

    @classmethod
    def from_random(cls, layout: GenomeLayout, rng: random.Random) -> 'Genome':
        genes = [rng.randint(lo, hi) for lo, hi in zip(layout.lb, layout.ub)]
        return cls(layout, genes)

    def is_valid(self, genes: Sequence[int]) -> bool:
        """
        Check whether a chromosome is compatible with the layout.

        Parameters:
            genes: Candidate chromosome

        Returns:
            True if the length matches and every gene is within its bounds
        """
        if len(genes) != self.layout.num_genes:
            return False
        return all(_is_integral(g) and lo <= g <= hi for g, lo, hi in zip(genes, self.layout.lb, self.layout.ub))

    def set(self, genes: Sequence[int]) -> None:
        """
        Replace the whole chromosome.

        The chromosome is validated before anything changes: on failure the
        current chromosome remains in effect.

        Raises:
            ValueError: If the chromosome is incompatible with the layout
        """
        genes = list(genes)
        if len(genes) != self.layout.num_genes:
            raise ValueError(f"Chromosome is incompatible: expected {self.layout.num_genes} genes, got {len(genes)}")
        for i, (g, lo, hi) in enumerate(zip(genes, self.layout.lb, self.layout.ub)):
            if not _is_integral(g):
                raise ValueError(f"Chromosome is incompatible: gene {i} has non-integer value {g}")
            if not lo <= g <= hi:
                raise ValueError(f"Chromosome is incompatible: gene {i} has value {g}, allowed values are [{lo} ... {hi}]")
        self._genes = [int(g) for g in genes]

    def check_index(self, idx: int) -> None:
        if not 0 <= idx < len(self._genes):
            raise ValueError(f"Index of gene {idx} is out of bounds, the genome has {len(self._genes)} genes")

    def set_gene(self, idx: int, value: int) -> None:
        self.check_index(idx)
        if not _is_integral(value):
            raise ValueError(f"Value {value} for gene {idx} is not an integer")
        lo, hi = self.layout.lb[idx], self.layout.ub[idx]
        if not lo <= value <= hi:
            raise ValueError(f"Value {value} for gene {idx} is out of bounds, allowed values are [{lo} ... {hi}]")
        self._genes[idx] = int(value)

    def mutate_gene(self, idx: int, rng: random.Random) -> bool:
        """
        Redraw a gene uniformly within its bounds, excluding its current value.

        Genes allowing a single value (lower bound == upper bound) are left untouched.

        Parameters:
            idx: Index of the gene
            rng: Random source

        Returns:
            True if the gene was changed
        """
        self.check_index(idx)
        lo, hi = self.layout.lb[idx], self.layout.ub[idx]
        if lo == hi:
            return False

        # Draw from the hi - lo values different from the current one
        current   = self._genes[idx]
        new_value = rng.randint(lo, hi - 1)
        if new_value >= current:
            new_value += 1
        self._genes[idx] = new_value
        return True

    def function(self, node_id: int) -> int:
        return self._genes[self.layout.function_gene(node_id)]

    def inputs(self, node_id: int) -> list[int]:
        return [self._genes[i] for i in self.layout.connection_genes(node_id)]

    def outputs(self) -> list[int]:
        return self._genes[self.layout.output_gene_idx:]

    @property
    def genes(self) -> list[int]:
        """A copy of the chromosome."""
        return list(self._genes)

    def __getitem__(self, idx: int) -> int:
        return self._genes[idx]

    def __len__(self) -> int:
        return len(self._genes)

    def __eq__(self, other):
        if not isinstance(other, Genome):
            return NotImplemented
        return self.layout == other.layout and self._genes == other._genes

    def __repr__(self):
        return f"Genome({self._genes})"

def _is_integral(value) -> bool:
    if isinstance(value, numbers.Integral):
        return True
    return isinstance(value, numbers.Real) and float(value).is_integer()
