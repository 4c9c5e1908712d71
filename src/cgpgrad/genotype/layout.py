"""
CGP Genome Layout Module

This module implements the GenomeLayout class, which derives everything that
depends only on the structural parameters of a CGP expression: the genome
length, the position of each node's genes, and the per-gene bounds.

Node numbering convention:
    - Input nodes:    [0, n)
    - Internal nodes: [n, n + r*c), laid out column by column
    - Output genes select any node in [0, n + r*c)

Genome layout:
    for each internal node: [function gene, connection gene 1, ..., connection gene arity]
    followed by m output genes.

Classes:
    GenomeLayout: Structural parameters, node addressing table and bounds table
"""

import logging
from typing import Sequence

logger = logging.getLogger(__name__)

class GenomeLayout:
    """
    The fixed structure of a CGP expression.

    A GenomeLayout is computed once, from the structural parameters, and never
    changes afterwards. It acts as a node table addressed by node id: every
    accessor taking a node id validates it first.

    Public Attributes:
        n:           Number of inputs
        m:           Number of outputs
        r:           Number of rows
        c:           Number of columns
        l:           Levels-back
        arity:       Arity of each column (list of c ints)
        lb:          Lower bound of each gene
        ub:          Upper bound of each gene
        gene_idx:    Position in the genome of the function gene of each node
                     (input nodes map to 0, they have no genes)

    Public Properties:
        num_nodes:       Total number of nodes (inputs + internal)
        num_genes:       Length of the genome
        num_connections: Number of connection genes (size of the weight vector)
        output_gene_idx: Position of the first output gene

    Public Methods:
        column(node_id):             Column of an internal node
        node_arity(node_id):         Arity of an internal node
        connection_genes(node_id):   Gene indices of the connection genes of a node
        weight_idx(node_id):         First slot of the node's weights in the weight vector
        bias_idx(node_id):           Slot of the node's bias in the bias vector
        is_function_gene(idx):       Whether gene 'idx' selects a kernel
        is_output_gene(idx):         Whether gene 'idx' is an output gene
    """

    def __init__(self,
                 n            : int,
                 m            : int,
                 r            : int,
                 c            : int,
                 l            : int,
                 arity        : int | Sequence[int],
                 num_functions: int,
                 min_arity    : int = 1):
        """
        Initialize the layout and compute the bounds table.

        Parameters:
            n:             Number of inputs
            m:             Number of outputs
            r:             Number of rows
            c:             Number of columns
            l:             Levels-back
            arity:         Uniform arity, or one arity per column
            num_functions: Number of kernels available to function genes
            min_arity:     Smallest arity the kernels accept

        Raises:
            ValueError: If any structural parameter is invalid
        """
        for name, value in (("inputs", n), ("outputs", m), ("rows", r), ("columns", c), ("levels-back", l)):
            if value <= 0:
                raise ValueError(f"Number of {name} must be positive, got {value}")
        if num_functions <= 0:
            raise ValueError("Number of kernels is 0")

        if isinstance(arity, int):
            arity = [arity] * c
        arity = [int(a) for a in arity]
        if len(arity) != c:
            raise ValueError(f"Arity must be an int or a list of {c} ints (one per column), got {len(arity)} values")
        min_arity = max(1, min_arity)
        if any(a < min_arity for a in arity):
            raise ValueError(f"Arity must be at least {min_arity} for the given kernels, got {arity}")

        self.n    : int       = n
        self.m    : int       = m
        self.r    : int       = r
        self.c    : int       = c
        self.l    : int       = l
        self.arity: list[int] = arity
        self.num_functions: int = num_functions

        self.gene_idx: list[int] = [0] * (n + r * c)
        self.lb: list[int] = []
        self.ub: list[int] = []
        self._compute_bounds()
        self._function_genes = frozenset(self.gene_idx[n:])

        logger.debug("Layout n=%d m=%d r=%d c=%d l=%d arity=%s: %d genes",
                     n, m, r, c, l, arity, self.num_genes)

    def _compute_bounds(self) -> None:
        """
        Fill the node table and the bounds of every gene.

        Connection genes of a node in column i may point to any node in the
        previous 'l' columns (or to an input, while i < l); output genes may
        point to any node in the last 'l' columns (or to an input, when l > c).
        """
        n, r, c, l = self.n, self.r, self.c, self.l
        k = 0
        for i in range(c):                   # columns first
            for j in range(r):               # then rows
                self.gene_idx[n + i * r + j] = k

                # Function gene
                self.lb.append(0)
                self.ub.append(self.num_functions - 1)
                k += 1

                # Connection genes
                for _ in range(self.arity[i]):
                    self.lb.append(n + r * (i - l) if i >= l else 0)
                    self.ub.append(n + r * i - 1)
                    k += 1

        # Output genes
        for _ in range(self.m):
            self.lb.append(n + r * (c - l) if l <= c else 0)
            self.ub.append(n + r * c - 1)

    @property
    def num_nodes(self) -> int:
        return self.n + self.r * self.c

    @property
    def num_genes(self) -> int:
        return len(self.lb)

    @property
    def num_connections(self) -> int:
        return sum(self.arity) * self.r

    @property
    def output_gene_idx(self) -> int:
        return self.num_genes - self.m

    def _check_internal(self, node_id: int) -> None:
        if not self.n <= node_id < self.num_nodes:
            raise ValueError(f"Node id {node_id} is not an internal node, "
                             f"allowed values are [{self.n} ... {self.num_nodes - 1}]")

    def is_input(self, node_id: int) -> bool:
        if not 0 <= node_id < self.num_nodes:
            raise ValueError(f"Node id {node_id} does not exist, allowed values are [0 ... {self.num_nodes - 1}]")
        return node_id < self.n

    def column(self, node_id: int) -> int:
        self._check_internal(node_id)
        return (node_id - self.n) // self.r

    def node_arity(self, node_id: int) -> int:
        return self.arity[self.column(node_id)]

    def function_gene(self, node_id: int) -> int:
        self._check_internal(node_id)
        return self.gene_idx[node_id]

    def connection_genes(self, node_id: int) -> range:
        start = self.function_gene(node_id) + 1
        return range(start, start + self.node_arity(node_id))

    def weight_idx(self, node_id: int) -> int:
        # The weight vector is the genome with function and output genes removed
        self._check_internal(node_id)
        return self.gene_idx[node_id] - (node_id - self.n)

    def bias_idx(self, node_id: int) -> int:
        self._check_internal(node_id)
        return node_id - self.n

    def is_output_gene(self, idx: int) -> bool:
        return self.output_gene_idx <= idx < self.num_genes

    def is_function_gene(self, idx: int) -> bool:
        if idx >= self.output_gene_idx:
            return False
        return idx in self._function_genes

    def to_dict(self) -> dict:
        return {
            "inputs"     : self.n,
            "outputs"    : self.m,
            "rows"       : self.r,
            "columns"    : self.c,
            "levels_back": self.l,
            "arity"      : list(self.arity),
        }

    def __eq__(self, other):
        if not isinstance(other, GenomeLayout):
            return NotImplemented
        return self.to_dict() == other.to_dict() and self.num_functions == other.num_functions

    def __repr__(self):
        return (f"GenomeLayout(n={self.n}, m={self.m}, r={self.r}, c={self.c}, "
                f"l={self.l}, arity={self.arity}, num_functions={self.num_functions})")
