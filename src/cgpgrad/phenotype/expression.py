"""
CGP Expression Module

This module implements the Expression class: a mathematical expression encoded
as a Cartesian Genetic Program. An Expression owns its genome and keeps the
genome's activity map (its phenotype) in sync with it; it can evaluate the
phenotype numerically or symbolically, differentiate it with respect to the
inputs, and mutate the genome within bounds.

Classes:
    Expression: A CGP-encoded expression with evaluation and mutation operators
"""

import autograd.numpy as np  # type: ignore
import logging
import numbers
import random
from autograd import jacobian  # type: ignore
from typing   import Any, Callable, Sequence
import graphviz  # type: ignore

from cgpgrad.genotype  import ActivityMap, Genome, GenomeLayout
from cgpgrad.kernels   import KernelSet, ValueKind

logger = logging.getLogger(__name__)

class Expression:
    """
    A mathematical expression encoded as a Cartesian Genetic Program.

    The expression is a grid of r x c nodes, fed by n inputs and producing m
    outputs. Each node applies a kernel (chosen by its function gene) to the
    values of the nodes selected by its connection genes. Only the nodes that
    contribute to the outputs (the active nodes) are ever evaluated.

    Randomness is never stored in the expression: every mutation operator takes
    the random source as an argument ('rng', a random.Random; defaults to the
    'random' module). The seed given at construction is only used to draw the
    initial genome.

    Public Properties:
        n, m, rows, columns, levels_back: Structural parameters
        kernels:                          The KernelSet used by function genes

    Public Methods:
        evaluate(point, kind) / __call__: Evaluate the expression
        gradient(point):                  Jacobian of the outputs w.r.t. the inputs
        get() / set(genes):               Read / replace the chromosome
        set_f_gene(node_id, f_id):        Replace the kernel of a node
        mutate(idxs, rng):                Mutate the given genes
        mutate_random(N, rng):            Mutate N random genes
        mutate_active(N, rng):            Mutate N active genes
        mutate_active_fgene(N, rng):      Mutate N active function genes
        mutate_active_cgene(N, rng):      Mutate N active connection genes
        mutate_ogene(N, rng):             Mutate N output genes
        get_active_nodes(), get_active_genes(), is_active(node_id): Phenotype introspection
        to_dict() / from_dict(d):         Plain dictionary representation
        visualize(view):                  Graphviz rendering of the active graph
    """

    def __init__(self,
                 n      : int,
                 m      : int,
                 r      : int,
                 c      : int,
                 l      : int,
                 arity  : int | Sequence[int],
                 kernels: KernelSet | Sequence[str],
                 seed   : int | None = None):
        """
        Initialize an expression with a random genome.

        Parameters:
            n:       Number of inputs
            m:       Number of outputs
            r:       Number of rows
            c:       Number of columns
            l:       Levels-back
            arity:   Arity of the nodes, uniform (int) or one per column (list of c ints)
            kernels: The kernels function genes choose from
            seed:    Seed used to draw the initial genome

        Raises:
            ValueError: If the structural parameters or the kernel set are invalid
        """
        if not isinstance(kernels, KernelSet):
            kernels = KernelSet(kernels)
        if len(kernels) == 0:
            raise ValueError("Number of kernels is 0")

        self._kernels : KernelSet    = kernels
        self._layout  : GenomeLayout = GenomeLayout(n, m, r, c, l, arity, len(kernels), kernels.min_arity)
        self._genome  : Genome       = Genome.from_random(self._layout, random.Random(seed))
        self._activity: ActivityMap  = ActivityMap.from_genome(self._genome)

    @classmethod
    def from_config(cls, config) -> 'Expression':
        """
        Create an expression from the [STRUCTURE] section of a Config.
        """
        return cls(config.num_inputs, config.num_outputs, config.rows, config.columns,
                   config.levels_back, config.arity, config.kernels, config.seed)

    # ---------------------------------------------------------------
    # Structure
    # ---------------------------------------------------------------

    @property
    def n(self) -> int:
        return self._layout.n

    @property
    def m(self) -> int:
        return self._layout.m

    @property
    def rows(self) -> int:
        return self._layout.r

    @property
    def columns(self) -> int:
        return self._layout.c

    @property
    def levels_back(self) -> int:
        return self._layout.l

    @property
    def kernels(self) -> KernelSet:
        return self._kernels

    def get_arity(self, node_id: int | None = None) -> int | list[int]:
        """
        Arity of a node, or the list of per-column arities when node_id is None.
        """
        if node_id is None:
            return list(self._layout.arity)
        return self._layout.node_arity(node_id)

    def get_lb(self) -> list[int]:
        return list(self._layout.lb)

    def get_ub(self) -> list[int]:
        return list(self._layout.ub)

    def get_gene_idx(self) -> list[int]:
        return list(self._layout.gene_idx)

    # ---------------------------------------------------------------
    # Genotype and phenotype
    # ---------------------------------------------------------------

    def get(self) -> list[int]:
        """Return a copy of the chromosome."""
        return self._genome.genes

    def is_valid(self, genes: Sequence[int]) -> bool:
        return self._genome.is_valid(genes)

    def set(self, genes: Sequence[int]) -> None:
        """
        Replace the chromosome and update the active nodes and genes.

        Raises:
            ValueError: If the chromosome is incompatible with the expression
                        (the current chromosome is then left unchanged)
        """
        self._genome.set(genes)
        self._update_activity()

    def set_f_gene(self, node_id: int, f_id: int) -> None:
        """
        Replace the kernel of an internal node.

        Parameters:
            node_id: Id of the node (not an input node)
            f_id:    Id of the kernel in the kernel set

        Raises:
            ValueError: If node_id or f_id are invalid
        """
        if not 0 <= f_id < len(self._kernels):
            raise ValueError(f"Kernel id {f_id} is invalid, allowed values are [0 ... {len(self._kernels) - 1}]")
        self._genome.set_gene(self._layout.function_gene(node_id), f_id)

    def get_active_nodes(self) -> list[int]:
        return list(self._activity.active_nodes)

    def get_active_genes(self) -> list[int]:
        return list(self._activity.active_genes)

    def is_active(self, node_id: int) -> bool:
        return self._activity.is_active(node_id)

    def _update_activity(self) -> None:
        self._activity = ActivityMap.from_genome(self._genome)
        logger.debug("Active nodes: %s", self._activity.active_nodes)

    # ---------------------------------------------------------------
    # Mutation
    # ---------------------------------------------------------------

    def mutate(self, idxs: int | Sequence[int], rng: random.Random | None = None) -> None:
        """
        Mutate the given genes within their bounds.

        Each gene is redrawn uniformly among its allowed values other than the
        current one; genes allowing a single value are left unchanged.

        Parameters:
            idxs: Index, or indices, of the genes to mutate
            rng:  Random source

        Raises:
            ValueError: If any index is out of bounds (no gene is changed then)
        """
        rng = random if rng is None else rng
        if isinstance(idxs, numbers.Integral):
            idxs = [idxs]
        idxs = [int(idx) for idx in idxs]
        for idx in idxs:
            self._genome.check_index(idx)

        changed = False
        for idx in idxs:
            changed = self._genome.mutate_gene(idx, rng) or changed
        if changed:
            self._update_activity()

    def mutate_random(self, N: int = 1, rng: random.Random | None = None) -> None:
        """
        Mutate N genes drawn uniformly from the whole genome (active or not).
        """
        rng = random if rng is None else rng
        self.mutate([rng.randrange(len(self._genome)) for _ in range(N)], rng)

    def mutate_active(self, N: int = 1, rng: random.Random | None = None) -> None:
        """
        Mutate N genes drawn from the active genes.

        Every mutation affects the phenotype. Each draw is taken from the active
        genes of the genome as left by the previous mutation.
        """
        self._mutate_among(lambda: self._activity.active_genes, N, rng)

    def mutate_active_fgene(self, N: int = 1, rng: random.Random | None = None) -> None:
        """
        Mutate N active function genes (no-op if no internal node is active).
        """
        layout = self._layout
        self._mutate_among(lambda: [layout.gene_idx[node_id] for node_id in self._activity.active_nodes
                                    if node_id >= layout.n], N, rng)

    def mutate_active_cgene(self, N: int = 1, rng: random.Random | None = None) -> None:
        """
        Mutate N active connection genes (no-op if no internal node is active).
        """
        layout = self._layout
        self._mutate_among(lambda: [idx for node_id in self._activity.active_nodes if node_id >= layout.n
                                    for idx in layout.connection_genes(node_id)], N, rng)

    def mutate_ogene(self, N: int = 1, rng: random.Random | None = None) -> None:
        """
        Mutate N output genes.
        """
        layout = self._layout
        self._mutate_among(lambda: range(layout.output_gene_idx, layout.num_genes), N, rng)

    def _mutate_among(self,
                      candidates: Callable[[], Sequence[int]],
                      N         : int,
                      rng       : random.Random | None) -> None:
        rng = random if rng is None else rng
        for _ in range(N):
            pool = candidates()
            if len(pool) == 0:
                return
            self.mutate(rng.choice(pool), rng)

    # ---------------------------------------------------------------
    # Evaluation
    # ---------------------------------------------------------------

    def evaluate(self, point: Sequence[Any], kind: ValueKind | None = None) -> list[Any]:
        """
        Evaluate the expression.

        Parameters:
            point: The n input values. Numeric values can be floats or numpy arrays of
                   equal shape (the expression is then evaluated element-wise, on a
                   batch); symbolic values are strings (e.g. ["x", "y"]).
            kind:  The value kind; inferred from 'point' when None

        Returns:
            List of the m output values

        Raises:
            ValueError: If the number of input values is not n
        """
        if len(point) != self.n:
            raise ValueError(f"Input size is incompatible: expected {self.n} values, got {len(point)}")
        if kind is None:
            kind = ValueKind.infer(point)
        node = self._fill_nodes(point, kind)
        return [node[node_id] for node_id in self._genome.outputs()]

    def __call__(self, point: Sequence[Any], kind: ValueKind | None = None) -> list[Any]:
        return self.evaluate(point, kind)

    def gradient(self, point: Sequence[float]) -> np.ndarray:
        """
        Compute the derivatives of the outputs with respect to the inputs.

        Parameters:
            point: The n input values

        Returns:
            Jacobian matrix of shape (m, n)
        """
        point = np.array(point, dtype=float)
        if point.shape != (self.n,):
            raise ValueError(f"Input size is incompatible: expected {self.n} values, got shape {point.shape}")

        def outputs(x):
            node = self._fill_nodes([x[i] for i in range(self.n)], ValueKind.NUMERIC)
            return np.stack([node[node_id] * 1.0 for node_id in self._genome.outputs()])

        return jacobian(outputs)(point)

    def _fill_nodes(self,
                    point    : Sequence[Any],
                    kind     : ValueKind,
                    node_call: Callable[[int, list[Any], ValueKind], Any] | None = None) -> list[Any]:
        """
        Compute the value of every active node, in ascending id order.

        Connection genes only point to lower columns, so ascending id order
        is a topological order of the active graph. 'node_call(node_id, inputs, kind)'
        computes the value of an internal node (default: '_kernel_call').
        """
        node_call = self._kernel_call if node_call is None else node_call
        node = [None] * self._layout.num_nodes
        for node_id in self._activity.active_nodes:
            if node_id < self.n:
                node[node_id] = point[node_id]
            else:
                function_in = [node[i] for i in self._genome.inputs(node_id)]
                node[node_id] = node_call(node_id, function_in, kind)
        return node

    def _kernel_call(self, node_id: int, function_in: list[Any], kind: ValueKind) -> Any:
        return self._kernels[self._genome.function(node_id)](function_in, kind)

    # ---------------------------------------------------------------
    # Representation
    # ---------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Convert the expression to a dictionary.

        Returns:
            Dictionary with the structural parameters, the kernel names and the chromosome:
            {
                "inputs": 1, "outputs": 1, "rows": 1, "columns": 2, "levels_back": 1,
                "arity": [1, 1], "kernels": ["tanh"], "chromosome": [0, 0, 0, 1, 2]
            }
        """
        d = self._layout.to_dict()
        d["kernels"]    = self._kernels.names
        d["chromosome"] = self.get()
        return d

    @classmethod
    def from_dict(cls, d: dict, kernels: KernelSet | None = None) -> 'Expression':
        """
        Create an expression from its dictionary representation (see 'to_dict').

        Parameters:
            d:       The dictionary
            kernels: Kernel set to use instead of the one named in 'd'
                     (needed when the expression uses custom kernels)

        Raises:
            ValueError: If the chromosome is incompatible with the structure
        """
        if kernels is None:
            kernels = KernelSet(d["kernels"])
        expression = cls(d["inputs"], d["outputs"], d["rows"], d["columns"],
                         d["levels_back"], d["arity"], kernels)
        expression.set(d["chromosome"])
        return expression

    def visualize(self, view: bool = False) -> graphviz.Digraph:
        """
        Render the active graph of the expression with Graphviz.

        Parameters:
            view: If True, open the rendered graph

        Returns:
            graphviz.Digraph with the inputs, the active nodes and the outputs
        """
        dot = graphviz.Digraph()
        dot.attr(rankdir='LR')

        node_attrs = {'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '8'}
        for node_id in self._activity.active_nodes:
            if node_id < self.n:
                dot.node(str(node_id), label=f"x{node_id}", fillcolor='lightgrey', **node_attrs)
            else:
                kernel = self._kernels[self._genome.function(node_id)]
                dot.node(str(node_id), label=f"{node_id}\\n{kernel.name}", fillcolor='lightblue', **node_attrs)
                for j, source in enumerate(self._genome.inputs(node_id)):
                    dot.edge(str(source), str(node_id), **self._edge_attrs(node_id, j))

        for i, node_id in enumerate(self._genome.outputs()):
            dot.node(f"o{i}", label=f"o{i}", fillcolor='white', **node_attrs)
            dot.edge(str(node_id), f"o{i}", penwidth='0.5', arrowsize='0.5')

        if view:
            dot.view(cleanup=True)
        return dot

    def _edge_attrs(self, node_id: int, input_id: int) -> dict:
        return {'penwidth': '0.5', 'arrowsize': '0.5'}

    def __str__(self):
        lines = [
            "CGP Expression:",
            f"\tNumber of inputs:\t\t{self.n}",
            f"\tNumber of outputs:\t\t{self.m}",
            f"\tNumber of rows:\t\t\t{self.rows}",
            f"\tNumber of columns:\t\t{self.columns}",
            f"\tNumber of levels-back allowed:\t{self.levels_back}",
            f"\tBasis function arity:\t\t{self.get_arity()}",
            "",
            f"\tResulting lower bounds:\t{self.get_lb()}",
            f"\tResulting upper bounds:\t{self.get_ub()}",
            "",
            f"\tCurrent expression (encoded):\t{self.get()}",
            f"\tActive nodes:\t\t\t{self.get_active_nodes()}",
            f"\tActive genes:\t\t\t{self.get_active_genes()}",
            "",
            f"\tFunction set:\t\t\t{self._kernels.names}",
        ]
        return "\n".join(lines) + "\n"

    def __repr__(self):
        return (f"{type(self).__name__}(n={self.n}, m={self.m}, r={self.rows}, c={self.columns}, "
                f"l={self.levels_back}, active_nodes={len(self._activity.active_nodes)})")
