"""
CGP Activity Map Module

This module implements the genotype => phenotype map of CGP: given a genome,
find the nodes (and genes) that actually contribute to the outputs.

Classes:
    ActivityMap: Immutable record of the active nodes and genes of a genome
"""

from cgpgrad.genotype.genome import Genome

class ActivityMap:
    """
    The active nodes and genes of a genome.

    A node is active if it is selected by an output gene or feeds, directly or
    through other nodes, a node that is. An ActivityMap is a pure function of
    the genome it was computed from and never changes: after any change to the
    genome a new ActivityMap must be computed.

    Public Attributes:
        active_nodes: Sorted tuple of active node ids (inputs included), no duplicates
        active_genes: Sorted tuple of active gene indices

    Public Methods:
        is_active(node_id): Whether the node contributes to the outputs

    Class Methods:
        from_genome(genome): Compute the activity map of a genome
    """

    def __init__(self, active_nodes: tuple[int, ...], active_genes: tuple[int, ...]):
        self.active_nodes: tuple[int, ...] = active_nodes
        self.active_genes: tuple[int, ...] = active_genes
        self._node_set = frozenset(active_nodes)

    @classmethod
    def from_genome(cls, genome: Genome) -> 'ActivityMap':
        """
        Compute the active nodes and genes of a genome.

        Starting from the nodes selected by the output genes, the frontier is
        expanded through connection genes until only input nodes remain. Each
        frontier is deduplicated before expansion, which keeps the work
        proportional to (active nodes x arity) rather than to the number of paths.

        Parameters:
            genome: The genome to analyze

        Returns:
            The ActivityMap of the genome
        """
        layout  = genome.layout
        visited = set()
        current = set(genome.outputs())
        while current:
            visited |= current
            following = set()
            for node_id in current:
                if node_id >= layout.n:   # input nodes have no connections
                    following.update(genome.inputs(node_id))
            current = following - visited

        active_nodes = tuple(sorted(visited))

        active_genes = []
        for node_id in active_nodes:
            if node_id >= layout.n:
                start = layout.gene_idx[node_id]
                active_genes.extend(range(start, start + layout.node_arity(node_id) + 1))
        active_genes.extend(range(layout.output_gene_idx, layout.num_genes))

        return cls(active_nodes, tuple(active_genes))

    def is_active(self, node_id: int) -> bool:
        return node_id in self._node_set

    def __eq__(self, other):
        if not isinstance(other, ActivityMap):
            return NotImplemented
        return self.active_nodes == other.active_nodes and self.active_genes == other.active_genes

    def __repr__(self):
        return f"ActivityMap(active_nodes={list(self.active_nodes)})"
