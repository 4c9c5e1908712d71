"""
Differentiable CGP Expression Module

This module implements ExpressionANN: a CGP expression whose connections carry
weights and whose internal nodes carry biases, so that the phenotype is an
artificial neural network of arbitrary (feed-forward) topology. The genome
still encodes the topology and the node kernels; weights and biases are
trained by gradient descent using a hand-written backward pass.

Each internal node v with inputs x_0 ... x_{a-1} computes

    f(w_v0 * x_0 + b_v, w_v1 * x_1, ..., w_v(a-1) * x_{a-1})

where f is the node kernel (which for ANN kernels acts on the sum of its inputs).

Weight and bias slots:
    - The weight vector has one slot per connection gene, in genome order:
      the weights of node v start at slot gene_idx[v] - (v - n).
    - The bias vector has one slot per internal node: node v uses slot v - n.
    Inactive nodes keep their slots; their gradients are always 0.

Classes:
    ConnectionTable: The consumers of every node in the active graph
    ExpressionANN:   CGP expression with trainable weights and biases
"""

import logging
import numpy as np
from functools import partial
from joblib    import Parallel, delayed
from typing    import Any, Sequence

from cgpgrad.genotype             import ActivityMap, Genome
from cgpgrad.kernels              import KernelSet, ValueKind
from cgpgrad.phenotype.expression import Expression
from cgpgrad.phenotype.losses     import LossType

logger = logging.getLogger(__name__)

class ConnectionTable:
    """
    For every node, the active nodes consuming its output.

    Entry 'node_id' lists (consumer id, weight slot) pairs, one per connection
    gene of an active node selecting 'node_id'. Outputs are represented as
    virtual consumers with ids n + r*c + i (i being the output index) and a
    weight slot of None.

    The table is derived from an ActivityMap and records it: it is valid as
    long as the expression still uses that same ActivityMap.
    """

    def __init__(self, genome: Genome, activity: ActivityMap):
        layout = genome.layout
        self.activity  : ActivityMap = activity
        self.num_nodes : int         = layout.num_nodes
        self._consumers: list[list[tuple[int, int | None]]] = [[] for _ in range(layout.num_nodes)]

        for node_id in activity.active_nodes:
            if node_id < layout.n:
                continue
            w_idx = layout.weight_idx(node_id)
            for j, source in enumerate(genome.inputs(node_id)):
                self._consumers[source].append((node_id, w_idx + j))

        for i, source in enumerate(genome.outputs()):
            self._consumers[source].append((layout.num_nodes + i, None))

    def is_virtual(self, consumer_id: int) -> bool:
        return consumer_id >= self.num_nodes

    def __getitem__(self, node_id: int) -> list[tuple[int, int | None]]:
        return self._consumers[node_id]

    def __len__(self) -> int:
        return len(self._consumers)

class ExpressionANN(Expression):
    """
    A CGP expression with a weight on every connection and a bias on every node.

    Only kernels carrying a closed-form derivative (see 'kernels.ann_kernels')
    can be used. Weights default to 1 and biases to 0.

    Public Methods (in addition to Expression):
        get_weight / set_weight, get_weights / set_weights: Weight access
        get_bias / set_bias, get_biases / set_biases:       Bias access
        randomise_weights(mean, std, seed):  Draw all weights from a normal distribution
        randomise_biases(mean, std, seed):   Draw all biases from a normal distribution
        set_output_activation(kernel):       Set the kernel of every node feeding an output
        n_active_weights(unique):            Number of weights of the active nodes
        forward(point, weights, biases):     Numeric evaluation with explicit parameters
        loss(points, labels, loss):          Mean loss over a batch
        d_loss(points, labels, loss):        Mean loss and its gradients w.r.t. weights and biases
        train_step(points, labels, lr, loss): One gradient descent update on a batch
        sgd(points, labels, lr, batch_size, loss): One epoch of mini-batch gradient descent
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
        Initialize a differentiable expression with a random genome,
        unit weights and zero biases.

        Raises:
            ValueError: If the structural parameters are invalid or a kernel
                        has no closed-form derivative
        """
        if not isinstance(kernels, KernelSet):
            kernels = KernelSet(kernels)
        for kernel in kernels:
            if not kernel.differentiable:
                raise ValueError(f"Kernel '{kernel.name}' cannot be used in an ExpressionANN "
                                 f"(it has no closed-form derivative)")
        super().__init__(n, m, r, c, l, arity, kernels, seed)

        self._weights: np.ndarray = np.ones(self._layout.num_connections)
        self._biases : np.ndarray = np.zeros(self._layout.r * self._layout.c)
        self._connected: ConnectionTable | None = None

    @classmethod
    def from_config(cls, config) -> 'ExpressionANN':
        """
        Create a differentiable expression from a Config, applying
        its output activation when one is given.
        """
        expression = super().from_config(config)
        if config.output_activation is not None:
            expression.set_output_activation(config.output_activation)
        return expression

    # ---------------------------------------------------------------
    # Weights and biases
    # ---------------------------------------------------------------

    def _weight_slot(self, node_id: int, input_id: int | None) -> int:
        if input_id is None:
            if not 0 <= node_id < len(self._weights):
                raise ValueError(f"Weight index {node_id} is out of bounds, "
                                 f"allowed values are [0 ... {len(self._weights) - 1}]")
            return node_id
        arity = self._layout.node_arity(node_id)
        if not 0 <= input_id < arity:
            raise ValueError(f"Input id {input_id} is invalid for node {node_id}, "
                             f"allowed values are [0 ... {arity - 1}]")
        return self._layout.weight_idx(node_id) + input_id

    def get_weight(self, node_id: int, input_id: int | None = None) -> float:
        """
        Get a weight, by slot ('get_weight(idx)') or by node and input ('get_weight(node_id, input_id)').

        Raises:
            ValueError: If the slot, node or input does not exist
        """
        return float(self._weights[self._weight_slot(node_id, input_id)])

    def set_weight(self, node_id: int, input_id: int | float, w: float | None = None) -> None:
        """
        Set a weight, by slot ('set_weight(idx, w)') or by node and input ('set_weight(node_id, input_id, w)').

        Raises:
            ValueError: If the slot, node or input does not exist
        """
        if w is None:
            self._weights[self._weight_slot(node_id, None)] = float(input_id)
        else:
            self._weights[self._weight_slot(node_id, int(input_id))] = float(w)

    def get_weights(self) -> list[float]:
        return self._weights.tolist()

    def set_weights(self, ws: Sequence[float]) -> None:
        """
        Raises:
            ValueError: If the number of weights is not the number of connection genes
        """
        ws = np.array(ws, dtype=float)
        if ws.shape != self._weights.shape:
            raise ValueError(f"Expected {len(self._weights)} weights, got {ws.size}")
        self._weights = ws

    def get_bias(self, idx: int) -> float:
        self._check_bias(idx)
        return float(self._biases[idx])

    def set_bias(self, idx: int, b: float) -> None:
        self._check_bias(idx)
        self._biases[idx] = float(b)

    def _check_bias(self, idx: int) -> None:
        if not 0 <= idx < len(self._biases):
            raise ValueError(f"Bias index {idx} is out of bounds, allowed values are [0 ... {len(self._biases) - 1}]")

    def get_biases(self) -> list[float]:
        return self._biases.tolist()

    def set_biases(self, bs: Sequence[float]) -> None:
        """
        Raises:
            ValueError: If the number of biases is not the number of internal nodes
        """
        bs = np.array(bs, dtype=float)
        if bs.shape != self._biases.shape:
            raise ValueError(f"Expected {len(self._biases)} biases, got {bs.size}")
        self._biases = bs

    def randomise_weights(self, mean: float = 0.0, std: float = 0.1, seed: int | None = None) -> None:
        """
        Draw every weight (active or not) from a normal distribution.
        """
        rng = np.random.default_rng(seed)
        self._weights = rng.normal(mean, std, len(self._weights))
        logger.debug("Weights drawn from N(%g, %g)", mean, std)

    def randomise_biases(self, mean: float = 0.0, std: float = 0.1, seed: int | None = None) -> None:
        """
        Draw every bias (active or not) from a normal distribution.
        """
        rng = np.random.default_rng(seed)
        self._biases = rng.normal(mean, std, len(self._biases))
        logger.debug("Biases drawn from N(%g, %g)", mean, std)

    def set_output_activation(self, kernel: int | str) -> None:
        """
        Set the kernel of every internal node selected by an output gene.

        Typically used to impose a bounded output layer (e.g. tanh for targets
        in [-1, 1]). Outputs selecting an input node are left as they are.

        Parameters:
            kernel: Id or name of the kernel in the kernel set

        Raises:
            ValueError: If the kernel is not in the kernel set
        """
        f_id = self._kernels.index(kernel) if isinstance(kernel, str) else kernel
        for node_id in self._genome.outputs():
            if node_id >= self.n:
                self.set_f_gene(node_id, f_id)

    def n_active_weights(self, unique: bool = False) -> int:
        """
        Number of weights belonging to active nodes.

        Parameters:
            unique: If True, several connections of a node to the same source count once
        """
        pairs = [(source, node_id) for node_id in self._activity.active_nodes if node_id >= self.n
                 for source in self._genome.inputs(node_id)]
        return len(set(pairs)) if unique else len(pairs)

    # ---------------------------------------------------------------
    # Forward pass
    # ---------------------------------------------------------------

    def _kernel_call(self, node_id: int, function_in: list[Any], kind: ValueKind) -> Any:
        return self._weighted_call(node_id, function_in, kind, self._weights, self._biases)

    def _weighted_call(self, node_id, function_in, kind, weights, biases):
        kernel = self._kernels[self._genome.function(node_id)]
        w_idx  = self._layout.weight_idx(node_id)
        b_idx  = self._layout.bias_idx(node_id)
        if kind is ValueKind.SYMBOLIC:
            weighted = [f"w{node_id}_{j}*{x}" for j, x in enumerate(function_in)]
            weighted[0] = f"b{node_id}+{weighted[0]}"
        else:
            weighted = [weights[w_idx + j] * x for j, x in enumerate(function_in)]
            weighted[0] = weighted[0] + biases[b_idx]
        return kernel(weighted, kind)

    def forward(self, point: Sequence[Any], weights=None, biases=None) -> list[Any]:
        """
        Evaluate the expression numerically with the given weights and biases.

        The computation only uses indexing, products and the kernels, so it can
        be differentiated by autograd with respect to 'weights' and 'biases'.

        Parameters:
            point:   The n input values
            weights: Weight vector (defaults to the current weights)
            biases:  Bias vector (defaults to the current biases)

        Returns:
            List of the m output values
        """
        if len(point) != self.n:
            raise ValueError(f"Input size is incompatible: expected {self.n} values, got {len(point)}")
        weights = self._weights if weights is None else weights
        biases  = self._biases  if biases  is None else biases
        node_call = partial(self._weighted_call, weights=weights, biases=biases)
        node = self._fill_nodes(point, ValueKind.NUMERIC, node_call)
        return [node[node_id] for node_id in self._genome.outputs()]

    def _fill_nodes_with_derivatives(self, point: np.ndarray) -> tuple[list[float], list[float]]:
        """
        Forward pass recording, for every active node, its value and the
        derivative of its kernel with respect to the weighted input sum.
        """
        node   = [0.0] * self._layout.num_nodes
        d_node = [0.0] * self._layout.num_nodes
        for node_id in self._activity.active_nodes:
            if node_id < self.n:
                node[node_id] = float(point[node_id])
                continue
            kernel = self._kernels[self._genome.function(node_id)]
            w_idx  = self._layout.weight_idx(node_id)
            weighted = [self._weights[w_idx + j] * node[source]
                        for j, source in enumerate(self._genome.inputs(node_id))]
            weighted[0] += self._biases[self._layout.bias_idx(node_id)]
            s = float(sum(weighted))
            y = float(kernel(weighted, ValueKind.NUMERIC))
            node[node_id]   = y
            d_node[node_id] = float(kernel.derivative(y, s))
        return node, d_node

    # ---------------------------------------------------------------
    # Backward pass
    # ---------------------------------------------------------------

    def _connection_table(self) -> ConnectionTable:
        if self._connected is None or self._connected.activity is not self._activity:
            self._connected = ConnectionTable(self._genome, self._activity)
        return self._connected

    def _d_loss_point(self,
                      point    : np.ndarray,
                      label    : np.ndarray,
                      loss_type: LossType) -> tuple[float, np.ndarray, np.ndarray]:
        """
        Loss of a single point and its gradient w.r.t. every weight and bias.

        Active nodes are visited in descending id order (a reverse topological
        order): when node v is reached, every consumer of v already holds
        dL/ds, s being its weighted input sum.
        """
        node, d_node = self._fill_nodes_with_derivatives(point)
        outputs = [node[node_id] for node_id in self._genome.outputs()]
        value   = loss_type.value_of(outputs, label)
        d_out   = loss_type.derivative(outputs, label)

        gweights  = np.zeros(len(self._weights))
        gbiases   = np.zeros(len(self._biases))
        connected = self._connection_table()

        for node_id in reversed(self._activity.active_nodes):
            if node_id < self.n:
                break
            cum = 0.0
            for consumer, slot in connected[node_id]:
                if connected.is_virtual(consumer):
                    cum += d_out[consumer - connected.num_nodes]
                else:
                    cum += self._weights[slot] * d_node[consumer]
            d_node[node_id] *= cum

            w_idx = self._layout.weight_idx(node_id)
            for j, source in enumerate(self._genome.inputs(node_id)):
                gweights[w_idx + j] = d_node[node_id] * node[source]
            gbiases[self._layout.bias_idx(node_id)] = d_node[node_id]

        return value, gweights, gbiases

    def _loss_point(self, point: np.ndarray, label: np.ndarray, loss_type: LossType) -> float:
        return loss_type.value_of(self.evaluate(list(point), ValueKind.NUMERIC), label)

    def _as_batch(self, points, labels) -> tuple[np.ndarray, np.ndarray]:
        """
        Validate points and labels, returning them as 2-D arrays (a single 1-D point is a batch of one).
        """
        points = np.array(points, dtype=float)
        labels = np.array(labels, dtype=float)
        if points.ndim == 1:
            points = points.reshape(0, self.n) if points.size == 0 else points.reshape(1, -1)
        if labels.ndim == 1:
            labels = labels.reshape(0, self.m) if labels.size == 0 else labels.reshape(1, -1)
        if len(points) != len(labels):
            raise ValueError(f"Data and label size mismatch: {len(points)} points, {len(labels)} labels")
        if len(points) == 0:
            raise ValueError("Data size cannot be zero")
        if points.shape[1] != self.n:
            raise ValueError(f"Point dimension is incompatible: expected {self.n} inputs, got {points.shape[1]}")
        if labels.shape[1] != self.m:
            raise ValueError(f"Label dimension is incompatible: expected {self.m} outputs, got {labels.shape[1]}")
        return points, labels

    def _batch_gradient(self, points, labels, loss_type, n_jobs) -> tuple[float, np.ndarray, np.ndarray]:
        if n_jobs == 1:
            results = [self._d_loss_point(p, y, loss_type) for p, y in zip(points, labels)]
        else:
            results = Parallel(n_jobs)(delayed(self._d_loss_point)(p, y, loss_type) for p, y in zip(points, labels))
        value    = float(np.mean([r[0] for r in results]))
        gweights = np.mean([r[1] for r in results], axis=0)
        gbiases  = np.mean([r[2] for r in results], axis=0)
        return value, gweights, gbiases

    def loss(self, points, labels, loss: str | LossType = "MSE", n_jobs: int = 1) -> float:
        """
        Mean loss over a batch.

        Parameters:
            points: Input points (batch_size, n), or a single point (n,)
            labels: Target values (batch_size, m), or a single target (m,)
            loss:   "MSE" or "CE"
            n_jobs: Number of joblib workers

        Raises:
            ValueError: On dimension or count mismatch, empty data or unknown loss
        """
        loss_type = LossType.from_string(loss)
        points, labels = self._as_batch(points, labels)
        if n_jobs == 1:
            values = [self._loss_point(p, y, loss_type) for p, y in zip(points, labels)]
        else:
            values = Parallel(n_jobs)(delayed(self._loss_point)(p, y, loss_type) for p, y in zip(points, labels))
        return float(np.mean(values))

    def d_loss(self, points, labels, loss: str | LossType = "MSE", n_jobs: int = 1) -> tuple[float, list[float], list[float]]:
        """
        Loss and its gradient w.r.t. all weights and biases (inactive ones get 0).

        For a batch, loss and gradients are averaged over the points.

        Parameters:
            points: Input points (batch_size, n), or a single point (n,)
            labels: Target values (batch_size, m), or a single target (m,)
            loss:   "MSE" or "CE"
            n_jobs: Number of joblib workers

        Returns:
            Tuple (loss, weight gradients, bias gradients)

        Raises:
            ValueError: On dimension or count mismatch, empty data or unknown loss
        """
        loss_type = LossType.from_string(loss)
        points, labels = self._as_batch(points, labels)
        value, gweights, gbiases = self._batch_gradient(points, labels, loss_type, n_jobs)
        return value, gweights.tolist(), gbiases.tolist()

    # ---------------------------------------------------------------
    # Training
    # ---------------------------------------------------------------

    def train_step(self, points, labels, lr: float, loss: str | LossType = "MSE", n_jobs: int = 1) -> float:
        """
        One gradient descent update of every weight and bias on a batch.

        Returns:
            Mean loss of the batch before the update
        """
        if lr <= 0:
            raise ValueError(f"The learning rate must be positive, got {lr}")
        loss_type = LossType.from_string(loss)
        points, labels = self._as_batch(points, labels)
        return self._update(points, labels, lr, loss_type, n_jobs)

    def _update(self, points, labels, lr, loss_type, n_jobs) -> float:
        value, gweights, gbiases = self._batch_gradient(points, labels, loss_type, n_jobs)
        self._weights = self._weights - lr * gweights
        self._biases  = self._biases  - lr * gbiases
        return value

    def sgd(self,
            points,
            labels,
            lr        : float,
            batch_size: int,
            loss      : str | LossType = "MSE",
            n_jobs    : int = 1) -> float:
        """
        One epoch of mini-batch stochastic gradient descent.

        The data is split into consecutive batches of 'batch_size' points (the
        last one may be shorter); for each batch, every weight and bias is
        updated with param -= lr * (mean gradient over the batch).

        Parameters:
            points:     Input points (N, n)
            labels:     Target values (N, m)
            lr:         Learning rate
            batch_size: Number of points per batch
            loss:       "MSE" or "CE"
            n_jobs:     Number of joblib workers computing per-point gradients

        Returns:
            Mean loss per point measured during the epoch

        Raises:
            ValueError: On count or dimension mismatch, empty data, non-positive
                        learning rate or batch size, or unknown loss
        """
        if lr <= 0:
            raise ValueError(f"The learning rate must be positive, got {lr}")
        if batch_size < 1:
            raise ValueError(f"The batch size must be at least 1, got {batch_size}")
        loss_type = LossType.from_string(loss)
        points, labels = self._as_batch(points, labels)

        total = 0.0
        for start in range(0, len(points), batch_size):
            batch_points = points[start:start + batch_size]
            batch_labels = labels[start:start + batch_size]
            total += self._update(batch_points, batch_labels, lr, loss_type, n_jobs) * len(batch_points)
        return total / len(points)

    # ---------------------------------------------------------------
    # Representation
    # ---------------------------------------------------------------

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["weights"] = self.get_weights()
        d["biases"]  = self.get_biases()
        return d

    @classmethod
    def from_dict(cls, d: dict, kernels: KernelSet | None = None) -> 'ExpressionANN':
        expression = super().from_dict(d, kernels)
        if "weights" in d:
            expression.set_weights(d["weights"])
        if "biases" in d:
            expression.set_biases(d["biases"])
        return expression

    def _edge_attrs(self, node_id: int, input_id: int) -> dict:
        w = self._weights[self._layout.weight_idx(node_id) + input_id]
        return {'penwidth': '0.5', 'arrowsize': '0.5', 'label': f"{w:.2f}", 'fontsize': '7'}

    def __str__(self):
        return (super().__str__()
                + f"\n\tWeights:\t\t\t{self.get_weights()}"
                + f"\n\tBiases:\t\t\t\t{self.get_biases()}\n")
