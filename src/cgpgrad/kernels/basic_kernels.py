"""
CGP Kernel Functions Module

This module defines the elementary functions ("kernels") a CGP node can compute.
Every kernel can be evaluated over two kinds of values:

    - NUMERIC:  floats, numpy arrays (batched evaluation) or autograd boxes
                (the numeric forms are written with 'autograd.numpy', so an
                expression built from them can be differentiated by autograd)
    - SYMBOLIC: strings, producing a printable formula

Kernels are variadic: they accept any number of inputs not smaller than their
minimum arity. The "neural" kernels (sigmoid, tanh, relu, ...) act on the sum of
their inputs and additionally carry the closed-form derivative of their output
with respect to that sum, which the backward pass of ExpressionANN relies on.

Classes:
    ValueKind: Enumeration of the value representations a kernel can act on
    Kernel:    A named elementary function with numeric and symbolic forms
"""

import autograd.numpy as np  # type: ignore
from enum   import Enum
from typing import Any, Callable, Sequence

class ValueKind(Enum):
    """
    The value representations a kernel can be evaluated on.
    """
    NUMERIC  = "numeric"
    SYMBOLIC = "symbolic"

    @staticmethod
    def infer(values: Sequence[Any]) -> 'ValueKind':
        """
        Infer the value kind of a sequence of node inputs.

        All-string inputs are symbolic, anything else is numeric.
        """
        if len(values) > 0 and all(isinstance(v, str) for v in values):
            return ValueKind.SYMBOLIC
        return ValueKind.NUMERIC

class Kernel:
    """
    A named elementary function usable as the function of a CGP node.

    Public Attributes:
        name:       Stable name of the kernel (used for lookup and serialization)
        min_arity:  Minimum number of inputs the kernel accepts
        derivative: Callable (y, s) -> dy/ds, where 's' is the sum of the inputs and 'y'
                    the kernel output, or None if the kernel cannot be used in an ANN

    Public Methods:
        __call__(values, kind): Evaluate the kernel on a list of values of one kind
    """

    def __init__(self,
                 name      : str,
                 numeric   : Callable[[Sequence[Any]], Any],
                 symbolic  : Callable[[Sequence[str]], str],
                 min_arity : int = 1,
                 derivative: Callable[[Any, Any], Any] | None = None):
        """
        Initialize a kernel.

        Parameters:
            name:       Name of the kernel
            numeric:    Callable taking a list of numeric values and returning one value
            symbolic:   Callable taking a list of strings and returning one string
            min_arity:  Minimum number of inputs accepted
            derivative: Optional closed-form derivative with respect to the input sum
        """
        if min_arity < 1:
            raise ValueError(f"Kernel '{name}' must accept at least one input, got min_arity={min_arity}")
        self.name      : str = name
        self.min_arity : int = min_arity
        self.derivative      = derivative
        self._numeric        = numeric
        self._symbolic       = symbolic

    def __call__(self, values: Sequence[Any], kind: ValueKind | None = None) -> Any:
        """
        Evaluate the kernel.

        Parameters:
            values: The node inputs, all of the same value kind
            kind:   The value kind; inferred from 'values' when None

        Returns:
            The kernel output, of the same value kind as the inputs
        """
        if len(values) < self.min_arity:
            raise ValueError(f"Kernel '{self.name}' needs at least {self.min_arity} inputs, got {len(values)}")
        if kind is None:
            kind = ValueKind.infer(values)
        if kind is ValueKind.SYMBOLIC:
            return self._symbolic(values)
        return self._numeric(values)

    @property
    def differentiable(self) -> bool:
        """Whether the kernel carries a closed-form derivative (usable in an ANN)."""
        return self.derivative is not None

    def __repr__(self):
        return f"Kernel(name={self.name!r}, min_arity={self.min_arity})"

    def __str__(self):
        return self.name

# ====================
# Numeric forms
# ====================

def _total(x):
    s = x[0]
    for v in x[1:]:
        s = s + v
    return s

def sum_kernel(x):
    return _total(x)

def diff_kernel(x):
    s = x[0]
    for v in x[1:]:
        s = s - v
    return s

def mul_kernel(x):
    s = x[0]
    for v in x[1:]:
        s = s * v
    return s

def div_kernel(x):
    s = x[0]
    for v in x[1:]:
        s = s / v
    return s

def pdiv_kernel(x):
    # Protected division: 1 wherever the denominator vanishes
    den = mul_kernel(x[1:]) if len(x) > 1 else 1.0
    safe_den = np.where(den == 0, 1.0, den)
    return np.where(den == 0, 1.0, x[0] / safe_den)

def sigmoid_kernel(x):
    s = np.clip(_total(x), -500, 500)   # exp overflow
    return 1.0 / (1.0 + np.exp(-s))

def tanh_kernel(x):
    return np.tanh(_total(x))

def relu_kernel(x):
    return np.maximum(0.0, _total(x))

def elu_kernel(x):
    s = _total(x)
    return np.where(s > 0, s, np.exp(np.minimum(s, 0.0)) - 1.0)

def isru_kernel(x):
    s = _total(x)
    return s / np.sqrt(1.0 + s * s)

def sin_kernel(x):
    return np.sin(_total(x))

def cos_kernel(x):
    return np.cos(_total(x))

def log_kernel(x):
    return np.log(_total(x))

def exp_kernel(x):
    return np.exp(_total(x))

def gaussian_kernel(x):
    s = _total(x)
    return np.exp(-s * s)

# ====================
# Symbolic forms
# ====================

def _joined(op):
    return lambda x: "(" + op.join(x) + ")"

def _applied(fname):
    return lambda x: f"{fname}(" + "+".join(x) + ")"

def _gaussian_symbol(x):
    return "exp(-(" + "+".join(x) + ")**2)"

# ====================
# Local derivatives (w.r.t. the input sum)
# ====================

def _d_sum(y, s):
    return 1.0

def _d_sigmoid(y, s):
    return y * (1.0 - y)

def _d_tanh(y, s):
    return 1.0 - y * y

def _d_relu(y, s):
    return 1.0 if s > 0 else 0.0

def _d_elu(y, s):
    return 1.0 if s > 0 else y + 1.0

def _d_isru(y, s):
    return (1.0 + s * s) ** -1.5

kernels = {
    "sum"     : Kernel("sum",      sum_kernel,      _joined("+"),         derivative=_d_sum),
    "diff"    : Kernel("diff",     diff_kernel,     _joined("-")),
    "mul"     : Kernel("mul",      mul_kernel,      _joined("*")),
    "div"     : Kernel("div",      div_kernel,      _joined("/")),
    "pdiv"    : Kernel("pdiv",     pdiv_kernel,     _joined("/")),
    "sigmoid" : Kernel("sigmoid",  sigmoid_kernel,  _applied("sig"),      derivative=_d_sigmoid),
    "tanh"    : Kernel("tanh",     tanh_kernel,     _applied("tanh"),     derivative=_d_tanh),
    "relu"    : Kernel("relu",     relu_kernel,     _applied("ReLu"),     derivative=_d_relu),
    "elu"     : Kernel("elu",      elu_kernel,      _applied("ELU"),      derivative=_d_elu),
    "isru"    : Kernel("isru",     isru_kernel,     _applied("ISRU"),     derivative=_d_isru),
    "sin"     : Kernel("sin",      sin_kernel,      _applied("sin")),
    "cos"     : Kernel("cos",      cos_kernel,      _applied("cos")),
    "log"     : Kernel("log",      log_kernel,      _applied("log")),
    "exp"     : Kernel("exp",      exp_kernel,      _applied("exp")),
    "gaussian": Kernel("gaussian", gaussian_kernel, _gaussian_symbol),
    }

# Kernels with a closed-form local derivative, i.e. valid for ExpressionANN
ann_kernels = [name for name, k in kernels.items() if k.differentiable]
