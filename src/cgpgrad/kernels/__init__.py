"""
Kernels Package

This package provides the node functions ("kernels") of CGP expressions.

Exported:
    kernels:     Dictionary mapping kernel names to Kernel objects
    ann_kernels: Names of the kernels usable in an ExpressionANN
    Kernel:      A named elementary function with numeric and symbolic forms
    KernelSet:   Ordered registry of kernels used by an expression
    ValueKind:   Enumeration of the value kinds kernels evaluate on
"""

from cgpgrad.kernels.basic_kernels import (
    Kernel,
    ValueKind,
    ann_kernels,
    kernels,
)
from cgpgrad.kernels.kernel_set import KernelSet

__all__ = [
    'Kernel',
    'KernelSet',
    'ValueKind',
    'ann_kernels',
    'kernels',
]
