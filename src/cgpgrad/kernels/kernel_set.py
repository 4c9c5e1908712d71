"""
CGP Kernel Set Module

This module implements the KernelSet class: the ordered catalog of kernels an
expression chooses from. The position of a kernel in the set is the value its
function gene takes in the genome, so the order is significant and stable.

Classes:
    KernelSet: Ordered registry of kernels addressed by id or name
"""

from typing import Iterator, Sequence

from cgpgrad.kernels.basic_kernels import Kernel, kernels

class KernelSet:
    """
    An ordered set of kernels.

    A KernelSet is built from kernel names (see 'basic_kernels.kernels') and/or
    custom Kernel objects. Expressions only read from it, so the same set can be
    shared by many expressions.

    Public Properties:
        names:     Kernel names, in id order
        min_arity: Smallest arity all kernels in the set accept

    Public Methods:
        append(kernel): Add a kernel (by name or as a Kernel object)
        index(name):    Id of the kernel with the given name
    """

    def __init__(self, names: Sequence[str | Kernel] = ()):
        """
        Initialize the kernel set.

        Parameters:
            names: Kernel names and/or Kernel objects, in id order

        Raises:
            ValueError: If a name does not refer to a known kernel
        """
        self._kernels: list[Kernel] = []
        for item in names:
            self.append(item)

    def append(self, kernel: str | Kernel) -> None:
        """
        Add a kernel at the end of the set.

        Parameters:
            kernel: A kernel name or a Kernel object
        """
        if isinstance(kernel, str):
            if kernel not in kernels:
                raise ValueError(f"Unknown kernel '{kernel}', available kernels are: {', '.join(kernels)}")
            kernel = kernels[kernel]
        elif not isinstance(kernel, Kernel):
            raise ValueError(f"Expected a kernel name or a Kernel, got {type(kernel).__name__}")
        self._kernels.append(kernel)

    def index(self, name: str) -> int:
        for i, kernel in enumerate(self._kernels):
            if kernel.name == name:
                return i
        raise ValueError(f"Kernel '{name}' is not in the set {self.names}")

    @property
    def names(self) -> list[str]:
        return [kernel.name for kernel in self._kernels]

    @property
    def min_arity(self) -> int:
        return max((kernel.min_arity for kernel in self._kernels), default=1)

    def __call__(self) -> list[Kernel]:
        """Return the kernels as a list (a copy)."""
        return list(self._kernels)

    def __getitem__(self, idx: int) -> Kernel:
        return self._kernels[idx]

    def __len__(self) -> int:
        return len(self._kernels)

    def __iter__(self) -> Iterator[Kernel]:
        return iter(self._kernels)

    def __repr__(self):
        return f"KernelSet({self.names})"
