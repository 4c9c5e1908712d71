"""
Loss Functions Module

This module defines the losses an ExpressionANN can be trained on, evaluated
on a single point: the loss value and its derivative with respect to each
output of the expression.

Classes:
    LossType: Enumeration of the supported losses
"""

import autograd.numpy as np  # type: ignore
from enum import Enum

class LossType(Enum):
    """
    The supported losses, named by the strings accepted by the training API.

    MSE: Squared error summed over the outputs,            L = sum_i (o_i - y_i)^2
    CE:  Cross entropy of the softmax of the outputs,      L = -sum_i y_i log(softmax(o)_i)
    """
    MSE = "MSE"
    CE  = "CE"

    @classmethod
    def from_string(cls, loss: 'str | LossType') -> 'LossType':
        """
        Parameters:
            loss: "MSE", "CE" or a LossType

        Raises:
            ValueError: If the loss is not recognized
        """
        if isinstance(loss, LossType):
            return loss
        for member in cls:
            if member.value == loss:
                return member
        raise ValueError(f"Unrecognized loss '{loss}', allowed values are: {', '.join(m.value for m in cls)}")

    def value_of(self, outputs, labels):
        """
        Loss of one point.

        Parameters:
            outputs: Outputs of the expression (m values)
            labels:  Target values (m values)

        Returns:
            Scalar loss
        """
        outputs = np.asarray(outputs, dtype=float)
        labels  = np.asarray(labels,  dtype=float)
        if self is LossType.MSE:
            return float(np.sum((outputs - labels) ** 2))
        return float(-np.sum(labels * np.log(softmax(outputs))))

    def derivative(self, outputs, labels) -> np.ndarray:
        """
        Derivative of the loss of one point with respect to each output.
        """
        outputs = np.asarray(outputs, dtype=float)
        labels  = np.asarray(labels,  dtype=float)
        if self is LossType.MSE:
            return 2.0 * (outputs - labels)
        return softmax(outputs) - labels

def softmax(x):
    e = np.exp(x - np.max(x))   # shift for numerical stability
    return e / np.sum(e)
