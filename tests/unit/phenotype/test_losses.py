"""
Unit tests for the LossType enumeration.
"""

import pytest
import numpy as np
from cgpgrad.phenotype.losses import LossType, softmax


class TestLossTypeFromString:
    """Test loss lookup."""

    def test_known_names(self):
        assert LossType.from_string("MSE") is LossType.MSE
        assert LossType.from_string("CE") is LossType.CE

    def test_passthrough(self):
        assert LossType.from_string(LossType.CE) is LossType.CE

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="allowed values are: MSE, CE"):
            LossType.from_string("cross-entropy")


class TestMSE:
    """Test the squared error."""

    def test_value_single_output(self):
        assert LossType.MSE.value_of([0.7], [0.2]) == pytest.approx(0.25)

    def test_value_sums_outputs(self):
        assert LossType.MSE.value_of([1.0, 2.0], [0.0, 0.0]) == pytest.approx(5.0)

    def test_derivative(self):
        np.testing.assert_allclose(LossType.MSE.derivative([1.0, 2.0], [0.5, 3.0]), [1.0, -2.0])


class TestCE:
    """Test the softmax cross entropy."""

    def test_softmax_sums_to_one(self):
        p = softmax(np.array([1.0, 2.0, 3.0]))
        assert p.sum() == pytest.approx(1.0)
        assert p[2] > p[1] > p[0]

    def test_softmax_large_values(self):
        p = softmax(np.array([1000.0, 1000.0]))
        np.testing.assert_allclose(p, [0.5, 0.5])

    def test_value(self):
        outputs = [0.2, -1.0, 0.5]
        expected = -np.log(np.exp(0.5) / np.sum(np.exp(outputs)))
        assert LossType.CE.value_of(outputs, [0.0, 0.0, 1.0]) == pytest.approx(expected)

    def test_derivative(self):
        outputs = np.array([0.2, -1.0, 0.5])
        labels  = np.array([0.0, 1.0, 0.0])
        np.testing.assert_allclose(LossType.CE.derivative(outputs, labels), softmax(outputs) - labels)

    def test_uniform_outputs(self):
        assert LossType.CE.value_of([0.0, 0.0], [1.0, 0.0]) == pytest.approx(np.log(2.0))
