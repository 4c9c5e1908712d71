"""
Unit tests for Config class.
"""

import pytest
import os
from cgpgrad.kernels    import ann_kernels, kernels
from cgpgrad.run.config import Config


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def test_config_dir():
    """Return the directory containing test configuration files."""
    return os.path.join(os.path.dirname(__file__), 'test_configs')


# ============================================================================
# Test Config Initialization
# ============================================================================

class TestConfigInit:
    """Test Config initialization."""

    def test_init_without_file_creates_default_config(self):
        """Test that Config() without file creates a usable default config."""
        config = Config()

        assert config.num_inputs == 1
        assert config.num_outputs == 1
        assert config.arity == 2
        assert config.seed is None
        assert config.mutation_type == 'active'
        assert config.loss == 'MSE'
        assert config.output_activation is None
        assert all(name in ann_kernels for name in config.kernels)

    def test_init_with_nonexistent_file_raises_error(self):
        """Test that Config with nonexistent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Configuration file .* not found"):
            Config('nonexistent_file.ini')

    def test_init_with_minimal_config(self, test_config_dir):
        """Test that optional sections fall back to defaults."""
        config = Config(os.path.join(test_config_dir, 'minimal.ini'))

        assert config.num_inputs == 2
        assert config.rows == 2
        assert config.columns == 5
        assert config.levels_back == 3
        assert config.arity == 2
        assert config.kernels == ['sum', 'tanh']
        assert config.seed is None
        assert config.mutation_count == 1
        assert config.mutation_type == 'active'
        assert config.epochs == 100
        assert config.shuffle is True


# ============================================================================
# Test Config Sections
# ============================================================================

class TestConfigFull:
    """Test parsing of every section."""

    @pytest.fixture
    def config(self, test_config_dir):
        return Config(os.path.join(test_config_dir, 'full.ini'))

    def test_structure(self, config):
        assert config.num_outputs == 2
        assert config.arity == [2, 3, 2]
        assert config.kernels == list(ann_kernels)
        assert config.seed == 17

    def test_mutation(self, config):
        assert config.mutation_count == 3
        assert config.mutation_type == 'cgene'

    def test_evolution(self, config):
        assert config.offspring == 8
        assert config.generations == 50
        assert config.target_loss == pytest.approx(1e-6)

    def test_training(self, config):
        assert config.learning_rate == pytest.approx(0.05)
        assert config.batch_size == 4
        assert config.loss == 'CE'
        assert config.epochs == 12
        assert config.n_jobs == 2
        assert config.shuffle is False
        assert config.weight_init_mean == pytest.approx(0.5)
        assert config.weight_init_stdev == pytest.approx(0.25)
        assert config.bias_init_mean == pytest.approx(-0.1)
        assert config.bias_init_stdev == 0.0
        assert config.output_activation == 'sigmoid'


# ============================================================================
# Test Validation
# ============================================================================

class TestConfigValidation:
    """Test rejection of invalid values."""

    def test_unknown_kernel(self, test_config_dir):
        with pytest.raises(ValueError, match="Invalid kernel 'cube'"):
            Config(os.path.join(test_config_dir, 'bad_kernel.ini'))

    def test_unknown_mutation_type(self, test_config_dir):
        with pytest.raises(ValueError, match="Invalid mutation_type 'everything'"):
            Config(os.path.join(test_config_dir, 'bad_mutation.ini'))

    def test_set_attributes(self):
        config = Config()
        config.kernels = 'all'
        assert config.kernels == list(kernels.keys())
        config.arity = '3'
        assert config.arity == 3
        config.arity = [1, 2]
        assert config.arity == [1, 2]

    def test_set_invalid_loss(self):
        config = Config()
        with pytest.raises(ValueError, match="Invalid loss"):
            config.loss = 'L1'

    def test_set_invalid_offspring(self):
        config = Config()
        with pytest.raises(ValueError, match="Invalid offspring 0"):
            config.offspring = 0
        assert config.offspring == 4
