import configparser
import os
from cgpgrad.kernels import ann_kernels, kernels

class Config:

    # Allowed values of 'mutation_type' and the Expression method each one selects
    MUTATION_TYPES = {
        'active': 'mutate_active',
        'random': 'mutate_random',
        'fgene' : 'mutate_active_fgene',
        'cgene' : 'mutate_active_cgene',
        'ogene' : 'mutate_ogene',
    }

    LOSSES = ('MSE', 'CE')

    @staticmethod
    def _parse_kernels(raw_kernels):
        """
        Parse kernels from string to list.

        Parameters:
            raw_kernels: Either "all", "ann", a comma-separated list, or already a list

        Returns:
            List of kernel names
        """
        if isinstance(raw_kernels, str):
            if raw_kernels == 'all':
                return list(kernels.keys())
            if raw_kernels == 'ann':
                return list(ann_kernels)
            raw_kernels = [k.strip() for k in raw_kernels.split(',')]

        parsed = list(raw_kernels)
        for name in parsed:
            if name not in kernels:
                raise ValueError(f"Invalid kernel '{name}' in kernels")
        return parsed

    @staticmethod
    def _parse_arity(raw_arity):
        """
        Parse arity from string: "2" => 2, "2, 3, 2" => [2, 3, 2].
        """
        if isinstance(raw_arity, str):
            parsed = [int(a) for a in raw_arity.split(',')]
            return parsed[0] if len(parsed) == 1 else parsed
        return raw_arity

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a default Config.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a default Config for manual attribute setting.
        """

        # Default config for testing/manual setup
        if config_file is None:

            # Defaults for the structure
            self.num_inputs  = 1
            self.num_outputs = 1
            self.rows        = 1
            self.columns     = 10
            self.levels_back = 10
            self.arity       = 2
            self.kernels     = ['sum', 'sigmoid', 'tanh', 'relu']
            self.seed        = None

            # Defaults for mutation
            self.mutation_count = 1
            self.mutation_type  = 'active'

            # Defaults for evolution
            self.offspring   = 4
            self.generations = 100
            self.target_loss = 0.0

            # Defaults for training
            self.learning_rate     = 0.1
            self.batch_size        = 32
            self.loss              = 'MSE'
            self.epochs            = 100
            self.n_jobs            = 1
            self.shuffle           = True
            self.weight_init_mean  = 0.0
            self.weight_init_stdev = 1.0
            self.bias_init_mean    = 0.0
            self.bias_init_stdev   = 0.1
            self.output_activation = None

            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise

        # [STRUCTURE]

        # The number of inputs and outputs of the expression.
        self.num_inputs  = get_value('STRUCTURE', 'num_inputs' , int)
        self.num_outputs = get_value('STRUCTURE', 'num_outputs', int)

        # The size of the grid of nodes.
        self.rows    = get_value('STRUCTURE', 'rows'   , int)
        self.columns = get_value('STRUCTURE', 'columns', int)

        # How many previous columns a node can take its inputs from.
        # Use the number of columns for unrestricted connectivity.
        self.levels_back = get_value('STRUCTURE', 'levels_back', int)

        # The number of inputs of each node.
        # Either one value for all columns, or a comma-separated list with one value per column.
        self.arity = get_value('STRUCTURE', 'arity', str)

        # The kernels the function genes choose from.
        # Options: "all", "ann" (kernels usable in an ExpressionANN), or comma-separated list
        self.kernels = get_value('STRUCTURE', 'kernels', str)

        # Seed for the random initial genome ("None" for a fresh draw on every run).
        self.seed = get_value('STRUCTURE', 'seed', int, default=None)

        # [MUTATION]

        # The number of genes changed by one mutation.
        self.mutation_count = get_value('MUTATION', 'mutation_count', int, default=1)

        # Which genes mutation picks from.
        # Allowed values:
        #   "active" - any active gene
        #   "random" - any gene (active or not)
        #   "fgene"  - active function genes
        #   "cgene"  - active connection genes
        #   "ogene"  - output genes
        self.mutation_type = get_value('MUTATION', 'mutation_type', str, default='active')

        # [EVOLUTION] (optional section)

        # The number of mutated copies of the parent produced each generation (lambda).
        self.offspring = get_value('EVOLUTION', 'offspring', int, default=4)

        # The number of generations after which to stop the run.
        self.generations = get_value('EVOLUTION', 'generations', int, default=100)

        # The loss which when met or undercut causes the run to end.
        self.target_loss = get_value('EVOLUTION', 'target_loss', float, default=0.0)

        # [TRAINING] (optional section)

        # Step size of the gradient descent updates.
        self.learning_rate = get_value('TRAINING', 'learning_rate', float, default=0.1)

        # Number of points averaged in each update.
        self.batch_size = get_value('TRAINING', 'batch_size', int, default=32)

        # The loss to minimize.
        # Allowed values: "MSE" (regression), "CE" (classification, softmax cross entropy)
        self.loss = get_value('TRAINING', 'loss', str, default='MSE')

        # Number of passes over the training data.
        self.epochs = get_value('TRAINING', 'epochs', int, default=100)

        # Number of joblib workers computing per-point gradients (-1 = all cores).
        self.n_jobs = get_value('TRAINING', 'n_jobs', int, default=1)

        # Whether to shuffle the training data at the start of each epoch.
        self.shuffle = get_value('TRAINING', 'shuffle', bool, default=True)

        # The mean and standard deviation of the normal distributions
        # used to initialize weights and biases before training.
        self.weight_init_mean  = get_value('TRAINING', 'weight_init_mean' , float, default=0.0)
        self.weight_init_stdev = get_value('TRAINING', 'weight_init_stdev', float, default=1.0)
        self.bias_init_mean    = get_value('TRAINING', 'bias_init_mean'   , float, default=0.0)
        self.bias_init_stdev   = get_value('TRAINING', 'bias_init_stdev'  , float, default=0.1)

        # Kernel imposed on the nodes feeding the outputs ("None" to leave them as evolved).
        self.output_activation = get_value('TRAINING', 'output_activation', str, default=None)

    def __setattr__(self, name, value):
        """
        Override 'setattr' to parse and validate the values needing it, so that
        config.kernels = "ann" or config.arity = "2, 3" work as in an INI file.
        """
        if name == 'kernels':
            value = self._parse_kernels(value)
        elif name == 'arity':
            value = self._parse_arity(value)
        elif name == 'mutation_type' and value not in self.MUTATION_TYPES:
            raise ValueError(f"Invalid mutation_type '{value}', allowed values are: {', '.join(self.MUTATION_TYPES)}")
        elif name == 'loss' and value not in self.LOSSES:
            raise ValueError(f"Invalid loss '{value}', allowed values are: {', '.join(self.LOSSES)}")
        elif name == 'offspring' and value < 1:
            raise ValueError(f"Invalid offspring {value}, at least one offspring per generation is required")
        super().__setattr__(name, value)
