# -*- coding: utf-8 -*-

# Monte Carlo
DEFAULT_NB_SIMULATIONS = 10_000
MAX_SIMULATIONS_PER_LOOP = 100_000_000  # Maximum number of total random numbers per loop
DEFAULT_RANDOM_SEED = 42
NUMBER_OF_CORES = 4

# Sobol points are drawn in power-of-two blocks to keep their balance properties
SOBOL_INITIAL_BLOCK_SIZE = 1024

# Ornstein-Uhlenbeck
GAUSS_KRONROD_DEFAULT_EPS = 1e-4  # Absolute tolerance of the drift-shift quadrature
MIN_MEAN_REVERSION_SPEED = 1.4901161193847656e-08  # sqrt(machine epsilon); below this the OU variance is vol² dt

# Greeks
dv01_adjustment = +0.0001  # +0.01%, bump used by the finite-difference checks of the pathwise deltas
