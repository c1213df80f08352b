"""
Central configuration constants for fluid neural network simulation.

Defines default values, thresholds, and configuration parameters
used across multiple modules.
"""

# ============================================================================
# Activation Defaults (Solé & Miramontes 1995)
# ============================================================================

# Gain applied to the neighbor activation sum before tanh squashing
GAIN_DEFAULT = 0.2

# Threshold subtracted from the neighbor activation sum (0.0 in the paper)
SUM_NEIGHBOR_ACTIVATIONS_THRESHOLD_DEFAULT = 0.0

# A neuron is active when its level exceeds this threshold
ACTIVATION_THRESHOLD_DEFAULT = 1e-16

# Spontaneous activation: level forced on firing, and per-step firing probability
# (Delgado & Solé 1998 explore 0.00003-0.3 for the probability)
SPONTANEOUS_ACTIVATION_LEVEL_DEFAULT = 0.1
SPONTANEOUS_ACTIVATION_PROBABILITY_DEFAULT = 0.1

# Spontaneous activation only allowed for neurons with no occupied Moore neighbor
SPONTANEOUS_REQUIRES_ISOLATION = True

# Coupling matrix J entries (lambda_11, lambda_12, lambda_21, lambda_22)
# indexed by (neuron active, neighbor active); all 1.0 in the paper
COUPLING_DEFAULT = 1.0


# ============================================================================
# Neuron Initialization
# ============================================================================

# New neurons draw an initial activation level uniformly from [LOW, HIGH)
INITIAL_ACTIVATION_LOW_LEVEL = 0.0
INITIAL_ACTIVATION_HIGH_LEVEL = 1.0


# ============================================================================
# Run Schedule Defaults
# ============================================================================

# Iterations per run and warm-up iterations discarded before data collection
NUM_ITERATIONS_DEFAULT = 11000
NUM_ITERATIONS_DISCARDED_DEFAULT = 1000

# Runs averaged per parameter set
NUM_RUNS_DEFAULT = 50


# ============================================================================
# Performance Configuration
# ============================================================================

# Step timing window for rolling average
STEP_TIME_WINDOW = 100  # Number of steps to average

# Default step summary interval (print every N steps)
STEP_SUMMARY_INTERVAL = 1000
