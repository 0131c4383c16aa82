"""
patternpro/training/data.py
Constants for the training balance and the AI batch-solve.
"""

INITIAL_LEARNING_RATE = 0.2
INITIAL_ERROR_RATE    = 0.8

# tick(): error drifts up and learning decays, both faster when learning is low
DRIFT_BASE   = 0.04
DRIFT_SCALE  = 0.06
DECAY_BASE   = 0.02
DECAY_SCALE  = 0.03

# apply_boost()
BOOST_LEARNING = 0.12
BOOST_ERROR    = 0.08

# simulate()
ACCURACY_WEIGHT  = 0.9
NOISE_SPAN       = 0.2     # noise ~ U[0, NOISE_SPAN)
MIN_ACCURACY     = 0.1
MAX_ACCURACY     = 0.95
WRONG_SPREAD     = 0.3     # wrong answers land within ±30% of the answer
MIN_WRONG_SPREAD = 1

# Values this close to a bound are treated as the bound
BOUND_EPSILON = 1e-9

# Results screen thresholds, highest first: (minimum score %, message)
PERFORMANCE_TIERS = (
    (80, "Excellent! Your AI is well-trained!"),
    (60, "Good job! Your AI learned well!"),
    (40, "Not bad! Your AI is getting there!"),
)
PERFORMANCE_FALLBACK = "Your AI needs more training!"
