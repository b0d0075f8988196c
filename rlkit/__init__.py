"""Building blocks for reinforcement learning agents.

Prioritized replay with persistence, exploration schedules, layer, instance
and group normalization, dropout and a priority thread pool.
"""

__version__ = "0.1.0"