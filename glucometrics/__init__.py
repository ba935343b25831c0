"""glucometrics: retrospective glucose and treatment analytics.

Derives insulin on board, carbs on board, short-horizon trend and
longitudinal CGM statistics from already-fetched readings and treatments.
"""

__version__ = "0.1.0"
