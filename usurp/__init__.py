"""
Usurp - Rules engine for a hidden-role bluffing card game.

A deterministic, pure-function engine for 2-6 seats. The engine provides:
- State management (immutable snapshots)
- Legal move generation
- Challenge, block, and influence-loss resolution
- Pluggable decision providers for automated seats
"""

__version__ = "0.1.0"
