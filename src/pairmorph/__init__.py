"""PairMorph: dependency-grounded translation between paired languages."""

__version__ = "1.0.0"
