"""Minimizer sketching, DUST masking, seed collection, anchor chaining and mapping options."""

__version__ = "0.1.0"