"""
Product relationship graph editor.

Holds a typed, weighted graph over catalog products, lets an operator edit it
locally and persists it to the console's REST backend as one unit.
"""

__version__ = "0.3.0"
