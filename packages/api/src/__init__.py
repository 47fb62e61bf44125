# This project was developed with assistance from AI tools.
"""URLA intake API -- application state and progress engine."""
