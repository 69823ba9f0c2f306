"""Virtual Fridge backend: food inventory, recipes and expiry notifications."""

__version__ = "1.0.0"
