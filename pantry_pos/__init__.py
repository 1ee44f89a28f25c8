"""
Pantry POS: point-of-sale and recipe-driven inventory for a small food business.
"""
__version__ = "0.1.0"
