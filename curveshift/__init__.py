"""
curveshift: pseudo-arbitrage curve transformation for constant-product AMMs
"""

__version__ = "0.1.0"
