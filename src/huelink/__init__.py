"""
huelink - Bridge connection and proximity automation for networked lights
"""

__version__ = "0.1.0"
