"""
correction-slot - find a correction slot on the 42 intra.
"""

__version__ = "0.1.0"
__logo__ = "🕘"
