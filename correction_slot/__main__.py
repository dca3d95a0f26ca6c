"""
Entry point for running correction-slot as a module: python -m correction_slot
"""

from correction_slot.cli.commands import app

if __name__ == "__main__":
    app()
