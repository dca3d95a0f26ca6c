"""CLI module for correction-slot."""
