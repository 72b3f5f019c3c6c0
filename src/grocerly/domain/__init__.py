"""Domain package for Grocerly."""
