"""Utility functions for netloom."""
