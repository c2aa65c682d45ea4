"""Command line interface for netloom."""
