"""Core domain models, selector kernel and interfaces for netloom."""
