"""Kubernetes and file ingestion for netloom."""
