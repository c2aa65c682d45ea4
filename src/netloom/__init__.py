"""netloom - Network policy analysis and simulation for Kubernetes."""

__version__ = "0.1.0"
