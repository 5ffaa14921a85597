"""Clean Docker and local Kubernetes development resources."""

__version__ = "0.1.0"
