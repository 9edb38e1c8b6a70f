"""kubescope: Kubernetes cluster topology dashboard backend."""

__version__ = "0.1.0"
