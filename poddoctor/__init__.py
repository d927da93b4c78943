"""Diagnose why a Kubernetes pod is unhealthy."""

__version__ = "0.1.0"
