"""Reconciliation of OpenStack networking resources for Kubernetes clusters."""

__version__ = "0.1.0"