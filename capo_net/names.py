"""Naming helpers for resources created for a cluster."""


def get_description(cluster_name: str) -> str:
    """Return the description stamped on resources created for a cluster."""
    return f"Created by cluster-api-provider-openstack cluster {cluster_name}"