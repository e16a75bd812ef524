"""Kubernetes plugin.

Adds the ``kubernetes`` and ``helm`` contexts, detected from deployment
manifests and ``Chart.yaml`` respectively.

See Also:
    :class:`~tbox.plugins.kubernetes.plugin.KubernetesPlugin`
"""

from tbox.plugins.kubernetes.plugin import KubernetesPlugin

__all__ = ["KubernetesPlugin"]
