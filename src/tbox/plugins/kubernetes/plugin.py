"""Kubernetes plugin -- kubectl and Helm shortcuts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from tbox.models import ContextConfig
from tbox.plugins.base import Plugin, has_file

MANIFEST_FILES = (
    "deployment.yaml",
    "deployment.yml",
    "k8s/deployment.yaml",
    "kubernetes/deployment.yaml",
)


class KubernetesPlugin(Plugin):
    """Contexts for directories holding Kubernetes manifests or a Helm chart."""

    @property
    def name(self) -> str:
        return "kubernetes"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "kubectl manifests and Helm charts"

    def contexts(self) -> dict[str, ContextConfig]:
        return {
            "kubernetes": ContextConfig(
                commands={
                    "apply": "kubectl apply -f .",
                    "delete": "kubectl delete -f .",
                    "get": "kubectl get all",
                    "logs": "kubectl logs -f",
                    "describe": "kubectl describe",
                    "exec": "kubectl exec -it",
                    "port-forward": "kubectl port-forward",
                },
            ),
            "helm": ContextConfig(
                commands={
                    "install": "helm install",
                    "upgrade": "helm upgrade",
                    "rollback": "helm rollback",
                    "list": "helm list",
                    "delete": "helm delete",
                },
            ),
        }

    def detect(self, directory: Path) -> Optional[str]:
        # Manifests win over a chart when both are present.
        if has_file(directory, *MANIFEST_FILES):
            return "kubernetes"
        if has_file(directory, "Chart.yaml"):
            return "helm"
        return None
