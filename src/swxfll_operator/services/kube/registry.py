"""Registry of the resource types the store knows how to address."""

from __future__ import annotations

from dataclasses import dataclass

from ...constants import API_GROUP, API_VERSION, KIND_DEPLOYMENT, KIND_SWXFLL, PLURAL_SWXFLL


@dataclass(frozen=True)
class ResourceType:
    """Addressing information for one Kubernetes resource type."""

    group: str
    version: str
    plural: str
    kind: str

    @property
    def api_version(self) -> str:
        """The apiVersion string for objects of this type."""
        return f"{self.group}/{self.version}" if self.group else self.version


class ResourceRegistry:
    """Maps kind names to resource types.

    Instances are built at startup and handed to the store; there is no
    module-level registry.
    """

    def __init__(self, types: list[ResourceType] | None = None):
        self._types: dict[str, ResourceType] = {}
        for resource_type in types or []:
            self.register(resource_type)

    def register(self, resource_type: ResourceType) -> None:
        """Register a resource type under its kind."""
        if resource_type.kind in self._types:
            raise ValueError(f"Kind {resource_type.kind} is already registered")
        self._types[resource_type.kind] = resource_type

    def get(self, kind: str) -> ResourceType:
        """Look up a resource type by kind.

        Raises:
            KeyError: If the kind was never registered
        """
        try:
            return self._types[kind]
        except KeyError:
            raise KeyError(f"Kind {kind} is not registered") from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._types


def default_registry() -> ResourceRegistry:
    """Registry with the parent and child types this operator manages."""
    return ResourceRegistry([
        ResourceType(API_GROUP, API_VERSION, PLURAL_SWXFLL, KIND_SWXFLL),
        ResourceType("apps", "v1", "deployments", KIND_DEPLOYMENT),
    ])
