"""Abstract base class for providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class Provider(ABC):
    """
    Abstract interface to the system that materializes resources.

    Providers are external collaborators. The engine only ever:
    - creates a resource from resolved attributes
    - updates a resource in place by its provider-assigned id
    - deletes a resource by its provider-assigned id

    Any call may fail with ProviderError; the engine isolates the failure to
    that node and the nodes depending on it. Implementations must be safe to
    call from several worker threads at once.
    """

    @abstractmethod
    def create(self, kind: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a resource.

        Args:
            kind: Resource kind (e.g., 'aws_subnet')
            attributes: Fully resolved desired attributes

        Returns:
            Outputs, which must include the provider-assigned 'id'
        """
        pass

    @abstractmethod
    def update(self, kind: str, resource_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update a resource in place.

        Returns:
            Outputs after the update
        """
        pass

    @abstractmethod
    def delete(self, kind: str, resource_id: str) -> None:
        """Delete a resource."""
        pass
