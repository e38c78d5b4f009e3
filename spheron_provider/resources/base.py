"""Abstract base classes for provider resources."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from spheron_provider.clients.spheron_client import SpheronApi
from spheron_provider.exceptions import SpheronProviderError
from spheron_provider.logging_config import operation_logger
from spheron_provider.models.resource import ResourceModel
from spheron_provider.resources.schema import Schema

logger = logging.getLogger(__name__)

StateT = TypeVar('StateT', bound=ResourceModel)


class Severity(str, Enum):
    """Severity of a diagnostic."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A problem reported back to the host."""
    severity: Severity
    summary: str
    detail: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {'severity': self.severity.value, 'summary': self.summary, 'detail': self.detail}


@dataclass
class Diagnostics:
    """Ordered collection of diagnostics produced by one operation."""
    items: List[Diagnostic] = field(default_factory=list)

    def add_error(self, summary: str, detail: str = "") -> None:
        self.items.append(Diagnostic(Severity.ERROR, summary, detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        self.items.append(Diagnostic(Severity.WARNING, summary, detail))

    def append(self, other: 'Diagnostics') -> None:
        self.items.extend(other.items)

    def has_error(self) -> bool:
        return any(item.severity == Severity.ERROR for item in self.items)

    @property
    def errors(self) -> List[Diagnostic]:
        return [item for item in self.items if item.severity == Severity.ERROR]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class ResourceResult(Generic[StateT]):
    """Result of a resource operation."""
    state: Optional[StateT] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def succeeded(self) -> bool:
        return not self.diagnostics.has_error()


class Resource(ABC, Generic[StateT]):
    """Abstract base class for resources.

    Operations never raise provider errors: failures are reported as error
    diagnostics on the returned ``ResourceResult``.
    """

    type_suffix: str = ""
    model: Type[StateT]

    def __init__(self):
        self.client: Optional[SpheronApi] = None

    def metadata(self, provider_type_name: str) -> str:
        """Full resource type name, e.g. ``spheron_instance``."""
        return f"{provider_type_name}_{self.type_suffix}"

    @abstractmethod
    def schema(self) -> Schema:
        """Schema of the resource."""
        pass

    def configure(self, provider_data: Any) -> Diagnostics:
        """Receive the API client built by the provider."""
        diagnostics = Diagnostics()

        # Provider not configured yet
        if provider_data is None:
            return diagnostics

        if not isinstance(provider_data, SpheronApi):
            diagnostics.add_error(
                "Unexpected Resource Configure Type",
                f"Expected SpheronApi, got: {type(provider_data).__name__}. "
                "Please report this issue to the provider developers."
            )
            return diagnostics

        self.client = provider_data
        return diagnostics

    @abstractmethod
    def create(self, plan: StateT) -> ResourceResult[StateT]:
        """Create the resource described by ``plan``."""
        pass

    @abstractmethod
    def read(self, state: StateT) -> ResourceResult[StateT]:
        """Refresh ``state`` from the remote API."""
        pass

    @abstractmethod
    def update(self, plan: StateT) -> ResourceResult[StateT]:
        """Apply ``plan`` to an existing resource."""
        pass

    @abstractmethod
    def delete(self, state: StateT) -> ResourceResult[StateT]:
        """Destroy the resource recorded in ``state``."""
        pass

    def import_state(self, resource_id: str) -> ResourceResult[StateT]:
        """Seed state for an existing remote object from its ID."""
        result: ResourceResult[StateT] = ResourceResult()
        result.state = self.model(id=resource_id)
        self._log(result, 'import', resource_id)
        return result

    def _not_configured(self, result: ResourceResult) -> bool:
        """Add an error and return True when no API client is available."""
        if self.client is None:
            result.diagnostics.add_error(
                "Provider not configured",
                "The provider must be configured with an API token before resources can be managed."
            )
            return True
        return False

    def _missing_id(self, model: StateT, result: ResourceResult, action: str) -> bool:
        """Add an error and return True when ``model`` has no remote ID."""
        if model.id is None:
            message = f"Id not provided. Unable to {action} {self.type_suffix}."
            result.diagnostics.add_error(message, message)
            return True
        return False

    def _missing_required(self, plan: StateT, result: ResourceResult) -> bool:
        """Add an error and return True when the plan lacks required attributes."""
        missing = [name for name in self.schema().required_attributes() if getattr(plan, name, None) is None]
        if missing:
            result.diagnostics.add_error(
                "Missing required attributes",
                f"The following attributes must be set: {', '.join(missing)}"
            )
            return True
        return False

    @staticmethod
    def _add_error(result: ResourceResult, summary: str, error: Exception) -> None:
        detail = error.message if isinstance(error, SpheronProviderError) else str(error)
        logger.error(f"{summary}: {error}")
        result.diagnostics.add_error(summary, detail)

    def _log(self, result: ResourceResult, operation: str, resource_id: Optional[str] = None) -> None:
        operation_logger.log_operation(
            self.type_suffix,
            operation,
            resource_id,
            success=result.succeeded,
            details={'errors': [d.summary for d in result.diagnostics.errors]} if not result.succeeded else None
        )
