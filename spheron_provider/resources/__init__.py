"""Resources managed by the Spheron provider."""

from .base import Diagnostic, Diagnostics, Resource, ResourceResult, Severity
from .domain_resource import DomainResource
from .instance_resource import InstanceResource

__all__ = [
    'Diagnostic',
    'Diagnostics',
    'Resource',
    'ResourceResult',
    'Severity',
    'DomainResource',
    'InstanceResource'
]
