"""Data models for the Spheron API and the provider's resources."""

from .resource import (
    DomainResourceModel,
    EnvModel,
    HealthCheckModel,
    InstanceResourceModel,
    PortModel,
)

__all__ = [
    'DomainResourceModel',
    'EnvModel',
    'HealthCheckModel',
    'InstanceResourceModel',
    'PortModel',
]
