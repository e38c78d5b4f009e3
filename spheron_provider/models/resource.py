"""Plan and state models for the provider's resources.

Every attribute is optional: the host hands over partially known values
(an imported resource only carries its ``id``), and required attributes are
enforced by the resource schema rather than by these models.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class ResourceModel(BaseModel):
    """Base class for resource plan/state data."""
    model_config = ConfigDict(extra='ignore', validate_assignment=True)

    def to_state(self) -> dict:
        """Render the model the way state is stored, nulls included."""
        return self.model_dump(mode='json')


class PortModel(BaseModel):
    """Port mapping of an instance."""
    container_port: int = Field(..., description="Container port that will be exposed")
    exposed_port: Optional[int] = Field(None, description="Port the container port is exposed on")


class EnvModel(BaseModel):
    """Environment variable of an instance."""
    key: str = Field(..., description="Environment variable key")
    value: str = Field(..., description="Environment variable value")


class HealthCheckModel(BaseModel):
    """Health check endpoint of an instance."""
    path: Optional[str] = Field(None, description="HTTP path probed by the health check")
    port: Optional[int] = Field(None, description="Container port probed by the health check")


class InstanceResourceModel(ResourceModel):
    """State of a ``spheron_instance`` resource."""
    image: Optional[str] = None
    tag: Optional[str] = None
    cluster_name: Optional[str] = None
    ports: Optional[List[PortModel]] = None
    env: Optional[List[EnvModel]] = None
    env_secret: Optional[List[EnvModel]] = None
    commands: Optional[List[str]] = None
    args: Optional[List[str]] = None
    region: Optional[str] = None
    machine_image: Optional[str] = None
    id: Optional[str] = None
    health_check: Optional[HealthCheckModel] = None


class DomainResourceModel(ResourceModel):
    """State of a ``spheron_domain`` resource."""
    id: Optional[str] = None
    name: Optional[str] = None
    verified: Optional[bool] = None
    instance_port: Optional[int] = None
    type: Optional[str] = None
    instance_id: Optional[str] = None
