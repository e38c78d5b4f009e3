"""Wire models for the Spheron cluster-management API."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, Optional, List
from enum import Enum


class ApiModel(BaseModel):
    """Base model accepting both camelCase API keys and snake_case field names."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    def to_api(self) -> Dict[str, Any]:
        """Serialize using the API's camelCase keys."""
        return self.model_dump(by_alias=True, mode='json')


class DomainTypeEnum(str, Enum):
    """Supported domain types."""
    DOMAIN = "domain"
    SUBDOMAIN = "subdomain"


class ClusterProtocol(str, Enum):
    """Compute protocols an instance can be deployed on."""
    AKASH = "akash"


class DeploymentStatus(str, Enum):
    """Deployment states reported on the event stream."""
    PENDING = "PENDING"
    DEPLOYED = "DEPLOYED"
    FAILED = "FAILED"
    DEPLOYMENT_FAILED = "DEPLOYMENT_FAILED"


class Port(ApiModel):
    """Container to externally exposed port mapping."""
    container_port: int = Field(0, alias="containerPort", description="Port the container listens on")
    exposed_port: int = Field(0, alias="exposedPort", description="Externally reachable port")


class Env(ApiModel):
    """Environment variable encoded as ``KEY=VALUE``."""
    value: str = Field(..., description="KEY=VALUE pair")
    is_secret: bool = Field(False, alias="isSecret", description="Whether the value is a secret")


class MachineImage(ApiModel):
    """Machine image agreed for a deployment."""
    machine_type: str = Field("", alias="machineType", description="Machine image name")
    agreed_price: Optional[str] = Field(None, alias="agreedPrice", description="Agreed hourly price")


class InstanceConfiguration(ApiModel):
    """Configuration submitted when creating an instance."""
    folder_name: str = Field("", alias="folderName")
    protocol: ClusterProtocol = Field(ClusterProtocol.AKASH)
    image: str
    tag: str
    instance_count: int = Field(1, alias="instanceCount")
    build_image: bool = Field(False, alias="buildImage")
    ports: List[Port] = Field(default_factory=list)
    env: List[Env] = Field(default_factory=list)
    command: Optional[List[str]] = None
    args: Optional[List[str]] = None
    region: str = "any"
    akash_machine_image_name: str = Field("", alias="akashMachineImageName")


class CreateInstanceRequest(ApiModel):
    """Request body for deploying a new instance."""
    organization_id: str = Field(..., alias="organizationId")
    unique_topic_id: str = Field(..., alias="uniqueTopicId")
    configuration: InstanceConfiguration
    cluster_url: str = Field(..., alias="clusterUrl")
    cluster_provider: str = Field("DOCKERHUB", alias="clusterProvider")
    cluster_name: str = Field(..., alias="clusterName")
    health_check_url: str = Field("", alias="healthCheckUrl")
    health_check_port: str = Field("", alias="healthCheckPort")


class CreateInstanceResponse(ApiModel):
    """Response returned after an instance deployment is accepted."""
    cluster_id: str = Field("", alias="clusterId")
    cluster_instance_id: str = Field(..., alias="clusterInstanceId")
    cluster_instance_order_id: str = Field("", alias="clusterInstanceOrderId")
    topic_id: str = Field("", alias="topicId")


class UpdateInstanceRequest(ApiModel):
    """Request body for redeploying an instance with new runtime settings."""
    env: List[Env] = Field(default_factory=list)
    command: Optional[List[str]] = None
    args: Optional[List[str]] = None
    unique_topic_id: str = Field(..., alias="uniqueTopicId")
    tag: str
    organization_id: str = Field(..., alias="organizationId")


class UpdateInstanceResponse(ApiModel):
    """Response returned after an instance update is accepted."""
    cluster_id: str = Field("", alias="clusterId")
    cluster_instance_id: str = Field("", alias="clusterInstanceId")
    cluster_instance_order_id: str = Field("", alias="clusterInstanceOrderId")
    topic_id: str = Field("", alias="topicId")


class HealthCheckUpdateReq(ApiModel):
    """Request body for changing an instance's health check endpoint."""
    health_check_url: str = Field(..., alias="healthCheckUrl")
    health_check_port: int = Field(..., alias="healthCheckPort")


class HealthCheck(ApiModel):
    """Health check attached to an instance."""
    url: str = ""
    port: Optional[Port] = None

    @property
    def is_configured(self) -> bool:
        return self.port is not None and self.port != Port()


class Instance(ApiModel):
    """Cluster instance."""
    id: str = Field(..., alias="_id")
    state: str = ""
    name: str = ""
    orders: List[str] = Field(default_factory=list)
    cluster: str = ""
    active_order: str = Field("", alias="activeOrder")
    latest_url_preview: str = Field("", alias="latestUrlPreview")
    health_check: HealthCheck = Field(default_factory=HealthCheck, alias="healthCheck")


class ProtocolData(ApiModel):
    """Provider-side data for an order."""
    provider_host: str = Field("", alias="providerHost")


class ClusterInstanceConfiguration(ApiModel):
    """Configuration recorded on an instance order."""
    image: str = ""
    tag: str = ""
    ports: List[Port] = Field(default_factory=list)
    env: List[Env] = Field(default_factory=list)
    command: List[str] = Field(default_factory=list)
    args: List[str] = Field(default_factory=list)
    region: str = ""
    agreed_machine_image: MachineImage = Field(default_factory=MachineImage, alias="agreedMachineImage")
    instance_count: int = Field(1, alias="instanceCount")


class InstanceOrder(ApiModel):
    """Deployment order of an instance."""
    id: str = Field(..., alias="_id")
    type: str = ""
    status: str = ""
    url_preview: str = Field("", alias="urlPreview")
    protocol_data: Optional[ProtocolData] = Field(None, alias="protocolData")
    cluster_instance_configuration: ClusterInstanceConfiguration = Field(
        default_factory=ClusterInstanceConfiguration, alias="clusterInstanceConfiguration"
    )


class Cluster(ApiModel):
    """Cluster grouping one or more instances."""
    id: str = Field(..., alias="_id")
    name: str = ""
    url: str = ""
    provider: str = ""
    created_by: str = Field("", alias="createdBy")
    state: str = ""


class Organization(ApiModel):
    """Organization owning the API token."""
    id: str = Field(..., alias="_id")
    name: str = Field("", alias="profileName")
    username: str = Field("", alias="profileUsername")


class Domain(ApiModel):
    """Domain attached to an instance."""
    id: str = Field(..., alias="_id")
    name: str
    verified: bool = False
    link: str = ""
    type: DomainTypeEnum


class DomainRequest(ApiModel):
    """Request body for attaching or changing a domain."""
    name: str
    type: DomainTypeEnum
    link: str


class DeploymentEventData(ApiModel):
    """Payload of a deployment event."""
    deployment_status: str = Field("", alias="deploymentStatus")
    latest_url_preview: str = Field("", alias="latestUrlPreview")
    provider_host: str = Field("", alias="providerHost")
    ports: List[Port] = Field(default_factory=list)


class DeploymentEvent(ApiModel):
    """Message published on a deployment topic."""
    type: int = 0
    data: DeploymentEventData = Field(default_factory=DeploymentEventData)
    session: str = ""
