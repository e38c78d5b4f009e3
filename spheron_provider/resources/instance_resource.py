"""Instance resource: a container image deployed on a Spheron cluster."""

import json
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from spheron_provider.clients.spheron_client import EVENT_DATA_PREFIX
from spheron_provider.config import config
from spheron_provider.exceptions import EventParseError, SpheronProviderError
from spheron_provider.models.api import (
    ClusterInstanceConfiguration, ClusterProtocol, CreateInstanceRequest,
    DeploymentEvent, Env, HealthCheckUpdateReq, InstanceConfiguration, Port,
    UpdateInstanceRequest
)
from spheron_provider.models.resource import EnvModel, HealthCheckModel, InstanceResourceModel, PortModel
from spheron_provider.resources.base import Resource, ResourceResult
from spheron_provider.resources.schema import Attribute, AttributeType, PlanModifier, Schema

logger = logging.getLogger(__name__)


def _env_attribute(description: str) -> Attribute:
    return Attribute(
        AttributeType.SET_NESTED,
        description=description,
        optional=True,
        nested_attributes={
            'key': Attribute(AttributeType.STRING, description="Environment variable key.", required=True),
            'value': Attribute(AttributeType.STRING, description="Environment variable value.", required=True),
        }
    )


class InstanceResource(Resource[InstanceResourceModel]):
    """Deploys a public Docker Hub image as a single compute instance."""

    type_suffix = "instance"
    model = InstanceResourceModel

    def schema(self) -> Schema:
        return Schema(
            description="Instance resource",
            attributes={
                'image': Attribute(
                    AttributeType.STRING,
                    description="The docker image to deploy. Currently only public dockerhub images are supported.",
                    required=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE]
                ),
                'tag': Attribute(
                    AttributeType.STRING,
                    description="The tag of docker image.",
                    required=True
                ),
                'cluster_name': Attribute(
                    AttributeType.STRING,
                    description="The name of the cluster.",
                    required=True
                ),
                'ports': Attribute(
                    AttributeType.LIST_NESTED,
                    description="The list of port mappings.",
                    optional=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE_IF_CONFIGURED],
                    nested_attributes={
                        'container_port': Attribute(
                            AttributeType.INT64,
                            description="Container port that will be exposed.",
                            required=True
                        ),
                        'exposed_port': Attribute(
                            AttributeType.INT64,
                            description="The port container port will be exposed to. Currently only possible to "
                                        "expose to port 80. Leave empty to map to random value. Exposed port will "
                                        "be known and available for use after the deployment.",
                            optional=True,
                            computed=True,
                            plan_modifiers=[PlanModifier.USE_STATE_FOR_UNKNOWN]
                        ),
                    }
                ),
                'env': _env_attribute("The list of environment variables."),
                'env_secret': _env_attribute("The list of secret environment variables."),
                'commands': Attribute(
                    AttributeType.LIST,
                    description="List of executables for docker CMD command.",
                    optional=True,
                    element_type=AttributeType.STRING
                ),
                'args': Attribute(
                    AttributeType.LIST,
                    description="List of params for docker CMD command.",
                    optional=True,
                    element_type=AttributeType.STRING
                ),
                'region': Attribute(
                    AttributeType.STRING,
                    description="Region to which to deploy instance.",
                    required=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE]
                ),
                'machine_image': Attribute(
                    AttributeType.STRING,
                    description="Machine image name which should be used for deploying instance.",
                    required=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE]
                ),
                'health_check': Attribute(
                    AttributeType.OBJECT,
                    description="Path and container port on which health check should be done.",
                    optional=True,
                    attribute_types={'path': AttributeType.STRING, 'port': AttributeType.INT64}
                ),
                'id': Attribute(
                    AttributeType.STRING,
                    description="Id of the instance.",
                    optional=True,
                    computed=True,
                    plan_modifiers=[PlanModifier.USE_STATE_FOR_UNKNOWN]
                ),
            }
        )

    def create(self, plan: InstanceResourceModel) -> ResourceResult[InstanceResourceModel]:
        """Deploy the instance and wait until the deployment reports its ports."""
        result: ResourceResult[InstanceResourceModel] = ResourceResult()
        if self._not_configured(result) or self._missing_required(plan, result):
            return result

        try:
            organization = self.client.get_organization()
        except SpheronProviderError as e:
            self._add_error(result, "Unable to get organization", e)
            self._log(result, 'create')
            return result

        health_check = plan.health_check or HealthCheckModel()
        topic_id = str(uuid.uuid4())

        configuration = InstanceConfiguration(
            folder_name="",
            protocol=ClusterProtocol(config.provider.protocol),
            image=plan.image,
            tag=plan.tag,
            instance_count=1,
            build_image=False,
            ports=map_port_to_port_model(plan.ports),
            env=map_envs_to_client_envs(plan.env, False) + map_envs_to_client_envs(plan.env_secret, True),
            command=plan.commands,
            args=plan.args,
            region=plan.region or config.provider.default_region,
            akash_machine_image_name=plan.machine_image
        )

        request = CreateInstanceRequest(
            organization_id=organization.id,
            unique_topic_id=topic_id,
            configuration=configuration,
            cluster_url=plan.image,
            cluster_provider=config.provider.cluster_provider,
            cluster_name=plan.cluster_name,
            health_check_url=health_check.path or "",
            health_check_port=str(health_check.port) if health_check.port is not None else ""
        )

        try:
            response = self.client.create_cluster_instance(request)
        except SpheronProviderError as e:
            self._add_error(result, "Unable to deploy instance", e)
            self._log(result, 'create')
            return result

        try:
            event = self.client.wait_for_deployed_event(topic_id)
            ports = parse_client_ports(event)
        except SpheronProviderError as e:
            logger.error(f"Deployment of instance {response.cluster_instance_id} failed: {e}")
            result.diagnostics.add_error(
                "Instance deployment failed.",
                f"Instance deployment on cluster {plan.cluster_name} failed."
            )
            # Keep the ID so the half-deployed instance can still be destroyed
            result.state = plan.model_copy(update={'id': response.cluster_instance_id})
            self._log(result, 'create', response.cluster_instance_id)
            return result

        result.state = plan.model_copy(update={
            'id': response.cluster_instance_id,
            'ports': map_model_port_to_port(ports),
        })
        self._log(result, 'create', response.cluster_instance_id)
        return result

    def read(self, state: InstanceResourceModel) -> ResourceResult[InstanceResourceModel]:
        """Refresh the state from the instance's active deployment order."""
        logger.debug("Preparing to read instance resource")
        result: ResourceResult[InstanceResourceModel] = ResourceResult()
        if self._not_configured(result):
            return result

        if state.id is None:
            message = "Id not provided. Unable to get instance details."
            result.diagnostics.add_error(message, message)
            return result

        summary = "Couldn't fetch instance by provided id."
        try:
            instance = self.client.get_cluster_instance(state.id)

            summary = "Instance doesn't have provisioned deployments."
            order = self.client.get_cluster_instance_order(instance.active_order)

            summary = "Instance cluster not found."
            cluster = self.client.get_cluster(instance.cluster)
        except SpheronProviderError as e:
            self._add_error(result, summary, e)
            self._log(result, 'read', state.id)
            return result

        configuration = order.cluster_instance_configuration
        health_check = state.health_check
        if instance.health_check.is_configured:
            health_check = HealthCheckModel(
                port=instance.health_check.port.container_port,
                path=instance.health_check.url
            )

        result.state = state.model_copy(update={
            'args': configuration.args or None,
            'cluster_name': cluster.name,
            'commands': configuration.command or None,
            'env': map_client_envs_to_envs(configuration.env, False),
            'env_secret': map_client_envs_to_envs(configuration.env, True),
            'health_check': health_check,
            'image': configuration.image,
            'machine_image': configuration.agreed_machine_image.machine_type,
            'ports': map_model_port_to_port(configuration.ports),
            'region': configuration.region,
            'tag': configuration.tag,
        })
        self._log(result, 'read', state.id)
        return result

    def update(self, plan: InstanceResourceModel) -> ResourceResult[InstanceResourceModel]:
        """Apply health check changes and redeploy when tag, env, command or args changed."""
        result: ResourceResult[InstanceResourceModel] = ResourceResult()
        if (self._not_configured(result) or self._missing_id(plan, result, "update")
                or self._missing_required(plan, result)):
            return result

        summary = "Unable to get organization"
        try:
            organization = self.client.get_organization()

            health_check = plan.health_check
            if health_check is not None and health_check.path is not None and health_check.port is not None:
                summary = "Unable to update instance health check endpoint."
                self.client.update_cluster_instance_health_check_info(
                    plan.id,
                    HealthCheckUpdateReq(health_check_url=health_check.path, health_check_port=health_check.port)
                )

            summary = "Couldn't fetch instance by provided id."
            instance = self.client.get_cluster_instance(plan.id)

            summary = "Instance doesn't have provisioned deployments."
            order = self.client.get_cluster_instance_order(instance.active_order)
        except SpheronProviderError as e:
            self._add_error(result, summary, e)
            self._log(result, 'update', plan.id)
            return result

        envs = map_envs_to_client_envs(plan.env, False) + map_envs_to_client_envs(plan.env_secret, True)

        if has_runtime_changes(order.cluster_instance_configuration, plan, envs):
            topic_id = str(uuid.uuid4())
            request = UpdateInstanceRequest(
                env=envs,
                command=plan.commands,
                args=plan.args,
                unique_topic_id=topic_id,
                tag=plan.tag,
                organization_id=organization.id
            )

            summary = "Unable to update instance."
            try:
                self.client.update_cluster_instance(plan.id, request)

                summary = "Instance deployment failed"
                self.client.wait_for_deployed_event(topic_id)
            except SpheronProviderError as e:
                self._add_error(result, summary, e)
                self._log(result, 'update', plan.id)
                return result
        else:
            logger.debug(f"Instance {plan.id} runtime settings unchanged, skipping redeploy")

        result.state = plan
        self._log(result, 'update', plan.id)
        return result

    def delete(self, state: InstanceResourceModel) -> ResourceResult[InstanceResourceModel]:
        """Close the instance."""
        logger.debug("Preparing to delete instance resource")
        result: ResourceResult[InstanceResourceModel] = ResourceResult()
        if self._not_configured(result) or self._missing_id(state, result, "delete"):
            return result

        try:
            self.client.close_cluster_instance(state.id)
        except SpheronProviderError as e:
            self._add_error(result, "Unable to destroy Instance", e)

        self._log(result, 'delete', state.id)
        return result


def has_runtime_changes(configuration: ClusterInstanceConfiguration,
                        plan: InstanceResourceModel, envs: List[Env]) -> bool:
    """Whether the plan changes settings that need a redeploy of the active order."""
    if (configuration.args or []) != (plan.args or []):
        return True
    if (configuration.command or []) != (plan.commands or []):
        return True
    if (plan.tag or "") != configuration.tag:
        return True

    # Env vars are sets, so ordering is not a change
    planned = sorted((env.value, env.is_secret) for env in envs)
    deployed = sorted((env.value, env.is_secret) for env in configuration.env)
    return planned != deployed


def map_port_to_port_model(ports: Optional[List[PortModel]]) -> List[Port]:
    """Planned ports to API ports; an unset exposed port mirrors the container port."""
    result = []
    for port in ports or []:
        exposed_port = port.exposed_port if port.exposed_port else port.container_port
        result.append(Port(container_port=port.container_port, exposed_port=exposed_port))
    return result


def map_model_port_to_port(ports: List[Port]) -> List[PortModel]:
    return [PortModel(container_port=port.container_port, exposed_port=port.exposed_port) for port in ports]


def map_envs_to_client_envs(envs: Optional[List[EnvModel]], is_secret: bool) -> List[Env]:
    """Encode env vars as ``KEY=VALUE`` entries."""
    return [Env(value=f"{env.key}={env.value}", is_secret=is_secret) for env in envs or []]


def map_client_envs_to_envs(client_envs: List[Env], is_secret: bool) -> Optional[List[EnvModel]]:
    """Decode the ``KEY=VALUE`` entries matching ``is_secret``; None when there are none."""
    envs = []
    for client_env in client_envs:
        if client_env.is_secret != is_secret:
            continue

        key, _, value = client_env.value.partition('=')
        envs.append(EnvModel(key=key, value=value))

    return envs or None


def parse_client_ports(event: str) -> List[Port]:
    """Extract the deployed port mappings from a deployment event line."""
    payload = event
    if payload.startswith(EVENT_DATA_PREFIX):
        payload = payload[len(EVENT_DATA_PREFIX):]

    try:
        deployment_event = DeploymentEvent.model_validate(json.loads(payload.strip()))
    except (ValueError, PydanticValidationError) as e:
        raise EventParseError("Unable to parse deployment event", cause=e) from e

    return deployment_event.data.ports
