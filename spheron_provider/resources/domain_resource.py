"""Domain resource: custom domains routed to an instance port."""

import logging
from typing import List, Optional

from spheron_provider.exceptions import ErrorCode, PortMappingError, ResourceNotFoundError, SpheronProviderError
from spheron_provider.models.api import Domain, DomainRequest, DomainTypeEnum, InstanceOrder
from spheron_provider.models.resource import DomainResourceModel
from spheron_provider.resources.base import Resource, ResourceResult
from spheron_provider.resources.schema import Attribute, AttributeType, PlanModifier, Schema

logger = logging.getLogger(__name__)

IMPORT_ID_SEPARATOR = "/"


class DomainResource(Resource[DomainResourceModel]):
    """Attaches a domain or subdomain to a port of a deployed instance."""

    type_suffix = "domain"
    model = DomainResourceModel

    def schema(self) -> Schema:
        return Schema(
            description="Instance domain resource",
            attributes={
                'id': Attribute(
                    AttributeType.STRING,
                    description="Id of the domain.",
                    computed=True
                ),
                'name': Attribute(
                    AttributeType.STRING,
                    description="The domain name.",
                    required=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE]
                ),
                'verified': Attribute(
                    AttributeType.BOOL,
                    description="Is verified. True means that the domain is verified and that it will start "
                                "serving the content.",
                    computed=True
                ),
                'instance_port': Attribute(
                    AttributeType.INT64,
                    description="Container port of the instance to which to attach the domain.",
                    required=True
                ),
                'type': Attribute(
                    AttributeType.STRING,
                    description="Type of the domain. Available options are domain and subdomain.",
                    required=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE]
                ),
                'instance_id': Attribute(
                    AttributeType.STRING,
                    description="The id of an instance to which to attach the domain.",
                    required=True,
                    plan_modifiers=[PlanModifier.REQUIRES_REPLACE]
                ),
            }
        )

    def create(self, plan: DomainResourceModel) -> ResourceResult[DomainResourceModel]:
        """Attach a new domain to the instance's deployment URL."""
        result: ResourceResult[DomainResourceModel] = ResourceResult()
        if self._not_configured(result) or self._missing_required(plan, result):
            return result

        request = self._build_request(plan, result, "Unable to create domain for instance")
        if request is None:
            self._log(result, 'create')
            return result

        try:
            domain = self.client.add_cluster_instance_domain(plan.instance_id, request)
        except SpheronProviderError as e:
            self._add_error(result, "Unable to create domain", e)
            self._log(result, 'create')
            return result

        result.state = plan.model_copy(update={'id': domain.id, 'verified': domain.verified})
        self._log(result, 'create', domain.id)
        return result

    def read(self, state: DomainResourceModel) -> ResourceResult[DomainResourceModel]:
        """Refresh name, type, verification and the container port the domain points at."""
        logger.debug("Preparing to read domain resource")
        result: ResourceResult[DomainResourceModel] = ResourceResult()
        if self._not_configured(result):
            return result

        if state.id is None or state.instance_id is None:
            message = "Id or instanceId not provided. Unable to get domain details."
            result.diagnostics.add_error(message, message)
            return result

        summary = "Couldn't fetch instance domains for provided instance id."
        try:
            domains = self.client.get_cluster_instance_domains(state.instance_id)

            summary = "Couldn't fetch instance for specified domain."
            instance = self.client.get_cluster_instance(state.instance_id)

            summary = "Instance domain is attached to doesn't have provisioned deployments."
            order = self.client.get_cluster_instance_order(instance.active_order)

            summary = "Domain not found for instance."
            domain = find_domain_by_id(domains, state.id)

            summary = "Instance doesn't have provisioned deployments."
            container_port = get_port_from_deployment_url(order, domain.link)
        except SpheronProviderError as e:
            self._add_error(result, summary, e)
            self._log(result, 'read', state.id)
            return result

        result.state = state.model_copy(update={
            'instance_port': container_port,
            'name': domain.name,
            'verified': domain.verified,
            'type': domain.type.value,
        })
        self._log(result, 'read', state.id)
        return result

    def update(self, plan: DomainResourceModel) -> ResourceResult[DomainResourceModel]:
        """Point an existing domain at the URL of the planned container port."""
        result: ResourceResult[DomainResourceModel] = ResourceResult()
        if (self._not_configured(result) or self._missing_id(plan, result, "update")
                or self._missing_required(plan, result)):
            return result

        request = self._build_request(plan, result, "Unable to update domain for instance")
        if request is None:
            self._log(result, 'update', plan.id)
            return result

        try:
            domain = self.client.update_cluster_instance_domain(plan.instance_id, plan.id, request)
        except SpheronProviderError as e:
            self._add_error(result, "Unable to update domain", e)
            self._log(result, 'update', plan.id)
            return result

        result.state = plan.model_copy(update={'verified': domain.verified})
        self._log(result, 'update', plan.id)
        return result

    def delete(self, state: DomainResourceModel) -> ResourceResult[DomainResourceModel]:
        """Detach the domain from its instance."""
        logger.debug("Preparing to delete domain resource")
        result: ResourceResult[DomainResourceModel] = ResourceResult()
        if self._not_configured(result) or self._missing_id(state, result, "delete"):
            return result

        try:
            self.client.delete_cluster_instance_domain(state.instance_id, state.id)
        except SpheronProviderError as e:
            self._add_error(result, "Unable to destroy domain", e)

        self._log(result, 'delete', state.id)
        return result

    def import_state(self, resource_id: str) -> ResourceResult[DomainResourceModel]:
        """Import by domain ID, or by ``<instance_id>/<domain_id>`` to allow an immediate read."""
        if IMPORT_ID_SEPARATOR not in resource_id:
            return super().import_state(resource_id)

        result: ResourceResult[DomainResourceModel] = ResourceResult()
        instance_id, _, domain_id = resource_id.partition(IMPORT_ID_SEPARATOR)

        if not instance_id or not domain_id:
            result.diagnostics.add_error(
                "Invalid import ID",
                f"Expected <instance_id>{IMPORT_ID_SEPARATOR}<domain_id>, got: {resource_id}"
            )
            return result

        result.state = DomainResourceModel(id=domain_id, instance_id=instance_id)
        self._log(result, 'import', domain_id)
        return result

    def _build_request(self, plan: DomainResourceModel, result: ResourceResult,
                       summary: str) -> Optional[DomainRequest]:
        """Resolve the deployment URL for the planned port into a domain request."""
        if not is_valid_domain_type(plan.type):
            result.diagnostics.add_error(
                "DomainType not supported.",
                "DomainType not supported. Supported domain types are: domain and subdomain."
            )
            return None

        try:
            instance = self.client.get_cluster_instance(plan.instance_id)
            order = self.client.get_cluster_instance_order(instance.active_order)
        except SpheronProviderError as e:
            self._add_error(result, summary, e)
            return None

        url = get_instance_deployment_url(order, plan.instance_port)
        if not url:
            result.diagnostics.add_error(
                summary,
                f"Instance {plan.instance_id} does not expose container port {plan.instance_port}."
            )
            return None

        return DomainRequest(name=plan.name, type=DomainTypeEnum(plan.type), link=url)


def is_valid_domain_type(value: Optional[str]) -> bool:
    """Check whether ``value`` is a supported domain type."""
    return value in {domain_type.value for domain_type in DomainTypeEnum}


def get_instance_deployment_url(order: InstanceOrder, desired_port: int) -> Optional[str]:
    """Public URL serving ``desired_port`` of the order's container, if exposed.

    Port 80 is served from the order's URL preview when one exists; any other
    exposed port is reached as ``<provider_host>:<exposed_port>``.
    """
    if order.protocol_data is None or not order.protocol_data.provider_host:
        return None

    for port in order.cluster_instance_configuration.ports:
        if port.container_port == desired_port:
            if port.exposed_port == 80 and order.url_preview:
                return order.url_preview

            return f"{order.protocol_data.provider_host}:{port.exposed_port}"

    return None


def get_port_from_deployment_url(order: InstanceOrder, url: str) -> int:
    """Container port served at ``url``; inverse of ``get_instance_deployment_url``."""
    if order.protocol_data is not None and order.protocol_data.provider_host:
        for port in order.cluster_instance_configuration.ports:
            if url == order.url_preview and port.exposed_port == 80:
                return port.container_port

            if url == f"{order.protocol_data.provider_host}:{port.exposed_port}":
                return port.container_port

    raise PortMappingError(url)


def find_domain_by_id(domains: List[Domain], domain_id: str) -> Domain:
    """Find a domain in ``domains`` by its ID."""
    for domain in domains:
        if domain.id == domain_id:
            return domain

    raise ResourceNotFoundError('domain', domain_id, error_code=ErrorCode.DOMAIN_NOT_FOUND)
