"""Spheron provider: builds the API client and hands it to the resources."""

import logging
from typing import Dict, List, Optional

from spheron_provider.clients.spheron_client import SpheronApi
from spheron_provider.config import config
from spheron_provider.exceptions import ConfigurationError
from spheron_provider.resources.base import Diagnostics, Resource
from spheron_provider.resources.domain_resource import DomainResource
from spheron_provider.resources.instance_resource import InstanceResource
from spheron_provider.resources.schema import Attribute, AttributeType, Schema

logger = logging.getLogger(__name__)


class SpheronProvider:
    """Entry point the host uses to configure and obtain resources."""

    def __init__(self, type_name: Optional[str] = None, version: str = "dev"):
        self.type_name = type_name or config.provider.type_name
        self.version = version
        self.client: Optional[SpheronApi] = None

    def schema(self) -> Schema:
        return Schema(
            description="Interact with the Spheron compute platform.",
            attributes={
                'token': Attribute(
                    AttributeType.STRING,
                    description="Spheron API token. May also be provided via the SPHERON_TOKEN "
                                "environment variable.",
                    optional=True,
                    sensitive=True
                ),
                'api_url': Attribute(
                    AttributeType.STRING,
                    description="Spheron API URL. May also be provided via the SPHERON_API_URL "
                                "environment variable.",
                    optional=True
                ),
            }
        )

    def configure(self, token: Optional[str] = None, api_url: Optional[str] = None) -> Diagnostics:
        """Build the API client from explicit settings, falling back to the environment."""
        diagnostics = Diagnostics()

        try:
            self.client = SpheronApi(
                token=token or config.api.token,
                base_url=api_url or config.api.base_url
            )
        except ConfigurationError as e:
            diagnostics.add_error(
                "Missing Spheron API token",
                f"{e.message}. Set the token in the provider configuration or use the "
                "SPHERON_TOKEN environment variable."
            )
            return diagnostics

        logger.info(f"Provider {self.type_name} configured for {self.client.base_url}")
        return diagnostics

    def resources(self) -> List[Resource]:
        """All resources of the provider, configured with the current client."""
        resources: List[Resource] = [InstanceResource(), DomainResource()]
        for resource in resources:
            resource.configure(self.client)
        return resources

    def resource_map(self) -> Dict[str, Resource]:
        return {resource.metadata(self.type_name): resource for resource in self.resources()}

    def get_resource(self, type_name: str) -> Resource:
        """Look up a resource by full type name, e.g. ``spheron_instance``."""
        resources = self.resource_map()
        if type_name not in resources:
            raise ConfigurationError(
                f"Unknown resource type '{type_name}'. Available: {', '.join(sorted(resources))}",
                config_key='resource_type'
            )
        return resources[type_name]
