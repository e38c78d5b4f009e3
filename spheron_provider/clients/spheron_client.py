"""REST client for the Spheron cluster-management API."""

import json
import logging
import time
from typing import Dict, Any, Optional, List, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError as PydanticValidationError
from urllib3.exceptions import ReadTimeoutError

from spheron_provider.config import config
from spheron_provider.exceptions import (
    ApiError, AuthenticationError, ConfigurationError, DeploymentError,
    DeploymentTimeoutError, ErrorCode, ResourceNotFoundError
)
from spheron_provider.models.api import (
    Cluster, CreateInstanceRequest, CreateInstanceResponse, DeploymentStatus,
    Domain, DomainRequest, HealthCheckUpdateReq, Instance, InstanceOrder,
    Organization, UpdateInstanceRequest, UpdateInstanceResponse
)

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)

EVENT_DATA_PREFIX = "data:"
FAILED_DEPLOYMENT_STATUSES = {DeploymentStatus.FAILED.value, DeploymentStatus.DEPLOYMENT_FAILED.value}


class SpheronApi:
    """Thin synchronous client for the Spheron API.

    Every call is a single HTTP request; failures surface as
    ``SpheronProviderError`` subclasses and are never retried.
    """

    def __init__(self,
                 token: str,
                 base_url: Optional[str] = None,
                 timeout: Optional[int] = None,
                 deployment_timeout: Optional[int] = None,
                 session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            token: Spheron API token
            base_url: API root URL (defaults to the configured URL)
            timeout: Per-request timeout in seconds
            deployment_timeout: Maximum seconds to wait for a deployment event
            session: Pre-built requests session (used by tests)
        """
        if not token:
            raise ConfigurationError("A Spheron API token is required", config_key="token")

        self.base_url = (base_url or config.api.base_url).rstrip('/')
        self.timeout = timeout or config.api.request_timeout
        self.deployment_timeout = deployment_timeout or config.api.deployment_timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    # Organization

    def get_organization(self) -> Organization:
        """Get the organization the API token is scoped to."""
        data = self._request('GET', '/v1/api-keys/scope')
        organizations = (data or {}).get('organizations') or []

        if not organizations:
            raise AuthenticationError(
                "API token is not scoped to any organization",
                error_code=ErrorCode.ORGANIZATION_NOT_FOUND
            )

        return self._parse(Organization, organizations[0], '/v1/api-keys/scope')

    # Instances

    def get_cluster_instance(self, instance_id: str) -> Instance:
        """Get a cluster instance by ID."""
        path = f'/v1/cluster-instance/{instance_id}'
        data = self._request('GET', path, resource=('instance', instance_id))
        return self._parse(Instance, self._unwrap(data, 'instance', path), path)

    def get_cluster_instance_order(self, order_id: str) -> InstanceOrder:
        """Get a deployment order of an instance."""
        path = f'/v1/cluster-instance/order/{order_id}'
        data = self._request('GET', path, resource=('order', order_id))
        return self._parse(InstanceOrder, self._unwrap(data, 'order', path), path)

    def get_cluster(self, cluster_id: str) -> Cluster:
        """Get a cluster by ID."""
        path = f'/v1/cluster/{cluster_id}'
        data = self._request('GET', path, resource=('cluster', cluster_id))
        return self._parse(Cluster, self._unwrap(data, 'cluster', path), path)

    def create_cluster_instance(self, request: CreateInstanceRequest) -> CreateInstanceResponse:
        """Start deploying a new instance."""
        path = '/v1/cluster-instance/create'
        data = self._request('POST', path, payload=request.to_api())
        response = self._parse(CreateInstanceResponse, data, path)

        logger.info(f"Instance {response.cluster_instance_id} accepted for deployment")
        return response

    def update_cluster_instance(self, instance_id: str, request: UpdateInstanceRequest) -> UpdateInstanceResponse:
        """Redeploy an instance with new tag, env, command or args."""
        path = f'/v1/cluster-instance/{instance_id}/update'
        data = self._request('PATCH', path, payload=request.to_api(), resource=('instance', instance_id))
        return self._parse(UpdateInstanceResponse, data, path)

    def update_cluster_instance_health_check_info(self, instance_id: str,
                                                  request: HealthCheckUpdateReq) -> Dict[str, Any]:
        """Change the health check endpoint of an instance."""
        path = f'/v1/cluster-instance/{instance_id}/update/health-check'
        return self._request('PATCH', path, payload=request.to_api(), resource=('instance', instance_id)) or {}

    def close_cluster_instance(self, instance_id: str) -> Dict[str, Any]:
        """Close an instance and release its lease."""
        path = f'/v1/cluster-instance/{instance_id}/close'
        data = self._request('POST', path, resource=('instance', instance_id)) or {}

        logger.info(f"Instance {instance_id} closed")
        return data

    # Domains

    def get_cluster_instance_domains(self, instance_id: str) -> List[Domain]:
        """List the domains attached to an instance."""
        path = f'/v1/cluster-instance/{instance_id}/domains'
        data = self._request('GET', path, resource=('instance', instance_id))
        return [self._parse(Domain, item, path) for item in self._unwrap(data, 'domains', path)]

    def add_cluster_instance_domain(self, instance_id: str, request: DomainRequest) -> Domain:
        """Attach a domain to an instance."""
        path = f'/v1/cluster-instance/{instance_id}/domains'
        data = self._request('POST', path, payload=request.to_api(), resource=('instance', instance_id))
        return self._parse(Domain, self._unwrap(data, 'domain', path), path)

    def update_cluster_instance_domain(self, instance_id: str, domain_id: str, request: DomainRequest) -> Domain:
        """Change the link of a domain attached to an instance."""
        path = f'/v1/cluster-instance/{instance_id}/domains/{domain_id}'
        data = self._request('PATCH', path, payload=request.to_api(), resource=('domain', domain_id))
        return self._parse(Domain, self._unwrap(data, 'domain', path), path)

    def delete_cluster_instance_domain(self, instance_id: str, domain_id: str) -> None:
        """Detach a domain from an instance."""
        path = f'/v1/cluster-instance/{instance_id}/domains/{domain_id}'
        self._request('DELETE', path, resource=('domain', domain_id))

    # Deployment events

    def wait_for_deployed_event(self, topic_id: str, timeout: Optional[int] = None) -> str:
        """Block until the deployment published on ``topic_id`` completes.

        Returns the raw ``data: {...}`` line of the event that reported the
        instance as deployed.
        """
        if timeout is None:
            timeout = self.deployment_timeout
        path = '/v1/subscribe'
        deadline = time.monotonic() + timeout

        logger.info(f"Waiting up to {timeout}s for deployment event on topic {topic_id}")

        try:
            with self.session.get(
                f'{self.base_url}{path}',
                params={'topicId': topic_id},
                headers={'Accept': 'text/event-stream'},
                stream=True,
                timeout=(self.timeout, timeout)
            ) as response:
                self._raise_for_status(response, path, resource=('topic', topic_id))

                for line in response.iter_lines():
                    if time.monotonic() > deadline:
                        raise DeploymentTimeoutError(topic_id, timeout)

                    if isinstance(line, bytes):
                        line = line.decode('utf-8')
                    if not line or not line.startswith(EVENT_DATA_PREFIX):
                        continue

                    status = self._event_status(line)
                    if status == DeploymentStatus.DEPLOYED.value:
                        logger.info(f"Deployment on topic {topic_id} finished")
                        return line
                    if status in FAILED_DEPLOYMENT_STATUSES:
                        raise DeploymentError(
                            f"Deployment reported status {status}",
                            topic_id=topic_id,
                            status=status
                        )

        except requests.exceptions.Timeout as e:
            raise DeploymentTimeoutError(topic_id, timeout) from e
        except requests.exceptions.ConnectionError as e:
            # A stalled stream surfaces as a read timeout wrapped in ConnectionError
            if _is_read_timeout(e) or time.monotonic() > deadline:
                raise DeploymentTimeoutError(topic_id, timeout) from e
            raise ApiError(f"Deployment event stream failed: {e}", endpoint=path, cause=e) from e
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Deployment event stream failed: {e}", endpoint=path, cause=e) from e

        raise DeploymentError(
            "Deployment event stream closed before the instance was deployed",
            topic_id=topic_id
        )

    # Internals

    def _request(self, method: str, path: str,
                 payload: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, Any]] = None,
                 resource: Optional[tuple] = None) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        url = f'{self.base_url}{path}'
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise ApiError(
                f"Request to {path} timed out after {self.timeout} seconds",
                endpoint=path,
                error_code=ErrorCode.API_TIMEOUT,
                cause=e
            ) from e
        except requests.exceptions.RequestException as e:
            raise ApiError(f"Request to {path} failed: {e}", endpoint=path, cause=e) from e

        self._raise_for_status(response, path, resource)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Response from {path} is not valid JSON",
                status_code=response.status_code,
                endpoint=path,
                error_code=ErrorCode.INVALID_RESPONSE,
                cause=e
            ) from e

    def _raise_for_status(self, response: requests.Response, path: str,
                          resource: Optional[tuple] = None) -> None:
        """Map HTTP error statuses onto provider exceptions."""
        status = response.status_code
        if status < 400:
            return

        message = self._error_message(response)

        if status in (401, 403):
            raise AuthenticationError(f"Spheron API rejected the request to {path}: {message}")

        if status == 404 and resource:
            resource_type, resource_id = resource
            raise ResourceNotFoundError(resource_type, resource_id)

        raise ApiError(
            f"Spheron API request to {path} failed: {message}",
            status_code=status,
            endpoint=path
        )

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Extract the most specific error message from an error response."""
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or 'unknown error'

        if isinstance(body, dict):
            return str(body.get('message') or body.get('error') or body)
        return str(body)

    @staticmethod
    def _unwrap(data: Any, key: str, path: str) -> Any:
        """Return ``data[key]`` or fail with an invalid-response error."""
        if not isinstance(data, dict) or key not in data:
            raise ApiError(
                f"Response from {path} is missing '{key}'",
                endpoint=path,
                error_code=ErrorCode.INVALID_RESPONSE
            )
        return data[key]

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, path: str) -> ModelT:
        """Validate a response payload against a wire model."""
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ApiError(
                f"Unexpected {model.__name__} payload from {path}",
                endpoint=path,
                error_code=ErrorCode.INVALID_RESPONSE,
                cause=e
            ) from e

    @staticmethod
    def _event_status(line: str) -> Optional[str]:
        """Return the deployment status carried by an event line, if any."""
        payload = line[len(EVENT_DATA_PREFIX):].strip()

        try:
            event = json.loads(payload)
        except ValueError:
            logger.debug(f"Skipping non-JSON event: {payload[:100]}")
            return None

        data = event.get('data') if isinstance(event, dict) else None
        if isinstance(data, dict):
            return data.get('deploymentStatus')
        return None


def _is_read_timeout(error: requests.exceptions.ConnectionError) -> bool:
    return any(isinstance(arg, ReadTimeoutError) for arg in error.args)
