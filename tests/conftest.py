"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import Mock

from spheron_provider.clients.spheron_client import SpheronApi
from spheron_provider.models.api import Cluster, Domain, Instance, InstanceOrder, Organization
from spheron_provider.resources.domain_resource import DomainResource
from spheron_provider.resources.instance_resource import InstanceResource


@pytest.fixture
def order_data():
    """Raw payload of an active deployment order."""
    return {
        '_id': 'order-1',
        'type': 'DEPLOY',
        'status': 'DEPLOYED',
        'urlPreview': 'abc123.provider.example.com',
        'protocolData': {'providerHost': 'provider.example.com'},
        'clusterInstanceConfiguration': {
            'image': 'nginx',
            'tag': 'latest',
            'ports': [
                {'containerPort': 3000, 'exposedPort': 80},
                {'containerPort': 8080, 'exposedPort': 31234},
            ],
            'env': [
                {'value': 'MODE=production', 'isSecret': False},
                {'value': 'API_KEY=s3cr3t', 'isSecret': True},
            ],
            'command': [],
            'args': [],
            'region': 'us-east',
            'agreedMachineImage': {'machineType': 'Ventus Nano 1'},
            'instanceCount': 1,
        }
    }


@pytest.fixture
def sample_order(order_data):
    return InstanceOrder.model_validate(order_data)


@pytest.fixture
def sample_instance():
    return Instance.model_validate({
        '_id': 'instance-1',
        'state': 'Active',
        'name': 'web',
        'orders': ['order-1'],
        'cluster': 'cluster-1',
        'activeOrder': 'order-1',
        'healthCheck': {'url': '', 'port': None},
    })


@pytest.fixture
def sample_cluster():
    return Cluster.model_validate({'_id': 'cluster-1', 'name': 'my-cluster', 'provider': 'DOCKERHUB'})


@pytest.fixture
def sample_organization():
    return Organization.model_validate({'_id': 'org-1', 'profileName': 'Acme', 'profileUsername': 'acme'})


@pytest.fixture
def sample_domain():
    return Domain.model_validate({
        '_id': 'domain-1',
        'name': 'app.example.com',
        'verified': True,
        'link': 'provider.example.com:31234',
        'type': 'subdomain',
    })


@pytest.fixture
def mock_client(sample_organization, sample_instance, sample_order, sample_cluster, sample_domain):
    """Mock Spheron API client returning the sample objects."""
    client = Mock(spec=SpheronApi)
    client.get_organization.return_value = sample_organization
    client.get_cluster_instance.return_value = sample_instance
    client.get_cluster_instance_order.return_value = sample_order
    client.get_cluster.return_value = sample_cluster
    client.get_cluster_instance_domains.return_value = [sample_domain]
    client.add_cluster_instance_domain.return_value = sample_domain
    client.update_cluster_instance_domain.return_value = sample_domain
    return client


@pytest.fixture
def domain_resource(mock_client):
    resource = DomainResource()
    resource.client = mock_client
    return resource


@pytest.fixture
def instance_resource(mock_client):
    resource = InstanceResource()
    resource.client = mock_client
    return resource
