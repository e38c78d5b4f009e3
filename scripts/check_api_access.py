#!/usr/bin/env python3
"""
Check that a Spheron API token works and optionally inspect an instance.
"""

import sys
import argparse
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spheron_provider.clients.spheron_client import SpheronApi
from spheron_provider.config import config
from spheron_provider.exceptions import SpheronProviderError
from spheron_provider.resources.domain_resource import get_instance_deployment_url


def check_organization(client):
    """Check the token resolves to an organization."""
    print("🔑 Checking API token...")

    try:
        organization = client.get_organization()
    except SpheronProviderError as e:
        print(f"   ❌ {e}")
        return False

    print(f"   ✅ Token scoped to organization {organization.name or organization.id}")
    return True


def check_instance(client, instance_id):
    """Show the active deployment of an instance."""
    print(f"📦 Checking instance {instance_id}...")

    try:
        instance = client.get_cluster_instance(instance_id)
        order = client.get_cluster_instance_order(instance.active_order)
        domains = client.get_cluster_instance_domains(instance_id)
    except SpheronProviderError as e:
        print(f"   ❌ {e}")
        return False

    configuration = order.cluster_instance_configuration
    print(f"   ✅ State: {instance.state}")
    print(f"   Image: {configuration.image}:{configuration.tag}")
    print(f"   Region: {configuration.region}")

    for port in configuration.ports:
        url = get_instance_deployment_url(order, port.container_port) or "not exposed"
        print(f"   Port {port.container_port} -> {url}")

    for domain in domains:
        status = "verified" if domain.verified else "pending verification"
        print(f"   Domain {domain.name} ({domain.type.value}, {status}) -> {domain.link}")

    return True


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--token', default=config.api.token, help='Spheron API token (default: $SPHERON_TOKEN)')
    parser.add_argument('--api-url', default=config.api.base_url, help='Spheron API URL')
    parser.add_argument('--instance-id', help='Instance to inspect')
    args = parser.parse_args()

    if not args.token:
        print("❌ No token given. Pass --token or set SPHERON_TOKEN.")
        return 1

    client = SpheronApi(token=args.token, base_url=args.api_url)

    results = [check_organization(client)]
    if args.instance_id:
        results.append(check_instance(client, args.instance_id))

    print("\n" + ("✅ All checks passed" if all(results) else "❌ Some checks failed"))
    return 0 if all(results) else 1


if __name__ == '__main__':
    sys.exit(main())
