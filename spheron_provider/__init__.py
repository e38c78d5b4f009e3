"""
Spheron Provider - resource handlers for Spheron compute instances

Create, read, update and delete callbacks for the ``spheron_instance`` and
``spheron_domain`` resources, backed by the Spheron cluster-management API.
"""

__version__ = "0.1.0"
__author__ = "Spheron"
