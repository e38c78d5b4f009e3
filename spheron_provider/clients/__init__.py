"""Clients for remote APIs."""

from .spheron_client import SpheronApi

__all__ = ['SpheronApi']
