"""Messaging provider module."""

from .whapi import IProviderClient, WhapiClient

__all__ = ["IProviderClient", "WhapiClient"]
