"""
Control-plane gateways exposed through GraphQL.
"""

from __future__ import annotations

from .query import QueryGateway
from .sessions import SessionGateway

__all__ = ["QueryGateway", "SessionGateway"]
