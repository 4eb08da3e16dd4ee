"""Signed HTTP delivery of stream records to a user-controlled endpoint."""

from ctrelay.delivery.client import DELIVERY_TIMEOUT_SECONDS, USER_AGENT, DeliveryClient

__all__ = ["DeliveryClient", "DELIVERY_TIMEOUT_SECONDS", "USER_AGENT"]
