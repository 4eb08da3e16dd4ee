"""HTTP delivery sink — delivers each record through a ``DeliveryClient``."""

from __future__ import annotations

from ctrelay.delivery.client import DeliveryClient
from ctrelay.models.delivery import DeliveryOutcome
from ctrelay.models.records import StreamRecord


class HttpDeliverySink:
    """Signs and POSTs each record to *target_url*, returning the outcome.

    The sink owns *client* and closes it on ``close()``.
    """

    def __init__(self, client: DeliveryClient, target_url: str, secret: str) -> None:
        self._client = client
        self.target_url = target_url
        self._secret = secret

    @property
    def sink_name(self) -> str:
        return "http_delivery"

    def accept(self, record: StreamRecord, index: int) -> DeliveryOutcome:
        return self._client.deliver(record, self.target_url, self._secret, index)

    def close(self) -> None:
        self._client.close()
