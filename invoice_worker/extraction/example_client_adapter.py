"""Offline extraction client.

Returns a fixed, schema-valid invoice payload without any network call. Handy
for local development and as the template for new provider adapters:
implement BaseExtractionClient and register the provider in
FieldExtractorFactory.
"""

import json
from typing import ClassVar

from invoice_worker.extraction.client_base import BaseExtractionClient


class ExampleClientAdapter(BaseExtractionClient):
    """Adapter that always answers with DEFAULT_RESPONSE."""

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "invoice_number": "INV-EXAMPLE-1",
        "invoice_date": "2024-07-10",
        "total_amount": "1250.00",
        "items": [
            {
                "description": "Software License",
                "quantity": "1",
                "unit_price": "1250.00",
                "total": "1250.00",
            }
        ],
    }

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema
        return json.dumps(self.DEFAULT_RESPONSE)
