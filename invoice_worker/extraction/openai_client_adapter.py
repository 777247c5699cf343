import httpx
import openai

from invoice_worker.extraction.client_base import BaseExtractionClient
from invoice_worker.extraction.exceptions import ExtractionError, ExtractionNetworkError

INVOICE_SCHEMA_NAME = "invoice_fields"


class OpenAIClientAdapter(BaseExtractionClient):
    """Invoice extraction over the OpenAI-compatible chat completions API.

    Requests strict structured output against the invoice fields schema. A
    refusal or a reply cut off by the token limit cannot hold a complete
    invoice object and is reported as ExtractionError.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": INVOICE_SCHEMA_NAME,
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ExtractionNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ExtractionNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ExtractionError("AI returned no choices")
        choice = response.choices[0]
        if choice.message.refusal:
            raise ExtractionError(
                f"AI refused to extract invoice fields: {choice.message.refusal}"
            )
        if choice.finish_reason == "length":
            raise ExtractionError("AI reply truncated before the invoice object was complete")
        content = choice.message.content
        if content is None:
            raise ExtractionError("AI returned empty response")
        return content
