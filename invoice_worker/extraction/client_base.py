from abc import ABC, abstractmethod


class BaseExtractionClient(ABC):
    """Contract for chat-model providers used by AiFieldExtractor.

    A client sends one system and one user prompt and returns the model's
    reply text. The reply is expected to be a JSON object matching
    ``json_schema`` (``invoice_number``, ``invoice_date``, ``total_amount``
    and ``items``); AiFieldExtractor parses and validates it, so clients only
    translate transport problems into extraction exceptions.
    """

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        """Return the raw reply text.

        Raises:
            ExtractionNetworkError: if the provider cannot be reached or errors.
            ExtractionError: if the provider answers without usable invoice JSON.
        """
