from typing import Any, Dict, Optional

from .retry import ResilientRequestClient
from ..insight.composer import OutputContract, PromptBundle


class GeminiClient:
    """
    Adapter for the Gemini ``generateContent`` endpoint.

    All HTTP traffic goes through a ResilientRequestClient, which owns the
    retry policy and the API key header.
    """

    def __init__(
        self,
        request_client: ResilientRequestClient,
        endpoint_url: str,
        max_attempts: Optional[int] = None,
    ):
        self.request_client = request_client
        self.endpoint_url = endpoint_url
        self.max_attempts = max_attempts

    @staticmethod
    def build_payload(bundle: PromptBundle) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {}
        if bundle.output_contract is OutputContract.STRICT_JSON:
            # Ask the service to enforce JSON instead of trusting the prompt alone
            generation_config["responseMimeType"] = "application/json"

        return {
            "contents": [{"parts": [{"text": bundle.user_message}]}],
            "systemInstruction": {"parts": [{"text": bundle.system_instruction}]},
            "generationConfig": generation_config,
        }

    async def generate(self, bundle: PromptBundle) -> Optional[str]:
        """
        Returns the first candidate's text, or None when the service replied
        without one, e.g.:
        {
            "candidates": [
                {"content": {"parts": [{"text": "..."}]}}
            ]
        }
        """
        resp = await self.request_client.call(
            self.endpoint_url,
            self.build_payload(bundle),
            max_attempts=self.max_attempts,
        )
        return self.extract_text(resp.json())

    @staticmethod
    def extract_text(data: Any) -> Optional[str]:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        if not isinstance(text, str) or not text:
            return None
        return text
