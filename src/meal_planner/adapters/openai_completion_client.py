"""OpenAI Responses API client for text and structured completions."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from meal_planner.services.assistant import TextCompletionClient


@dataclass
class OpenAICompletionClient(TextCompletionClient):
    """Completion client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    store: bool = False

    @classmethod
    def create(
        cls, api_key: str, model: str, store: bool = False
    ) -> "OpenAICompletionClient":
        """Create an OpenAI completion client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model, store=store)

    async def complete(self, prompt: str, system: str | None = None) -> str:
        """Return the model's plain-text answer."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": prompt,
            "store": self.store,
        }
        if system:
            request_payload["instructions"] = system

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def complete_json(
        self, prompt: str, schema: dict[str, object], name: str
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        response = await self.client.responses.create(
            model=self.model,
            input=[
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": name,
                    "strict": True,
                    "schema": schema,
                }
            },
            store=self.store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying OpenAI HTTP client."""
        await self.client.close()
