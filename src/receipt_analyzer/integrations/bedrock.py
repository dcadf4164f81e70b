"""Amazon Bedrock client for invoking Claude with a raw request envelope."""

import os
from typing import Any, Protocol

from anthropic import AsyncAnthropicBedrock

DEFAULT_REGION = "us-east-1"
DEFAULT_MODEL_ID = "anthropic.claude-3-5-sonnet-20240620-v1:0"


class ModelClient(Protocol):
    async def invoke(self, request: dict[str, Any]) -> dict[str, Any]: ...


class BedrockModelClient:
    """
    Model client that sends Messages API requests to Claude on Amazon Bedrock.

    The request envelope is the Bedrock ``InvokeModel`` body. The SDK adds
    ``anthropic_version`` itself, so it is dropped from the envelope before
    the call.
    """

    def __init__(
        self,
        client: AsyncAnthropicBedrock,
        model_id: str = DEFAULT_MODEL_ID,
    ) -> None:
        self.client = client
        self.model_id = model_id

    async def invoke(self, request: dict[str, Any]) -> dict[str, Any]:
        """
        Send a request envelope and return the response as plain JSON data.

        Args:
            request: Bedrock request body with ``max_tokens`` and ``messages``

        Returns:
            The response message as a dict, exposing ``content`` and ``usage``
        """
        body = {k: v for k, v in request.items() if k != "anthropic_version"}
        message = await self.client.messages.create(model=self.model_id, **body)
        return message.model_dump(mode="json")


def create_bedrock_client(
    region: str | None = None,
    model_id: str | None = None,
    timeout: float | None = None,
) -> BedrockModelClient:
    """Build the Bedrock model client once at process start.

    Credentials come from the standard AWS discovery chain (environment,
    shared config, instance role). Region, model and timeout fall back to
    ``AWS_REGION``, ``RECEIPT_MODEL_ID`` and ``BEDROCK_TIMEOUT``.
    """
    region = region or os.getenv("AWS_REGION", DEFAULT_REGION)
    model_id = model_id or os.getenv("RECEIPT_MODEL_ID", DEFAULT_MODEL_ID)
    if timeout is None and os.getenv("BEDROCK_TIMEOUT"):
        timeout = float(os.environ["BEDROCK_TIMEOUT"])

    # Failures surface to the caller; the SDK's built-in retries are disabled
    kwargs: dict[str, Any] = {"aws_region": region, "max_retries": 0}
    if timeout is not None:
        kwargs["timeout"] = timeout

    return BedrockModelClient(AsyncAnthropicBedrock(**kwargs), model_id=model_id)
