"""Receipt extraction pipeline: image preparation, model request and reply decoding."""

import asyncio
import base64
import logging
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError

from receipt_analyzer.errors import MalformedModelReply, TransportError
from receipt_analyzer.integrations.bedrock import ModelClient
from receipt_analyzer.models import Receipt
from receipt_analyzer.utils.image_resize import prepare_image

logger = logging.getLogger("receipt_analyzer")

# Inbound payload ceiling enforced by Bedrock
MAX_IMAGE_BYTES = 1024 * 1024

ANTHROPIC_VERSION = "bedrock-2023-05-31"
DEFAULT_TEMPLATE = "receipt_en.jinja2"
PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

_CODE_FENCE = re.compile(r"^```[\w-]*\s*\n(?P<body>.*?)\n?```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove one Markdown code fence wrapping the whole text, if present."""
    text = text.strip()
    match = _CODE_FENCE.match(text)
    if match:
        return match.group("body").strip()
    return text


def extract_reply_text(response: Any) -> str:
    """Return ``content[0].text`` from a model response envelope."""
    try:
        text = response["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedModelReply("Model reply has no text content") from e
    if not isinstance(text, str):
        raise MalformedModelReply("Model reply text is not a string")
    return text


def parse_receipt(text: str) -> Receipt:
    """
    Decode the model's answer into a Receipt.

    A single surrounding code fence is stripped first, since models add one
    despite being told not to. Decoding is all-or-nothing.

    Raises:
        MalformedModelReply: If the text is not JSON of the Receipt shape
    """
    try:
        return Receipt.model_validate_json(strip_code_fence(text))
    except ValidationError as e:
        raise MalformedModelReply(f"Model reply is not a valid receipt: {e}") from e


class ReceiptAnalyzer:
    """
    Receipt analyzer that reads a receipt photo with a multimodal model.

    The model is reached through an injected ModelClient, so a deterministic
    stub can stand in for Bedrock in tests.
    """

    def __init__(
        self,
        model_client: ModelClient,
        template: str = DEFAULT_TEMPLATE,
        max_tokens: int = 1000,
        prompts_dir: str | None = None,
    ) -> None:
        """
        Initialize the receipt analyzer.

        Args:
            model_client: Client used to invoke the remote model
            template: Name of the instruction template (default: receipt_en.jinja2)
            max_tokens: Maximum tokens for the model's answer (default: 1000)
            prompts_dir: Directory containing Jinja2 templates
                (default: the package's prompts/ directory)
        """
        self.model_client = model_client
        self.template = template
        self.max_tokens = max_tokens

        self.jinja_env = Environment(
            loader=FileSystemLoader(prompts_dir or str(PROMPTS_DIR)),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_instruction(self) -> str:
        """Render the instruction text sent alongside the image."""
        return self.jinja_env.get_template(self.template).render()

    def build_request(self, image: bytes, media_type: str) -> dict[str, Any]:
        """Build the model request envelope for one image."""
        return {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": media_type,
                                "data": base64.b64encode(image).decode("ascii"),
                            },
                        },
                        {"type": "text", "text": self.render_instruction()},
                    ],
                }
            ],
        }

    async def analyze(self, image: bytes) -> Receipt:
        """
        Analyze a receipt image and return the structured receipt.

        Args:
            image: Encoded receipt image in any format Pillow can decode

        Returns:
            The decoded Receipt

        Raises:
            ImagePreparationError: If the image cannot be decoded or shrunk
            TransportError: If the model call fails
            MalformedModelReply: If the reply cannot be decoded into a Receipt
        """
        # Resizing is CPU-bound, so run it off the event loop
        loop = asyncio.get_running_loop()
        prepared, media_type = await loop.run_in_executor(
            None, prepare_image, image, MAX_IMAGE_BYTES
        )
        request = self.build_request(prepared, media_type)

        try:
            response = await self.model_client.invoke(request)
        except Exception as e:
            raise TransportError(f"Model invocation failed: {e}") from e

        text = extract_reply_text(response)

        usage = response.get("usage") if isinstance(response, dict) else None
        logger.info("Model usage: %s", usage, extra={"extra_data": {"usage": usage}})

        return parse_receipt(text)
