"""Receipt analyzer integrations module."""

from receipt_analyzer.integrations.bedrock import (
    BedrockModelClient,
    ModelClient,
    create_bedrock_client,
)
from receipt_analyzer.integrations.receipt_extractor import ReceiptAnalyzer

__all__ = [
    "BedrockModelClient",
    "ModelClient",
    "ReceiptAnalyzer",
    "create_bedrock_client",
]
