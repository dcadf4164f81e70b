"""Example usage of the ReceiptAnalyzer for receipt photo analysis.

This example demonstrates how to build the Bedrock client once and use the
ReceiptAnalyzer to read structured data from a receipt image.

Usage: python examples/extract_receipt_example.py path/to/receipt.jpg
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from receipt_analyzer.errors import ReceiptAnalysisError
from receipt_analyzer.integrations import ReceiptAnalyzer, create_bedrock_client

load_dotenv()


async def main(image_path: Path):
    """Example of analyzing a receipt image."""
    # Region and credentials come from the standard AWS configuration
    analyzer = ReceiptAnalyzer(create_bedrock_client())

    try:
        receipt = await analyzer.analyze(image_path.read_bytes())
    except ReceiptAnalysisError as e:
        print(f"Error during analysis: {e}")
        return

    print(f"Brand: {receipt.brand}")
    print(f"Store: {receipt.store}")
    print(f"Date: {receipt.date}")
    print(f"Total: {receipt.total}")
    print(f"Confidence: {receipt.confidence:.2f}")

    print("\nItems:")
    for item in receipt.items:
        print(f"  - {item.name}: {item.price}")


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1])))
