"""HTTP API exposing receipt analysis."""

import base64
import binascii
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from receipt_analyzer.errors import ReceiptAnalysisError
from receipt_analyzer.integrations.bedrock import create_bedrock_client
from receipt_analyzer.integrations.receipt_extractor import ReceiptAnalyzer
from receipt_analyzer.models import Receipt

logger = logging.getLogger("receipt_analyzer")


class ReceiptRequest(BaseModel):
    image: str  # base64-encoded image bytes


class AnalysisResponse(BaseModel):
    result: Receipt


def get_analyzer(request: Request) -> ReceiptAnalyzer:
    return request.app.state.analyzer


def create_app(analyzer: ReceiptAnalyzer | None = None) -> FastAPI:
    """Create the FastAPI app.

    When no analyzer is given, one backed by Bedrock is built once at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "analyzer", None) is None:
            app.state.analyzer = ReceiptAnalyzer(create_bedrock_client())
        yield

    app = FastAPI(title="Receipt Analyzer API", version="0.1.0", lifespan=lifespan)
    app.state.analyzer = analyzer

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/analyze", response_model=AnalysisResponse)
    async def analyze_receipt(
        payload: ReceiptRequest,
        analyzer: ReceiptAnalyzer = Depends(get_analyzer),
    ):
        try:
            image = base64.b64decode(payload.image, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="Image is not valid base64") from None

        try:
            result = await analyzer.analyze(image)
        except ReceiptAnalysisError as e:
            logger.error(f"Receipt analysis failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to analyze receipt")

        logger.info(
            "Receipt analyzed",
            extra={"extra_data": {"items_count": len(result.items)}},
        )
        return AnalysisResponse(result=result)

    return app
