"""
Listing Facts Service - FastAPI Application
Main entry point with REST API endpoints.
"""
import asyncio
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from listing_facts.adapters.document_provider import DocumentProvider, parse_document
from listing_facts.config import config
from listing_facts.layers.assembly import ListingFactsAssembler
from listing_facts.layers.listing_page import ListingPageLayer
from listing_facts.utils.identifiers import asin_from_url, normalize_asin
from listing_facts.utils.logger import get_logger, set_trace_id


# Initialize FastAPI app
app = FastAPI(
    title="Listing Facts Service",
    description="Extracts brand, rank, fulfillment and stock facts from retail product pages",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize layers
document_provider = DocumentProvider()
assembler = ListingFactsAssembler(document_provider)
listing_page_layer = ListingPageLayer()

logger = get_logger("main")


# Request/Response models
class BatchListingRequest(BaseModel):
    """Request model for several identifiers at once."""
    asins: List[str] = Field(min_length=1, max_length=50)


class ListingPageRequest(BaseModel):
    """Request model for grouping the product nodes of a listing page."""
    html: str


class CurrentDocumentRequest(BaseModel):
    """The page currently on display; reused instead of fetching it again."""
    url: str
    html: str


async def _listing_response(asin: str, trace_id: str) -> dict:
    normalized = normalize_asin(asin)
    if normalized is None:
        raise HTTPException(status_code=400, detail=f"Invalid product identifier: {asin}")

    record = await assembler.assemble(normalized)
    if record is None:
        logger.info("listing_unavailable", asin=normalized, trace_id=trace_id)
        raise HTTPException(status_code=404, detail=f"No data for {normalized}")

    response = record.to_output()
    response["trace_id"] = trace_id
    return response


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/api/listing/{asin}")
async def get_listing(asin: str):
    """
    Extract the listing facts for one identifier.

    Returns 404 when the product document could not be retrieved.
    """
    trace_id = set_trace_id()
    logger.info("listing_request", asin=asin, trace_id=trace_id)
    return await _listing_response(asin, trace_id)


@app.get("/api/listing")
async def get_listing_by_url(url: str = Query(..., description="Product page URL")):
    """Extract the listing facts for the product a URL points at."""
    trace_id = set_trace_id()
    asin = asin_from_url(url)
    logger.info("listing_url_request", url=url, asin=asin, trace_id=trace_id)
    if asin is None:
        raise HTTPException(status_code=400, detail="URL does not contain a product identifier")
    return await _listing_response(asin, trace_id)


@app.post("/api/listings")
async def get_listings(request: BatchListingRequest):
    """
    Extract listing facts for several identifiers concurrently.

    Identifiers without data map to null.
    """
    trace_id = set_trace_id()
    logger.info("batch_listing_request", count=len(request.asins), trace_id=trace_id)

    records = await asyncio.gather(*(assembler.assemble(asin) for asin in request.asins))
    results: Dict[str, Optional[dict]] = {}
    for asin, record in zip(request.asins, records):
        results[asin] = record.to_output() if record else None
    return {"results": results, "trace_id": trace_id}


@app.put("/api/current-document")
async def set_current_document(request: CurrentDocumentRequest):
    """Register the page on display so its identifier is served without a fetch."""
    trace_id = set_trace_id()
    asin = asin_from_url(request.url)
    if asin is None:
        raise HTTPException(status_code=400, detail="URL does not contain a product identifier")
    document_provider.set_current_document(request.url, request.html)
    logger.info("current_document_set", asin=asin, trace_id=trace_id)
    return {"asin": asin, "trace_id": trace_id}


@app.post("/api/listing-page/groups")
async def group_listing_page(request: ListingPageRequest):
    """
    Classify the product nodes of a listing page and group variations
    under their main product.
    """
    trace_id = set_trace_id()
    groups = listing_page_layer.group_page(parse_document(request.html))
    logger.info("listing_page_grouped", groups=len(groups), trace_id=trace_id)
    return {"groups": [g.to_dict() for g in groups], "trace_id": trace_id}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
