"""FastAPI endpoints for wallet checks and collection statistics"""

import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel

from ..checker import WalletChecker
from ..clients.opensea import OpenSeaClient
from ..config import config
from ..exceptions import ProviderError
from ..models import AddressCheckResult, BatchSummary, CollectionStats, summarize
from ..utils import has_address_format, parse_address_input

MAX_ADDRESSES = int(os.getenv("MAX_ADDRESSES_PER_BATCH", "500"))

app = FastAPI(title="NFT Wallet Checker", version="1.0.0")

# Security: Configure CORS properly
ALLOWED_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
if ALLOWED_ORIGINS == ["*"]:
    logger.warning("CORS is set to allow all origins. Consider restricting in production.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses"""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


class CheckRequest(BaseModel):
    addresses: Optional[List[str]] = None
    text: Optional[str] = None
    contract_address: Optional[str] = None


class CheckResponse(BaseModel):
    results: List[AddressCheckResult]
    summary: BatchSummary


def get_checker() -> WalletChecker:
    """Checker used by the endpoints; replaced in tests"""
    return WalletChecker()


def _collect_addresses(addresses: Optional[List[str]], text: Optional[str]) -> List[str]:
    if addresses is not None and not isinstance(addresses, list):
        raise ValueError("addresses must be a list of strings")
    if text is not None and not isinstance(text, str):
        raise ValueError("text must be a string")
    wallet_list = [
        address.strip() for address in addresses or [] if isinstance(address, str) and address.strip()
    ]
    wallet_list.extend(parse_address_input(text or ""))
    if not wallet_list:
        raise ValueError("No wallet addresses given")
    if len(wallet_list) > MAX_ADDRESSES:
        raise ValueError(f"Too many addresses (max {MAX_ADDRESSES})")
    return wallet_list


def _check_contract(contract_address: Optional[str]) -> None:
    if contract_address and not has_address_format(contract_address):
        raise ValueError("Invalid contract address")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/check", response_model=CheckResponse)
async def check_wallets(body: CheckRequest):
    """Check a batch of wallets and return every result at once"""
    try:
        wallet_list = _collect_addresses(body.addresses, body.text)
        _check_contract(body.contract_address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        results = await get_checker().check_addresses(wallet_list, body.contract_address)
    except Exception as e:
        logger.exception(f"Error checking wallets: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return CheckResponse(results=results, summary=summarize(results))


@app.get("/api/stats", response_model=CollectionStats)
async def collection_stats(slug: Optional[str] = None):
    """One-shot collection statistics"""
    if not config.index_api_enabled:
        raise HTTPException(status_code=503, detail="Indexing API not configured")

    async with OpenSeaClient(
        api_key=config.opensea_api_key,
        base_url=config.opensea_base_url,
        marketplace_url=config.marketplace_url,
        chain=config.chain,
        timeout=config.timeout,
    ) as client:
        try:
            return await client.get_collection_stats(slug or config.collection_slug)
        except ProviderError as e:
            logger.error(f"Error fetching statistics: {e}")
            raise HTTPException(status_code=502, detail="Failed to fetch statistics")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint streaming one message per checked wallet"""
    await websocket.accept()

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"type": "error", "message": "Message is not valid JSON"})
                continue
            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "message": "Message must be a JSON object"})
                continue

            action = data.get("action")

            if action != "check":
                await websocket.send_json({"type": "error", "message": f"Unknown action: {action}"})
                continue

            try:
                wallet_list = _collect_addresses(data.get("addresses"), data.get("text"))
                _check_contract(data.get("contract_address"))
            except ValueError as e:
                await websocket.send_json({"type": "error", "message": str(e)})
                continue

            results: List[AddressCheckResult] = []
            stream = get_checker().iter_check_addresses(wallet_list, data.get("contract_address"))
            try:
                async for current, total, result in stream:
                    results.append(result)
                    await websocket.send_json({
                        "type": "progress",
                        "current": current,
                        "total": total,
                        "result": result.model_dump(mode="json"),
                    })
            finally:
                await stream.aclose()

            await websocket.send_json({
                "type": "complete",
                "results": [result.model_dump(mode="json") for result in results],
                "summary": summarize(results).model_dump(),
            })
    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected")
