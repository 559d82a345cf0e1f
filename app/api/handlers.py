"""
Account endpoint handlers.

Read-only views over the ranking service. Every response uses the
``{"code", "message", "data"}`` envelope.
"""

from typing import Any

from aiohttp import web
from loguru import logger

from app.services.account_ranking import AccountRankingService
from app.utils.exceptions import TRANSIENT_ERRORS

API_OK = 0
API_PARAM_INVALID = 1
API_UNAVAILABLE = 2

ranking_service_key = web.AppKey("ranking_service", AccountRankingService)


def envelope(data: Any, code: int = API_OK, message: str = "") -> dict[str, Any]:
    return {"code": code, "message": message, "data": data}


def error_response(status: int, code: int, message: str) -> web.Response:
    return web.json_response(envelope(None, code, message), status=status)


def _query_int(request: web.Request, name: str) -> int:
    """Read an integer query parameter; missing or malformed values read as 0."""
    try:
        return int(request.query.get(name, "0"))
    except ValueError:
        return 0


async def get_accounts(request: web.Request) -> web.Response:
    """
    Ranked accounts of one shard.

    Query:
        p: 1-based page number
        ps: Page size, 0 or missing for the default
        s: Shard number, 0 or missing for shard 1

    Status Codes:
        200 OK: Page returned.
        400 Bad Request: Unknown shard.
    """
    service = request.app[ranking_service_key]

    page = _query_int(request, "p")
    page_size = max(_query_int(request, "ps"), 0)
    shard_number = _query_int(request, "s")
    if shard_number <= 0:
        shard_number = 1

    if not service.has_shard(shard_number):
        return error_response(400, API_PARAM_INVALID, "invalid shard number")

    accounts_page = service.get_accounts_page(shard_number, page, page_size)
    return web.json_response(envelope(accounts_page.to_dict()))


async def get_account(request: web.Request) -> web.Response:
    """
    Account detail by address.

    Query:
        address: Account address
        s: Shard number, 0 or missing for the lowest shard holding the address

    Unknown and contract accounts yield ``null`` data.

    Status Codes:
        200 OK: Detail (or null) returned.
        503 Service Unavailable: Store failure.
    """
    service = request.app[ranking_service_key]
    address = request.query.get("address", "")
    shard_number = _query_int(request, "s")

    try:
        detail = await service.get_account_detail(
            address, shard_number if shard_number > 0 else None
        )
    except TRANSIENT_ERRORS as e:
        logger.error(f"[API] Account lookup failed: {e}")
        return error_response(503, API_UNAVAILABLE, "store unavailable")

    return web.json_response(envelope(detail.to_dict() if detail else None))
