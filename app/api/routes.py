"""
Reward API routes.

Handlers translate HTTP requests into RewardEngine calls. Errors are
raised and mapped to responses by the error middleware.
"""

from aiohttp import web
from loguru import logger

from app.config.constants import DEFAULT_HISTORY_DAYS
from app.services.rewards.engine import RewardEngine
from app.utils.exceptions import ValidationError
from app.utils.security import mask_address

ENGINE_KEY = web.AppKey("engine", RewardEngine)

routes = web.RouteTableDef()


def _engine(request: web.Request) -> RewardEngine:
    return request.app[ENGINE_KEY]


@routes.post("/rewards/claim-signature")
async def claim_signature(request: web.Request) -> web.Response:
    """
    Issue a signed claim voucher.

    Body: {"userAddress": "0x..."}
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be JSON") from e

    if not isinstance(body, dict) or not body.get("userAddress"):
        raise ValidationError("userAddress is required", field="userAddress")

    voucher = await _engine(request).request_claim_voucher(str(body["userAddress"]))
    logger.info(f"Claim signature served for {mask_address(voucher.user_address)}")
    return web.json_response({"success": True, **voucher.to_dict()})


@routes.get("/rewards/claimability/{address}")
async def claimability(request: web.Request) -> web.Response:
    """Read-only claim status of an address."""
    result = await _engine(request).get_claimability(request.match_info["address"])
    return web.json_response({"success": True, **result.to_dict()})


@routes.get("/rewards/program-analytics")
async def program_analytics(request: web.Request) -> web.Response:
    """Pool-wide program metrics."""
    metrics = await _engine(request).get_program_analytics()
    return web.json_response({"success": True, **metrics.to_dict()})


@routes.get("/rewards/user/{address}")
async def user_rewards(request: web.Request) -> web.Response:
    """Per-position ledger view of a wallet."""
    view = await _engine(request).get_user_rewards(request.match_info["address"])
    return web.json_response({"success": True, **view})


@routes.get("/rewards/history/{address}")
async def reward_history(request: web.Request) -> web.Response:
    """Daily reward history of a wallet. Query: ?days=30"""
    raw_days = request.query.get("days", str(DEFAULT_HISTORY_DAYS))
    try:
        days = int(raw_days)
    except ValueError as e:
        raise ValidationError("days must be an integer", field="days") from e

    history = await _engine(request).get_reward_history(
        request.match_info["address"], days=days
    )
    return web.json_response({"success": True, **history})


@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    """Liveness plus claim path availability."""
    engine = _engine(request)
    return web.json_response(
        {
            "status": "healthy",
            "claimsAvailable": engine.claims_available,
        }
    )
