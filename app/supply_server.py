from app.tools import SupplyState, build_state, error_status, get_supply
from common.errors import SupplyError
from common.schema import TOTAL_SUPPLY, CIRCULATING_SUPPLY
from common.settings import SERVER
from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
import asyncio, logging, sys

logger = logging.getLogger("TokenSupply")
logger.setLevel(logging.DEBUG)

stream_handler = logging.StreamHandler()
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
stream_handler.setFormatter(formatter)
logger.addHandler(stream_handler)

if SERVER.LOG_FILE is not None:
    file_handler = logging.FileHandler(SERVER.LOG_FILE)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

ERROR_MESSAGES = {
    TOTAL_SUPPLY: "Error calculating total supply",
    CIRCULATING_SUPPLY: "Error calculating circulating supply",
}


async def supply_response(state: SupplyState, metric: str, request: Request) -> Response:
    try:
        result = await get_supply(state, metric)
    except Exception as e:
        status = error_status(e)
        logger.error(f"{metric} request failed with {status}: {e!r}")
        return PlainTextResponse(ERROR_MESSAGES[metric], status_code=status)

    headers = {"X-Supply-Clamped": "true"} if result.clamped else {}
    if request.query_params.get("format") == "json":
        return JSONResponse(result.model_dump(mode="json"), headers=headers)
    return PlainTextResponse(result.formatted, headers=headers)


def create_server(state: SupplyState) -> FastMCP:
    mcp = FastMCP(
        name="Token Supply Server",
        host=SERVER.HOST,
        port=SERVER.PORT,
    )

    @mcp.custom_route("/total-supply", methods=["GET"])
    async def total_supply(request: Request) -> Response:
        return await supply_response(state, TOTAL_SUPPLY, request)

    @mcp.custom_route("/circulating-supply", methods=["GET"])
    async def circulating_supply(request: Request) -> Response:
        return await supply_response(state, CIRCULATING_SUPPLY, request)

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> Response:
        return PlainTextResponse("ok")

    @mcp.tool(
        name="total_supply",
        description="Total supply of the token: on-chain totalSupply minus excluded balances.",
    )
    async def total_supply_tool() -> dict:
        result = await get_supply(state, TOTAL_SUPPLY)
        return result.model_dump(mode="json")

    @mcp.tool(
        name="circulating_supply",
        description="Circulating supply of the token: total supply minus tokens locked in staking pools.",
    )
    async def circulating_supply_tool() -> dict:
        result = await get_supply(state, CIRCULATING_SUPPLY)
        return result.model_dump(mode="json")

    return mcp


async def serve():
    state = await build_state()
    mcp = create_server(state)
    try:
        await mcp.run_streamable_http_async()
    finally:
        await state.close()


def main():
    logger.info("Token Supply Server Initiating...")
    try:
        asyncio.run(serve())
    except SupplyError as e:
        # ConfigLoadError, 또는 시작 시 decimals 조회 실패
        logger.error(f"Startup failed: {e}")
        sys.exit(1)
    logger.info("Finished")


if __name__ == "__main__":
    main()
