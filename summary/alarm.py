from common.schema import SupplyResult
from datetime import datetime
import httpx, logging

logger = logging.getLogger("TokenSupply.Alarm")
logger.setLevel(logging.DEBUG)

PLACEHOLDER_WEBHOOK_URL = "your_slack_webhook_url"


def build_clamp_message(result: SupplyResult) -> str:
    lines = [
        f"[Warning] {result.metric} was clamped to 0 at block {result.block_number}.",
        "An excluded or pool balance exceeds the amount it is subtracted from. Check the address lists.",
    ]
    lines.extend(f"- {warning}" for warning in result.warnings)
    return "\n".join(lines)


async def alarm_negative_result(result: SupplyResult, webhook_url: str | None):
    if not result.clamped:
        return
    if not webhook_url or webhook_url == PLACEHOLDER_WEBHOOK_URL:
        logger.info("Valid slack webhook url not given")
        return
    try:
        message = "Complete Time: " + str(datetime.now()) + "\n" + build_clamp_message(result)
        async with httpx.AsyncClient(timeout=5) as client:
            resp = await client.post(webhook_url, json={"text": message})
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.exception("Failed to send Slack webhook: %s", exc)
