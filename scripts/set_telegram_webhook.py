#!/usr/bin/env python3
"""Register (or remove) the bot's webhook with the Telegram Bot API"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import config
from app.core.delivery import TelegramSender

WEBHOOK_PATH = "/api/v1/telegram/webhook"


async def set_webhook(base_url: str, drop_pending: bool) -> bool:
    """Point Telegram at <base_url>/api/v1/telegram/webhook"""
    payload = {
        "url": f"{base_url.rstrip('/')}{WEBHOOK_PATH}",
        "allowed_updates": ["message"],
        "drop_pending_updates": drop_pending,
    }
    if config.TELEGRAM_WEBHOOK_SECRET:
        payload["secret_token"] = config.TELEGRAM_WEBHOOK_SECRET

    print(f"🔗 Registering webhook: {payload['url']}")
    result = await TelegramSender().call("setWebhook", payload)
    print(f"📊 Result: {result}")
    return result.get("sent") == "true"


async def delete_webhook() -> bool:
    result = await TelegramSender().call("deleteWebhook", {})
    print(f"📊 Result: {result}")
    return result.get("sent") == "true"


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("base_url", nargs="?", help="Public base URL of this service")
    parser.add_argument("--delete", action="store_true", help="Remove the webhook")
    parser.add_argument(
        "--drop-pending", action="store_true", help="Discard updates queued by Telegram"
    )
    args = parser.parse_args()

    if args.delete:
        success = asyncio.run(delete_webhook())
    elif args.base_url:
        success = asyncio.run(set_webhook(args.base_url, args.drop_pending))
    else:
        parser.error("base_url is required unless --delete is given")
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
