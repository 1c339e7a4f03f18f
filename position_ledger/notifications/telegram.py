"""Telegram notification channel."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:
    """Deliver health alerts and account logs through two Telegram bots.

    Alerts go through the alert bot with sound; logs go through the log bot
    and are muted by default.
    """

    def __init__(self, config: TelegramConfig, timeout: int = 15) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id
        self.timeout = timeout

    async def _post(self, text: str, bot_token: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram bot token or chat id missing; message dropped")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "disable_notification": silent,
        }
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                _API_URL.format(token=bot_token),
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    logger.error("Telegram sendMessage returned HTTP %s", response.status)
                    return False
                return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        text = f"{subject}\n\n{message}" if subject else message
        sent = await self._post(text, self.alert_bot_token, silent=False)
        if sent:
            logger.info("Telegram alert delivered")
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        sent = await self._post(message, self.log_bot_token, silent=silent)
        if sent:
            logger.debug("Telegram log delivered")
        return sent
