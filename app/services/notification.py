from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from itertools import islice
from typing import Deque, Optional, List, Dict
import uuid
import logging
import httpx
from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass
class PushRecord:
    """A push we attempted, kept for the status endpoint."""
    id: str
    title: str
    message: str
    priority: str
    timestamp: datetime
    type: str  # "price_change" or "system"
    tags: List[str]
    sent_to_ntfy: bool = False


class PushHistory:
    """In-memory history of recent pushes."""

    def __init__(self, max_records: int = 100):
        self._records: Deque[PushRecord] = deque(maxlen=max_records)

    def add(self, record: PushRecord):
        self._records.append(record)

    def get_recent(self, limit: int = 50) -> List[Dict]:
        newest_first = reversed(self._records)
        if limit:
            newest_first = islice(newest_first, limit)
        return [asdict(r) for r in newest_first]

    def clear(self):
        self._records.clear()


class NtfyNotifier:
    """
    Pushes price-change and system alerts to an ntfy topic.

    Delivery is best-effort: every send returns False instead of raising, and
    nothing is sent when no topic is configured.
    """

    # ntfy priorities (1=min, 5=max)
    PRIORITY_MAP = {
        "min": "1",
        "low": "2",
        "default": "3",
        "high": "4",
        "urgent": "5",
    }

    def __init__(
        self,
        ntfy_url: Optional[str] = None,
        ntfy_topic: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.ntfy_url = (ntfy_url or settings.ntfy_url).rstrip("/")
        self.ntfy_topic = ntfy_topic if ntfy_topic is not None else settings.ntfy_topic
        self.history = PushHistory()
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def is_enabled(self) -> bool:
        return bool(self.ntfy_topic)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=10.0, transport=self._transport)
        return self._http_client

    async def close(self):
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _send_to_ntfy(
        self,
        title: str,
        message: str,
        priority: str = "default",
        tags: Optional[List[str]] = None,
        click_url: Optional[str] = None,
    ) -> bool:
        if not self.is_enabled:
            logger.debug(f"ntfy disabled, not sending: {title}")
            return False

        try:
            client = await self._get_client()
            headers = {
                "Title": title,
                "Priority": self.PRIORITY_MAP.get(priority, "3"),
            }
            if tags:
                headers["Tags"] = ",".join(tags)
            if click_url:
                headers["Click"] = click_url

            response = await client.post(
                f"{self.ntfy_url}/{self.ntfy_topic}",
                content=message.encode("utf-8"),
                headers=headers,
            )

            if response.status_code == 200:
                logger.info(f"Push sent: {title}")
                return True
            logger.error(f"ntfy returned {response.status_code}: {response.text}")
            return False

        except httpx.ConnectError as e:
            logger.warning(f"Could not connect to ntfy server at {self.ntfy_url}: {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to send push: {e}")
            return False

    def _record(self, title, message, priority, kind, tags, sent) -> None:
        self.history.add(PushRecord(
            id=str(uuid.uuid4()),
            title=title,
            message=message,
            priority=priority,
            timestamp=datetime.now(timezone.utc),
            type=kind,
            tags=tags,
            sent_to_ntfy=sent,
        ))

    async def send_price_change_alert(self, flight, notification) -> bool:
        """Push a PriceChangeNotification for a TrackedFlight."""
        dropped = notification.new_price < notification.old_price
        tags = ["airplane", "chart_with_downwards_trend" if dropped else "chart_with_upwards_trend"]
        priority = "high" if dropped else "default"

        title = f"✈️ ${notification.new_price} {flight.origin}→{flight.destination}"
        message = (
            f"{flight.display_name}\n"
            f"{notification.message}\n"
            f"Was ${notification.old_price}, now ${notification.new_price}"
        )

        sent = await self._send_to_ntfy(
            title=title,
            message=message,
            priority=priority,
            tags=tags,
            click_url=f"{settings.base_url}/api/flights/{flight.id}",
        )
        self._record(title, message, priority, "price_change", tags, sent)
        return sent

    async def send_system_alert(
        self,
        title: str,
        message: str,
        priority: str = "default",
        alert_type: str = "info",  # info, warning, error
    ) -> bool:
        tag_map = {
            "info": ["information_source"],
            "warning": ["warning"],
            "error": ["rotating_light", "x"],
        }
        tags = tag_map.get(alert_type, ["bell"])

        sent = await self._send_to_ntfy(
            title=f"🔧 {title}",
            message=message,
            priority=priority,
            tags=tags,
        )
        self._record(title, message, priority, "system", tags, sent)
        return sent

    def get_history(self, limit: int = 50) -> List[Dict]:
        return self.history.get_recent(limit)


_global_notifier: Optional[NtfyNotifier] = None


def get_global_notifier() -> NtfyNotifier:
    global _global_notifier
    if _global_notifier is None:
        _global_notifier = NtfyNotifier()
    return _global_notifier


async def shutdown_notifier():
    """Close the global notifier's HTTP client."""
    global _global_notifier
    if _global_notifier is not None:
        await _global_notifier.close()
