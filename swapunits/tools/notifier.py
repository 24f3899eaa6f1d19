"""
Feature-request notifier — emails a fixed recipient when a user asks for
a category or unit pair the catalog does not have.

Delivery goes through a Resend-compatible HTTP API:

    POST {api_url}
    Authorization: Bearer {api_key}
    {"from": ..., "to": [...], "subject": ..., "html": ...}

With no API key configured the notifier runs in mock mode: the request is
logged and a mock id returned, so the endpoint works in development.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.resend.com/emails"


class NotifierError(Exception):
    """Raised when the email provider rejects or cannot be reached."""


@dataclass(frozen=True)
class FeatureRequest:
    category: str
    from_unit: str
    to_unit: str
    additional_notes: str = ""

    @property
    def subject(self) -> str:
        return f"New Conversion Pair Request: {self.from_unit} to {self.to_unit}"


def render_email(req: FeatureRequest, received_at: datetime | None = None) -> str:
    """HTML body. All user-supplied text is escaped."""
    received_at = received_at or datetime.now(timezone.utc)
    notes = ""
    if req.additional_notes:
        escaped = html.escape(req.additional_notes).replace("\n", "<br/>")
        notes = (
            '<div class="content-section">'
            "<h3>Additional Notes</h3>"
            f'<div class="description">{escaped}</div>'
            "</div>"
        )
    return (
        "<!DOCTYPE html><html><body>"
        '<div class="header"><h1 class="logo">SwapUnits</h1>'
        f'<div class="timestamp">Received on {received_at.strftime("%A, %B %d, %Y %H:%M %Z")}</div></div>'
        '<div class="content"><h2 class="subject">New Conversion Pair Request</h2>'
        f'<div class="content-section"><h3>Category</h3><div class="info-box">{html.escape(req.category)}</div></div>'
        '<div class="content-section"><h3>Requested Conversion</h3>'
        f'<div class="info-box"><span>{html.escape(req.from_unit)}</span> &harr; '
        f"<span>{html.escape(req.to_unit)}</span></div></div>"
        f"{notes}</div>"
        '<div class="footer">This conversion pair request was submitted via SwapUnits.com</div>'
        "</body></html>"
    )


class FeatureRequestNotifier:
    """Sends feature-request emails. Mock mode when no API key is configured."""

    def __init__(
        self,
        api_key: str = "",
        recipient: str = "swapunits@gmail.com",
        from_email: str = "notifications@swapunits.com",
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.recipient = recipient
        self.from_email = from_email
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.mock_mode = not api_key

        if self.mock_mode:
            logger.info("FeatureRequestNotifier initialized in MOCK mode (no API key)")
        else:
            logger.info("FeatureRequestNotifier enabled: %s -> %s", self.api_url, self.recipient)

    @classmethod
    def from_config(cls, cfg: dict) -> "FeatureRequestNotifier":
        n = cfg.get("notifications", {})
        return cls(
            api_key=n.get("api_key", ""),
            recipient=n.get("recipient", "swapunits@gmail.com"),
            from_email=n.get("from_email", "notifications@swapunits.com"),
            api_url=n.get("api_url", DEFAULT_API_URL),
            timeout=float(n.get("timeout", 10)),
        )

    def build_payload(self, req: FeatureRequest) -> dict:
        return {
            "from": f"SwapUnits <{self.from_email}>",
            "to": [self.recipient],
            "subject": req.subject,
            "html": render_email(req),
        }

    async def send(self, req: FeatureRequest) -> dict:
        """Deliver the email. Returns the provider's JSON; raises NotifierError."""
        payload = self.build_payload(req)

        if self.mock_mode:
            logger.info("Mock feature request: %s (%s)", req.subject, req.category)
            return {"id": "mock", "mock": True}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Feature request email rejected: HTTP %s", e.response.status_code)
            raise NotifierError(f"provider returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Feature request email failed: %s", e)
            raise NotifierError(str(e)) from e

        logger.info("Feature request sent: %s", req.subject)
        return data
