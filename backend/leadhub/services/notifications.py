"""
Outbound WhatsApp messages to staff.

Sending is best effort: callers run it after the response has gone out and a
failure is only logged.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.config import settings
from ..schemas.crm import Lead

logger = logging.getLogger(__name__)


class NoopWhatsAppSender:
    """Placeholder used until a WhatsApp gateway is configured."""

    async def send_whatsapp_message(self, number: str, text: str) -> Dict[str, Any]:
        logger.info("WhatsApp gateway not configured, skipping message to %s", number)
        return {"success": True}


class HttpWhatsAppSender:
    def __init__(self, api_url: str, api_token: Optional[str] = None, timeout: float = 10.0):
        self.api_url = api_url
        self.api_token = api_token
        self.timeout = timeout

    async def send_whatsapp_message(self, number: str, text: str) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.api_token}"} if self.api_token else {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.api_url, json={"number": number, "message": text}, headers=headers)
        return {"success": resp.is_success}


def get_whatsapp_sender():
    if settings.WHATSAPP_API_URL:
        return HttpWhatsAppSender(settings.WHATSAPP_API_URL, settings.WHATSAPP_API_TOKEN)
    return NoopWhatsAppSender()


def new_lead_message(lead: Lead) -> str:
    package = f" ({lead.sub_product_name})" if lead.sub_product_name else ""
    return (
        f"Lead baru: {lead.name} - {lead.phone}\n"
        f"Produk: {lead.product_name or '-'}{package}\n"
        f"Sumber: {lead.source or '-'}"
    )


async def notify_assigned_admin(sender, admin: Optional[dict], lead: Lead) -> bool:
    """Tell the assigned staff member about a new lead if their channel is on."""
    if not admin or not admin.get("whatsapp_active") or not admin.get("whatsapp_number"):
        return False
    try:
        result = await sender.send_whatsapp_message(admin["whatsapp_number"], new_lead_message(lead))
    except Exception:
        logger.exception("WhatsApp notification for lead %s failed", lead.id)
        return False
    if not result.get("success"):
        logger.warning("WhatsApp gateway rejected notification for lead %s", lead.id)
        return False
    logger.info("Notified admin %s about lead %s", admin.get("id"), lead.id)
    return True
