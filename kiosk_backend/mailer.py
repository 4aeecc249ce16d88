from email.message import EmailMessage
from email.utils import formatdate, make_msgid

import aiosmtplib
import structlog

from .config import Settings

logger = structlog.get_logger(__name__)

TYPE_LABELS = {"takeaway": "Takeaway", "pickup": "Pickup", "quote": "Quote request"}


def format_order_mail(order: dict, sender: str, recipient: str) -> EmailMessage:
    kind = TYPE_LABELS.get(order["type"], order["type"])
    lines = [
        f"New order {order['orderId']}",
        "",
        f"Type:  {kind}",
        f"Kiosk: {order['kiosk'] if order.get('kiosk') is not None else '-'}",
        f"Time:  {order['createdAt']:%Y-%m-%d %H:%M:%S} UTC",
        "",
    ]
    for p in order["producten"]:
        line = f"  {p['quantity']} x {p['item']}"
        if p.get("opmerking"):
            line += f"  ({p['opmerking']})"
        lines.append(line)

    msg = EmailMessage()
    msg["Subject"] = f"{kind} order {order['orderId']}"
    msg["From"] = sender
    msg["To"] = recipient
    msg["Date"] = formatdate(localtime=False)
    msg["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)
    msg.set_content("\n".join(lines) + "\n")
    return msg


class OrderMailer:
    """Sends order confirmations over SMTP. Disabled when no SMTP host or recipient is configured."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.mail_enabled

    async def send_order_confirmation(self, order: dict) -> bool:
        if not self.enabled:
            logger.debug("order_mail_skipped", order_id=order["orderId"])
            return False

        s = self.settings
        msg = format_order_mail(order, s.mail_from, s.mail_to)
        await aiosmtplib.send(
            msg,
            hostname=s.smtp_host,
            port=s.smtp_port,
            username=s.smtp_username or None,
            password=s.smtp_password or None,
            start_tls=s.smtp_start_tls,
        )
        logger.info("order_mail_sent", order_id=order["orderId"], to=s.mail_to)
        return True
