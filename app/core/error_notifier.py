"""
WasteCollect Server - Error Notification
E-mails the operations team when an unexpected error reaches the API boundary
"""
import html
import logging
import smtplib
import threading
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from datetime import datetime
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

# Same error is mailed at most once per window
_error_cache = {}
_CACHE_TTL_SECONDS = 300


def _get_error_key(error_type: str, error_msg: str) -> str:
    return f"{error_type}:{error_msg[:100]}"


def _should_send_notification(error_key: str) -> bool:
    now = datetime.utcnow()

    if error_key in _error_cache:
        last_sent = _error_cache[error_key]
        if (now - last_sent).total_seconds() < _CACHE_TTL_SECONDS:
            return False

    _error_cache[error_key] = now
    return True


def _field(label: str, value: str, extra_class: str = "") -> str:
    return f"""
        <div class="field">
            <div class="field-label">{label}</div>
            <div class="field-value {extra_class}">{value}</div>
        </div>
    """


def build_error_email(
    error_type: str,
    error_message: str,
    error_details: Optional[str] = None,
    user_id: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> MIMEMultipart:
    msg = MIMEMultipart('alternative')
    msg['Subject'] = f"[{settings.APP_NAME} ERROR] {error_type}: {error_message[:50]}"
    msg['From'] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg['To'] = settings.ERROR_NOTIFICATION_EMAIL

    timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")
    body = _field("Error type", html.escape(error_type))
    body += _field("Message", html.escape(error_message))
    body += _field("Time", timestamp)
    body += _field("Environment", html.escape(settings.ENVIRONMENT))
    if user_id:
        body += _field("User", html.escape(user_id))
    if endpoint:
        body += _field("Endpoint", html.escape(endpoint))
    if error_details:
        body += _field("Traceback", f"<pre>{html.escape(error_details[:2000])}</pre>", "error-details")

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px; }}
            .container {{ max-width: 600px; margin: 0 auto; background: white; border-radius: 8px; }}
            .header {{ background: #1b4332; color: white; padding: 20px; }}
            .content {{ padding: 20px; }}
            .field {{ margin-bottom: 15px; }}
            .field-label {{ font-weight: bold; color: #374151; font-size: 12px; text-transform: uppercase; }}
            .field-value {{ background: #f9fafb; padding: 10px; border: 1px solid #e5e7eb; font-family: monospace; }}
            .error-details {{ background: #fef2f2; border-color: #fecaca; color: #991b1b; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header"><h1>&#9888; {html.escape(settings.APP_NAME)} internal error</h1></div>
            <div class="content">{body}</div>
        </div>
    </body>
    </html>
    """
    msg.attach(MIMEText(html_body, 'html'))
    return msg


def send_error_notification(
    error_type: str,
    error_message: str,
    error_details: Optional[str] = None,
    user_id: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> bool:
    """
    Sends the error e-mail. Returns True when a message went out; disabled
    notifications, missing SMTP settings and throttled repeats return False.
    """
    if not settings.ERROR_NOTIFICATION_ENABLED:
        return False

    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.warning("SMTP not configured, error notification not sent")
        return False

    error_key = _get_error_key(error_type, error_message)
    if not _should_send_notification(error_key):
        logger.debug(f"Error notification throttled: {error_key}")
        return False

    msg = build_error_email(error_type, error_message, error_details, user_id, endpoint)
    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_TLS:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send error notification: {e}")
        return False

    logger.info(f"Error notification sent: {error_type}")
    return True


def notify_error_sync(
    error_type: str,
    error_message: str,
    error_details: Optional[str] = None,
    **kwargs
) -> None:
    """Fire-and-forget variant; the SMTP round trip runs on a daemon thread"""
    if not settings.ERROR_NOTIFICATION_ENABLED:
        return

    def _send():
        send_error_notification(
            error_type=error_type,
            error_message=error_message,
            error_details=error_details,
            **kwargs
        )

    thread = threading.Thread(target=_send, daemon=True)
    thread.start()
