"""Notification service: transactional email via Brevo (preferred) or Resend."""
from __future__ import annotations

import html
import logging
from datetime import datetime

import httpx

from print_station.config import Settings, get_settings
from print_station.errors import DeliveryError

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"
RESEND_API_URL = "https://api.resend.com/emails"


class Mailer:
    """Thin send(to, subject, html) collaborator. Returns False instead of raising."""

    def __init__(self, settings: Settings):
        self.settings = settings
        if not settings.email_configured:
            logger.warning("[Email] No BREVO_API_KEY or RESEND_API_KEY set; email delivery is disabled")

    @property
    def configured(self) -> bool:
        return self.settings.email_configured

    def send(self, to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
        s = self.settings
        if s.brevo_api_key:
            if self._send_brevo(to_email, subject, html_content, text_content):
                return True
            if not s.resend_api_key:
                return False
            logger.warning("[Email] Brevo failed for %s, retrying with Resend", to_email)
        if s.resend_api_key:
            return self._send_resend(to_email, subject, html_content, text_content)
        logger.warning("[Email] NOT SENT: to=%s subject=%s (no provider configured)", to_email, subject)
        return False

    def _send_brevo(self, to_email: str, subject: str, html_content: str, text_content: str | None) -> bool:
        s = self.settings
        payload = {
            "sender": {"name": s.brevo_sender_name, "email": s.brevo_sender_email},
            "to": [{"email": to_email}],
            "subject": subject,
            "htmlContent": html_content or text_content or "",
        }
        if text_content:
            payload["textContent"] = text_content
        headers = {"accept": "application/json", "api-key": s.brevo_api_key, "content-type": "application/json"}
        try:
            with httpx.Client(timeout=s.email_timeout_seconds) as client:
                r = client.post(BREVO_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("[Brevo] Exception: to=%s error=%s: %s", to_email, type(e).__name__, e)
            return False
        if 200 <= r.status_code < 300:
            logger.info("[Brevo] API success: to=%s status=%s", to_email, r.status_code)
            return True
        logger.error("[Brevo] API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
        return False

    def _send_resend(self, to_email: str, subject: str, html_content: str, text_content: str | None) -> bool:
        s = self.settings
        payload = {"from": s.resend_from_email, "to": [to_email], "subject": subject, "html": html_content}
        if text_content:
            payload["text"] = text_content
        try:
            with httpx.Client(timeout=s.email_timeout_seconds) as client:
                r = client.post(
                    RESEND_API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {s.resend_api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("[Resend] Exception: to=%s error=%s: %s", to_email, type(e).__name__, e)
            return False
        if 200 <= r.status_code < 300:
            logger.info("[Resend] API success: to=%s status=%s", to_email, r.status_code)
            return True
        logger.error("[Resend] API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
        return False


def build_mailer(settings: Settings | None = None) -> Mailer:
    return Mailer(settings or get_settings())


def _otp_email(code: str, expire_minutes: int) -> tuple[str, str]:
    year = datetime.now().year
    text = (
        "Email Verification OTP\n\n"
        "Hello,\n\n"
        "Thank you for registering! Please use the following OTP to verify your email address:\n\n"
        f"{code}\n\n"
        f"Important: This OTP will expire in {expire_minutes} minutes. Do not share this code with anyone.\n\n"
        "If you didn't request this verification code, please ignore this email.\n"
    )
    body = f"""
    <div style="max-width:600px;margin:0 auto;font-family:Arial,sans-serif;color:#333;border:1px solid #e0e0e0;">
      <div style="padding:30px 20px;text-align:center;border-bottom:2px solid #000;">
        <h1 style="font-size:24px;margin:0;letter-spacing:1px;">Email Verification</h1>
      </div>
      <div style="padding:40px 30px;">
        <p>Hello,</p>
        <p>Thank you for registering! Please use the following OTP to verify your email address:</p>
        <div style="background:#f9f9f9;border:1px solid #d0d0d0;padding:30px;margin:30px 0;text-align:center;">
          <div style="font-size:32px;font-weight:600;letter-spacing:6px;font-family:'Courier New',monospace;">{code}</div>
        </div>
        <p style="border-left:3px solid #666;padding:15px;background:#f9f9f9;font-size:14px;">
          <strong>Important:</strong> This OTP will expire in {expire_minutes} minutes. Do not share this code with anyone.
        </p>
        <p>If you didn't request this verification code, please ignore this email.</p>
      </div>
      <div style="padding:25px;text-align:center;border-top:1px solid #e0e0e0;font-size:12px;color:#666;">
        <p>This is an automated email. Please do not reply.</p>
        <p>&copy; {year} Printer Station</p>
      </div>
    </div>
    """
    return body, text


def send_otp_email(mailer: Mailer, to_email: str, code: str, expire_minutes: int) -> None:
    """Deliver an OTP. Not best-effort: raises DeliveryError so the caller can roll back."""
    body, text = _otp_email(code, expire_minutes)
    try:
        ok = mailer.send(to_email, "Email Verification OTP", body, text_content=text)
    except Exception as e:
        logger.error("[OTP] Mailer raised for %s: %s", to_email, e)
        ok = False
    if not ok:
        raise DeliveryError("Failed to send OTP email. Please try again.")


def send_clerk_welcome_email(
    mailer: Mailer,
    to_email: str,
    name: str,
    temporary_password: str,
    admin_name: str | None = None,
) -> bool:
    """Welcome email with the clerk's temporary password. Best-effort: never raises."""
    safe_name = html.escape(name or "there")
    safe_admin = html.escape(admin_name) if admin_name else "your administrator"
    subject = "Welcome to Printer Station - Your Account Details"
    text = (
        f"Hi {name or 'there'},\n\n"
        f"An account has been created for you by {admin_name or 'your administrator'}.\n\n"
        f"Email: {to_email}\n"
        f"Temporary password: {temporary_password}\n\n"
        "Please sign in and change your password as soon as possible.\n"
    )
    body = f"""
    <p>Hi {safe_name},</p>
    <p>An account has been created for you on <strong>Printer Station</strong> by {safe_admin}.</p>
    <p><strong>Email:</strong> {html.escape(to_email)}<br/>
       <strong>Temporary password:</strong> <code>{html.escape(temporary_password)}</code></p>
    <p>Please sign in and change your password as soon as possible.</p>
    <p>The Printer Station team</p>
    """
    try:
        ok = mailer.send(to_email, subject, body, text_content=text)
    except Exception as e:
        logger.error("[Welcome] Mailer raised for %s: %s", to_email, e)
        return False
    if not ok:
        logger.warning("[Welcome] Welcome email not delivered to %s", to_email)
    return ok
