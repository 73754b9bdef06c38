"""
MJML Email Templates
Salon emails: verification code, booking confirmation, day-before reminder
"""

from html import escape
from typing import Optional

from .config import SALON_ADDRESS, SALON_NAME

# Black/white salon theme
THEME = {
    "primary": "#000000",
    "background": "#f5f5f5",
    "card_bg": "#ffffff",
    "text_primary": "#111111",
    "text_secondary": "#333333",
    "text_muted": "#888888",
    "border": "#eeeeee",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    footer_note: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    footer_notice = ""
    if footer_note:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="12px 0 0 0">
          {footer_note}
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" align="center" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="32px 20px 8px 20px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" letter-spacing="4px" color="{THEME['text_primary']}">
              {escape(SALON_NAME.upper())}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="16px 0 0 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="{THEME['card_bg']}" padding="0 40px 40px 40px">
          <mj-column>
            <mj-text font-size="20px" font-weight="600" color="{THEME['text_primary']}" padding="16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text font-size="13px" color="{THEME['text_muted']}" padding="0">
              {escape(SALON_NAME)} · {escape(SALON_ADDRESS)}
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def verification_code_template(client_name: str, otp: str) -> str:
    """One-time code sent when a client requests a slot"""
    content = f"""
    <mj-text>
      Bonjour <b>{escape(client_name)}</b>,
    </mj-text>
    <mj-text>
      Votre code de confirmation :
    </mj-text>
    <mj-text font-size="32px" font-weight="700" letter-spacing="8px" color="#ffffff"
      container-background-color="{THEME['primary']}" padding="12px 0">
      {otp}
    </mj-text>
    """
    return get_base_template(
        title="Code de validation",
        preview_text=f"Votre code de confirmation est {otp}",
        content_sections=content,
        footer_note="Si vous n'avez pas demandé de rendez-vous, ignorez cet email.",
    )


def booking_confirmation_template(client_name: str, date_label: str, time_label: str) -> str:
    content = f"""
    <mj-text>
      Bonjour <b>{escape(client_name)}</b>,
    </mj-text>
    <mj-text>
      Votre rendez-vous est confirmé pour le :
    </mj-text>
    <mj-text font-size="20px" font-weight="700" color="{THEME['text_primary']}">
      {date_label} à {time_label}
    </mj-text>
    <mj-text>
      📍 {escape(SALON_ADDRESS)}
    </mj-text>
    """
    return get_base_template(
        title="Rendez-vous confirmé ✂️",
        preview_text=f"Rendez-vous confirmé le {date_label} à {time_label}",
        content_sections=content,
        footer_note="Merci de prévenir en cas de retard ou d'annulation.",
    )


def appointment_reminder_template(client_name: str, date_label: str, time_label: str) -> str:
    content = f"""
    <mj-text>
      Bonjour <b>{escape(client_name)}</b>,
    </mj-text>
    <mj-text>
      Petit rappel : votre rendez-vous est prévu le {date_label} à :
    </mj-text>
    <mj-text font-size="20px" font-weight="700" color="{THEME['text_primary']}">
      {time_label}
    </mj-text>
    <mj-text>
      📍 {escape(SALON_ADDRESS)}
    </mj-text>
    """
    return get_base_template(
        title="Petit rappel ✂️",
        preview_text=f"Rappel : rendez-vous le {date_label} à {time_label}",
        content_sections=content,
        footer_note="Merci de prévenir en cas de retard ou d'annulation.",
    )
