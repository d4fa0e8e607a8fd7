"""
Branded email rendering.

Subject and body come from the tenant's email template with ``$name$``
placeholders. ``$PUBLIC_LINK$`` and ``$PASSWORD_BLOCK$`` are left in place
by variable substitution and turned into a button and a password box when
the HTML shell is built.
"""
import html
import re
from typing import Any, Dict, NamedTuple, Optional
from docshare.models.email_template import PASSWORD_BLOCK_PLACEHOLDER, PUBLIC_LINK_PLACEHOLDER

DEFAULT_PRIMARY_COLOR = "#B725B7"
DEFAULT_SECONDARY_COLOR = "#E91E63"
DEFAULT_TERTIARY_COLOR = "#5ED6CE"

WHITE = "#ffffff"
DARK = "#1f2937"

_VARIABLE_PATTERN = re.compile(r"\$([A-Za-z][A-Za-z0-9_]*)\$")


class RenderedEmail(NamedTuple):
    subject: str
    html: str
    text: str


def _colors(branding: Dict[str, Any]) -> Dict[str, str]:
    return {
        "primary": branding.get("primary_color") or DEFAULT_PRIMARY_COLOR,
        "secondary": branding.get("secondary_color") or DEFAULT_SECONDARY_COLOR,
        "tertiary": branding.get("tertiary_color") or DEFAULT_TERTIARY_COLOR,
    }


def resolve_background(color_type: Optional[str], branding: Dict[str, Any]) -> str:
    """CSS background for a color setting (solid color or gradient)."""
    colors = _colors(branding)
    if color_type == "white":
        return WHITE
    if color_type == "black":
        return DARK
    if color_type in ("primary", "secondary", "tertiary"):
        return colors[color_type]
    if color_type == "secondary-gradient":
        return f"linear-gradient(135deg, {colors['secondary']}, {colors['primary']})"
    if color_type == "tertiary-gradient":
        return f"linear-gradient(135deg, {colors['tertiary']}, {colors['primary']})"
    return f"linear-gradient(135deg, {colors['primary']}, {colors['secondary']})"


def resolve_text_color(text_color_type: Optional[str]) -> str:
    return DARK if text_color_type == "black" else WHITE


def substitute_variables(text: Optional[str], variables: Dict[str, Any]) -> str:
    """
    Replace ``$key$`` with the value of ``key``.

    Keys present with an empty value render as an empty string;
    placeholders without a matching key are kept verbatim.
    """
    if not text:
        return ""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = variables[key]
        return "" if value is None else str(value)

    return _VARIABLE_PATTERN.sub(replace, text)


def _footer_contact_info(settings: Dict[str, Any], locale: str) -> str:
    parts = []
    pt = locale == "pt-BR"

    if settings.get("showPhone") and settings.get("phone"):
        label = "Telefone" if pt else "Phone"
        parts.append(
            f'<p style="margin: 4px 0; color: #6b7280; font-size: 12px;">'
            f'📞 {label}: {html.escape(settings["phone"])}</p>'
        )

    if settings.get("showAddress") and settings.get("address"):
        label = "Endereço" if pt else "Address"
        address = html.escape(settings["address"].replace("\n", ", "))
        parts.append(
            f'<p style="margin: 4px 0; color: #6b7280; font-size: 12px;">📍 {label}: {address}</p>'
        )

    social_links = settings.get("socialLinks") or {}
    if settings.get("showSocialLinks") and social_links:
        links = []
        for key, label in (("facebook", "Facebook"), ("instagram", "Instagram"),
                           ("linkedin", "LinkedIn"), ("website", "Website")):
            url = social_links.get(key)
            if url:
                links.append(
                    f'<a href="{html.escape(url, quote=True)}" '
                    f'style="color: {DEFAULT_PRIMARY_COLOR}; text-decoration: none; margin: 0 8px;">{label}</a>'
                )
        if links:
            parts.append(f'<p style="margin: 8px 0 4px 0; font-size: 12px;">{" • ".join(links)}</p>')

    if not parts:
        return ""
    return (
        '<div style="margin-top: 16px; padding-top: 16px; border-top: 1px solid #e5e7eb;">'
        + "".join(parts)
        + "</div>"
    )


def _password_block(password: Optional[str], locale: str) -> str:
    if not password:
        return ""
    label = "🔒 Senha de Acesso" if locale == "pt-BR" else "🔒 Access Password"
    return (
        '<div style="background: #f8f9fa; border: 1px solid #e9ecef; border-radius: 8px; '
        'padding: 16px; margin: 16px 0; text-align: center;">'
        f'<p style="margin: 0 0 8px 0; color: #6c757d; font-size: 14px;">{label}</p>'
        '<p style="margin: 0; font-size: 20px; font-weight: 600; color: #212529; letter-spacing: 2px;">'
        f"{html.escape(password)}</p>"
        "</div>"
    )


def _cta_button(variables: Dict[str, Any], settings: Dict[str, Any], branding: Dict[str, Any]) -> str:
    button_color = settings.get("buttonColor") or "primary-gradient"
    background = resolve_background(button_color, branding)
    text_color = resolve_text_color(settings.get("buttonTextColor") or "white")
    border = " border: 1px solid #e5e7eb;" if button_color == "white" else ""
    href = html.escape(variables.get("publicLink") or "#", quote=True)
    return (
        '<div style="text-align: center; margin: 24px 0;">'
        f'<a href="{href}" style="display: inline-block; background: {background}; '
        f"color: {text_color}; padding: 14px 32px; text-decoration: none; border-radius: 8px; "
        f'font-weight: 600; font-size: 16px; box-shadow: 0 4px 12px rgba(0,0,0,0.15);{border}">'
        f'{html.escape(str(variables.get("ctaButtonText") or ""))}</a>'
        "</div>"
    )


def _html_shell(
    body_text: str,
    subject: str,
    branding: Dict[str, Any],
    settings: Dict[str, Any],
    variables: Dict[str, Any],
    locale: str
) -> str:
    company_name = html.escape(branding.get("company_name") or variables.get("clinicName") or "")
    logo_url = branding.get("logo_url")
    show_logo = settings.get("showLogo") is not False and bool(logo_url)

    header_color = settings.get("headerColor") or "primary-gradient"
    header_background = resolve_background(header_color, branding)
    header_text_color = resolve_text_color(settings.get("headerTextColor") or "white")
    header_border = " border: 1px solid #e5e7eb; border-bottom: none;" if header_color == "white" else ""

    if show_logo:
        header = (
            '<div style="text-align: center; margin-bottom: 16px;">'
            f'<img src="{html.escape(logo_url, quote=True)}" alt="{company_name}" '
            'style="max-height: 60px; max-width: 200px;"></div>'
        )
    else:
        header = (
            '<div style="text-align: center;">'
            f'<h1 style="color: {header_text_color}; margin: 0; font-size: 24px; font-weight: 600;">'
            f"{company_name}</h1></div>"
        )

    body = (
        html.escape(body_text)
        .replace("\n", "<br>")
        .replace(PUBLIC_LINK_PLACEHOLDER, _cta_button(variables, settings, branding))
        .replace(PASSWORD_BLOCK_PLACEHOLDER, _password_block(variables.get("password"), locale))
    )

    footer_contact = _footer_contact_info(settings, locale)
    sent_by = (
        f"Este e-mail foi enviado por {company_name}"
        if locale == "pt-BR"
        else f"This email was sent by {company_name}"
    )

    return f"""<!DOCTYPE html>
<html lang="{locale}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{html.escape(subject)}</title>
</head>
<body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f4f4f5;">
  <table role="presentation" style="width: 100%; border-collapse: collapse; background-color: #f4f4f5;">
    <tr>
      <td style="padding: 40px 20px;">
        <table role="presentation" style="max-width: 600px; margin: 0 auto; border-collapse: collapse;">
          <tr>
            <td style="background: {header_background}; padding: 32px 40px; border-radius: 16px 16px 0 0;{header_border}">
              {header}
            </td>
          </tr>
          <tr>
            <td style="background-color: white; padding: 40px; border-radius: 0 0 16px 16px; box-shadow: 0 4px 20px rgba(0,0,0,0.08);">
              <div style="color: #374151; font-size: 16px; line-height: 1.6;">
                {body}
              </div>
            </td>
          </tr>
          <tr>
            <td style="padding: 24px 40px; text-align: center;">
              {footer_contact}
              <p style="margin: {'16px' if footer_contact else '0'} 0 0 0; color: #9ca3af; font-size: 12px;">{sent_by}</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def _plain_text(body_text: str, variables: Dict[str, Any], locale: str) -> str:
    password = variables.get("password")
    label = "Senha" if locale == "pt-BR" else "Password"
    password_text = f"\n🔒 {label}: {password}\n" if password else ""
    return (
        body_text
        .replace(PUBLIC_LINK_PLACEHOLDER, variables.get("publicLink") or "")
        .replace(PASSWORD_BLOCK_PLACEHOLDER, password_text)
    )


def render_email(
    template: Dict[str, Any],
    branding: Dict[str, Any],
    variables: Dict[str, Any],
    locale: str = "en-US"
) -> RenderedEmail:
    """
    Render subject, HTML and plain-text parts of a notification.

    Args:
        template: {"subject", "body", "settings"} of the tenant template
        branding: Tenant branding (snake_case keys, see TenantService)
        variables: Placeholder values; publicLink and password feed the
            link button and password box
        locale: pt-BR or en-US, drives fixed labels

    Returns:
        RenderedEmail(subject, html, text)
    """
    settings = template.get("settings") or {}
    all_variables = {
        **variables,
        "ctaButtonText": settings.get("ctaButtonText") or ("Ver Cotação" if locale == "pt-BR" else "View Quote"),
        "clinicName": branding.get("company_name") or variables.get("clinicName") or "",
    }

    subject = substitute_variables(template.get("subject"), all_variables)
    body_text = substitute_variables(template.get("body"), all_variables)

    return RenderedEmail(
        subject=subject,
        html=_html_shell(body_text, subject, branding, settings, all_variables, locale),
        text=_plain_text(body_text, all_variables, locale),
    )


def render_preview(
    template: Dict[str, Any],
    branding: Dict[str, Any],
    locale: str = "en-US"
) -> RenderedEmail:
    """Render a template with sample values for the settings screen."""
    pt = locale == "pt-BR"
    sample_variables = {
        "quoteNumber": "QUO000123",
        "preventionNumber": "PRV000123",
        "documentNumber": "QUO000123",
        "patientName": "Maria Silva" if pt else "John Doe",
        "clinicName": branding.get("company_name") or ("Clínica Exemplo" if pt else "Example Clinic"),
        "publicLink": "https://example.com/quote/abc123",
        "password": "ABC123",
    }
    return render_email(template, branding, sample_variables, locale)
