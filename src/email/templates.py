"""Email templates for the certificate system.

Each render_* function returns (html, plain_text). User-supplied values are
HTML-escaped before they are placed in markup.
"""

from datetime import UTC, datetime
from html import escape


SYSTEM_NAME = "Certificate System"
HEADER_TITLE = "Ministry of Health"


# ==============================================================================
# Base Template
# ==============================================================================

BASE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - {system_name}</title>
  <style>
    @media only screen and (max-width: 620px) {{
      .content-table {{ width: 100% !important; }}
      .content-padding {{ padding: 24px 20px !important; }}
      .detail-row td {{ display: block !important; width: 100% !important; }}
    }}
  </style>
</head>
<body style="margin: 0; padding: 0; background-color: #F4F4F4; font-family: Arial, sans-serif; color: #333333;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color: #F4F4F4;">
    <tr>
      <td align="center" style="padding: 32px 16px;">
        <table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background-color: #FFFFFF; border-radius: 10px; max-width: 600px;" class="content-table">
          <tr>
            <td style="padding: 28px; text-align: center; background: #667EEA; background: linear-gradient(135deg, #667EEA 0%, #764BA2 100%); border-radius: 10px 10px 0 0;">
              <h1 style="margin: 0; font-size: 26px; font-weight: bold; color: #FFFFFF; text-transform: uppercase;">
                {header_title}
              </h1>
            </td>
          </tr>
          <tr>
            <td style="padding: 32px;" class="content-padding">
              {content}
            </td>
          </tr>
          <tr>
            <td style="padding: 20px 32px; border-top: 1px solid #E9ECEF; text-align: center;">
              <p style="margin: 0; font-size: 12px; color: #6C757D; line-height: 1.6;">
                &copy; {year} {system_name}. This email was sent automatically, please do not reply.
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""

DETAIL_ROW = """
<tr class="detail-row">
  <td style="padding: 8px 0; border-bottom: 1px solid #E9ECEF; font-weight: bold; color: #495057;">{label}</td>
  <td style="padding: 8px 0; border-bottom: 1px solid #E9ECEF; color: #6C757D; text-align: right;">{value}</td>
</tr>
"""

ACCESS_BUTTON = """
<p style="text-align: center; margin: 28px 0;">
  <a href="{link}" style="display: inline-block; background-color: #667EEA; color: #FFFFFF; padding: 14px 28px; text-decoration: none; border-radius: 25px; font-weight: bold; font-size: 16px;">
    View Your Certificate
  </a>
</p>
<p style="margin: 0 0 16px; font-size: 13px; color: #6C757D; word-break: break-all;">
  If the button does not work, copy this link into your browser:<br>{link}
</p>
"""


def _wrap(title: str, content: str) -> str:
    return BASE_TEMPLATE.format(
        title=title,
        content=content,
        header_title=HEADER_TITLE,
        system_name=SYSTEM_NAME,
        year=datetime.now(UTC).year,
    )


def _expiry_text(expires_at: datetime | None) -> str:
    if expires_at is None:
        return ""
    return f"This link is valid until {expires_at.strftime('%d %b %Y, %H:%M')} UTC."


# ==============================================================================
# Template: Registration Successful
# ==============================================================================

REGISTRATION_CONTENT = """
<p style="margin: 0 0 20px; font-size: 18px; color: #2C3E50;">
  Dear <strong>{name}</strong>,<br>
  Congratulations! Your registration has been completed successfully.
</p>

<div style="background-color: #F8F9FA; padding: 16px 20px; border-radius: 8px; border-left: 4px solid #667EEA; margin: 20px 0;">
  <h3 style="margin: 0 0 8px; color: #2C3E50;">Your Registration Details</h3>
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0">
    {rows}
  </table>
</div>

<p style="margin: 0 0 8px; font-size: 15px;">
  To view your certificate later, log in with your email address and use your
  mobile number as the password.
</p>

{button}

<p style="margin: 0; font-size: 13px; color: #6C757D;">{expiry}</p>
"""


def render_registration_email(
    name: str,
    registration_number: str,
    email_id: str,
    mobile_no: str,
    course_name: str,
    access_link: str,
    expires_at: datetime | None = None,
) -> tuple[str, str]:
    """Render the "Registration Successful" email.

    Returns:
        Tuple of (html_content, plain_text_content)
    """
    details = [
        ("Registration Number", registration_number),
        ("Name", name),
        ("Email", email_id),
        ("Password (mobile number)", mobile_no),
        ("Course", course_name),
    ]
    rows = "".join(
        DETAIL_ROW.format(label=escape(label), value=escape(value))
        for label, value in details
        if value
    )
    content = REGISTRATION_CONTENT.format(
        name=escape(name),
        rows=rows,
        button=ACCESS_BUTTON.format(link=escape(access_link, quote=True)),
        expiry=escape(_expiry_text(expires_at)),
    )
    html = _wrap("Registration Successful", content)

    detail_lines = "\n".join(f"{label}: {value}" for label, value in details if value)
    plain_text = f"""
Registration Successful - {SYSTEM_NAME}

Dear {name},

Congratulations! Your registration has been completed successfully.

{detail_lines}

View your certificate: {access_link}
{_expiry_text(expires_at)}

To view your certificate later, log in with your email address and use your
mobile number as the password.
"""
    return html, plain_text.strip()


# ==============================================================================
# Template: Certificate Access Link
# ==============================================================================

ACCESS_LINK_CONTENT = """
<p style="margin: 0 0 20px; font-size: 18px; color: #2C3E50;">
  Dear <strong>{name}</strong>,
</p>
<p style="margin: 0 0 8px; font-size: 15px;">
  A new link to your certificate (registration number
  <strong>{registration_number}</strong>) has been generated for you.
</p>

{button}

<p style="margin: 0; font-size: 13px; color: #6C757D;">{expiry}</p>
"""


def render_access_link_email(
    name: str,
    registration_number: str,
    access_link: str,
    expires_at: datetime | None = None,
) -> tuple[str, str]:
    """Render the email carrying a freshly generated access link.

    Returns:
        Tuple of (html_content, plain_text_content)
    """
    content = ACCESS_LINK_CONTENT.format(
        name=escape(name),
        registration_number=escape(registration_number),
        button=ACCESS_BUTTON.format(link=escape(access_link, quote=True)),
        expiry=escape(_expiry_text(expires_at)),
    )
    html = _wrap("Your Certificate Link", content)

    plain_text = f"""
Your Certificate Link - {SYSTEM_NAME}

Dear {name},

A new link to your certificate (registration number {registration_number})
has been generated for you:

{access_link}
{_expiry_text(expires_at)}
"""
    return html, plain_text.strip()
