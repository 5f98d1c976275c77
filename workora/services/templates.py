from html import escape

BRAND = "Work-Ora"


def _layout(title: str, body_lines: list[str]) -> str:
    body = "\n".join(f"<p>{line}</p>" for line in body_lines)
    return (
        "<!DOCTYPE html>"
        f"<html><body style=\"font-family: Arial, sans-serif;\">"
        f"<h2>{escape(title)}</h2>{body}"
        f"<p>Best regards,<br/>The {BRAND} Team</p>"
        "</body></html>"
    )


def forgot_password_template(reset_link: str) -> str:
    link = escape(reset_link, quote=True)
    return _layout(
        "Reset your password",
        [
            "We received a request to reset your password.",
            f"<a href=\"{link}\">Click here to choose a new password</a>",
            "This link expires in 15 minutes. If you did not ask for a reset, you can ignore this email.",
        ],
    )


def application_status_template(job_title: str, status: str) -> str:
    return _layout(
        "Your application was updated",
        [
            f"Your application for <strong>{escape(job_title or 'the role')}</strong> "
            f"is now: <strong>{escape(status)}</strong>.",
            f"Log in to {BRAND} to see the details.",
        ],
    )
