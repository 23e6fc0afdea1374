# fitwork/services/email_service.py
from flask import current_app, render_template
from flask_mail import Message
from jinja2 import TemplateNotFound

from ..extensions import mail
import logging

log = logging.getLogger(__name__)


def send_email(*, to, subject, template, **ctx) -> bool:
    """Render ``email/<template>`` (plus an optional ``.txt`` twin) and send it.

    Returns False instead of raising; a failed notification never fails the
    request that triggered it.
    """
    try:
        if not to:
            log.warning("send_email: missing recipient")
            return False
        recipients = [to] if isinstance(to, str) else list(to)
        html = render_template(f"email/{template}", **ctx)
        txt = None
        try:
            base = template.rsplit(".", 1)[0]
            txt = render_template(f"email/{base}.txt", **ctx)
        except TemplateNotFound:
            pass

        sender = current_app.config.get("MAIL_DEFAULT_SENDER") or current_app.config.get("MAIL_USERNAME")
        if not sender:
            log.error("send_email: no sender configured")
            return False

        msg = Message(subject=subject, recipients=recipients, sender=sender)
        if txt:
            msg.body = txt
        msg.html = html

        if current_app.config.get("MAIL_SUPPRESS_SEND"):
            log.info("[MAIL_SUPPRESS_SEND=1] would send: %s | %s", recipients, subject)
            return True

        mail.send(msg)
        log.info("Email sent to %s | subject=%s", recipients, subject)
        return True
    except Exception as e:
        log.exception("send_email failed: %s", e)
        return False


def send_review_result(profile) -> bool:
    approved = profile.status == "verified"
    subject = "Your FitWork profile is live" if approved else "Your FitWork profile needs changes"
    return send_email(
        to=profile.email or (profile.user.email if profile.user else None),
        subject=subject,
        template="profile_review.html",
        profile=profile,
        approved=approved,
        base_url=current_app.config.get("EXTERNAL_BASE_URL", ""),
    )


def send_application_update(application) -> bool:
    applicant = application.applicant
    return send_email(
        to=applicant.email if applicant else None,
        subject=f"Update on your application: {application.posting.title}",
        template="application_status.html",
        application=application,
        posting=application.posting,
        applicant=applicant,
    )


def send_signin_link(email: str, link: str) -> bool:
    return send_email(
        to=email,
        subject="Your FitWork sign-in link",
        template="signin_link.html",
        link=link,
        max_age_minutes=current_app.config.get("SIGNIN_LINK_MAX_AGE", 3600) // 60,
    )
