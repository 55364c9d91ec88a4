"""
Confirmation email decoder.

Confirmation emails reach the queue as an SNS envelope whose ``Message`` is
an SES notification:

  {"Message": "{\"mail\": {\"destination\": [\"a@example.com\"]},
                \"content\": \"<base64 of the raw MIME message>\"}"}

The MIME text is quoted-printable encoded and carries exactly one
confirmation link of the shape

  <a href="scheme://host/<resource>/<token>?...">

The token is the last path segment before the query string. This link
shape is a contract with the service that sends the emails; the pattern
below is deliberately not a general HTML parser.
"""

import base64
import json
import quopri
import re

from ..logging_config import get_logger
from ..models import Confirmation

logger = get_logger(__name__)

CONFIRMATION_LINK = re.compile(r"""<a href=["'][^:]+://[^/]+/[^/]+/([^?]+)\?""")


def decode_content(content: str) -> str:
    """Reverse base64 then quoted-printable transport encoding."""
    raw = base64.b64decode(content, validate=False)
    return quopri.decodestring(raw).decode("utf-8", errors="replace")


def extract(raw: str | bytes) -> Confirmation | None:
    """
    Extract recipient and token from a raw queue message body.

    Args:
        raw: Message body as received from the queue

    Returns:
        Confirmation, or None if the body is malformed or has no
        confirmation link. Never raises for bad input.
    """
    try:
        envelope = json.loads(raw)
        notification = json.loads(envelope["Message"])
        recipient = notification["mail"]["destination"][0]
        text = decode_content(notification["content"])
    except (ValueError, KeyError, IndexError, TypeError, RecursionError) as e:
        logger.debug("Not a confirmation email: %s", e)
        return None

    match = CONFIRMATION_LINK.search(text)
    if not match or not match.group(1):
        logger.debug("No confirmation link in email to %s", recipient)
        return None

    return Confirmation(recipient=recipient, token=match.group(1))
