"""Outbound user notifications."""

import logging
from typing import Any, Mapping, Optional

from .api import SMSClient
from .utils import format_phone_number, mask_phone_number

logger = logging.getLogger(__name__)

TEMPLATES: dict[str, str] = {
    "quiz_result": (
        "Quiz Complete! {name}, you scored {correct_answers}/{total_questions} "
        "({percentage}%)!{prize_line}"
    ),
    "prize_won": (
        "Congratulations {name}! You've won: {prize_name}! Your claim code is: "
        "{claim_code}. Please save this code to claim your prize."
    ),
}


def render_message(template_kind: str, payload: Mapping[str, Any]) -> str:
    """Fill the ``template_kind`` template from ``payload``.

    Raises
    ------
    ValueError
        If the template is unknown or a placeholder has no value.
    """
    try:
        template = TEMPLATES[template_kind]
    except KeyError:
        raise ValueError(f"Unknown notification template '{template_kind}'") from None

    values = {"name": "Player", **payload}
    if template_kind == "quiz_result":
        total = values.get("total_questions") or 0
        correct = values.get("correct_answers") or 0
        values["percentage"] = round(correct / total * 100) if total else 0
        if values.get("prize_name") and values.get("claim_code"):
            values["prize_line"] = (
                f" Congratulations! You've won: {values['prize_name']}! "
                f"Claim code: {values['claim_code']}"
            )
        else:
            values["prize_line"] = (
                " Keep playing daily for more chances to win amazing prizes!"
            )
    try:
        return template.format(**values)
    except KeyError as e:
        raise ValueError(f"Missing value {e} for template '{template_kind}'") from e


class Notifier:
    """Notification sink that only logs; subclasses deliver for real."""

    def notify(self, user_id: int, template_kind: str, payload: Mapping[str, Any]) -> None:
        logger.debug(f"Notification '{template_kind}' for user {user_id} not delivered")


class SMSNotifier(Notifier):
    """Deliver notifications as SMS through :class:`SMSClient`.

    ``payload`` must carry the recipient's ``phone_number`` along with the
    template values.
    """

    def __init__(self, client: Optional[SMSClient] = None):
        self.client = client or SMSClient()

    def notify(self, user_id: int, template_kind: str, payload: Mapping[str, Any]) -> None:
        phone_number = payload.get("phone_number")
        if not phone_number:
            raise ValueError(f"User {user_id} has no phone number to notify")
        message = render_message(template_kind, payload)
        formatted = format_phone_number(phone_number)
        self.client.send(formatted, message)
        logger.info(
            f"Sent '{template_kind}' notification to user {user_id} "
            f"({mask_phone_number(formatted)})"
        )
