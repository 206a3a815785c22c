import os
import unittest
from unittest.mock import MagicMock, patch

import requests

from brainquiz.notify.api import SMSClient
from brainquiz.notify.notifier import SMSNotifier, render_message
from brainquiz.notify.utils import (
    format_phone_number,
    is_valid_phone_number,
    mask_phone_number,
)

TERMII_ENV = {"SMS_PROVIDER": "termii", "TERMII_API_KEY": "termii-key"}
TWILIO_ENV = {
    "SMS_PROVIDER": "twilio",
    "TWILIO_ACCOUNT_SID": "AC123",
    "TWILIO_AUTH_TOKEN": "secret",
    "TWILIO_PHONE_NUMBER": "+15005550006",
}
ALL_KEYS = (
    "SMS_PROVIDER",
    "TERMII_API_KEY",
    "TERMII_SENDER_ID",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_PHONE_NUMBER",
)


def _response(payload, status=200):
    resp = MagicMock()
    resp.content = b"{}"
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def _client(env, session):
    clean = {k: "" for k in ALL_KEYS}
    clean.update(env)
    with patch("brainquiz.notify.api.load_dotenv"), patch.dict(os.environ, clean):
        return SMSClient(session=session)


class TestPhoneHelpers(unittest.TestCase):
    def test_local_number_gets_country_code(self):
        self.assertEqual(format_phone_number("0803 123 4567"), "+2348031234567")

    def test_international_number_kept(self):
        self.assertEqual(format_phone_number("+234-803-123-4567"), "+2348031234567")

    def test_validation(self):
        self.assertTrue(is_valid_phone_number("08031234567"))
        self.assertTrue(is_valid_phone_number("+2349051234567"))
        self.assertFalse(is_valid_phone_number("0603123456"))
        self.assertFalse(is_valid_phone_number("12345"))

    def test_mask(self):
        self.assertEqual(mask_phone_number("+2348031234567"), "**********4567")


class TestRenderMessage(unittest.TestCase):
    def test_quiz_result_with_prize(self):
        text = render_message(
            "quiz_result",
            {
                "name": "Ada",
                "correct_answers": 8,
                "total_questions": 10,
                "prize_name": "MTN Airtime",
                "claim_code": "AI123456ABCD",
            },
        )
        self.assertIn("8/10 (80%)", text)
        self.assertIn("AI123456ABCD", text)

    def test_quiz_result_without_prize(self):
        text = render_message("quiz_result", {"correct_answers": 3, "total_questions": 10})
        self.assertIn("Player", text)
        self.assertIn("Keep playing", text)

    def test_unknown_template_or_missing_value(self):
        with self.assertRaises(ValueError):
            render_message("leaderboard", {})
        with self.assertRaises(ValueError):
            render_message("prize_won", {"name": "Ada"})


class TestSMSClient(unittest.TestCase):
    def test_termii_payload(self):
        session = MagicMock()
        session.request.return_value = _response({"message_id": "m-1"})
        client = _client(TERMII_ENV, session)

        result = client.send("+2348031234567", "hello")

        self.assertEqual(result, {"success": True, "messageId": "m-1", "provider": "termii"})
        kwargs = session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "POST")
        self.assertEqual(kwargs["url"], "https://api.ng.termii.com/api/sms/send")
        self.assertEqual(kwargs["json"]["to"], "+2348031234567")
        self.assertEqual(kwargs["json"]["from"], "BrainQuiz")
        self.assertEqual(kwargs["json"]["api_key"], "termii-key")

    def test_twilio_uses_basic_auth_form_post(self):
        session = MagicMock()
        session.request.return_value = _response({"sid": "SM1"})
        client = _client(TWILIO_ENV, session)

        result = client.send("+2348031234567", "hello")

        self.assertEqual(result["provider"], "twilio")
        kwargs = session.request.call_args.kwargs
        self.assertEqual(
            kwargs["url"], "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        )
        self.assertEqual(kwargs["auth"], ("AC123", "secret"))
        self.assertEqual(kwargs["data"]["Body"], "hello")

    def test_falls_back_to_other_provider(self):
        session = MagicMock()
        session.request.side_effect = [
            _response({}, status=500),
            _response({"message_id": "m-2"}),
        ]
        client = _client({**TWILIO_ENV, **{"TERMII_API_KEY": "termii-key"}}, session)

        result = client.send("+2348031234567", "hello")
        self.assertEqual(result["provider"], "termii")
        self.assertEqual(session.request.call_count, 2)

    def test_no_provider_configured(self):
        client = _client({"SMS_PROVIDER": "termii"}, MagicMock())
        with self.assertRaises(RuntimeError):
            client.send("+2348031234567", "hello")

    def test_unknown_provider_rejected(self):
        with self.assertRaises(ValueError):
            _client({"SMS_PROVIDER": "pigeon"}, MagicMock())

    def test_termii_rejection_raises(self):
        session = MagicMock()
        session.request.return_value = _response({"message": "Insufficient balance"})
        client = _client(TERMII_ENV, session)
        with self.assertRaises(RuntimeError):
            client.send("+2348031234567", "hello")

    def test_termii_balance(self):
        session = MagicMock()
        session.request.return_value = _response({"balance": 1250.5, "currency": "NGN"})
        client = _client(TERMII_ENV, session)

        self.assertEqual(
            client.check_balance(),
            {"balance": 1250.5, "currency": "NGN", "provider": "termii"},
        )
        kwargs = session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "GET")
        self.assertEqual(kwargs["url"], "https://api.ng.termii.com/api/get-balance")
        self.assertEqual(kwargs["params"], {"api_key": "termii-key"})

    def test_twilio_balance_defaults_currency(self):
        session = MagicMock()
        session.request.return_value = _response({"balance": "12.30"})
        client = _client(TWILIO_ENV, session)

        balance = client.check_balance()
        self.assertEqual(balance["currency"], "USD")
        self.assertEqual(balance["provider"], "twilio")
        kwargs = session.request.call_args.kwargs
        self.assertEqual(
            kwargs["url"], "https://api.twilio.com/2010-04-01/Accounts/AC123/Balance.json"
        )
        self.assertEqual(kwargs["auth"], ("AC123", "secret"))

    def test_balance_requires_credentials(self):
        client = _client({"SMS_PROVIDER": "termii"}, MagicMock())
        with self.assertRaises(RuntimeError):
            client.check_balance()


class TestSMSNotifier(unittest.TestCase):
    def test_formats_number_and_sends_rendered_template(self):
        client = MagicMock()
        notifier = SMSNotifier(client)
        notifier.notify(
            7,
            "prize_won",
            {
                "name": "Ada",
                "phone_number": "08031234567",
                "prize_name": "MTN Airtime",
                "claim_code": "AI123456ABCD",
            },
        )
        phone, message = client.send.call_args.args
        self.assertEqual(phone, "+2348031234567")
        self.assertIn("Congratulations Ada", message)
        self.assertIn("AI123456ABCD", message)

    def test_missing_phone_number(self):
        with self.assertRaises(ValueError):
            SMSNotifier(MagicMock()).notify(7, "prize_won", {"name": "Ada"})


if __name__ == "__main__":
    unittest.main()
