import asyncio
import json

import httpx

from slotbook.services.notification_service import (
    TelegramNotifier,
    build_booking_message,
    notify_provider,
)


def telegram(handler, token="test-token"):
    return TelegramNotifier(
        bot_token=token,
        api_url="https://telegram.test",
        timeout=1,
        transport=httpx.MockTransport(handler),
    )


def test_sends_html_message_to_chat():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    delivered = asyncio.run(telegram(handler).notify("4242", "<b>New booking request</b>"))

    assert delivered
    assert len(requests) == 1
    assert str(requests[0].url) == "https://telegram.test/bottest-token/sendMessage"
    assert json.loads(requests[0].content) == {
        "chat_id": "4242",
        "text": "<b>New booking request</b>",
        "parse_mode": "HTML",
    }


def test_skips_without_token_or_channel():
    def handler(request):
        raise AssertionError("no request expected")

    assert not asyncio.run(telegram(handler, token=None).notify("4242", "hello"))
    assert not asyncio.run(telegram(handler).notify(None, "hello"))
    assert not asyncio.run(telegram(handler).notify("  ", "hello"))


def test_api_error_is_reported_not_raised():
    def handler(request):
        return httpx.Response(400, json={"ok": False, "description": "chat not found"})

    assert not asyncio.run(telegram(handler).notify("4242", "hello"))


def test_transport_error_is_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert not asyncio.run(telegram(handler).notify("4242", "hello"))


def test_notify_provider_absorbs_notifier_exceptions():
    class Exploding:
        async def notify(self, channel, message):
            raise RuntimeError("boom")

    assert asyncio.run(notify_provider(Exploding(), "4242", "hello")) is False


def test_booking_message_escapes_client_input():
    message = build_booking_message(
        provider_id=7,
        booking_id=31,
        client_name="Tom & <Jerry>",
        client_phone="+491701234567",
        scheduled_date="2026-03-03",
        start_time="10:00",
        duration_minutes=90,
        service_title="Cut & Color",
    )

    assert "Tom &amp; &lt;Jerry&gt;" in message
    assert "Service: Cut &amp; Color" in message
    assert "Date: 2026-03-03 10:00 (90 min)" in message
    assert message.endswith("/dashboard/7")
    assert "Booking #31" in message
