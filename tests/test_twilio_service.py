import httpx
import pytest

from app.services.twilio_service import TwilioService

pytestmark = pytest.mark.anyio


def make_service(handler):
    return TwilioService(
        account_sid="AC123",
        auth_token="token",
        from_number="+15550001111",
        transport=httpx.MockTransport(handler),
    )


async def test_send_sms_success():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    result = await make_service(handler).send_sms("+919999999999", "ShyamBooks OTP: 123456")

    assert result == {"success": True, "message_sid": "SM1", "status": "queued"}
    assert seen[0].url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    body = seen[0].content.decode()
    assert "To=%2B919999999999" in body
    assert "From=%2B15550001111" in body


async def test_send_sms_api_error():
    result = await make_service(lambda request: httpx.Response(400, json={"message": "bad"})).send_sms("1", "x")
    assert result["success"] is False
    assert "400" in result["error"]


async def test_send_sms_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = await make_service(handler).send_sms("1", "x")
    assert result == {"success": False, "error": "Twilio API timeout"}


async def test_unconfigured_service_fails_without_calling_out():
    service = TwilioService(transport=httpx.MockTransport(lambda request: pytest.fail("no call expected")))
    service.account_sid = None
    result = await service.send_sms("1", "x")
    assert result["success"] is False
