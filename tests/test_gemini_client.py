import asyncio
import json

import httpx
import pytest

from backend import gemini_client
from backend.errors import NoImageInResponse, UpstreamFailure
from config.settings import settings


def run_with(handler, coro_factory):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await coro_factory(client)

    return asyncio.run(_run())


def image_response(*parts):
    return {"candidates": [{"content": {"parts": list(parts)}}]}


def test_build_payload_puts_image_before_text():
    payload = gemini_client.build_payload("QUJD", "image/jpeg", "on a mug")
    parts = payload["contents"][0]["parts"]
    assert parts[0] == {"inline_data": {"mime_type": "image/jpeg", "data": "QUJD"}}
    assert parts[1] == {"text": "on a mug"}
    assert payload["generationConfig"]["responseModalities"] == ["IMAGE"]


def test_extract_first_image_skips_text_parts():
    response = image_response(
        {"text": "here you go"},
        {"inlineData": {"mimeType": "image/png", "data": "Rmlyc3Q="}},
        {"inlineData": {"mimeType": "image/png", "data": "U2Vjb25k"}},
    )
    assert gemini_client.extract_first_image(response) == ("Rmlyc3Q=", "image/png")


def test_extract_first_image_accepts_snake_case():
    response = image_response({"inline_data": {"mime_type": "image/webp", "data": "eHl6"}})
    assert gemini_client.extract_first_image(response) == ("eHl6", "image/webp")


def test_extract_first_image_only_looks_at_first_candidate():
    response = {
        "candidates": [
            {"content": {"parts": [{"text": "no image"}]}},
            {"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "eHl6"}}]}},
        ]
    }
    assert gemini_client.extract_first_image(response) is None


@pytest.mark.parametrize("response", [{}, {"candidates": []}, {"candidates": [{}]}])
def test_extract_first_image_handles_empty_responses(response):
    assert gemini_client.extract_first_image(response) is None


def test_generate_visual_posts_to_model_and_returns_image():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=image_response({"inlineData": {"mimeType": "image/png", "data": "UE5H"}}))

    result = run_with(handler, lambda c: gemini_client.generate_visual("SlBH", "image/jpeg", "billboard", client=c))

    assert result == ("UE5H", "image/png")
    assert seen["url"].endswith(f"/models/{settings.GEMINI_MODEL}:generateContent")
    assert seen["key"] == settings.GEMINI_API_KEY
    assert seen["body"]["contents"][0]["parts"][1]["text"] == "billboard"


def test_remove_background_uses_fixed_prompt():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=image_response({"inlineData": {"mimeType": "image/png", "data": "UE5H"}}))

    run_with(handler, lambda c: gemini_client.remove_background("SlBH", "image/jpeg", client=c))

    assert seen["body"]["contents"][0]["parts"][1]["text"] == gemini_client.BACKGROUND_REMOVAL_PROMPT


def test_no_image_part_raises_no_image_in_response():
    def handler(request):
        return httpx.Response(200, json=image_response({"text": "I cannot do that"}))

    with pytest.raises(NoImageInResponse):
        run_with(handler, lambda c: gemini_client.generate_visual("SlBH", "image/jpeg", "mug", client=c))


def test_upstream_error_message_is_preserved():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}})

    with pytest.raises(UpstreamFailure) as exc:
        run_with(handler, lambda c: gemini_client.generate_visual("SlBH", "image/jpeg", "mug", client=c))
    assert exc.value.message == "Failed to generate visual: API key not valid"


def test_removal_upstream_error_is_prefixed():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(UpstreamFailure) as exc:
        run_with(handler, lambda c: gemini_client.remove_background("SlBH", "image/jpeg", client=c))
    assert exc.value.message.startswith("Failed to remove background: HTTP 500")


def test_transport_error_becomes_upstream_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamFailure) as exc:
        run_with(handler, lambda c: gemini_client.generate_visual("SlBH", "image/jpeg", "mug", client=c))
    assert "connection refused" in exc.value.message
