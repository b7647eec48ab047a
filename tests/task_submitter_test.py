from unittest.mock import MagicMock

import httpx
import pytest

from mock_service import BASE_URL, json_body, ok
from tripo3d import (
    ApiError,
    InputNotFoundError,
    ResponseShapeError,
    TransportError,
    TripoClient,
    UploadStrategy,
)

TOKEN = "123e4567-e89b-12d3-a456-426614174000"


# --- Text jobs ---


@pytest.mark.asyncio
async def test_text_to_model_sends_prompt(service, client):
    service.add("POST", "task", ok({"task_id": "task_text"}))

    response = await client.text_to_model("a delicious hamburger")

    assert response.task_id == "task_text"
    request = service.calls("POST", "task")[0]
    assert json_body(request) == {"type": "text_to_model", "prompt": "a delicious hamburger"}
    assert request.headers["Authorization"] == "Bearer test_api_key"


@pytest.mark.asyncio
async def test_api_error_keeps_status_and_json_body(service, client):
    service.add("POST", "task", {"status_code": 400, "json": {"code": 2002, "message": "prompt too long"}})

    with pytest.raises(ApiError) as exc_info:
        await client.text_to_model("x" * 5000)

    assert exc_info.value.status_code == 400
    assert exc_info.value.is_client_error
    assert exc_info.value.body == {"code": 2002, "message": "prompt too long"}


@pytest.mark.asyncio
async def test_api_error_with_non_json_body_passes_text_through(service, client):
    service.add("POST", "task", {"status_code": 502, "text": "<html>Bad Gateway</html>"})

    with pytest.raises(ApiError) as exc_info:
        await client.text_to_model("robot")

    assert exc_info.value.is_server_error
    assert exc_info.value.body == "<html>Bad Gateway</html>"


@pytest.mark.asyncio
async def test_api_error_with_empty_body_is_still_an_error(service, client):
    service.add("POST", "task", {"status_code": 500})

    with pytest.raises(ApiError) as exc_info:
        await client.text_to_model("robot")

    assert exc_info.value.body == {}


@pytest.mark.asyncio
async def test_success_without_task_id_is_a_shape_error(service, client):
    service.add("POST", "task", ok({"id": "wrong_field"}))

    with pytest.raises(ResponseShapeError):
        await client.text_to_model("robot")


@pytest.mark.asyncio
async def test_network_failure_is_transport_error(settings):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = TripoClient(
        "test_api_key",
        BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
        settings=settings,
    )

    with pytest.raises(TransportError) as exc_info:
        await client.text_to_model("robot")

    assert isinstance(exc_info.value.original_error, httpx.ConnectError)


# --- Image jobs via descriptor ---


@pytest.mark.asyncio
async def test_image_to_model_with_url(service, client):
    image_url = "http://example.com/image.jpeg"
    service.add("POST", "task", ok({"task_id": "task_from_url"}))

    response = await client.image_to_model(image_url)

    assert response.task_id == "task_from_url"
    assert json_body(service.calls("POST", "task")[0]) == {
        "type": "image_to_model",
        "file": {"type": "jpeg", "url": image_url},
    }


@pytest.mark.asyncio
async def test_image_to_model_with_file_token(service, client):
    service.add("POST", "task", ok({"task_id": "task_from_token"}))

    response = await client.image_to_model(TOKEN)

    assert response.task_id == "task_from_token"
    assert json_body(service.calls("POST", "task")[0]) == {
        "type": "image_to_model",
        "file": {"type": "jpeg", "file_token": TOKEN},
    }
    assert service.calls("POST", "upload/sts") == []


@pytest.mark.asyncio
async def test_image_to_model_with_local_file(service, client, tmp_path):
    """
    Scenario: A local PNG path is given.
    Expectation: It is uploaded first, then referenced by token with type png.
    """
    image = tmp_path / "test.png"
    image.write_bytes(b"dummy")
    service.add("POST", "upload/sts", ok({"image_token": "mock-file-token-from-upload"}))
    service.add("POST", "task", ok({"task_id": "task_from_file"}))

    response = await client.image_to_model(str(image))

    assert response.task_id == "task_from_file"
    assert json_body(service.calls("POST", "task")[0]) == {
        "type": "image_to_model",
        "file": {"type": "png", "file_token": "mock-file-token-from-upload"},
    }


@pytest.mark.asyncio
async def test_image_to_model_with_s3_strategy(service, make_client, tmp_path):
    image = tmp_path / "photo.webp"
    image.write_bytes(b"RIFF")
    service.add(
        "POST",
        "upload/sts/token",
        ok(
            {
                "sts_ak": "ak",
                "sts_sk": "sk",
                "session_token": "st",
                "resource_bucket": "bucket",
                "resource_uri": "key/photo.webp",
            }
        ),
    )
    service.add("POST", "task", ok({"task_id": "task_from_s3"}))
    client = make_client(upload_strategy=UploadStrategy.S3)
    client._resolver.uploader._session_factory = MagicMock()

    response = await client.image_to_model(str(image))

    assert response.task_id == "task_from_s3"
    assert json_body(service.calls("POST", "task")[0]) == {
        "type": "image_to_model",
        "file": {"type": "webp", "object": {"bucket": "bucket", "key": "key/photo.webp"}},
    }
    assert service.calls("POST", "upload/sts") == []


@pytest.mark.asyncio
async def test_image_to_model_with_missing_file(service, client, tmp_path):
    with pytest.raises(InputNotFoundError):
        await client.image_to_model(str(tmp_path / "ghost.png"))

    assert service.requests == []


# --- Image jobs inline ---


@pytest.mark.asyncio
async def test_image_to_model_direct_sends_json_and_file_parts(service, client, tmp_path):
    image = tmp_path / "hamburger.jpg"
    image.write_bytes(b"\xff\xd8\xff jpeg bytes")
    service.add("POST", "task", ok({"task_id": "task_inline"}))

    response = await client.image_to_model_direct(image)

    assert response.task_id == "task_inline"
    request = service.calls("POST", "task")[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="data"' in body
    assert b'{"type": "image_to_model"}' in body
    assert b'name="file"; filename="hamburger.jpg"' in body
    assert b"Content-Type: image/jpeg" in body
    assert b"jpeg bytes" in body


@pytest.mark.asyncio
async def test_image_to_model_direct_missing_file(service, client, tmp_path):
    with pytest.raises(InputNotFoundError):
        await client.image_to_model_direct(tmp_path / "ghost.png")

    assert service.requests == []
