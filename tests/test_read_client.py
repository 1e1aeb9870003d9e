"""Отправка файла в Read API и цикл опроса статуса."""

import asyncio

import httpx
import pytest

from conftest import ENDPOINT, OPERATION_URL, FakeAzure
from vision_ocr.errors import NetworkFailure, PollTimeout, ProcessingFailed, SubmissionRejected
from vision_ocr.schemas import AnalysisJob, JobState
from vision_ocr.services.read_client import ReadClient


def _client(fake: FakeAzure, sleep, **kwargs) -> ReadClient:
    return ReadClient(ENDPOINT, "test-key", transport=fake.transport, sleep=sleep, **kwargs)


def _submit(client: ReadClient, data: bytes = b"image-bytes") -> str:
    async def go():
        async with client.open() as http:
            return await client.submit(http, data)

    return asyncio.run(go())


def _poll(client: ReadClient) -> tuple[AnalysisJob, object]:
    job = AnalysisJob(source_file=b"x", filename="x.png", status_url=OPERATION_URL)

    async def go():
        async with client.open() as http:
            return await client.poll(http, job)

    try:
        return job, asyncio.run(go())
    except Exception as e:
        return job, e


def test_submit_sends_raw_bytes_with_key(sleep):
    fake = FakeAzure()
    status_url = _submit(_client(fake, sleep), b"\x89PNG-data")

    assert status_url == OPERATION_URL
    request = fake.posts[0]
    assert str(request.url) == ENDPOINT + "vision/v3.2/read/analyze"
    assert request.headers["Ocp-Apim-Subscription-Key"] == "test-key"
    assert request.headers["Content-Type"] == "application/octet-stream"
    assert request.content == b"\x89PNG-data"


def test_submit_tolerates_endpoint_without_trailing_slash(sleep):
    fake = FakeAzure()
    client = ReadClient(ENDPOINT.rstrip("/"), "test-key", transport=fake.transport, sleep=sleep)
    _submit(client)

    assert str(fake.posts[0].url) == ENDPOINT + "vision/v3.2/read/analyze"


def test_submit_passes_language(sleep):
    fake = FakeAzure()
    _submit(_client(fake, sleep, language="pt"))

    assert fake.posts[0].url.params["language"] == "pt"


@pytest.mark.parametrize("status_code", [200, 400, 401, 500])
def test_non_202_is_rejected_with_status(sleep, status_code):
    fake = FakeAzure(submit_status=status_code, submit_body={"message": "bad image"})

    with pytest.raises(SubmissionRejected) as exc:
        _submit(_client(fake, sleep))

    assert exc.value.status_code == status_code
    assert "bad image" in exc.value.message
    assert fake.polls == []


def test_rejection_message_from_azure_error_body(sleep):
    fake = FakeAzure(
        submit_status=401,
        submit_body={"error": {"code": "401", "message": "Access denied due to invalid subscription key."}},
    )

    with pytest.raises(SubmissionRejected) as exc:
        _submit(_client(fake, sleep))

    assert exc.value.message == "Ошибка 401: Access denied due to invalid subscription key."


def test_rejection_message_falls_back_to_reason_phrase(sleep):
    fake = FakeAzure(submit_status=415)

    with pytest.raises(SubmissionRejected) as exc:
        _submit(_client(fake, sleep))

    assert exc.value.message == "Ошибка 415: Unsupported Media Type"


def test_missing_operation_location_is_rejected(sleep):
    fake = FakeAzure(operation_location=None)

    with pytest.raises(SubmissionRejected) as exc:
        _submit(_client(fake, sleep))

    assert exc.value.status_code == 202


def test_transport_error_on_submit_is_network_failure(sleep):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = ReadClient(ENDPOINT, "test-key", transport=httpx.MockTransport(handler), sleep=sleep)

    with pytest.raises(NetworkFailure):
        _submit(client)


def test_poll_stops_at_first_success(sleep):
    fake = FakeAzure(statuses=["notStarted", "running", "succeeded", "succeeded"])
    job, payload = _poll(_client(fake, sleep))

    assert payload["status"] == "succeeded"
    assert len(fake.polls) == 3
    assert job.attempts_made == 3
    assert job.state is JobState.SUCCEEDED
    assert sleep.calls == [3.0, 3.0, 3.0]
    assert fake.polls[0].headers["Ocp-Apim-Subscription-Key"] == "test-key"


def test_poll_failed_status(sleep):
    fake = FakeAzure(statuses=["running", "failed"])
    job, error = _poll(_client(fake, sleep))

    assert isinstance(error, ProcessingFailed)
    assert job.state is JobState.FAILED
    assert len(fake.polls) == 2


def test_poll_times_out_after_max_attempts(sleep):
    fake = FakeAzure(statuses=["running"])
    job, error = _poll(_client(fake, sleep))

    assert isinstance(error, PollTimeout)
    assert len(fake.polls) == 15
    assert job.attempts_made == 15
    assert job.state is JobState.TIMED_OUT


def test_poll_succeeds_on_last_attempt(sleep):
    fake = FakeAzure(statuses=["running"] * 14 + ["succeeded"])
    job, payload = _poll(_client(fake, sleep))

    assert payload["status"] == "succeeded"
    assert len(fake.polls) == 15


def test_poll_uses_configured_cadence(sleep):
    fake = FakeAzure(statuses=["running"])
    job, error = _poll(_client(fake, sleep, max_attempts=4, poll_interval=0.5))

    assert isinstance(error, PollTimeout)
    assert sleep.calls == [0.5] * 4


def test_poll_http_error_is_network_failure(sleep):
    def handler(request):
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": OPERATION_URL})
        return httpx.Response(500, text="oops")

    client = ReadClient(ENDPOINT, "test-key", transport=httpx.MockTransport(handler), sleep=sleep)
    job, error = _poll(client)

    assert isinstance(error, NetworkFailure)
    assert job.attempts_made == 1


def test_poll_invalid_json_is_network_failure(sleep):
    def handler(request):
        return httpx.Response(200, text="<html>not json</html>")

    client = ReadClient(ENDPOINT, "test-key", transport=httpx.MockTransport(handler), sleep=sleep)
    job, error = _poll(client)

    assert isinstance(error, NetworkFailure)


def test_malformed_endpoint_is_network_failure(sleep):
    fake = FakeAzure()
    client = ReadClient("https://host:notaport/", "test-key", transport=fake.transport, sleep=sleep)

    with pytest.raises(NetworkFailure):
        _submit(client)

    assert fake.requests == []


def test_malformed_status_url_is_network_failure(sleep):
    fake = FakeAzure()
    client = _client(fake, sleep)
    job = AnalysisJob(source_file=b"x", filename="x.png", status_url="https://host:notaport/op")

    async def go():
        async with client.open() as http:
            return await client.poll(http, job)

    with pytest.raises(NetworkFailure):
        asyncio.run(go())

    assert job.attempts_made == 1
    assert fake.polls == []
