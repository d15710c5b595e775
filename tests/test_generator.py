"""
Tests for the watsonx.ai generator client
"""
import threading
import time
from unittest.mock import Mock, patch

import pytest

from app.compliance.errors import (
    BackendEmptyReply,
    BackendRequestFailed,
    BackendUnavailable,
)
from app.compliance.generator import GeneratorClient
from tests.fakes import make_settings


@pytest.fixture
def model():
    return Mock(spec=["generate"])


def test_returns_generated_text(model):
    model.generate.return_value = {"results": [{"generated_text": ' {"status": "Yes"} '}]}
    client = GeneratorClient(make_settings(), model=model)

    assert client.generate("prompt") == '{"status": "Yes"}'
    model.generate.assert_called_once()
    assert model.generate.call_args.kwargs["prompt"] == "prompt"


@pytest.mark.parametrize("missing", ["ibm_cloud_api_key", "watsonx_project_id"])
def test_missing_credentials(missing):
    with pytest.raises(BackendUnavailable):
        GeneratorClient(make_settings(**{missing: ""}))


def test_transport_error_is_wrapped(model):
    model.generate.side_effect = ConnectionError("connection reset")
    client = GeneratorClient(make_settings(), model=model)

    with pytest.raises(BackendRequestFailed) as excinfo:
        client.generate("prompt")

    assert isinstance(excinfo.value.__cause__, ConnectionError)
    # No retries inside the client.
    assert model.generate.call_count == 1


@pytest.mark.parametrize(
    "response",
    [
        {"results": [{"generated_text": "   "}]},
        {"results": []},
        {},
        "",
    ],
)
def test_empty_reply(model, response):
    model.generate.return_value = response
    client = GeneratorClient(make_settings(), model=model)

    with pytest.raises(BackendEmptyReply):
        client.generate("prompt")


def test_timeout_is_reported_as_request_failure(model):
    model.generate.side_effect = lambda **kwargs: time.sleep(0.5)
    client = GeneratorClient(make_settings(request_timeout=0.05), model=model)

    with pytest.raises(BackendRequestFailed, match="timed out"):
        client.generate("prompt")


def test_timed_out_call_does_not_overlap_next_call(model):
    lock = threading.Lock()
    active = [0]
    peak = [0]
    calls = []

    def slow_then_fast(**kwargs):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
            calls.append(kwargs["prompt"])
        try:
            if len(calls) == 1:
                time.sleep(0.3)
            return {"generated_text": "ok"}
        finally:
            with lock:
                active[0] -= 1

    model.generate.side_effect = slow_then_fast
    client = GeneratorClient(
        make_settings(request_timeout=0.05, max_workers=4), model=model
    )

    with pytest.raises(BackendRequestFailed, match="timed out"):
        client.generate("first")
    assert client.generate("second") == "ok"

    assert calls == ["first", "second"]
    assert peak[0] == 1


def test_wait_idle_returns_immediately_without_abandoned_calls(model):
    client = GeneratorClient(make_settings(), model=model)

    client.wait_idle()

    model.generate.assert_not_called()


def test_model_built_lazily_from_settings():
    with patch("app.compliance.generator.ModelInference") as model_cls, patch(
        "app.compliance.generator.Credentials"
    ) as credentials_cls:
        model_cls.return_value.generate.return_value = {"generated_text": "ok"}
        client = GeneratorClient(make_settings())

        model_cls.assert_not_called()
        assert client.generate("prompt") == "ok"

    credentials_cls.assert_called_once_with(
        api_key="test-key", url="https://us-south.ml.cloud.ibm.com"
    )
    model_cls.assert_called_once_with(
        model_id="ibm/granite-13b-instruct-v2",
        project_id="test-project",
        credentials=credentials_cls.return_value,
    )
