"""Unit tests for Submitter: start request body, addressing and response checks."""

from unittest.mock import AsyncMock

import pytest

from agentrun.core.config import RunnerConfig
from agentrun.core.exceptions import InvalidInputJson, MalformedRemoteResponse, RemoteSubmissionFailed
from agentrun.core.managers.submitter import Submitter
from agentrun.core.models.job import JobRequest


def response(status, payload=None):
    return {"status": status, "headers": {}, "json": payload, "body": ""}


@pytest.fixture
def mock_http_client():
    client = AsyncMock()
    client.post.return_value = response(200, {"workflow_version_execution_id": 123})
    return client


@pytest.fixture
def submitter(mock_http_client):
    return Submitter(mock_http_client, RunnerConfig(api_base_url="https://api.test/"))


def sent_body(client):
    return client.post.await_args.kwargs["json"]


class TestSubmit:
    @pytest.mark.asyncio
    async def test_returns_execution_handle(self, submitter, mock_http_client):
        request = JobRequest.from_fields("test-agent", input_variables='{"key": "value"}')

        handle = await submitter.submit(request)

        assert handle == 123
        mock_http_client.post.assert_awaited_once()
        assert mock_http_client.post.await_args.args[0] == "https://api.test/workflows/test-agent/run"
        assert sent_body(mock_http_client) == {
            "input_variables": {"key": "value"},
            "return_all_outputs": False,
        }

    @pytest.mark.asyncio
    async def test_missing_handle_is_malformed_response(self, submitter, mock_http_client):
        mock_http_client.post.return_value = response(200, {})

        with pytest.raises(MalformedRemoteResponse) as excinfo:
            await submitter.submit(JobRequest(target_name="test-agent"))

        assert str(excinfo.value) == "Missing workflow_version_execution_id in response"
        assert excinfo.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_2xx_is_submission_failure(self, submitter, mock_http_client):
        mock_http_client.post.return_value = response(401, {"message": "bad key"})

        with pytest.raises(RemoteSubmissionFailed) as excinfo:
            await submitter.submit(JobRequest(target_name="test-agent"))

        assert excinfo.value.upstream_status == 401
        assert excinfo.value.status_code == 401
        assert excinfo.value.upstream_body == {"message": "bad key"}

    @pytest.mark.asyncio
    async def test_target_name_is_url_encoded(self, submitter, mock_http_client):
        await submitter.submit(JobRequest(target_name="my agent/v2"))

        assert mock_http_client.post.await_args.args[0] == "https://api.test/workflows/my%20agent%2Fv2/run"

    @pytest.mark.asyncio
    async def test_invalid_input_json_fails_before_any_request(self, submitter, mock_http_client):
        with pytest.raises(InvalidInputJson) as excinfo:
            await submitter.submit(JobRequest(target_name="a", input_variables="invalid json"))

        assert "Input Variables" in str(excinfo.value)
        mock_http_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_metadata_json(self, submitter, mock_http_client):
        with pytest.raises(InvalidInputJson) as excinfo:
            await submitter.submit(JobRequest(target_name="a", metadata="invalid json"))

        assert excinfo.value.field == "Metadata"
        mock_http_client.post.assert_not_awaited()


class TestBuildBody:
    def test_version_number_takes_precedence_over_label(self, submitter):
        request = JobRequest.from_fields("a", version_number=5, label_name="production")

        body = submitter.build_body(request)

        assert body["workflow_version_number"] == 5
        assert "workflow_label_name" not in body

    def test_label_name(self, submitter):
        body = submitter.build_body(JobRequest.from_fields("a", label_name="production"))
        assert body["workflow_label_name"] == "production"
        assert "workflow_version_number" not in body

    def test_return_all_outputs_flag(self, submitter):
        body = submitter.build_body(JobRequest.from_fields("a", return_all_outputs="true"))
        assert body["return_all_outputs"] is True

    def test_metadata_included_when_present(self, submitter):
        body = submitter.build_body(JobRequest.from_fields("a", metadata='{"key": "value"}'))
        assert body["metadata"] == {"key": "value"}

    @pytest.mark.parametrize("metadata", [None, "", "{}", {}])
    def test_empty_metadata_is_omitted(self, submitter, metadata):
        body = submitter.build_body(JobRequest.from_fields("a", metadata=metadata))
        assert "metadata" not in body

    def test_input_variables_with_literal_newlines_are_recovered(self, submitter):
        body = submitter.build_body(JobRequest.from_fields("a", input_variables='{"text": "one\ntwo"}'))
        assert body["input_variables"] == {"text": "one\ntwo"}

    def test_structured_input_variables_pass_through(self, submitter):
        body = submitter.build_body(JobRequest(target_name="a", input_variables={"n": 1}))
        assert body["input_variables"] == {"n": 1}

    def test_callback_target_is_sent(self, submitter):
        request = JobRequest(target_name="a", callback_target="https://hooks.test/cb/1")
        body = submitter.build_body(request)
        assert body["callback_url"] == "https://hooks.test/cb/1"

    def test_no_callback_url_in_poll_mode(self, submitter):
        assert "callback_url" not in submitter.build_body(JobRequest(target_name="a"))
