"""Tests for aws/logs.py module.

Uses botocore's Stubber so no requests reach AWS.
"""

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from conveyor_codebuild.aws.logs import CloudWatchLogService, CloudWatchLogStream

LOG_GROUP = "/aws/codebuild/conveyor-acme-inc"
LOG_STREAM = "0a1b2c3d-4e5f-6789-abcd-ef0123456789"


@pytest.fixture
def client():
    """Create a CloudWatch Logs client with dummy credentials."""
    return boto3.client(
        "logs",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(client):
    """Activate a Stubber on the CloudWatch Logs client."""
    with Stubber(client) as stub:
        yield stub
        stub.assert_no_pending_responses()


def _params(token: str | None = None) -> dict:
    params = {
        "logGroupName": LOG_GROUP,
        "logStreamName": LOG_STREAM,
        "startFromHead": True,
    }
    if token is not None:
        params["nextToken"] = token
    return params


def _page(messages: list[str], token: str) -> dict:
    return {
        "events": [
            {"timestamp": 1700000000000 + i, "message": m, "ingestionTime": 1700000000500}
            for i, m in enumerate(messages)
        ],
        "nextForwardToken": token,
        "nextBackwardToken": "b/0",
    }


def _checks(*values: bool):
    results = iter(values)
    return lambda: next(results)


class TestCloudWatchLogStream:
    """Tests for CloudWatchLogStream iteration."""

    def test_reads_until_complete(self, client, stubber):
        """Should follow the stream and drain it once the build is complete."""
        stubber.add_response("get_log_events", _page(["one", "two"], "f/1"), _params())
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stubber.add_response("get_log_events", _page(["three"], "f/2"), _params("f/1"))
        stubber.add_response("get_log_events", _page([], "f/2"), _params("f/2"))
        stubber.add_response("get_log_events", _page([], "f/2"), _params("f/2"))
        sleeps: list[float] = []
        stream = CloudWatchLogStream(
            client,
            LOG_GROUP,
            LOG_STREAM,
            until=_checks(False, True),
            poll_interval=2.0,
            sleep=sleeps.append,
        )

        chunks = list(stream)

        assert chunks == [b"one\n", b"two\n", b"three\n"]
        assert sleeps == [2.0]
        assert stream.closed is True

    def test_events_after_completion_are_drained(self, client, stubber):
        """Should still yield events flushed after the build completed."""
        stubber.add_response("get_log_events", _page([], "f/0"), _params())
        stubber.add_response("get_log_events", _page([], "f/0"), _params("f/0"))
        stubber.add_response("get_log_events", _page(["late"], "f/1"), _params("f/0"))
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stream = CloudWatchLogStream(
            client, LOG_GROUP, LOG_STREAM, until=_checks(True), sleep=lambda _: None
        )

        assert list(stream) == [b"late\n"]

    def test_empty_page_with_new_token_is_not_the_end(self, client, stubber):
        """Should keep draining while empty pages still advance the token."""
        stubber.add_response("get_log_events", _page(["a"], "f/1"), _params())
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stubber.add_response("get_log_events", _page([], "f/2"), _params("f/1"))
        stubber.add_response("get_log_events", _page(["tail"], "f/3"), _params("f/2"))
        stubber.add_response("get_log_events", _page([], "f/3"), _params("f/3"))
        stream = CloudWatchLogStream(
            client, LOG_GROUP, LOG_STREAM, until=lambda: True, sleep=lambda _: None
        )

        assert list(stream) == [b"a\n", b"tail\n"]

    def test_empty_first_page_does_not_check_completion(self, client, stubber):
        """An empty page that advances the token should be read past directly."""
        stubber.add_response("get_log_events", _page([], "f/1"), _params())
        stubber.add_response("get_log_events", _page(["first"], "f/2"), _params("f/1"))
        stubber.add_response("get_log_events", _page([], "f/2"), _params("f/2"))
        stubber.add_response("get_log_events", _page([], "f/2"), _params("f/2"))
        until = _checks(True)
        sleeps: list[float] = []
        stream = CloudWatchLogStream(
            client, LOG_GROUP, LOG_STREAM, until=until, sleep=sleeps.append
        )

        assert list(stream) == [b"first\n"]
        assert sleeps == []

    def test_missing_stream_reads_as_empty(self, client, stubber):
        """Should treat a not-yet-created stream as having no events."""
        stubber.add_client_error(
            "get_log_events",
            service_error_code="ResourceNotFoundException",
            service_message="The specified log stream does not exist.",
            expected_params=_params(),
        )
        stubber.add_response("get_log_events", _page(["hello"], "f/1"), _params())
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stream = CloudWatchLogStream(
            client,
            LOG_GROUP,
            LOG_STREAM,
            until=_checks(False, True),
            sleep=lambda _: None,
        )

        assert list(stream) == [b"hello\n"]

    def test_other_errors_propagate(self, client, stubber):
        """Should raise errors other than a missing stream."""
        stubber.add_response("get_log_events", _page(["partial"], "f/1"), _params())
        stubber.add_client_error(
            "get_log_events",
            service_error_code="AccessDeniedException",
            expected_params=_params("f/1"),
        )
        stream = CloudWatchLogStream(client, LOG_GROUP, LOG_STREAM, sleep=lambda _: None)
        chunks = []

        with pytest.raises(ClientError):
            for chunk in stream:
                chunks.append(chunk)

        assert chunks == [b"partial\n"]

    def test_newline_not_doubled(self, client, stubber):
        """Messages that already end in a newline should be kept as is."""
        stubber.add_response(
            "get_log_events", _page(["[Container] Entering phase BUILD\n"], "f/1"), _params()
        )
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stream = CloudWatchLogStream(
            client, LOG_GROUP, LOG_STREAM, until=_checks(True), sleep=lambda _: None
        )

        assert list(stream) == [b"[Container] Entering phase BUILD\n"]

    def test_unicode_message(self, client, stubber):
        """Messages should be encoded as UTF-8."""
        stubber.add_response("get_log_events", _page(["café"], "f/1"), _params())
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stubber.add_response("get_log_events", _page([], "f/1"), _params("f/1"))
        stream = CloudWatchLogStream(
            client, LOG_GROUP, LOG_STREAM, until=_checks(True), sleep=lambda _: None
        )

        assert list(stream) == ["café\n".encode()]

    def test_close_stops_following(self, client, stubber):
        """Closing should end iteration of a followed stream."""
        stubber.add_response("get_log_events", _page(["one"], "f/1"), _params())
        stream = CloudWatchLogStream(client, LOG_GROUP, LOG_STREAM, sleep=lambda _: None)
        it = iter(stream)

        assert next(it) == b"one\n"
        stream.close()

        with pytest.raises(StopIteration):
            next(it)


class TestCloudWatchLogService:
    """Tests for CloudWatchLogService.open."""

    def test_open_returns_stream(self, client):
        """Should return a stream for the group and stream names."""
        service = CloudWatchLogService(client, poll_interval=0.25)
        until = _checks(True)

        stream = service.open(LOG_GROUP, LOG_STREAM, until=until)

        assert isinstance(stream, CloudWatchLogStream)
        assert stream.log_group_name == LOG_GROUP
        assert stream.log_stream_name == LOG_STREAM
        assert stream.poll_interval == 0.25
        assert stream.until is until

    @pytest.mark.parametrize(
        ("group", "stream"),
        [("", LOG_STREAM), (LOG_GROUP, "")],
    )
    def test_open_requires_names(self, client, group, stream):
        """Should reject empty group or stream names."""
        service = CloudWatchLogService(client)

        with pytest.raises(ValueError):
            service.open(group, stream)
