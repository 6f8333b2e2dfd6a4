"""CloudWatch Logs log service.

Reads a single log stream with GetLogEvents, following the forward token
until the caller's completion check says the producer is done.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class CloudWatchLogStream:
    """Iterator over the events of one CloudWatch Logs stream.

    Each event message is yielded as UTF-8 bytes ending in a single newline.
    A stream that does not exist yet reads as empty.

    Args:
        client: boto3 'logs' client.
        log_group_name: Log group name.
        log_stream_name: Log stream name.
        until: Optional completion check; once it returns True the stream drains the
            remaining events and ends. Without it the stream follows until
            closed.
        poll_interval: Seconds to wait after an empty page.
        sleep: Sleep function (replaceable in tests).
    """

    def __init__(
        self,
        client: Any,
        log_group_name: str,
        log_stream_name: str,
        until: Callable[[], bool] | None = None,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.log_group_name = log_group_name
        self.log_stream_name = log_stream_name
        self.until = until
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._next_token: str | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop iteration at the next page boundary."""
        self._closed = True

    def __iter__(self) -> Iterator[bytes]:
        draining = False
        while not self._closed:
            events, advanced = self._fetch()
            if events:
                for event in events:
                    yield _format_message(event.get("message", ""))
                continue
            if advanced:
                # An empty page with a new forward token is not the end.
                continue
            if draining:
                break
            if self.until is not None and self.until():
                # Keep reading until the forward token stops moving.
                draining = True
                continue
            self._sleep(self.poll_interval)
        self._closed = True

    def _fetch(self) -> tuple[list[dict[str, Any]], bool]:
        """Read one page.

        Returns:
            The page's events and whether the forward token advanced.
        """
        params: dict[str, Any] = {
            "logGroupName": self.log_group_name,
            "logStreamName": self.log_stream_name,
            "startFromHead": True,
        }
        if self._next_token is not None:
            params["nextToken"] = self._next_token

        try:
            resp = self.client.get_log_events(**params)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                logger.debug(
                    "Log stream %s/%s does not exist yet",
                    self.log_group_name,
                    self.log_stream_name,
                )
                return [], False
            raise

        token = resp.get("nextForwardToken")
        advanced = bool(token) and token != self._next_token
        if token:
            self._next_token = token
        return resp.get("events", []), advanced


class CloudWatchLogService:
    """LogService backed by CloudWatch Logs.

    Args:
        client: boto3 'logs' client.
        poll_interval: Seconds between polls when a stream has no new events.
    """

    def __init__(self, client: Any, poll_interval: float = 1.0) -> None:
        self.client = client
        self.poll_interval = poll_interval

    def open(
        self,
        log_group_name: str,
        log_stream_name: str,
        until: Callable[[], bool] | None = None,
    ) -> CloudWatchLogStream:
        """Open a log stream for reading.

        No request is made here; the stream may be created by the producer
        after it is opened.

        Raises:
            ValueError: If the group or stream name is empty.
        """
        if not log_group_name:
            raise ValueError("log group name is required")
        if not log_stream_name:
            raise ValueError("log stream name is required")
        logger.debug("Opening log stream %s/%s", log_group_name, log_stream_name)
        return CloudWatchLogStream(
            self.client,
            log_group_name,
            log_stream_name,
            until=until,
            poll_interval=self.poll_interval,
        )


def _format_message(message: str) -> bytes:
    if not message.endswith("\n"):
        message += "\n"
    return message.encode("utf-8")


__all__ = ["CloudWatchLogService", "CloudWatchLogStream"]
