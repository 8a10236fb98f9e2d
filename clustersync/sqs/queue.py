"""Polling, sending and acknowledging messages on an SQS queue."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

logger = logging.getLogger("sqs")

MAX_BATCH_SIZE = 10
MAX_WAIT_SECONDS = 20
MAX_VISIBILITY_TIMEOUT = 12 * 60 * 60

MessageHandler = Callable[[Mapping[str, Any]], None]


class QueueConfigError(ValueError):
    """Raised when a queue cannot be set up from its configuration."""


@dataclass
class QueueConfig:
    """Connection and polling settings for one queue."""

    aws_region: str = ""
    queue_name: str = ""
    endpoint: str = ""
    queue_url: str = ""
    # Maximum number of attempts at an AWS service call.
    max_retries: int = 0
    # Maximum number of messages to retrieve per batch.
    batch_size: int = 0
    # Maximum long-poll time in seconds.
    wait_seconds: int = 0
    # Seconds a received message stays hidden from other consumers.
    visibility_timeout: int = 0
    # Poll only once and return.
    run_once: bool = False
    # Seconds to wait between batches.
    run_interval: float = 0
    # Maximum number of handlers running at once; 0 means no limit.
    max_handlers: int = 0
    # Seconds to wait while all handlers are busy.
    busy_timeout: float = 0

    def validate(self) -> None:
        """Raise QueueConfigError if the settings are unusable."""
        if not self.aws_region:
            raise QueueConfigError("AWSRegion is required")
        if not self.endpoint and not self.queue_url:
            raise QueueConfigError("A valid SQS Endpoint is required")
        if not self.queue_name and not self.queue_url:
            raise QueueConfigError("A valid SQS Queue Name is required")
        if not self.queue_url and not self.endpoint and not self.queue_name:
            raise QueueConfigError("A valid SQS Queue URL is required")
        if not 0 <= self.batch_size <= MAX_BATCH_SIZE:
            raise QueueConfigError("BatchSize should be between 1-10")
        if not 0 <= self.wait_seconds <= MAX_WAIT_SECONDS:
            raise QueueConfigError("WaitSeconds should be between 1-20")
        if not 0 <= self.visibility_timeout <= MAX_VISIBILITY_TIMEOUT:
            raise QueueConfigError("VisibilityTimeout should be between 1-43200")


class Queue:
    """A queue reached through an SQS client object.

    The service must offer the SQS client calls get_queue_url,
    receive_message, send_message_batch, delete_message and
    change_message_visibility with their usual keyword arguments.
    """

    def __init__(self, config: QueueConfig, service: Any) -> None:
        try:
            config.validate()
        except QueueConfigError:
            logger.error("invalid SQS Config", exc_info=True)
            raise
        if service is None:
            raise QueueConfigError("unable to create a service connection with AWS SQS")

        config = dataclasses.replace(config)
        if not config.queue_url:
            logger.info("Fetching queue URL")
            try:
                response = service.get_queue_url(QueueName=config.queue_name)
            except Exception as exc:
                logger.info("Unable to fetch queue name: %s", exc)
                raise QueueConfigError("unable to get queue name") from exc
            config.queue_url = response["QueueUrl"]
        logger.info("Connected to Queue")

        self.config = config
        self._service = service
        self._handler: MessageHandler | None = None
        self._busy = threading.Condition()
        self._handler_count = 0

    @property
    def handler_count(self) -> int:
        with self._busy:
            return self._handler_count

    def register_handler(self, handler: MessageHandler) -> None:
        """Set the function called for every received message."""
        self._handler = handler

    def _run_handler(self, handler: MessageHandler, message: Mapping[str, Any]) -> None:
        try:
            handler(message)
        finally:
            with self._busy:
                self._handler_count -= 1
                self._busy.notify_all()

    def _capacity(self, log: logging.Logger) -> int:
        max_messages = self.config.batch_size
        max_handlers = self.config.max_handlers
        if max_handlers > 0:
            with self._busy:
                while self._handler_count >= max_handlers:
                    log.info("Reached max handler count")
                    log.info("Going to wait state, timeout %s", self.config.busy_timeout)
                    self._busy.wait(self.config.busy_timeout)
                available = max_handlers - self._handler_count
            max_messages = min(max_messages, available)
        return max_messages

    def poll(self) -> None:
        """Receive batches and hand each message to the handler on its own thread.

        Stops after one batch when run_once is set, otherwise when receiving
        fails; returns once every started handler has finished.
        """
        workers: list[threading.Thread] = []
        batch = 0
        while True:
            batch += 1
            log = logger.getChild(f"sqs-batch-{batch}")
            log.info("Start receiving messages")

            max_messages = self._capacity(log)
            log.info("Polling for messages, maxMessages %s", max_messages)

            try:
                result = self._service.receive_message(
                    QueueUrl=self.config.queue_url,
                    MaxNumberOfMessages=max_messages,
                    WaitTimeSeconds=self.config.wait_seconds,
                    VisibilityTimeout=self.config.visibility_timeout,
                    MessageAttributeNames=["All"],
                    MessageSystemAttributeNames=["All"],
                    AttributeNames=["All"],
                )
            except Exception as exc:
                log.info("ReceiveMessageError: %s", exc)
                break

            messages = result.get("Messages") or []
            if messages:
                log.info("Fetched messages, count %d", len(messages))
            else:
                log.info("Queue is empty")

            handler = self._handler
            for message in messages:
                if handler is None:
                    log.info("No handler registered")
                else:
                    with self._busy:
                        self._handler_count += 1
                    worker = threading.Thread(
                        target=self._run_handler, args=(handler, message), daemon=True
                    )
                    worker.start()
                    workers.append(worker)
                log.info("Spawned handler, messageId %s", message.get("MessageId"))

            if self.config.run_once:
                log.info("Exiting since configured to run once")
                break
            log.info("Waiting before polling for next batch, interval %s", self.config.run_interval)
            time.sleep(self.config.run_interval)
            log.info("Finished polling")

        for worker in workers:
            worker.join()

    def enqueue(self, entries: Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
        """Send a batch of message entries and return the service's reply."""
        logger.info("Enqueuing messages, count %d", len(entries))
        try:
            result = self._service.send_message_batch(
                QueueUrl=self.config.queue_url, Entries=list(entries)
            )
        except Exception as exc:
            logger.info("Enqueue error: %s", exc)
            raise
        for failed in result.get("Failed") or []:
            logger.info("Failed to enqueue message, messageId %s", failed.get("Id"))
        for success in result.get("Successful") or []:
            logger.info("Enqueued message, messageId %s", success.get("MessageId"))
        return result

    def delete(self, message: Mapping[str, Any]) -> None:
        """Remove a received message from the queue."""
        logger.info("Deleting message, messageId %s", message.get("MessageId"))
        self._service.delete_message(
            QueueUrl=self.config.queue_url, ReceiptHandle=message["ReceiptHandle"]
        )

    def change_visibility_timeout(self, message: Mapping[str, Any], seconds: int) -> bool:
        """Change how long a received message stays hidden; report success."""
        message_id = message.get("MessageId")
        logger.info("changing message visibility timeout, messageId %s", message_id)
        try:
            self._service.change_message_visibility(
                QueueUrl=self.config.queue_url,
                ReceiptHandle=message["ReceiptHandle"],
                VisibilityTimeout=seconds,
            )
        except Exception:
            logger.info("failed to change message visibility timeout, messageId %s", message_id)
            return False
        logger.info("successfully changed message visibility timeout, messageId %s", message_id)
        return True

    def status(self) -> None:
        """Check that the queue is reachable, raising if it is not."""
        self._service.get_queue_url(QueueName=self.config.queue_name)