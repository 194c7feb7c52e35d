"""Queue consumer: receive, fan out, acknowledge."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .error_handling import BatchOperationContextManager
from .exceptions import TransformError
from .models import (
    DEFAULT_MAX_MESSAGES,
    DEFAULT_WAIT_TIME_SECONDS,
    QueueMessage,
    TransformationOutcome,
    WorkItem,
)
from .notifications import extract_records, work_items_from_records
from .observability import LogContext, MetricsCollector, PerformanceMetrics
from .protocols import LoggerProtocol, WorkItemProcessor
from .queue import SQSQueue


class QueueConsumer:
    """
    Long-running consumer of storage notifications.

    Each received message is parsed into work items, the items are processed
    concurrently (one thread each) and the message is deleted from the queue
    only if every item succeeded. Failed or empty messages are left for the
    queue's visibility timeout to redeliver.

    Queue transport errors are not caught here and end the loop.
    """

    def __init__(
        self,
        queue: SQSQueue,
        processor: WorkItemProcessor,
        logger: LoggerProtocol,
        wait_time_seconds: int = DEFAULT_WAIT_TIME_SECONDS,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._queue = queue
        self._processor = processor
        self._logger = logger
        self.wait_time_seconds = wait_time_seconds
        self.max_messages = max_messages
        self._metrics_collector = metrics_collector

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Poll until ``stop_event`` is set.

        The event is checked between batches only; an in-flight batch always
        finishes and gets its acknowledgement decision.
        """
        stop_event = stop_event or threading.Event()
        self._logger.info(
            "Consumer started",
            queue_url=self._queue.queue_url,
            wait_time_seconds=self.wait_time_seconds,
        )

        while not stop_event.is_set():
            self.poll_once(stop_event)

        summary = self._metrics_collector.get_summary() if self._metrics_collector else {}
        self._logger.info("Consumer stopped", **summary)

    def poll_once(self, stop_event: Optional[threading.Event] = None) -> int:
        """
        Run one receive/process/acknowledge cycle.

        Returns:
            Number of messages received
        """
        if stop_event is not None and stop_event.is_set():
            return 0

        messages = self._queue.receive(
            wait_time_seconds=self.wait_time_seconds, max_messages=self.max_messages
        )
        if not messages:
            self._logger.debug("No messages received")
            return 0

        self._logger.info(f"Received {len(messages)} messages")
        for message in messages:
            self.handle_message(message)
        return len(messages)

    def handle_message(self, message: QueueMessage) -> bool:
        """
        Process one message and acknowledge it if every item succeeded.

        Returns:
            True if the message was deleted from the queue
        """
        log_context = LogContext(
            correlation_id=message.message_id or LogContext().correlation_id,
            operation="handle_message",
            component="queue_consumer",
        )

        if message.body is None:
            self._logger.warning("Skipping message without body", log_context)
            return False

        records = extract_records(message.body)
        if records is None:
            self._logger.warning(
                "Leaving malformed message in queue", log_context
            )
            return False

        items = work_items_from_records(records)
        self._logger.info(f"Found {len(items)} events", log_context)

        if not items:
            # Nothing to do is not treated as success: the message stays queued
            self._logger.info("No relevant records, leaving message in queue", log_context)
            return False

        outcomes = self.process_items(items, log_context)
        if not all(outcome.success for outcome in outcomes):
            failed = sum(1 for outcome in outcomes if not outcome.success)
            self._logger.warning(
                "Leaving message in queue for redelivery",
                log_context.with_metadata(failed_items=failed, total_items=len(outcomes)),
            )
            return False

        if not message.receipt_token:
            self._logger.warning(
                "Did not find handle to clear message from queue", log_context
            )
            return False

        self._queue.delete(message.receipt_token)
        self._logger.info("Completed handling message", log_context)
        return True

    def process_items(
        self, items: List[WorkItem], log_context: Optional[LogContext] = None
    ) -> List[TransformationOutcome]:
        """
        Process all items concurrently and wait for every one of them.

        A failure never cancels the other items. Outcomes are returned in the
        order of ``items``.
        """
        if not items:
            return []

        operation = f"Message {log_context.correlation_id}" if log_context else "Message"
        with BatchOperationContextManager(operation, self._logger) as batch:
            with ThreadPoolExecutor(
                max_workers=len(items), thread_name_prefix="thumbnail-worker"
            ) as executor:
                futures = [executor.submit(self._run_item, item) for item in items]

                outcomes = []
                for item, future in zip(items, futures):
                    try:
                        outcome = future.result()
                    except Exception as e:  # noqa: BLE001
                        # A crashed task counts as a failed item
                        outcome = TransformationOutcome(
                            item=item, success=False, error=str(e), stage="task"
                        )
                    if not outcome.success:
                        batch.add_error(outcome.error, item_identifier=item.object_key)
                    outcomes.append(outcome)

        return outcomes

    def _run_item(self, item: WorkItem) -> TransformationOutcome:
        start_time = time.time()
        outcome = TransformationOutcome(item=item)
        try:
            self._processor.process(item)
            outcome.success = True
        except TransformError as e:
            outcome.error = str(e)
            outcome.stage = e.stage
        finally:
            end_time = time.time()
            outcome.processing_time = end_time - start_time
            if self._metrics_collector:
                self._metrics_collector.record_metric(
                    PerformanceMetrics(
                        operation=f"{item.event_kind.value}_thumbnail",
                        start_time=start_time,
                        end_time=end_time,
                        success=outcome.success,
                        error_message=outcome.error or None,
                        metadata={"object_key": item.object_key},
                    )
                )
        return outcome
