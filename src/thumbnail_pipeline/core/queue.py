"""SQS queue access for the consumer."""

from typing import List, Optional

from .error_handling import with_queue_error_handling
from .exceptions import QueueNotFoundError
from .models import DEFAULT_MAX_MESSAGES, DEFAULT_WAIT_TIME_SECONDS, QueueMessage
from .protocols import SQSClientProtocol


class SQSQueue:
    """A single SQS queue. Every transport failure raises QueueTransportError."""

    def __init__(self, sqs_client: SQSClientProtocol, queue_url: str):
        self._sqs_client = sqs_client
        self.queue_url = queue_url

    @classmethod
    @with_queue_error_handling
    def from_name(cls, sqs_client: SQSClientProtocol, queue_name: str) -> "SQSQueue":
        """
        Resolve a queue by name prefix, taking the first match.

        Raises:
            QueueNotFoundError: If no queue URL matches
        """
        response = sqs_client.list_queues(QueueNamePrefix=queue_name)
        urls = response.get("QueueUrls") or []
        if not urls:
            raise QueueNotFoundError(f"SQS queue '{queue_name}' not found")
        return cls(sqs_client, urls[0])

    @with_queue_error_handling
    def receive(
        self,
        wait_time_seconds: int = DEFAULT_WAIT_TIME_SECONDS,
        max_messages: int = DEFAULT_MAX_MESSAGES,
    ) -> List[QueueMessage]:
        """Long-poll the queue for up to ``max_messages`` messages."""
        response = self._sqs_client.receive_message(
            QueueUrl=self.queue_url,
            WaitTimeSeconds=wait_time_seconds,
            MaxNumberOfMessages=max_messages,
        )
        return [
            QueueMessage(
                message_id=raw.get("MessageId"),
                body=raw.get("Body"),
                receipt_token=raw.get("ReceiptHandle"),
            )
            for raw in response.get("Messages", [])
        ]

    @with_queue_error_handling
    def delete(self, receipt_token: str) -> None:
        """Acknowledge a message by deleting it from the queue."""
        self._sqs_client.delete_message(
            QueueUrl=self.queue_url, ReceiptHandle=receipt_token
        )

    @with_queue_error_handling
    def send(self, body: str, group_id: Optional[str] = None) -> str:
        """
        Publish a message body.

        Args:
            body: Message body
            group_id: Message group, required for FIFO queues

        Returns:
            The message id assigned by the queue
        """
        kwargs = {}
        if group_id:
            kwargs["MessageGroupId"] = group_id
        response = self._sqs_client.send_message(
            QueueUrl=self.queue_url, MessageBody=body, **kwargs
        )
        return response.get("MessageId", "")
