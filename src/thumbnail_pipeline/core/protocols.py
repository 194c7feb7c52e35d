"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, Optional, Protocol

from .models import WorkItem


class S3ClientProtocol(Protocol):
    """Protocol for the S3 client operations the object store relies on."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...

    def delete_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Delete object from S3."""
        ...

    def generate_presigned_url(
        self, ClientMethod: str, Params: Dict[str, Any], ExpiresIn: int
    ) -> str:
        """Generate a presigned URL for a client method."""
        ...


class SQSClientProtocol(Protocol):
    """Protocol for SQS client operations."""

    def list_queues(self, QueueNamePrefix: str) -> Dict[str, Any]:
        """List queues matching a name prefix."""
        ...

    def receive_message(
        self, QueueUrl: str, WaitTimeSeconds: int, MaxNumberOfMessages: int
    ) -> Dict[str, Any]:
        """Long-poll for messages."""
        ...

    def delete_message(self, QueueUrl: str, ReceiptHandle: str) -> Dict[str, Any]:
        """Delete (acknowledge) a message."""
        ...

    def send_message(self, QueueUrl: str, MessageBody: str, **kwargs: Any) -> Dict[str, Any]:
        """Send a message."""
        ...


class HttpResponseProtocol(Protocol):
    """Subset of ``requests.Response`` used for streaming downloads."""

    status_code: int

    def raise_for_status(self) -> None:
        """Raise for 4xx/5xx statuses."""
        ...

    def iter_content(self, chunk_size: int = 1) -> Any:
        """Iterate over the body in chunks."""
        ...

    def __enter__(self) -> "HttpResponseProtocol": ...

    def __exit__(self, *args: Any) -> None: ...


class HttpSessionProtocol(Protocol):
    """Subset of ``requests.Session`` used for presigned URL downloads."""

    def get(
        self, url: str, stream: bool = False, timeout: Optional[float] = None
    ) -> HttpResponseProtocol:
        """Issue a GET request."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class WorkItemProcessor(Protocol):
    """Anything that can process a single work item, raising on failure."""

    def process(self, item: WorkItem) -> None:
        """Process a work item."""
        ...
