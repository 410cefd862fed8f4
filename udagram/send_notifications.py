import logging

from udagram.exceptions import StorageError
from udagram.notifications import create_notification_handler

logger = logging.getLogger(__name__)


def lambda_handler(event, context):
    """
    Handle S3 ObjectCreated notifications for the images bucket.

    Every record is processed before a failure is reported. Raising makes the
    asynchronous invocation retry the whole batch; records already announced
    come back as duplicates and are not published again.
    """
    records = event.get('Records', [])
    logger.info("Processing %d S3 records", len(records))

    handler = create_notification_handler()
    batch = handler.handle_records(records)
    summary = batch.to_dict()

    logger.info("Upload notifications: %s", summary)
    failed = batch.failed_keys()
    if failed:
        raise StorageError(f"Failed to notify for objects: {', '.join(failed)}")
    return summary
