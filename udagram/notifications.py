"""
Upload notifications.

S3 emits one ``ObjectCreated`` record per completed upload, at least once and
in no guaranteed order. Each record is resolved back to its image record and
announced on an SNS topic. Redelivered records are detected through a
receipt keyed by ``imageId#eventId`` that is written before publishing.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import unquote_plus

from botocore.exceptions import BotoCoreError, ClientError

from udagram import common
from udagram.common import DecimalEncoder
from udagram.config import load_config
from udagram.exceptions import StorageError, UnresolvableEventError
from udagram.services import ImageService, ServiceFactory

logger = logging.getLogger(__name__)

DELIVERED = 'delivered'
DUPLICATE = 'duplicate'
DROPPED = 'dropped'
FAILED = 'failed'


@dataclass(frozen=True)
class StorageEvent:
    object_key: str
    event_id: str
    timestamp: Optional[str] = None

    @classmethod
    def from_s3_record(cls, record: Dict[str, Any]) -> 'StorageEvent':
        s3 = record['s3']
        s3_object = s3['object']
        event_id = (
            s3_object.get('sequencer')
            or (record.get('responseElements') or {}).get('x-amz-request-id')
        )
        if not event_id:
            raise ValueError("S3 record carries neither a sequencer nor a request id")
        return cls(
            object_key=unquote_plus(s3_object['key']),
            event_id=event_id,
            timestamp=record.get('eventTime'),
        )


@dataclass
class NotificationResult:
    status: str
    object_key: str
    image_id: Optional[str] = None


@dataclass
class BatchResult:
    results: List[NotificationResult] = field(default_factory=list)

    def count(self, status):
        return sum(1 for result in self.results if result.status == status)

    def failed_keys(self):
        return [result.object_key for result in self.results if result.status == FAILED]

    def to_dict(self):
        return {
            'processed': len(self.results),
            DELIVERED: self.count(DELIVERED),
            DUPLICATE: self.count(DUPLICATE),
            DROPPED: self.count(DROPPED),
            FAILED: self.count(FAILED),
        }


class Notifier(ABC):

    @abstractmethod
    def notify(self, image: Dict[str, Any], event: StorageEvent) -> bool:
        """Announce an uploaded image once per event; False for a repeat"""


class SnsNotifier(Notifier):
    """Publish upload notifications to an SNS topic, at most once per event"""

    def __init__(self, table_name: str, dynamodb_resource, sns_client, topic_arn: str):
        self.table = dynamodb_resource.Table(table_name)
        self.sns_client = sns_client
        self.topic_arn = topic_arn

    @staticmethod
    def dedup_key(image_id, event_id):
        return f"{image_id}#{event_id}"

    def notify(self, image, event):
        key = self.dedup_key(image['imageId'], event.event_id)

        try:
            self.table.put_item(
                Item={
                    'dedupKey': key,
                    'imageId': image['imageId'],
                    'eventId': event.event_id,
                    'objectKey': event.object_key,
                    'notifiedAt': datetime.now(timezone.utc).isoformat(),
                },
                ConditionExpression='attribute_not_exists(dedupKey)'
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                return False
            raise StorageError(f"Failed to record notification {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to record notification {key}: {e}") from e

        message = {
            'type': 'ImageUploaded',
            'imageId': image['imageId'],
            'groupId': image['groupId'],
            'storageKey': image['storageKey'],
            'title': image.get('title'),
            'eventId': event.event_id,
            'uploadedAt': event.timestamp,
        }
        try:
            self.sns_client.publish(
                TopicArn=self.topic_arn,
                Message=json.dumps(message, cls=DecimalEncoder)
            )
        except (BotoCoreError, ClientError) as e:
            # forget the receipt so a redelivery of this event can try again
            try:
                self.table.delete_item(Key={'dedupKey': key})
            except (BotoCoreError, ClientError):
                logger.exception("Failed to remove receipt %s, redeliveries will be skipped", key)
            raise StorageError(f"Failed to publish notification {key}: {e}") from e
        return True


class UploadNotificationHandler:

    def __init__(self, images: ImageService, notifier: Notifier):
        self.images = images
        self.notifier = notifier

    def _resolve(self, event: StorageEvent) -> Dict[str, Any]:
        # storage keys are image ids
        image = self.images.get_image_by_id(event.object_key)
        if image is None:
            raise UnresolvableEventError(event.object_key)
        return image

    def handle(self, event: StorageEvent) -> NotificationResult:
        try:
            image = self._resolve(event)
        except UnresolvableEventError as e:
            logger.warning("Dropping storage event %s: %s", event.event_id, e.message)
            return NotificationResult(DROPPED, event.object_key)

        if self.notifier.notify(image, event):
            logger.info("Sent upload notification for image %s", image['imageId'])
            return NotificationResult(DELIVERED, event.object_key, image['imageId'])

        logger.info("Skipping repeated event %s for image %s", event.event_id, image['imageId'])
        return NotificationResult(DUPLICATE, event.object_key, image['imageId'])

    def handle_records(self, records: Iterable[Dict[str, Any]]) -> BatchResult:
        """Handle an S3 notification batch; one failing record does not stop the rest"""
        batch = BatchResult()
        for record in records:
            if not record.get('eventName', '').startswith('ObjectCreated:'):
                continue
            try:
                event = StorageEvent.from_s3_record(record)
            except (KeyError, TypeError, ValueError):
                logger.exception("Dropping malformed S3 record")
                batch.results.append(NotificationResult(DROPPED, ''))
                continue
            try:
                batch.results.append(self.handle(event))
            except Exception:
                logger.exception("Failed to process storage event %s for %s",
                                 event.event_id, event.object_key)
                batch.results.append(NotificationResult(FAILED, event.object_key))
        return batch


def create_notification_handler(config=None) -> UploadNotificationHandler:
    config = config or load_config()
    return UploadNotificationHandler(
        images=ServiceFactory.create_image_service(config),
        notifier=SnsNotifier(
            config.notifications_table,
            common.dynamodb_resource(config),
            common.sns_client(config),
            config.topic_arn
        )
    )
