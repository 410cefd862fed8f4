"""Keyed storage access for group and image records."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from udagram.exceptions import StorageError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class GroupStore(ABC):
    """Group records keyed by ``id``"""

    @abstractmethod
    def put(self, record: Record) -> None:
        pass

    @abstractmethod
    def scan(self) -> List[Record]:
        pass

    @abstractmethod
    def exists(self, group_id: str) -> bool:
        pass


class ImageStore(ABC):
    """Image records keyed by ``(groupId, timestamp)`` and indexed by ``imageId``"""

    @abstractmethod
    def put(self, record: Record) -> None:
        """Insert a new record; an existing ``(groupId, timestamp)`` is a StorageError"""

    @abstractmethod
    def query_by_group(self, group_id: str) -> List[Record]:
        """Records of a group, oldest first"""

    @abstractmethod
    def get_by_image_id(self, image_id: str) -> Optional[Record]:
        pass


class DynamoDBGroupStore(GroupStore):

    def __init__(self, table_name: str, dynamodb_resource):
        self.table_name = table_name
        self.table = dynamodb_resource.Table(table_name)

    def put(self, record):
        try:
            self.table.put_item(Item=record)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to write group {record.get('id')}: {e}") from e

    def scan(self):
        try:
            response = self.table.scan()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to scan {self.table_name}: {e}") from e
        return response.get('Items', [])

    def exists(self, group_id):
        try:
            response = self.table.get_item(Key={'id': group_id})
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to read group {group_id}: {e}") from e
        return 'Item' in response


class DynamoDBImageStore(ImageStore):

    def __init__(self, table_name: str, index_name: str, dynamodb_resource):
        self.table_name = table_name
        self.index_name = index_name
        self.table = dynamodb_resource.Table(table_name)

    def put(self, record):
        try:
            self.table.put_item(
                Item=record,
                ConditionExpression='attribute_not_exists(#ts)',
                ExpressionAttributeNames={'#ts': 'timestamp'}
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise StorageError(
                    f"Image key collision for group {record['groupId']} at {record['timestamp']}"
                ) from e
            raise StorageError(f"Failed to write image {record.get('imageId')}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to write image {record.get('imageId')}: {e}") from e

    def query_by_group(self, group_id):
        try:
            response = self.table.query(
                KeyConditionExpression=Key('groupId').eq(group_id),
                ScanIndexForward=True
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to query images of group {group_id}: {e}") from e
        return response.get('Items', [])

    def get_by_image_id(self, image_id):
        try:
            response = self.table.query(
                IndexName=self.index_name,
                KeyConditionExpression=Key('imageId').eq(image_id)
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to look up image {image_id}: {e}") from e

        items = response.get('Items', [])
        if len(items) > 1:
            logger.warning("Image id %s matched %d records, using the first", image_id, len(items))
        return items[0] if items else None
