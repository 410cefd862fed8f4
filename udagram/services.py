import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from udagram import common
from udagram.config import load_config
from udagram.exceptions import NotFoundError
from udagram.storage import S3UploadCredentialIssuer
from udagram.stores import DynamoDBGroupStore, DynamoDBImageStore, GroupStore, ImageStore

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp of fixed width, so string order is time order"""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def new_id() -> str:
    return str(uuid.uuid4())


def storage_key_for(image_id: str) -> str:
    return image_id


class GroupService:

    def __init__(self, groups: GroupStore, id_factory: Callable[[], str] = new_id):
        self.groups = groups
        self.id_factory = id_factory

    def create_group(self, body: Dict[str, Any]) -> Dict[str, Any]:
        record = {**body, 'id': self.id_factory()}
        self.groups.put(record)
        logger.info("Created group %s", record['id'])
        return record

    def list_groups(self) -> List[Dict[str, Any]]:
        return self.groups.scan()


class ImageService:
    """Image records and the upload credentials that go with them"""

    def __init__(self,
                 images: ImageStore,
                 groups: GroupStore,
                 issuer: S3UploadCredentialIssuer,
                 clock: Callable[[], str] = utc_timestamp,
                 id_factory: Callable[[], str] = new_id):
        self.images = images
        self.groups = groups
        self.issuer = issuer
        self.clock = clock
        self.id_factory = id_factory

    def list_images(self, group_id: str) -> List[Dict[str, Any]]:
        return self.images.query_by_group(group_id)

    def create_image(self, group_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Persist a new image record and return it with an upload URL.

        The record is written before any bytes are uploaded. If signing the URL
        fails afterwards the record stays and ``refresh_upload_url`` can issue
        a new one.
        """
        if not self.groups.exists(group_id):
            raise NotFoundError(f"Group {group_id} does not exist")

        image_id = self.id_factory()
        record = {
            **body,
            'groupId': group_id,
            'timestamp': self.clock(),
            'imageId': image_id,
            'storageKey': storage_key_for(image_id),
        }
        self.images.put(record)
        logger.info("Created image %s in group %s", image_id, group_id)

        upload_url = self.issuer.issue(record['storageKey'])
        return {'record': record, 'uploadUrl': upload_url}

    def get_image_by_id(self, image_id: str) -> Optional[Dict[str, Any]]:
        return self.images.get_by_image_id(image_id)

    def get_image(self, image_id: str) -> Dict[str, Any]:
        record = self.get_image_by_id(image_id)
        if record is None:
            raise NotFoundError(f"Image {image_id} does not exist")
        return record

    def refresh_upload_url(self, image_id: str) -> str:
        record = self.get_image(image_id)
        return self.issuer.issue(record['storageKey'])


class ServiceFactory:
    """Factory to create services with proper dependencies"""

    @staticmethod
    def create_group_service(config=None) -> GroupService:
        config = config or load_config()
        dynamodb = common.dynamodb_resource(config)
        return GroupService(DynamoDBGroupStore(config.groups_table, dynamodb))

    @staticmethod
    def create_image_service(config=None) -> ImageService:
        config = config or load_config()
        dynamodb = common.dynamodb_resource(config)
        return ImageService(
            images=DynamoDBImageStore(config.images_table, config.image_id_index, dynamodb),
            groups=DynamoDBGroupStore(config.groups_table, dynamodb),
            issuer=S3UploadCredentialIssuer(
                config.images_bucket,
                common.s3_client(config),
                default_ttl=config.signed_url_expiration
            )
        )
