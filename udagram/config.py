"""
Configuration settings for the image groups service.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

DEFAULT_SIGNED_URL_EXPIRATION = 300


@dataclass(frozen=True)
class Config:
    """Table, index, bucket and topic names injected from the environment"""
    groups_table: str = 'Groups-dev'
    images_table: str = 'Images-dev'
    image_id_index: str = 'ImageIdIndex'
    images_bucket: str = 'serverless-udagram-images-dev'
    signed_url_expiration: int = DEFAULT_SIGNED_URL_EXPIRATION
    notifications_table: str = 'Notifications-dev'
    topic_arn: str = ''
    region: str = 'us-east-1'
    endpoint_url: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None) -> 'Config':
        env = os.environ if environ is None else environ

        raw_expiration = env.get('SIGNED_URL_EXPIRATION', str(DEFAULT_SIGNED_URL_EXPIRATION))
        try:
            expiration = int(raw_expiration)
        except (TypeError, ValueError):
            raise ValueError(f"SIGNED_URL_EXPIRATION must be an integer, got {raw_expiration!r}")
        if expiration <= 0:
            raise ValueError("SIGNED_URL_EXPIRATION must be positive")

        return cls(
            groups_table=env.get('GROUPS_TABLE', cls.groups_table),
            images_table=env.get('IMAGES_TABLE', cls.images_table),
            image_id_index=env.get('IMAGE_ID_INDEX', cls.image_id_index),
            images_bucket=env.get('IMAGES_S3_BUCKET', cls.images_bucket),
            signed_url_expiration=expiration,
            notifications_table=env.get('NOTIFICATIONS_TABLE', cls.notifications_table),
            topic_arn=env.get('IMAGES_TOPIC_ARN', cls.topic_arn),
            region=env.get('AWS_REGION', cls.region),
            endpoint_url=env.get('AWS_ENDPOINT_URL') or None,
        )


@lru_cache(maxsize=None)
def load_config() -> Config:
    """Build the process-wide configuration once"""
    return Config.from_env()
