import os
import json
import logging
from decimal import Decimal
from functools import lru_cache

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from udagram.exceptions import FieldError, UdagramError, ValidationError

logging.basicConfig()
logging.getLogger('udagram').setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Credentials': True,
}


# Initialize AWS clients, one per configuration

@lru_cache(maxsize=None)
def dynamodb_resource(config):
    return boto3.resource('dynamodb', region_name=config.region, endpoint_url=config.endpoint_url)


@lru_cache(maxsize=None)
def s3_client(config):
    # presigned URLs must be SigV4 so that ExpiresIn is honoured
    return boto3.client(
        's3',
        region_name=config.region,
        endpoint_url=config.endpoint_url,
        config=BotoConfig(signature_version='s3v4'),
    )


@lru_cache(maxsize=None)
def sns_client(config):
    return boto3.client('sns', region_name=config.region, endpoint_url=config.endpoint_url)


def clear_clients():
    """Forget cached clients, e.g. after credentials or endpoints change"""
    for factory in (dynamodb_resource, s3_client, sns_client):
        factory.cache_clear()


def _create_table(dynamodb, table_name, **definition):
    try:
        table = dynamodb.Table(table_name)
        table.load()
    except ClientError as e:
        if e.response['Error']['Code'] == 'ResourceNotFoundException':
            logger.info("Creating DynamoDB table %s", table_name)
            table = dynamodb.create_table(
                TableName=table_name,
                BillingMode='PAY_PER_REQUEST',
                **definition
            )
            table.wait_until_exists()
        else:
            raise
    return table


def create_tables_if_not_exist(config):
    """Create the groups, images and notifications tables if they don't exist"""
    dynamodb = dynamodb_resource(config)

    _create_table(
        dynamodb,
        config.groups_table,
        KeySchema=[{'AttributeName': 'id', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'id', 'AttributeType': 'S'}],
    )
    _create_table(
        dynamodb,
        config.images_table,
        KeySchema=[
            {'AttributeName': 'groupId', 'KeyType': 'HASH'},
            {'AttributeName': 'timestamp', 'KeyType': 'RANGE'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'groupId', 'AttributeType': 'S'},
            {'AttributeName': 'timestamp', 'AttributeType': 'S'},
            {'AttributeName': 'imageId', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': config.image_id_index,
                'KeySchema': [
                    {'AttributeName': 'imageId', 'KeyType': 'HASH'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
    )
    _create_table(
        dynamodb,
        config.notifications_table,
        KeySchema=[{'AttributeName': 'dedupKey', 'KeyType': 'HASH'}],
        AttributeDefinitions=[{'AttributeName': 'dedupKey', 'AttributeType': 'S'}],
    )


def create_bucket_if_not_exists(config):
    """Create S3 bucket if it doesn't exist"""
    client = s3_client(config)
    try:
        client.head_bucket(Bucket=config.images_bucket)
    except ClientError as e:
        if e.response['Error']['Code'] in ('404', 'NoSuchBucket'):
            logger.info("Creating S3 bucket %s", config.images_bucket)
            if config.region == 'us-east-1':
                client.create_bucket(Bucket=config.images_bucket)
            else:
                client.create_bucket(
                    Bucket=config.images_bucket,
                    CreateBucketConfiguration={'LocationConstraint': config.region}
                )
        else:
            raise


class DecimalEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            return int(obj) if obj % 1 == 0 else float(obj)
        return super(DecimalEncoder, self).default(obj)


def _reject_constant(name):
    raise ValidationError([FieldError('body', f'{name} is not a valid number')])


def parse_body(event):
    """Decode the JSON body of an API Gateway proxy event.

    Floats are parsed as Decimal because DynamoDB rejects float attributes.
    NaN and Infinity cannot be stored at all and are rejected.
    """
    body = event.get('body')
    if body is None:
        return {}
    if isinstance(body, str):
        try:
            return json.loads(body, parse_float=Decimal, parse_constant=_reject_constant)
        except json.JSONDecodeError as e:
            raise ValidationError([FieldError('body', f'Invalid JSON: {e.msg}')])
    return body


def path_parameter(event, name):
    value = (event.get('pathParameters') or {}).get(name)
    if not value:
        raise ValidationError([FieldError(name, 'path parameter is required')])
    return value


class ResponseFormatter:
    """Format API Gateway proxy responses"""

    @staticmethod
    def success_response(data, status_code=200):
        return {
            'statusCode': status_code,
            'headers': dict(CORS_HEADERS),
            'body': json.dumps(data, cls=DecimalEncoder)
        }

    @staticmethod
    def error_response(error_message, status_code=400, details=None):
        body = {'error': error_message}
        if details:
            body['details'] = details
        return {
            'statusCode': status_code,
            'headers': dict(CORS_HEADERS),
            'body': json.dumps(body)
        }

    @classmethod
    def from_error(cls, error):
        if isinstance(error, UdagramError):
            if error.status_code >= 500:
                logger.error("Request failed: %s", error.message)
                return cls.error_response('Internal server error', error.status_code)
            return cls.error_response(error.message, error.status_code, error.details())
        logger.exception("Unexpected error")
        return cls.error_response('Internal server error', 500)
