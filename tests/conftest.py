import json
import os

import boto3
import pytest
from moto import mock_aws

from udagram import common
from udagram.config import load_config

REGION = 'us-east-1'

TEST_ENV = {
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'AWS_SECURITY_TOKEN': 'testing',
    'AWS_SESSION_TOKEN': 'testing',
    'AWS_DEFAULT_REGION': REGION,
    'AWS_REGION': REGION,
    'GROUPS_TABLE': 'test-groups',
    'IMAGES_TABLE': 'test-images',
    'IMAGE_ID_INDEX': 'ImageIdIndex',
    'IMAGES_S3_BUCKET': 'test-images-bucket',
    'NOTIFICATIONS_TABLE': 'test-notifications',
    'SIGNED_URL_EXPIRATION': '300',
}


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Point every test at fake credentials and test resource names"""
    for name, value in TEST_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv('AWS_ENDPOINT_URL', raising=False)
    monkeypatch.delenv('IMAGES_TOPIC_ARN', raising=False)
    load_config.cache_clear()
    common.clear_clients()
    yield
    # restore anything a test patched (e.g. the client factories) first
    monkeypatch.undo()
    load_config.cache_clear()
    common.clear_clients()


@pytest.fixture
def aws(monkeypatch):
    """Mocked AWS account with the tables, bucket and topic the service uses.

    The topic has an SQS queue subscribed so tests can count published
    notifications. Yields the loaded Config.
    """
    with mock_aws():
        sns = boto3.client('sns', region_name=REGION)
        sqs = boto3.client('sqs', region_name=REGION)
        topic_arn = sns.create_topic(Name='image-uploads')['TopicArn']
        queue_url = sqs.create_queue(QueueName='image-uploads-test')['QueueUrl']
        queue_arn = sqs.get_queue_attributes(
            QueueUrl=queue_url, AttributeNames=['QueueArn']
        )['Attributes']['QueueArn']
        sns.subscribe(TopicArn=topic_arn, Protocol='sqs', Endpoint=queue_arn)

        monkeypatch.setenv('IMAGES_TOPIC_ARN', topic_arn)
        monkeypatch.setenv('TEST_QUEUE_URL', queue_url)
        load_config.cache_clear()
        common.clear_clients()

        config = load_config()
        common.create_tables_if_not_exist(config)
        common.create_bucket_if_not_exists(config)
        yield config


def published_notifications():
    """Drain the subscribed test queue and return the published SNS messages"""
    sqs = boto3.client('sqs', region_name=REGION)
    messages = []
    while True:
        response = sqs.receive_message(
            QueueUrl=os.environ['TEST_QUEUE_URL'], MaxNumberOfMessages=10
        )
        batch = response.get('Messages', [])
        if not batch:
            return messages
        for message in batch:
            envelope = json.loads(message['Body'])
            messages.append(json.loads(envelope['Message']))
            sqs.delete_message(
                QueueUrl=os.environ['TEST_QUEUE_URL'],
                ReceiptHandle=message['ReceiptHandle']
            )


def s3_put_record(key, sequencer='0055AED6DCD90281E5', request_id='C3D13FE58DE4C810'):
    """An S3 ObjectCreated:Put notification record"""
    return {
        'eventVersion': '2.1',
        'eventSource': 'aws:s3',
        'awsRegion': REGION,
        'eventTime': '2024-01-01T00:00:05.000Z',
        'eventName': 'ObjectCreated:Put',
        'responseElements': {'x-amz-request-id': request_id},
        's3': {
            'bucket': {'name': TEST_ENV['IMAGES_S3_BUCKET']},
            'object': {'key': key, 'size': 1024, 'sequencer': sequencer},
        },
    }
