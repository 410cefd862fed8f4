"""Udagram image groups service package."""

__version__ = "1.0.0"
__description__ = (
    "Serverless image groups service using AWS Lambda, S3, DynamoDB and SNS"
)
