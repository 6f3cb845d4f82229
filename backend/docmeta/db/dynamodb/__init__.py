"""Shared DynamoDB utilities.

This package centralizes:
- boto3 client/resource configuration
- retry/backoff policy
- typed, expressive errors for consistent HTTP problem responses
- the table wrapper used by the document store adapter

"""
