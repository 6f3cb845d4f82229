"""Document metadata access layer over a single-table DynamoDB store."""
