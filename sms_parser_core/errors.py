"""Exceptions raised inside the SMS ingestion pipeline"""


class SmsParserError(Exception):
    """Base exception for SMS parser errors"""
    pass


class ConfigurationError(SmsParserError):
    """Invalid or unreadable settings"""
    pass


class PermissionDeniedError(SmsParserError):
    """Access to the device message store was refused"""
    pass


class StoreError(SmsParserError):
    """Transaction store read/write errors"""
    pass


class DuplicateKeyError(StoreError):
    """Insert rejected by the (owner_id, dedupe_key) uniqueness constraint"""
    pass


class SubscriptionError(SmsParserError):
    """Live message subscription could not be created"""
    pass
