"""Service locator for shared clients and background components."""

from typing import Optional

from docstore.content_store_client import ContentStoreClient
from docstore.services.notification_service import NotificationDispatcher, NotificationEmitter

_content_store: Optional[ContentStoreClient] = None
_notification_emitter: Optional[NotificationEmitter] = None
_notification_dispatcher: Optional[NotificationDispatcher] = None


def get_content_store() -> ContentStoreClient:
    """Get global content store client, creating the default one on first use"""
    global _content_store
    if _content_store is None:
        _content_store = ContentStoreClient()
    return _content_store


def get_notification_emitter() -> NotificationEmitter:
    """Get global notification emitter, creating the default one on first use"""
    global _notification_emitter
    if _notification_emitter is None:
        _notification_emitter = NotificationEmitter()
    return _notification_emitter


def set_notification_dispatcher(dispatcher: Optional[NotificationDispatcher]):
    """Set global notification dispatcher"""
    global _notification_dispatcher
    _notification_dispatcher = dispatcher


def get_notification_dispatcher() -> Optional[NotificationDispatcher]:
    """Get global notification dispatcher"""
    return _notification_dispatcher
