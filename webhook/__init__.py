"""
Webhook module - FastAPI route handlers.

Includes:
- messenger.py: Messenger webhook handshake and event delivery
"""

from webhook.messenger import router as messenger_router

__all__ = ["messenger_router"]
