"""Event broadcast and per-client settings."""

from remotewatch.core.dispatcher import EventDispatcher, read_text_contents
from remotewatch.core.events import WatchEvent, WatchEventKind
from remotewatch.core.messages import (
    SettingsPatch,
    SettingsRequest,
    encode_broadcast,
    encode_settings_ack,
)
from remotewatch.core.paths import rewrite_path
from remotewatch.core.protocol import SettingsProtocol
from remotewatch.core.registry import Client, ClientRegistry, Connection
from remotewatch.core.settings import ClientSettings, EffectiveSettings
from remotewatch.core.subscriptions import EventSource, Subscription

__all__ = [
    "Client",
    "ClientRegistry",
    "ClientSettings",
    "Connection",
    "EffectiveSettings",
    "EventDispatcher",
    "EventSource",
    "SettingsPatch",
    "SettingsProtocol",
    "SettingsRequest",
    "Subscription",
    "WatchEvent",
    "WatchEventKind",
    "encode_broadcast",
    "encode_settings_ack",
    "read_text_contents",
    "rewrite_path",
]
