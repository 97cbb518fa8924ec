"""
Configuration Management Module
Every tunable lives here; components receive it explicitly
"""
from .settings import (
    Settings,
    ClickUpSettings,
    GraphSettings,
    GateSettings,
    FieldSettings,
    MatchingSettings,
    CommentSettings,
    DispatchSettings,
    LoggingSettings,
    ServerSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "ClickUpSettings",
    "GraphSettings",
    "GateSettings",
    "FieldSettings",
    "MatchingSettings",
    "CommentSettings",
    "DispatchSettings",
    "LoggingSettings",
    "ServerSettings",
    "get_settings",
]
