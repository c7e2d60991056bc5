"""
Persistence Module
==================

Supabase-backed brand profile and generation history, style normalization,
and JSON backup export/import.
"""

from brandstudio.persistence.backup import BackupCodec, ImportedState, parse_backup
from brandstudio.persistence.gateway import PersistenceGateway
from brandstudio.persistence.styles import (
    normalize_profile,
    normalize_style,
    primary_image,
)

__all__ = [
    "BackupCodec",
    "ImportedState",
    "parse_backup",
    "PersistenceGateway",
    "normalize_profile",
    "normalize_style",
    "primary_image",
]
