"""核心基础设施."""

from feeddeck.core.auth_client import AuthClient, AuthError, AuthResponse
from feeddeck.core.cache import CachePolicy
from feeddeck.core.local_storage import LocalStorage
from feeddeck.core.supabase import (
    ApiResponse,
    SupabaseClient,
    SupabaseConfig,
    SupabaseError,
)

__all__ = [
    "ApiResponse",
    "AuthClient",
    "AuthError",
    "AuthResponse",
    "CachePolicy",
    "LocalStorage",
    "SupabaseClient",
    "SupabaseConfig",
    "SupabaseError",
]
