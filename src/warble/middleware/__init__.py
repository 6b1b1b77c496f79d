"""Middleware protocol, chain executor, and built-in policies."""

from warble.middleware.auth import AuthMiddleware, bearer_token
from warble.middleware.chain import MiddlewareChain
from warble.middleware.cors import CORSConfig, CORSMiddleware
from warble.middleware.protocol import (
    AfterHook,
    BeforeHook,
    HookMiddleware,
    Middleware,
    MiddlewareContext,
    hooks,
)
from warble.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware, client_key

__all__ = [
    "AfterHook",
    "AuthMiddleware",
    "BeforeHook",
    "CORSConfig",
    "CORSMiddleware",
    "HookMiddleware",
    "Middleware",
    "MiddlewareChain",
    "MiddlewareContext",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "bearer_token",
    "client_key",
    "hooks",
]
