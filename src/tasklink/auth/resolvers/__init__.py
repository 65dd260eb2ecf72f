"""Token resolver implementations."""

from tasklink.auth.resolvers.env import TOKEN_ENV_VAR, EnvTokenResolver
from tasklink.auth.resolvers.static import StaticTokenResolver

__all__ = ["TOKEN_ENV_VAR", "EnvTokenResolver", "StaticTokenResolver"]
