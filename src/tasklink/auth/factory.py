"""Token resolver factory."""

from __future__ import annotations

from tasklink.auth.base import TokenResolver
from tasklink.auth.resolvers.env import EnvTokenResolver
from tasklink.auth.resolvers.static import StaticTokenResolver
from tasklink.contracts.config import TaskLinkConfig
from tasklink.contracts.exceptions import ConfigError

RESOLVERS: dict[str, type[TokenResolver]] = {
    "env": EnvTokenResolver,
    "token": StaticTokenResolver,
}


def create_token_resolver(config: TaskLinkConfig) -> TokenResolver:
    auth_mode = config.auth
    if auth_mode not in RESOLVERS:
        raise ConfigError(f"Unknown auth mode: {auth_mode}")

    if auth_mode == "env":
        return EnvTokenResolver()
    return StaticTokenResolver(token=config.token or "")
