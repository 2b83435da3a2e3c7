"""Environment-based token discovery.

Used when ``github-token`` is not passed explicitly, e.g. when the CLI runs
outside Actions. Looks at the usual token variables after loading a ``.env``
file if one is present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

TOKEN_VARIABLES = ("GITHUB_TOKEN", "GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GH_ACCESS_TOKEN", "GITHUB_PAT")
DOTENV_LOCATIONS = (".env", ".env.local")


@dataclass
class EnvAuthConfig:
    load_dotenv: bool = True
    dotenv_path: str | None = None
    token_variables: tuple[str, ...] = field(default=TOKEN_VARIABLES)


class EnvironmentAuthManager:
    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self._dotenv_loaded = False
        if config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        candidates = [self.config.dotenv_path] if self.config.dotenv_path else list(DOTENV_LOCATIONS)
        for location in candidates:
            env_path = Path(location)
            if env_path.exists():
                # never clobber values the runner already exported
                load_dotenv(str(env_path), override=False)
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                return

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def get_github_token(self) -> str | None:
        for var in self.config.token_variables:
            token = os.getenv(var)
            if token:
                self.logger.debug(f"Found GitHub token in {var}")
                return token
        return None


def create_env_auth_manager(config: EnvAuthConfig | None = None) -> EnvironmentAuthManager:
    return EnvironmentAuthManager(config or EnvAuthConfig())


__all__ = ["EnvAuthConfig", "EnvironmentAuthManager", "create_env_auth_manager"]
