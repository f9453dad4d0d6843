"""Configuration for sealregistry.

Settings are loaded from environment variables with the SEALREG_ prefix.
List values are given as JSON, e.g.

    export SEALREG_ALLOWED_STATUSES='["active", "revoked", "superseded"]'
    export SEALREG_ENFORCE_SIGNATURES=false
"""

import logging
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DocumentStatus

logger = logging.getLogger(__name__)


class RegistrySettings(BaseSettings):
    """Engine-wide settings.

    The allowed status set and the eager/lazy verification switches live
    here rather than in engine code.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEALREG_",
        extra="ignore",
    )

    allowed_statuses: list[str] = Field(
        default_factory=lambda: [s.value for s in DocumentStatus],
        description="Closed set of statuses a document may hold",
    )
    terminal_statuses: list[str] = Field(
        default_factory=list,
        description="Statuses a document may never leave (empty: permissive)",
    )
    enforce_proofs: bool = Field(
        default=True,
        description="Reject seals whose merkle path does not reach the merkle root",
    )
    enforce_signatures: bool = Field(
        default=True,
        description="Reject seals whose signature does not verify",
    )
    signature_scheme: Literal["ed25519", "none"] = "ed25519"

    max_title_length: Annotated[int, Field(ge=1)] = 64
    max_description_length: Annotated[int, Field(ge=1)] = 256
    max_category_length: Annotated[int, Field(ge=1)] = 32
    max_status_length: Annotated[int, Field(ge=1)] = 20
    max_batch_size: Annotated[int, Field(ge=1)] = 20
    max_merkle_path_length: Annotated[int, Field(ge=0)] = 32

    @field_validator("allowed_statuses", "terminal_statuses")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(s.strip() for s in value if s.strip()))

    @model_validator(mode="after")
    def _check_statuses(self) -> "RegistrySettings":
        if DocumentStatus.ACTIVE.value not in self.allowed_statuses:
            raise ValueError("allowed_statuses must contain 'active'")
        unknown = set(self.terminal_statuses) - set(self.allowed_statuses)
        if unknown:
            raise ValueError(f"terminal_statuses not in allowed_statuses: {sorted(unknown)}")
        too_long = [s for s in self.allowed_statuses if len(s) > self.max_status_length]
        if too_long:
            raise ValueError(f"statuses longer than max_status_length: {too_long}")
        if not (self.enforce_proofs and self.enforce_signatures):
            logger.warning(
                "Eager seal-time verification partly disabled",
                extra={
                    "enforce_proofs": self.enforce_proofs,
                    "enforce_signatures": self.enforce_signatures,
                },
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> RegistrySettings:
    """Return the process-wide settings, loaded once from the environment.

    Use clear_settings_cache() to reload (e.g., in tests).
    """
    settings = RegistrySettings()
    logger.info(
        "Registry settings loaded: statuses=%s, signature_scheme=%s, "
        "enforce_proofs=%s, enforce_signatures=%s",
        ",".join(settings.allowed_statuses),
        settings.signature_scheme,
        settings.enforce_proofs,
        settings.enforce_signatures,
    )
    return settings


def clear_settings_cache() -> None:
    get_settings.cache_clear()
