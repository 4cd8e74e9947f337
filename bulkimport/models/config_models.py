from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the bulk import engine.

These are the typed results of config/loader.py. EngineSettings is the subset the
batch driver needs; it has safe defaults so the engine can run without a config file.
"""

DEFAULT_PACE_EVERY = 10
DEFAULT_PACE_SECONDS = 0.1
DEFAULT_DUPLICATE_PHRASES = ("already exists", "duplicate")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class EngineSettings:
    """Batch driver tuning.

    pace_every / pace_seconds: after every pace_every-th row the driver sleeps
    pace_seconds so the downstream store is not hit with back-to-back writes.
    duplicate_phrases: fallback for stores that report conflicts only as text
    (matched case-insensitively).
    """
    pace_every: int = DEFAULT_PACE_EVERY
    pace_seconds: float = DEFAULT_PACE_SECONDS
    duplicate_phrases: tuple[str, ...] = DEFAULT_DUPLICATE_PHRASES

    def is_duplicate_message(self, message: str | None) -> bool:
        if not message:
            return False
        lowered = message.lower()
        return any(phrase.lower() in lowered for phrase in self.duplicate_phrases)


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    organization_id: str  # Owning organization (all lookups are scoped to it)
    organization_name: str
    invited_by: str | None  # User recorded as inviter / creator
    importer_role: str  # admin / supervisor / field_tech
    engine: EngineSettings
    database: DatabaseConfig
