"""The application's startup task graph."""

from __future__ import annotations

from dataclasses import dataclass

from liftoff.config import settings


@dataclass(frozen=True)
class SubsystemSpec:
    """Static description of one subsystem to bring up.

    Attributes:
        name: Task name; also the key into the initializer mapping.
        description: Progress text for this step.
        dependencies: Subsystems that must be settled first.
        critical: Whether an unrecoverable failure aborts startup.
        fallback_message: Logged when the fallback degrades the subsystem.
            ``None`` means the subsystem has no fallback.
        max_retries: Retry budget (None → settings default).
    """

    name: str
    description: str = ""
    dependencies: tuple[str, ...] = ()
    critical: bool = False
    fallback_message: str | None = None
    max_retries: int | None = None

    @property
    def retries(self) -> int:
        if self.max_retries is None:
            return settings.startup_max_retries
        return self.max_retries


THEME = "Theme"
COMMON_STATE = "Common State"
I18N = "Internationalization"
USER_API = "User API"
DATA = "Data"
PLAYER = "Player"
SYNC = "Sync"

DEFAULT_GRAPH: tuple[SubsystemSpec, ...] = (
    SubsystemSpec(
        name=THEME,
        description="Loading theme",
        critical=True,
        fallback_message="Using default theme as fallback",
    ),
    SubsystemSpec(
        name=COMMON_STATE,
        description="Restoring common state",
        critical=True,
        fallback_message="Common state initialization failed, using defaults",
    ),
    SubsystemSpec(
        name=I18N,
        description="Loading translations",
        dependencies=(COMMON_STATE,),
        fallback_message="Using default language as fallback",
    ),
    SubsystemSpec(
        name=USER_API,
        description="Connecting user API",
        dependencies=(COMMON_STATE,),
        fallback_message="User API failed, user will be logged out",
    ),
    SubsystemSpec(
        name=DATA,
        description="Opening music library",
        dependencies=(COMMON_STATE,),
        critical=True,
        fallback_message="Data initialization failed, using empty state",
    ),
    SubsystemSpec(
        name=PLAYER,
        description="Starting audio player",
        dependencies=(COMMON_STATE,),
        critical=True,
        fallback_message="Player initialization failed, music features disabled",
    ),
    SubsystemSpec(
        name=SYNC,
        description="Starting sync",
        dependencies=(USER_API, DATA),
        fallback_message="Sync failed, will retry later",
    ),
)
