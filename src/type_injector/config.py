import os
import shlex

from pydantic import BaseModel, ConfigDict, Field

_ENV_PREFIX = "SWIFT_TYPE_INJECTOR_"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


class InjectorConfig(BaseModel):
    """Settings for dumping and rewriting; see :meth:`from_env` for the environment names."""

    model_config = ConfigDict(frozen=True)

    swiftc: str = "swiftc"
    swiftc_args: tuple[str, ...] = Field(default_factory=tuple)
    annotate_bindings: bool = True
    annotate_calls: bool = True
    annotate_closures: bool = True

    @classmethod
    def from_env(cls) -> "InjectorConfig":
        return cls(
            swiftc=os.getenv(_ENV_PREFIX + "SWIFTC", "swiftc"),
            swiftc_args=tuple(shlex.split(os.getenv(_ENV_PREFIX + "SWIFTC_ARGS", ""))),
            annotate_bindings=_env_flag("BINDINGS", True),
            annotate_calls=_env_flag("CALLS", True),
            annotate_closures=_env_flag("CLOSURES", True),
        )
