"""Run configuration for the batch harness."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

from .errors import ConfigurationError


class RegistrationMode(str, Enum):
    """How a family's codebook is registered with its decoder."""

    STANDARD = "standard"
    BITS = "bits"


@dataclass(frozen=True)
class FamilyConfig:
    """Declarative settings for one tag family.

    ``bits_corrected`` is only read when ``registration_mode`` is ``BITS``.
    """

    name: str
    registration_mode: RegistrationMode = RegistrationMode.STANDARD
    bits_corrected: int = 1


DEFAULT_FAMILIES: Tuple[FamilyConfig, ...] = (
    FamilyConfig("tag36h11"),
    FamilyConfig("tag36h10"),
    FamilyConfig("tag25h9"),
    FamilyConfig("tag16h5"),
)

DEFAULT_IMAGE_EXTENSIONS: FrozenSet[str] = frozenset({".jpg", ".jpeg", ".png"})


@dataclass(frozen=True)
class HarnessConfig:
    """Everything a batch run needs besides its input and output paths."""

    families: Tuple[FamilyConfig, ...] = DEFAULT_FAMILIES
    image_extensions: FrozenSet[str] = field(default=DEFAULT_IMAGE_EXTENSIONS)
    report_extension: str = ".json"
    manifest_name: str = "manifest.json"
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.families:
            raise ConfigurationError("At least one tag family must be configured")
        names = self.family_names()
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate tag families in configuration: {names}")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"Worker count must be positive, got {self.workers}")
        object.__setattr__(self, "families", tuple(self.families))
        object.__setattr__(
            self, "image_extensions", frozenset(ext.lower() for ext in self.image_extensions)
        )

    def family_names(self) -> List[str]:
        return [family.name for family in self.families]

    def is_image(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() in self.image_extensions

    def report_name(self, image_path: Path) -> str:
        return image_path.stem + self.report_extension


def parse_family_option(value: str) -> Tuple[FamilyConfig, ...]:
    """Parse a comma separated family list such as ``tag36h11,tag16h5:bits=2``.

    Each entry is ``name``, ``name:bits`` (one corrected bit) or
    ``name:bits=N``.
    """

    families: List[FamilyConfig] = []
    for raw in value.split(","):
        entry = raw.strip()
        if not entry:
            continue
        name, _, mode = entry.partition(":")
        name = name.strip()
        if not name:
            raise ConfigurationError(f"Missing family name in {entry!r}")
        if not mode:
            families.append(FamilyConfig(name))
            continue
        mode_name, _, bits = mode.partition("=")
        if mode_name.strip().lower() != RegistrationMode.BITS.value:
            raise ConfigurationError(f"Unknown registration mode in {entry!r}")
        try:
            bits_corrected = int(bits) if bits else 1
        except ValueError as exc:
            raise ConfigurationError(f"Invalid corrected bit count in {entry!r}") from exc
        if bits_corrected < 0:
            raise ConfigurationError(f"Corrected bit count must not be negative in {entry!r}")
        families.append(FamilyConfig(name, RegistrationMode.BITS, bits_corrected))
    if not families:
        raise ConfigurationError("No tag families given")
    return tuple(families)
