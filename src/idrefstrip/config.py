from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_ATTRIBUTE = "idref"
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ParserOptions:
    """
    Security / limits policy handed to lxml before any event is read.
    Defaults keep DTDs and external entities out of the picture.
    """
    resolve_entities: bool = False
    load_dtd: bool = False
    no_network: bool = True
    huge_tree: bool = True  # lift libxml2 size limits, as iterparse(huge_tree=True)
    encoding: Optional[str] = None  # None = declared encoding, else UTF-8


@dataclass(frozen=True)
class TransformConfig:
    attribute_name: str = DEFAULT_ATTRIBUTE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    parser: ParserOptions = field(default_factory=ParserOptions)

    def __post_init__(self) -> None:
        if not self.attribute_name or not self.attribute_name.strip():
            raise ValueError("attribute_name must not be empty")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "TransformConfig":
        load_dotenv(dotenv_path)

        attribute_name = os.getenv("IDREFSTRIP_ATTRIBUTE", DEFAULT_ATTRIBUTE).strip()
        chunk_size = _env_int("IDREFSTRIP_CHUNK_SIZE", DEFAULT_CHUNK_SIZE)
        huge_tree = _env_bool("IDREFSTRIP_HUGE_TREE", True)
        encoding = os.getenv("IDREFSTRIP_ENCODING", "").strip() or None

        return cls(
            attribute_name=attribute_name,
            chunk_size=chunk_size,
            parser=ParserOptions(huge_tree=huge_tree, encoding=encoding),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")
