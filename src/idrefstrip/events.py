from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


def split_clark(name: str) -> Tuple[Optional[str], str]:
    # "{namespace}Tag" -> ("namespace", "Tag")
    if name.startswith("{") and "}" in name:
        ns, local = name[1:].split("}", 1)
        return ns, local
    return None, name


@dataclass(frozen=True)
class QName:
    local_name: str
    namespace: Optional[str] = None
    prefix: Optional[str] = None

    @property
    def qualified(self) -> str:
        if self.prefix:
            return f"{self.prefix}:{self.local_name}"
        return self.local_name


@dataclass(frozen=True)
class Attribute:
    namespace: Optional[str]
    local_name: str
    value: str
    prefix: Optional[str] = None

    @property
    def qualified(self) -> str:
        if self.prefix:
            return f"{self.prefix}:{self.local_name}"
        return self.local_name


@dataclass(frozen=True)
class StartElement:
    name: QName
    attributes: Tuple[Attribute, ...] = ()
    # (prefix, uri) pairs declared on this element; prefix None = default ns
    namespaces: Tuple[Tuple[Optional[str], str], ...] = ()


@dataclass(frozen=True)
class EndElement:
    name: QName


@dataclass(frozen=True)
class Characters:
    text: str


@dataclass(frozen=True)
class CData:
    text: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class ProcessingInstruction:
    target: str
    data: str = ""


@dataclass(frozen=True)
class Doctype:
    name: str
    public_id: Optional[str] = None
    system_id: Optional[str] = None


@dataclass(frozen=True)
class XmlDeclaration:
    version: str = "1.0"
    standalone: Optional[str] = None


# Comments, PIs, doctype and the declaration are never filtered
Other = Union[Comment, ProcessingInstruction, Doctype, XmlDeclaration]

ParseEvent = Union[StartElement, EndElement, Characters, CData, Other]
