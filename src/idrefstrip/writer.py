from __future__ import annotations

from typing import BinaryIO
from xml.sax.saxutils import escape

from .errors import WriteFailure
from .events import (
    CData,
    Characters,
    Comment,
    Doctype,
    EndElement,
    ParseEvent,
    ProcessingInstruction,
    StartElement,
    XmlDeclaration,
)

_TEXT_ENTITIES = {"\r": "&#13;"}
_ATTR_ENTITIES = {'"': "&quot;", "\t": "&#9;", "\n": "&#10;", "\r": "&#13;"}


def escape_text(text: str) -> str:
    return escape(text, _TEXT_ENTITIES)


def quote_attr(value: str) -> str:
    return '"' + escape(value, _ATTR_ENTITIES) + '"'


def _cdata(text: str) -> str:
    # "]]>" cannot live inside one section, split it across two
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _literal(value: str) -> str:
    # ids have no escapes; a literal holding '"' must be single-quoted
    if '"' in value:
        return f"'{value}'"
    return f'"{value}"'


def _doctype(ev: Doctype) -> str:
    out = f"<!DOCTYPE {ev.name}"
    if ev.public_id:
        out += f" PUBLIC {_literal(ev.public_id)} {_literal(ev.system_id or '')}"
    elif ev.system_id:
        out += f" SYSTEM {_literal(ev.system_id)}"
    return out + ">\n"


def serialize_event(ev: ParseEvent) -> str:
    """Markup for a single event. Elements are never collapsed to <a/>."""
    if isinstance(ev, StartElement):
        parts = ["<", ev.name.qualified]
        for prefix, uri in ev.namespaces:
            parts.append(f" xmlns:{prefix}=" if prefix else " xmlns=")
            parts.append(quote_attr(uri))
        for attr in ev.attributes:
            parts.append(" " + attr.qualified + "=" + quote_attr(attr.value))
        parts.append(">")
        return "".join(parts)
    if isinstance(ev, EndElement):
        return f"</{ev.name.qualified}>"
    if isinstance(ev, Characters):
        return escape_text(ev.text)
    if isinstance(ev, CData):
        return _cdata(ev.text)
    if isinstance(ev, Comment):
        return f"<!--{ev.text}-->"
    if isinstance(ev, ProcessingInstruction):
        if ev.data:
            return f"<?{ev.target} {ev.data}?>"
        return f"<?{ev.target}?>"
    if isinstance(ev, Doctype):
        return _doctype(ev)
    if isinstance(ev, XmlDeclaration):
        standalone = f' standalone="{ev.standalone}"' if ev.standalone else ""
        return f'<?xml version="{ev.version}" encoding="UTF-8"{standalone}?>\n'
    raise TypeError(f"not a parse event: {ev!r}")


class XmlEventWriter:
    """
    Sink that writes each event straight to a binary stream as UTF-8.
    Nothing is buffered here beyond what the stream itself buffers.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.bytes_written = 0

    def add(self, ev: ParseEvent) -> None:
        data = serialize_event(ev).encode("utf-8")
        self._write(data)

    def _write(self, data: bytes) -> None:
        try:
            self._stream.write(data)
        except (OSError, ValueError) as e:
            # ValueError: I/O operation on closed file
            raise WriteFailure(f"cannot write to output: {e}") from e
        self.bytes_written += len(data)

    def flush(self) -> None:
        flush = getattr(self._stream, "flush", None)
        if flush is None:
            return
        try:
            flush()
        except (OSError, ValueError) as e:
            raise WriteFailure(f"cannot flush output: {e}") from e
