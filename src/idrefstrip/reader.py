from __future__ import annotations

import logging
import re
from collections import deque
from typing import BinaryIO, Deque, Dict, Iterator, List, Mapping, Optional, Tuple

from lxml import etree

from .config import DEFAULT_CHUNK_SIZE, ParserOptions
from .errors import MalformedInput
from .events import (
    Attribute,
    Characters,
    Comment,
    Doctype,
    EndElement,
    ParseEvent,
    ProcessingInstruction,
    QName,
    StartElement,
    XmlDeclaration,
    split_clark,
)

log = logging.getLogger(__name__)

XML_NS = "http://www.w3.org/XML/1998/namespace"

# lxml never reports the declaration itself, so it is sniffed from the raw head
_DECL_RE = re.compile(
    rb"^(?:\xef\xbb\xbf)?<\?xml\s+version\s*=\s*[\"']([^\"']+)[\"']"
    rb"(?:\s+encoding\s*=\s*[\"'][^\"']*[\"'])?"
    rb"(?:\s+standalone\s*=\s*[\"'](yes|no)[\"'])?\s*\?>"
)
_HEAD_BYTES = 512
_BOM = b"\xef\xbb\xbf"


class _EventCollector:
    """
    Parser target for lxml: turns SAX callbacks into ParseEvent objects.
    Keeps one prefix->uri scope per open element to give names their prefixes back.
    """

    def __init__(self) -> None:
        self.pending: Deque[ParseEvent] = deque()
        self._scopes: List[Dict[Optional[str], str]] = [{"xml": XML_NS}]

    def drain(self) -> Iterator[ParseEvent]:
        while self.pending:
            yield self.pending.popleft()

    def _prefix_for(self, uri: Optional[str], *, attribute: bool = False) -> Optional[str]:
        if not uri:
            return None
        scope = self._scopes[-1]
        if not attribute and scope.get(None) == uri:
            return None
        for prefix, bound in reversed(scope.items()):
            if bound != uri:
                continue
            # unprefixed attributes are never in a namespace
            if attribute and prefix is None:
                continue
            return prefix
        return None

    def _qname(self, tag: str) -> QName:
        ns, local = split_clark(tag)
        return QName(local_name=local, namespace=ns, prefix=self._prefix_for(ns))

    def start(self, tag: str, attrib: Mapping[str, str], nsmap: Optional[Mapping[Optional[str], str]] = None) -> None:
        declared: Tuple[Tuple[Optional[str], str], ...] = tuple((nsmap or {}).items())
        scope = self._scopes[-1]
        if declared:
            names = {p for p, _ in declared}
            scope = {p: u for p, u in scope.items() if p not in names}
            scope.update(declared)
        self._scopes.append(scope)

        attributes = []
        for key, value in attrib.items():
            ns, local = split_clark(key)
            attributes.append(Attribute(ns, local, value, self._prefix_for(ns, attribute=True)))

        self.pending.append(StartElement(self._qname(tag), tuple(attributes), declared))

    def end(self, tag: str) -> None:
        self.pending.append(EndElement(self._qname(tag)))
        self._scopes.pop()

    def data(self, text: str) -> None:
        self.pending.append(Characters(text))

    def comment(self, text: str) -> None:
        self.pending.append(Comment(text))

    def pi(self, target: str, data: Optional[str] = None) -> None:
        self.pending.append(ProcessingInstruction(target, data or ""))

    def doctype(self, name: str, pubid: Optional[str], system: Optional[str]) -> None:
        self.pending.append(Doctype(name, pubid or None, system or None))

    def close(self) -> None:
        return None


def _make_parser(target: _EventCollector, options: ParserOptions) -> etree.XMLParser:
    return etree.XMLParser(
        target=target,
        encoding=options.encoding,
        resolve_entities=options.resolve_entities,
        load_dtd=options.load_dtd,
        no_network=options.no_network,
        huge_tree=options.huge_tree,
        recover=False,
    )


def _malformed(exc: etree.XMLSyntaxError) -> MalformedInput:
    return MalformedInput(
        str(exc) or "malformed XML",
        line=getattr(exc, "lineno", None),
        column=getattr(exc, "offset", None),
    )


def _maybe_declaration(head: bytes) -> bool:
    if head.startswith(_BOM):
        head = head[len(_BOM):]
    return head.startswith(b"<?xml")


def _read_head(stream: BinaryIO, chunk_size: int) -> bytes:
    head = b""
    while len(head) < _HEAD_BYTES and b"?>" not in head:
        if len(head) >= 8 and not _maybe_declaration(head):
            break
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        head += chunk
    return head


def sniff_declaration(head: bytes) -> Optional[XmlDeclaration]:
    m = _DECL_RE.match(head)
    if not m:
        return None
    standalone = m.group(2).decode("ascii") if m.group(2) else None
    return XmlDeclaration(version=m.group(1).decode("ascii"), standalone=standalone)


def iter_events(
    stream: BinaryIO,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    options: Optional[ParserOptions] = None,
) -> Iterator[ParseEvent]:
    """
    Lazy event source over an open binary stream.
    Reads chunk by chunk; events parsed from one chunk are yielded before the next read.
    Raises MalformedInput after yielding whatever was parsed before the error.
    """
    options = options or ParserOptions()
    collector = _EventCollector()
    parser = _make_parser(collector, options)

    head = _read_head(stream, chunk_size)
    decl = sniff_declaration(head)
    if decl is not None:
        yield decl

    chunk = head
    fed = 0
    while chunk:
        try:
            parser.feed(chunk)
        except etree.XMLSyntaxError as e:
            yield from collector.drain()
            raise _malformed(e) from e
        fed += len(chunk)
        yield from collector.drain()
        chunk = stream.read(chunk_size)

    try:
        parser.close()
    except etree.XMLSyntaxError as e:
        yield from collector.drain()
        raise _malformed(e) from e
    yield from collector.drain()
    log.debug("event source done: %d bytes parsed", fed)
