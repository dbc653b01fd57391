from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional

from .config import TransformConfig
from .models import TransformReport
from .reader import iter_events
from .suppress import SuppressionFilter
from .writer import XmlEventWriter

log = logging.getLogger(__name__)


def remove_idref_values(
    source: BinaryIO,
    sink: BinaryIO,
    config: Optional[TransformConfig] = None,
) -> TransformReport:
    """
    Copy the XML document in `source` to `sink`, dropping the direct text of
    every element that carries an IDREF attribute (local name, any case).

    Single pass, one event in flight. Errors abort the run; whatever was
    already written stays in `sink`. The streams are not closed here.
    """
    config = config or TransformConfig()
    report = TransformReport()
    filt = SuppressionFilter(config.attribute_name, report)
    writer = XmlEventWriter(sink)

    events = iter_events(source, chunk_size=config.chunk_size, options=config.parser)
    for ev in filt.filter(events):
        writer.add(ev)

    filt.finish()
    writer.flush()
    report.bytes_written = writer.bytes_written

    log.debug(
        "transform done: elements=%d flagged=%d suppressed=%d",
        report.elements, report.flagged_elements, report.text_suppressed,
    )
    return report


def transform_bytes(data: bytes, config: Optional[TransformConfig] = None) -> bytes:
    out = io.BytesIO()
    remove_idref_values(io.BytesIO(data), out, config)
    return out.getvalue()


def transform_file(
    in_path: str | Path,
    out_path: str | Path,
    config: Optional[TransformConfig] = None,
) -> TransformReport:
    in_path = Path(in_path)
    out_path = Path(out_path)
    if not in_path.exists():
        raise FileNotFoundError(f"XML not found: {in_path}")

    out_path.parent.mkdir(parents=True, exist_ok=True)

    with in_path.open("rb") as src, out_path.open("wb") as dst:
        return remove_idref_values(src, dst, config)
