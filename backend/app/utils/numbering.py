"""Document number sequencer.

Format tokens:
  {office}     → office id of the requesting user
  {yy}         → two-digit year of the document date
  {date}       → YYYYMMDD of the document date
  {seq:N}      → zero-padded counter, N digits

Default formats (overridable per kind via ``settings.number_formats``):
  job:              {yy}{office}{seq:4}
  invoice:          INV{office}{yy}{seq:4}
  purchase_invoice: PI{office}{yy}{seq:4}
  receipt:          RV{office}{yy}{seq:3}
  payment:          PV{office}{yy}{seq:3}

Counters live in ``document_sequences`` and are advanced under a row lock,
so two concurrent callers never receive the same number and a number is
never handed out twice, even after the document carrying it is deleted.
"""

import re
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.middleware.exceptions import ConflictError
from app.models.document_sequence import DocumentSequence

DEFAULT_FORMATS = {
    "job": "{yy}{office}{seq:4}",
    "invoice": "INV{office}{yy}{seq:4}",
    "purchase_invoice": "PI{office}{yy}{seq:4}",
    "receipt": "RV{office}{yy}{seq:3}",
    "payment": "PV{office}{yy}{seq:3}",
}

_SEQ_RE = re.compile(r"\{seq:(\d+)\}")


def get_format(kind: str) -> str:
    """Return the format template for a document kind."""
    return settings.number_formats.get(kind) or DEFAULT_FORMATS[kind]


def _render(fmt: str, office_id: str, on: date) -> str:
    """Fill every token except {seq:N}."""
    return (
        fmt.replace("{office}", office_id)
        .replace("{yy}", on.strftime("%y"))
        .replace("{date}", on.strftime("%Y%m%d"))
    )


def build_prefix(fmt: str, office_id: str, on: date) -> str:
    """Counter key: the rendered template with the sequence slot blanked."""
    return _SEQ_RE.sub("#", _render(fmt, office_id, on))


def format_number(fmt: str, office_id: str, on: date, seq: int) -> str:
    seq_match = _SEQ_RE.search(fmt)
    seq_width = int(seq_match.group(1)) if seq_match else 3
    return _SEQ_RE.sub(f"{seq:0{seq_width}d}", _render(fmt, office_id, on))


async def _advance(db: AsyncSession, office_id: str, kind: str, prefix: str) -> int:
    result = await db.execute(
        select(DocumentSequence)
        .where(
            DocumentSequence.office_id == office_id,
            DocumentSequence.kind == kind,
            DocumentSequence.prefix == prefix,
        )
        .with_for_update()
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = DocumentSequence(office_id=office_id, kind=kind, prefix=prefix, last_value=1)
        db.add(row)
        try:
            await db.flush()
        except IntegrityError:
            # Another transaction created the counter first
            raise ConflictError(
                "Document sequence was initialised concurrently",
                details={"kind": kind, "office_id": office_id},
            )
        return 1

    row.last_value += 1
    await db.flush()
    return row.last_value


async def next_number(
    db: AsyncSession,
    kind: str,
    office_id: str,
    on: date | None = None,
) -> str:
    """Reserve and return the next document number.

    Args:
        db: Session of the enclosing unit of work; the counter row stays
            locked until it commits or rolls back.
        kind: One of the DEFAULT_FORMATS keys.
        office_id: Office the document belongs to.
        on: Document date (defaults to today).

    Returns:
        Generated number, e.g. "INVAE260001"
    """
    on = on or date.today()
    fmt = get_format(kind)
    prefix = build_prefix(fmt, office_id, on)
    seq = await _advance(db, office_id, kind, prefix)
    return format_number(fmt, office_id, on, seq)
