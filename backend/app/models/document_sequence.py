"""DocumentSequence: per-office monotonic counter for one document kind.

One row per (office, kind, prefix), where prefix is the rendered number
template with the sequence slot blanked out ("INVAE26#").  A new year
therefore starts a new counter, while the same prefix always continues
its own.  Rows are only ever incremented, so a number handed out once is
never reissued even if its document is deleted.
"""

import uuid

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DocumentSequence(Base):
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("office_id", "kind", "prefix", name="uq_document_sequence"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    office_id: Mapped[str] = mapped_column(String(20), nullable=False)
    # invoice | purchase_invoice | receipt | payment | job
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    prefix: Mapped[str] = mapped_column(String(50), nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
