from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wms.models.container import BarcodeSequence


def _locked_sequence(db: Session, prefix: str) -> BarcodeSequence | None:
    return db.execute(
        select(BarcodeSequence).where(BarcodeSequence.prefix == prefix).with_for_update()
    ).scalar_one_or_none()


def next_sequence_value(db: Session, prefix: str) -> int:
    """Allocate the next value of the per-prefix counter inside the caller's unit of work.

    The counter row stays locked until the caller commits or rolls back, so two
    allocations for the same prefix can never observe the same value.
    """
    sequence = _locked_sequence(db, prefix)
    if sequence is None:
        try:
            with db.begin_nested():
                sequence = BarcodeSequence(prefix=prefix, last_value=0)
                db.add(sequence)
        except IntegrityError:
            # Another unit of work created the counter first; wait on its lock.
            sequence = _locked_sequence(db, prefix)
            if sequence is None:
                raise

    sequence.last_value += 1
    db.flush()
    return sequence.last_value


def format_sequence(prefix: str, value: int, width: int) -> str:
    return f"{prefix}-{value:0{width}d}"
