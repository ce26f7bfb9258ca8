"""
Domain package for polyrecord.

Exports the record envelope: the feed row model and the functions that build,
dump and load it. Keep this package focused on data definitions and
validation concerns.
"""

from polyrecord.domain.envelope import (
    ActivityRecord,
    EnvelopeResult,
    EnvelopeState,
    RecordDraft,
    SharedFields,
    build_record,
    dump_record,
    load_record,
)

__all__ = [
    "ActivityRecord",
    "EnvelopeResult",
    "EnvelopeState",
    "RecordDraft",
    "SharedFields",
    "build_record",
    "dump_record",
    "load_record",
]
