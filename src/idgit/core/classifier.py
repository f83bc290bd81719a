"""Classification of raw change records."""

from typing import Optional, Tuple

from idgit.core.backend import ChangeRecord, ChangeStatus, FileSide
from idgit.core.patch import is_null_oid
from idgit.exceptions import ContractViolation
from idgit.models.delta import OLD_SIDE_KINDS, Delta, DeltaKind
from idgit.models.file_ref import FileRef

_KINDS = {
    ChangeStatus.ADDED: DeltaKind.ADDED,
    ChangeStatus.DELETED: DeltaKind.DELETED,
    ChangeStatus.MODIFIED: DeltaKind.MODIFIED,
    ChangeStatus.RENAMED: DeltaKind.RENAMED,
    ChangeStatus.COPIED: DeltaKind.COPIED,
    ChangeStatus.IGNORED: DeltaKind.IGNORED,
    ChangeStatus.UNTRACKED: DeltaKind.UNTRACKED,
    ChangeStatus.TYPECHANGE: DeltaKind.TYPECHANGE,
    ChangeStatus.UNREADABLE: DeltaKind.UNREADABLE,
    ChangeStatus.CONFLICTED: DeltaKind.CONFLICTED,
}


def file_ref_from_side(side: FileSide) -> FileRef:
    """Convert a backend side, mapping the zero object id to None."""
    content_id = None if is_null_oid(side.oid) else side.oid
    return FileRef(content_id=content_id, rel_path=side.path, size=side.size)


class DeltaClassifier:
    """Maps change records onto Delta classifications.

    Records that do not carry the sides their status requires, and
    unmodified records, raise ContractViolation.
    """

    def classify(self, record: ChangeRecord) -> Delta:
        if record.status == ChangeStatus.UNMODIFIED:
            raise ContractViolation("Unmodified records are not part of the change stream")

        kind = _KINDS[record.status]
        if kind.is_dual:
            old, new = self._both_sides(record)
            return Delta(kind=kind, old=old, new=new)
        if kind in OLD_SIDE_KINDS:
            return Delta(kind=kind, old=self._only_side(record, record.old))
        return Delta(kind=kind, new=self._only_side(record, record.new))

    @staticmethod
    def _only_side(record: ChangeRecord, side: Optional[FileSide]) -> FileRef:
        if record.nfiles != 1 or side is None:
            raise ContractViolation(
                f"{record.status.value} record must carry exactly one side, got {record!r}"
            )
        return file_ref_from_side(side)

    @staticmethod
    def _both_sides(record: ChangeRecord) -> Tuple[FileRef, FileRef]:
        if record.nfiles != 2:
            raise ContractViolation(
                f"{record.status.value} record must carry two sides, got {record!r}"
            )
        return file_ref_from_side(record.old), file_ref_from_side(record.new)


def classify(record: ChangeRecord) -> Delta:
    return DeltaClassifier().classify(record)
