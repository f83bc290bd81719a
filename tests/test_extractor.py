"""Unit tests for PathDiffExtractor's bounded scan."""

import pytest

from idgit.core.backend import ChangeRecord, ChangeStatus, FileSide
from idgit.core.extractor import PathDiffExtractor
from idgit.exceptions import BackendFailure, PathNotFound
from idgit.models.delta import DeltaKind
from idgit.models.diff import LineChange, LineOrigin


def side(path, oid="1" * 40):
    return FileSide(oid=oid, path=path, size=1)


def modified(path):
    return ChangeRecord(ChangeStatus.MODIFIED, old=side(path), new=side(path, "0" * 40))


def line(text, origin=LineOrigin.ADDITION):
    return LineChange(content=text, origin=origin)


class FakeBackend:
    """Records how far each stream was consumed."""

    def __init__(self, records, patch_lines, fail_after=None):
        self.records = records
        self.patch_lines = patch_lines
        self.fail_after = fail_after
        self.records_seen = []
        self.lines_seen = []
        self.pathspecs = []

    def resolve_baseline(self):
        return "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

    def iter_changes(self, pathspecs=()):
        self.pathspecs.append(list(pathspecs))
        for record in self.records:
            self.records_seen.append(record.path)
            yield record

    def iter_patch_lines(self, baseline, pathspecs):
        for index, (path, patch_line) in enumerate(self.patch_lines):
            if self.fail_after is not None and index == self.fail_after:
                raise BackendFailure("git diff died")
            self.lines_seen.append((path, patch_line.content))
            yield path, patch_line


def test_stops_after_target_record():
    backend = FakeBackend([modified("dir"), modified("dir/file"), modified("zzz")], [])

    delta = PathDiffExtractor(backend).find_delta("dir/file")

    assert delta.kind == DeltaKind.MODIFIED
    assert backend.records_seen == ["dir", "dir/file"]
    assert backend.pathspecs == [["dir/file"]]


def test_keeps_draining_target_lines_then_stops():
    backend = FakeBackend(
        [modified("b.txt")],
        [
            ("a.txt", line(b"a\n")),
            ("b.txt", line(b"", LineOrigin.FILE_HEADER)),
            ("b.txt", line(b"b1\n")),
            ("b.txt", line(b"b2\n")),
            ("c.txt", line(b"c\n")),
            ("d.txt", line(b"d\n")),
        ],
    )

    details = PathDiffExtractor(backend).extract("b.txt")

    assert [l.content for l in details.lines] == [b"", b"b1\n", b"b2\n"]
    # The first line of the next file ends the scan; nothing after it is read.
    assert backend.lines_seen[-1] == ("c.txt", b"c\n")
    assert ("d.txt", b"d\n") not in backend.lines_seen


def test_path_not_found():
    backend = FakeBackend([modified("a.txt")], [])

    with pytest.raises(PathNotFound) as excinfo:
        PathDiffExtractor(backend).extract("b.txt")
    assert excinfo.value.path == "b.txt"


def test_backend_failure_propagates():
    backend = FakeBackend(
        [modified("a.txt")],
        [("a.txt", line(b"1\n")), ("a.txt", line(b"2\n"))],
        fail_after=1,
    )

    with pytest.raises(BackendFailure):
        PathDiffExtractor(backend).extract("a.txt")


def test_untracked_target_skips_patch_stream():
    record = ChangeRecord(ChangeStatus.UNTRACKED, new=side("u.txt", "0" * 40))
    backend = FakeBackend([record], [("u.txt", line(b"never\n"))])

    details = PathDiffExtractor(backend).extract("u.txt")

    assert details.delta.kind == DeltaKind.UNTRACKED
    assert details.lines == []
    assert backend.lines_seen == []


def test_related_paths_widen_pathspec():
    record = ChangeRecord(ChangeStatus.RENAMED, old=side("old.txt"), new=side("new.txt"))
    backend = FakeBackend([record], [])

    delta = PathDiffExtractor(backend).find_delta("new.txt", related=["old.txt"])

    assert delta.kind == DeltaKind.RENAMED
    assert backend.pathspecs == [["new.txt", "old.txt"]]
