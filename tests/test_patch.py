"""Tests for the unified patch parser."""

from idgit.core.patch import PatchParser, is_null_oid, unquote_path
from idgit.models.diff import LineOrigin

OLD_OID = "1" * 40
NEW_OID = "2" * 40


def patch_lines(text: bytes):
    return text.splitlines(keepends=True)


MODIFIED = (
    b"diff --git a/f.txt b/f.txt\n"
    b"index " + OLD_OID.encode() + b".." + NEW_OID.encode() + b" 100644\n"
    b"--- a/f.txt\n"
    b"+++ b/f.txt\n"
    b"@@ -1,3 +1,3 @@ section\n"
    b" one\n"
    b"-two\n"
    b"+deux\n"
    b" three\n"
)

TWO_FILES = (
    b"diff --git a/a.txt b/a.txt\n"
    b"new file mode 100644\n"
    b"index 0000000000000000000000000000000000000000.." + NEW_OID.encode() + b"\n"
    b"--- /dev/null\n"
    b"+++ b/a.txt\n"
    b"@@ -0,0 +1 @@\n"
    b"+hello\n"
    b"diff --git a/gone.txt b/gone.txt\n"
    b"deleted file mode 100644\n"
    b"index " + OLD_OID.encode() + b"..0000000000000000000000000000000000000000\n"
    b"--- a/gone.txt\n"
    b"+++ /dev/null\n"
    b"@@ -1 +0,0 @@\n"
    b"-bye\n"
)


def test_modified_patch():
    records = list(PatchParser().parse(patch_lines(MODIFIED)))

    assert {path for path, _ in records} == {"f.txt"}
    lines = [line for _, line in records]
    assert [line.origin for line in lines] == [
        LineOrigin.FILE_HEADER,
        LineOrigin.HUNK_HEADER,
        LineOrigin.CONTEXT,
        LineOrigin.DELETION,
        LineOrigin.ADDITION,
        LineOrigin.CONTEXT,
    ]
    assert lines[0].num_lines == 4
    assert lines[1].content == b"@@ -1,3 +1,3 @@ section\n"
    assert [(l.old_lineno, l.new_lineno) for l in lines[2:]] == [
        (1, 1),
        (2, None),
        (None, 2),
        (3, 3),
    ]
    # No readers, no offsets.
    assert all(line.content_offset == -1 for line in lines)


def test_offsets_use_old_and_new_content():
    parser = PatchParser(
        read_blob=lambda oid: b"one\ntwo\nthree\n" if oid == OLD_OID else None,
        read_worktree=lambda path: b"one\ndeux\nthree\n" if path == "f.txt" else None,
    )

    lines = [line for _, line in parser.parse(patch_lines(MODIFIED))]

    assert [line.content_offset for line in lines[2:]] == [0, 4, 4, 8]


def test_readers_only_called_for_consumed_files():
    calls = []

    def read_blob(oid):
        calls.append(oid)
        return b"bye\n"

    records = PatchParser(read_blob=read_blob).parse(patch_lines(TWO_FILES))
    for path, _ in records:
        if path == "gone.txt":
            break

    assert calls == []


def test_added_and_deleted_files():
    records = list(PatchParser().parse(patch_lines(TWO_FILES)))

    by_path = {}
    for path, line in records:
        by_path.setdefault(path, []).append(line)

    assert list(by_path) == ["a.txt", "gone.txt"]
    added = by_path["a.txt"][-1]
    assert (added.origin, added.old_lineno, added.new_lineno) == (LineOrigin.ADDITION, None, 1)
    removed = by_path["gone.txt"][-1]
    assert (removed.origin, removed.old_lineno, removed.new_lineno) == (LineOrigin.DELETION, 1, None)


def test_no_newline_markers():
    text = (
        b"diff --git a/n b/n\n"
        b"--- a/n\n"
        b"+++ b/n\n"
        b"@@ -1 +1 @@\n"
        b"-a\n"
        b"\\ No newline at end of file\n"
        b"+b\n"
        b"\\ No newline at end of file\n"
    )

    origins = [line.origin for _, line in PatchParser().parse(patch_lines(text))]

    assert origins[2:] == [
        LineOrigin.DELETION,
        LineOrigin.DEL_EOFNL,
        LineOrigin.ADDITION,
        LineOrigin.ADD_EOFNL,
    ]


def test_binary_and_header_only_patches():
    text = (
        b"diff --git a/bin.dat b/bin.dat\n"
        b"index " + OLD_OID.encode() + b".." + NEW_OID.encode() + b" 100644\n"
        b"Binary files a/bin.dat and b/bin.dat differ\n"
        b"diff --git a/script.sh b/script.sh\n"
        b"old mode 100644\n"
        b"new mode 100755\n"
    )

    records = list(PatchParser().parse(patch_lines(text)))

    assert [(path, line.origin) for path, line in records] == [
        ("bin.dat", LineOrigin.FILE_HEADER),
        ("bin.dat", LineOrigin.BINARY),
        ("script.sh", LineOrigin.FILE_HEADER),
    ]
    assert records[2][1].content.endswith(b"new mode 100755\n")


def test_rename_uses_new_path():
    text = (
        b"diff --git a/old name.txt b/new name.txt\n"
        b"similarity index 100%\n"
        b"rename from old name.txt\n"
        b"rename to new name.txt\n"
    )

    records = list(PatchParser().parse(patch_lines(text)))

    assert [path for path, _ in records] == ["new name.txt"]


def test_paths_with_spaces_and_quotes():
    text = (
        b"diff --git a/with space.txt b/with space.txt\n"
        b"--- a/with space.txt\t\n"
        b"+++ b/with space.txt\t\n"
        b"@@ -1 +1 @@\n"
        b"-x\n"
        b"+y\n"
        b'diff --git "a/tab\\there.txt" "b/tab\\there.txt"\n'
        b'--- "a/tab\\there.txt"\n'
        b'+++ "b/tab\\there.txt"\n'
        b"@@ -1 +1 @@\n"
        b"-x\n"
        b"+y\n"
    )

    paths = {path for path, _ in PatchParser().parse(patch_lines(text))}

    assert paths == {"with space.txt", "tab\there.txt"}


def test_unquote_path():
    assert unquote_path(b"plain.txt") == "plain.txt"
    assert unquote_path(b'"a\\"b"') == 'a"b'
    assert unquote_path(b'"caf\\303\\251"') == "café"


def test_is_null_oid():
    assert is_null_oid("0" * 40)
    assert is_null_oid(None)
    assert not is_null_oid("0" * 39 + "1")
