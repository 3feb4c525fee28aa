"""
Tests for deleting files and old file versions through the delete endpoint
"""

import pytest

import file_deletion
import file_storage
from file_deletion import DeleteFileVersions, IsValidOldSpec
from file_storage import FindFile, GetArchivePath, GetPublicPath
from models.database import FileArchive, Image, LogEntry, OldImage, Page
from titles import NS_FILE, Title


def _Delete(client, wiki, user, **data):
    data.setdefault("token", wiki.CsrfToken(user))
    return client.post("/api/delete", data=data, headers=wiki.AuthHeaders(user))


def _DeletedBlobs():
    return [p for p in (file_storage.storage_root / "deleted").rglob("*") if p.is_file()]


def test_is_valid_old_spec():
    assert IsValidOldSpec("20240101000000!Pic.png")
    assert not IsValidOldSpec("2024!Pic.png")
    assert not IsValidOldSpec("20240101000000Pic.png")
    assert not IsValidOldSpec("20240101000000!../Pic.png")
    assert not IsValidOldSpec("20240101000000!a\\b.png")


def test_delete_whole_file(client, wiki, sysop, session):
    """Test that all versions are archived, blobs moved, and the description page deleted"""
    wiki.AddImage("Pic.png", content=b"current")
    wiki.AddOldImage("Pic.png", "20230101000000", content=b"older")
    page = wiki.CreatePage(NS_FILE, "Pic.png", texts=("A picture",))

    response = _Delete(client, wiki, sysop, title="File:Pic.png", reason="Copyright")
    assert response.status_code == 200
    body = response.json()["delete"]
    assert body["title"] == "File:Pic.png"
    assert body["reason"] == "Copyright"

    assert session.query(Image).count() == 0
    assert session.query(OldImage).count() == 0
    archived = session.query(FileArchive).order_by(FileArchive.timestamp).all()
    assert [a.archive_name for a in archived] == ["20230101000000!Pic.png", None]
    assert all(a.deleted_reason == "Copyright" and a.deleted_user_id == sysop.user_id for a in archived)

    assert not GetPublicPath("Pic.png").exists()
    assert not GetArchivePath("20230101000000!Pic.png", "Pic.png").exists()
    assert len(_DeletedBlobs()) == 2

    assert session.query(Page).filter(Page.page_id == page.page_id).first() is None
    log = session.query(LogEntry).filter(LogEntry.log_id == body["logid"]).one()
    assert log.namespace == NS_FILE
    assert log.title == "Pic.png"


def test_failed_page_deletion_keeps_file(client, wiki, sysop, session):
    """Test that a description page that cannot be deleted leaves the file rows and blob in place"""
    wiki.AddImage("Pic.png")
    wiki.CreatePage(NS_FILE, "Pic.png", texts=())

    response = _Delete(client, wiki, sysop, title="File:Pic.png", reason="Copyright")
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "cannotdelete"

    assert session.query(Image).filter(Image.name == "Pic.png").count() == 1
    assert session.query(FileArchive).count() == 0
    assert GetPublicPath("Pic.png").exists()
    assert _DeletedBlobs() == []


def test_failed_file_deletion_keeps_blobs(db_manager, wiki, sysop, session, monkeypatch):
    """Test that an error before the commit leaves every version and blob in place"""
    wiki.AddImage("Orphan.png")
    wiki.AddOldImage("Orphan.png", "20230101000000")

    def FailingLogEntry(*args, **kwargs):
        raise RuntimeError("log table unavailable")

    monkeypatch.setattr(file_deletion, "InsertLogEntry", FailingLogEntry)

    title = Title.NewFromText("File:Orphan.png")
    work_session = db_manager.GetSession()
    try:
        local_file = FindFile(work_session, title)
        with pytest.raises(RuntimeError):
            DeleteFileVersions(db_manager, work_session, title, local_file, None, "Cleanup", False, sysop)
    finally:
        work_session.close()

    assert session.query(Image).count() == 1
    assert session.query(OldImage).count() == 1
    assert session.query(FileArchive).count() == 0
    assert GetPublicPath("Orphan.png").exists()
    assert GetArchivePath("20230101000000!Orphan.png", "Orphan.png").exists()
    assert _DeletedBlobs() == []


def test_delete_file_without_description_page(client, wiki, sysop, session):
    """Test that a file without a page can be deleted; the reason defaults to empty"""
    wiki.AddImage("Orphan.png")

    response = _Delete(client, wiki, sysop, title="File:Orphan.png")
    assert response.status_code == 200
    assert response.json()["delete"]["reason"] == ""
    assert session.query(Image).count() == 0
    log = session.query(LogEntry).filter(LogEntry.log_id == response.json()["delete"]["logid"]).one()
    assert log.page_id is None


def test_delete_old_version(client, wiki, sysop, session):
    """Test deleting one old version leaves the current version alone"""
    wiki.AddImage("Pic.png")
    wiki.AddOldImage("Pic.png", "20230101000000")
    wiki.AddOldImage("Pic.png", "20230601000000")
    wiki.CreatePage(NS_FILE, "Pic.png")

    response = _Delete(client, wiki, sysop, title="File:Pic.png", oldimage="20230101000000!Pic.png", reason="Bad crop")
    assert response.status_code == 200

    assert session.query(Image).count() == 1
    assert [o.archive_name for o in session.query(OldImage).all()] == ["20230601000000!Pic.png"]
    assert session.query(FileArchive).one().archive_name == "20230101000000!Pic.png"
    assert session.query(Page).filter(Page.namespace == NS_FILE, Page.title == "Pic.png").count() == 1

    log = session.query(LogEntry).filter(LogEntry.log_id == response.json()["delete"]["logid"]).one()
    assert log.comment == "Deleted old revision 20230101000000!Pic.png: Bad crop"


@pytest.mark.parametrize("oldimage,status_code,code", [
    ("not-an-archive-name", 400, "invalidoldimage"),
    ("20200101000000!Pic.png", 404, "nodeleteablefile"),
])
def test_bad_old_version(client, wiki, sysop, session, oldimage, status_code, code):
    wiki.AddImage("Pic.png")
    wiki.AddOldImage("Pic.png", "20230101000000")

    response = _Delete(client, wiki, sysop, title="File:Pic.png", oldimage=oldimage)
    assert response.status_code == status_code
    assert response.json()["detail"]["code"] == code
    assert session.query(OldImage).count() == 1
    assert session.query(FileArchive).count() == 0
    assert session.query(LogEntry).count() == 0


def test_missing_file_and_page(client, wiki, sysop):
    response = _Delete(client, wiki, sysop, title="File:Nothing.png")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "missingtitle"


def test_file_page_without_file_uses_page_deletion(client, wiki, sysop, session):
    wiki.CreatePage(NS_FILE, "Gone.png", texts=("Description of a lost file",))

    response = _Delete(client, wiki, sysop, title="File:Gone.png")
    assert response.status_code == 200
    assert response.json()["delete"]["reason"].startswith('content was: "Description of a lost file"')
    assert session.query(Page).count() == 0


def test_file_redirect_falls_back_to_page_deletion(client, wiki, sysop, session):
    """Test that deleting a file redirect deletes only the redirect page"""
    wiki.AddImage("Target.png")
    wiki.CreatePage(NS_FILE, "Alias.png", texts=("#REDIRECT [[File:Target.png]]",), redirect_to=(NS_FILE, "Target.png"))

    response = _Delete(client, wiki, sysop, title="File:Alias.png", reason="Unused redirect")
    assert response.status_code == 200
    assert session.query(Page).count() == 0
    assert session.query(Image).filter(Image.name == "Target.png").count() == 1
    assert session.query(FileArchive).count() == 0
