"""Tests for the visible-resource listing."""

from datetime import datetime, timedelta, timezone

from docvault.models import Assignment, File
from docvault.services.access_service import AccessService


def _ids(resources):
    return [r.id for r in resources]


def _assign(db, resource_id, user_id, role="viewer"):
    db.add(Assignment(resource_id=resource_id, user_id=user_id, role=role))
    db.commit()


class TestListAccessible:

    def test_anonymous_sees_public_only(self, db, resources, alice):
        repo = resources.create_repository("r", alice)
        public = resources.create_file(repo.id, "public.md", b"", alice, is_public=True)
        resources.create_file(repo.id, "private.md", b"", alice)

        assert _ids(AccessService(db).list_accessible(None)) == [public.id]

    def test_owner_sees_everything_in_own_repository(self, db, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        folder = resources.create_folder(repo.id, "shared", alice)
        _assign(db, folder.id, bob.id, "editor")
        bobs = resources.create_file(repo.id, "b.md", b"", bob, parent_id=folder.id)

        listed = _ids(AccessService(db).list_accessible(alice))
        assert set(listed) == {folder.id, bobs.id}

    def test_stranger_sees_nothing_private(self, db, resources, alice, carol):
        repo = resources.create_repository("r", alice)
        resources.create_folder(repo.id, "private", alice)

        assert AccessService(db).list_accessible(carol) == []

    def test_directly_assigned_file_listed(self, db, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        shared = resources.create_file(repo.id, "shared.md", b"", alice)
        resources.create_file(repo.id, "other.md", b"", alice)
        _assign(db, shared.id, bob.id)

        assert _ids(AccessService(db).list_accessible(bob)) == [shared.id]

    def test_assigned_folder_includes_descendant_closure(self, db, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        top = resources.create_folder(repo.id, "top", alice)
        inner = resources.create_folder(repo.id, "inner", alice, parent_id=top.id)
        deep = resources.create_file(repo.id, "deep.md", b"", alice, parent_id=inner.id)
        shallow = resources.create_file(repo.id, "shallow.md", b"", alice, parent_id=top.id)
        resources.create_file(repo.id, "outside.md", b"", alice)
        _assign(db, top.id, bob.id)

        listed = set(_ids(AccessService(db).list_accessible(bob)))
        assert listed == {top.id, inner.id, deep.id, shallow.id}

    def test_no_duplicates_when_reachable_twice(self, db, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        folder = resources.create_folder(repo.id, "f", alice, is_public=True)
        file = resources.create_file(repo.id, "x.md", b"", alice, parent_id=folder.id, is_public=True)
        _assign(db, folder.id, bob.id)
        _assign(db, file.id, bob.id)

        listed = _ids(AccessService(db).list_accessible(bob))
        assert sorted(listed) == sorted({folder.id, file.id})

    def test_newest_first_ties_by_id(self, db, resources, alice):
        repo = resources.create_repository("r", alice)
        a = resources.create_file(repo.id, "a.md", b"", alice)
        b = resources.create_file(repo.id, "b.md", b"", alice)
        c = resources.create_file(repo.id, "c.md", b"", alice)

        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        stamps = {a.id: base, b.id: base + timedelta(hours=1), c.id: base + timedelta(hours=1)}
        for file_id, stamp in stamps.items():
            db.query(File).filter(File.id == file_id).update({"created_at": stamp})
        db.commit()

        listed = _ids(AccessService(db).list_accessible(alice))
        newest = sorted([b.id, c.id])
        assert listed == newest + [a.id]

    def test_repository_filter(self, db, resources, alice):
        first = resources.create_repository("one", alice)
        second = resources.create_repository("two", alice)
        in_first = resources.create_file(first.id, "a.md", b"", alice)
        resources.create_file(second.id, "b.md", b"", alice)

        listed = _ids(AccessService(db).list_accessible(alice, repository_id=first.id))
        assert listed == [in_first.id]
