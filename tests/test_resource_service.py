"""Tests for ResourceService: repositories, placement, content, deletion."""

import pytest

from docvault.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    RepositoryNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from docvault.models import Assignment, File, Folder, Notification, Repository
from docvault.services.access_request_service import AccessRequestService
from docvault.services.assignment_service import AssignmentService
from docvault.services.resource_service import ResourceService


class TestRepositories:

    def test_create_and_list(self, resources, alice, bob):
        repo = resources.create_repository("  handbook ", alice)
        assert repo.name == "handbook"
        assert repo.owner_id == alice.id
        assert [r.id for r in resources.list_repositories(alice)] == [repo.id]
        assert resources.list_repositories(bob) == []

    def test_assignment_inside_makes_repository_visible(self, resources, db, alice, bob):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"", alice)
        AssignmentService(db).grant(file.id, bob.id, "viewer", alice)

        assert [r.id for r in resources.list_repositories(bob)] == [repo.id]
        assert resources.get_repository(repo.id, bob).id == repo.id

    def test_admin_lists_every_repository(self, resources, alice, bob, admin):
        first = resources.create_repository("a", alice)
        second = resources.create_repository("b", bob)
        assert {r.id for r in resources.list_repositories(admin)} == {first.id, second.id}

    def test_get_repository_forbidden_for_stranger(self, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        with pytest.raises(ForbiddenError):
            resources.get_repository(repo.id, bob)

    def test_missing_repository(self, resources, alice):
        with pytest.raises(RepositoryNotFoundError):
            resources.get_repository("missing", alice)

    def test_rename_owner_only(self, resources, alice, bob):
        repo = resources.create_repository("old", alice)
        assert resources.rename_repository(repo.id, "new", alice).name == "new"
        with pytest.raises(ForbiddenError):
            resources.rename_repository(repo.id, "stolen", bob)

    def test_delete_repository_removes_contents(self, resources, db, blob_store, alice, bob):
        repo = resources.create_repository("r", alice)
        folder = resources.create_folder(repo.id, "f", alice)
        file = resources.create_file(repo.id, "a.md", b"data", alice, parent_id=folder.id)
        AssignmentService(db).grant(folder.id, bob.id, "viewer", alice)
        ref = file.content_ref

        removed = resources.delete_repository(repo.id, alice)

        assert removed == 2
        assert db.query(Repository).count() == 0
        assert db.query(Folder).count() == 0
        assert db.query(File).count() == 0
        assert db.query(Assignment).count() == 0
        assert ref not in blob_store


class TestPlacement:

    def test_root_paths(self, resources, alice):
        repo = resources.create_repository("r", alice)
        folder = resources.create_folder(repo.id, "docs", alice)
        file = resources.create_file(repo.id, "readme.md", b"hi", alice)
        assert folder.path == "/docs"
        assert file.path == "/readme.md"
        assert folder.parent_id is None

    def test_nested_paths(self, resources, alice):
        repo = resources.create_repository("r", alice)
        docs = resources.create_folder(repo.id, "docs", alice)
        api = resources.create_folder(repo.id, "api", alice, parent_id=docs.id)
        file = resources.create_file(repo.id, "index.md", b"", alice, parent_id=api.id)
        assert api.path == "/docs/api"
        assert file.path == "/docs/api/index.md"

    def test_duplicate_path_conflicts_across_kinds(self, resources, alice):
        repo = resources.create_repository("r", alice)
        resources.create_folder(repo.id, "docs", alice)
        with pytest.raises(ConflictError):
            resources.create_file(repo.id, "docs", b"", alice)
        with pytest.raises(ConflictError):
            resources.create_folder(repo.id, "docs", alice)

    def test_same_name_allowed_in_other_repository(self, resources, alice):
        first = resources.create_repository("one", alice)
        second = resources.create_repository("two", alice)
        resources.create_folder(first.id, "docs", alice)
        assert resources.create_folder(second.id, "docs", alice).path == "/docs"

    def test_root_creation_requires_repository_owner(self, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        with pytest.raises(ForbiddenError):
            resources.create_folder(repo.id, "intrusion", bob)

    def test_editor_creates_beneath_folder_and_owns_it(self, resources, db, alice, bob):
        repo = resources.create_repository("r", alice)
        shared = resources.create_folder(repo.id, "shared", alice)
        AssignmentService(db).grant(shared.id, bob.id, "editor", alice)

        file = resources.create_file(repo.id, "bob.md", b"", bob, parent_id=shared.id)
        assert file.owner_id == bob.id

    def test_viewer_cannot_create_beneath_folder(self, resources, db, alice, bob):
        repo = resources.create_repository("r", alice)
        shared = resources.create_folder(repo.id, "shared", alice)
        AssignmentService(db).grant(shared.id, bob.id, "viewer", alice)

        with pytest.raises(ForbiddenError):
            resources.create_folder(repo.id, "sub", bob, parent_id=shared.id)

    def test_parent_must_be_folder_in_same_repository(self, resources, alice):
        repo = resources.create_repository("r", alice)
        other = resources.create_repository("o", alice)
        file = resources.create_file(repo.id, "a.md", b"", alice)
        foreign = resources.create_folder(other.id, "f", alice)

        with pytest.raises(ValidationError):
            resources.create_folder(repo.id, "x", alice, parent_id=file.id)
        with pytest.raises(ValidationError):
            resources.create_folder(repo.id, "x", alice, parent_id=foreign.id)
        with pytest.raises(ResourceNotFoundError):
            resources.create_folder(repo.id, "x", alice, parent_id="missing")

    @pytest.mark.parametrize("name", ["", "   ", "a/b", ".."])
    def test_invalid_names(self, resources, alice, name):
        repo = resources.create_repository("r", alice)
        with pytest.raises(ValidationError):
            resources.create_folder(repo.id, name, alice)


class TestContent:

    def test_create_stores_blob(self, resources, blob_store, alice):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"hello", alice)

        assert file.size == 5
        assert file.content_ref == f"files/{alice.id}/{file.id}"
        assert blob_store.get(file.content_ref) == b"hello"

    def test_read_requires_read_access(self, resources, alice, bob):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"hello", alice)

        _, data = resources.read_content(file.id, alice)
        assert data == b"hello"
        with pytest.raises(ForbiddenError):
            resources.read_content(file.id, bob)
        with pytest.raises(AuthenticationError):
            resources.read_content(file.id, None)

    def test_public_file_readable_anonymously(self, resources, alice):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"open", alice, is_public=True)
        assert resources.read_content(file.id, None)[1] == b"open"

    def test_write_requires_write_access(self, resources, db, alice, bob):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"v1", alice)
        AssignmentService(db).grant(file.id, bob.id, "viewer", alice)

        with pytest.raises(ForbiddenError):
            resources.write_content(file.id, b"v2", bob)

        AssignmentService(db).grant(file.id, bob.id, "editor", alice)
        updated = resources.write_content(file.id, b"version two", bob)
        assert updated.size == len(b"version two")
        assert resources.read_content(file.id, bob)[1] == b"version two"

    def test_folders_have_no_content(self, resources, alice):
        repo = resources.create_repository("r", alice)
        folder = resources.create_folder(repo.id, "f", alice)
        with pytest.raises(ValidationError):
            resources.read_content(folder.id, alice)


class TestVisibility:

    def test_owner_toggles_visibility(self, resources, alice):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"", alice)
        assert resources.set_visibility(file.id, True, alice).is_public is True
        assert resources.set_visibility(file.id, False, alice).is_public is False

    def test_editor_cannot_change_visibility(self, resources, db, alice, bob):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"", alice)
        AssignmentService(db).grant(file.id, bob.id, "editor", alice)
        with pytest.raises(ForbiddenError):
            resources.set_visibility(file.id, True, bob)


class TestDeleteResource:

    def test_delete_file_removes_grants_requests_and_blob(self, resources, db, blob_store, alice, bob, carol):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"x", alice)
        AssignmentService(db).grant(file.id, bob.id, "viewer", alice)
        AccessRequestService(db).request_access(file.id, carol)
        ref = file.content_ref

        assert resources.delete_resource(file.id, alice) == 1
        assert db.query(File).count() == 0
        assert db.query(Assignment).count() == 0
        assert db.query(Notification).count() == 0
        assert ref not in blob_store

    def test_delete_folder_removes_descendant_closure(self, resources, db, blob_store, alice, bob):
        repo = resources.create_repository("r", alice)
        top = resources.create_folder(repo.id, "top", alice)
        inner = resources.create_folder(repo.id, "inner", alice, parent_id=top.id)
        deep = resources.create_file(repo.id, "deep.md", b"d", alice, parent_id=inner.id)
        keep = resources.create_file(repo.id, "keep.md", b"k", alice)
        AssignmentService(db).grant(inner.id, bob.id, "viewer", alice)
        deep_ref = deep.content_ref
        keep_id = keep.id

        assert resources.delete_resource(top.id, alice) == 3
        assert db.query(Folder).count() == 0
        assert [f.id for f in db.query(File).all()] == [keep_id]
        assert db.query(Assignment).count() == 0
        assert deep_ref not in blob_store
        assert len(blob_store) == 1

    def test_delete_reaches_below_tree_depth_cap(self, resources, db, blob_store, alice, bob, carol):
        repo = resources.create_repository("r", alice)
        top = parent = resources.create_folder(repo.id, "l0", alice)
        for level in range(1, 4):
            parent = resources.create_folder(repo.id, f"l{level}", alice, parent_id=parent.id)
        bottom = resources.create_file(repo.id, "bottom.md", b"deep", alice, parent_id=parent.id)
        AssignmentService(db).grant(bottom.id, bob.id, "viewer", alice)
        AccessRequestService(db).request_access(bottom.id, carol)
        ref = bottom.content_ref

        shallow = ResourceService(db, blob_store, max_depth=2)
        assert shallow.delete_resource(top.id, alice) == 5
        assert db.query(Folder).count() == 0
        assert db.query(File).count() == 0
        assert db.query(Assignment).count() == 0
        assert db.query(Notification).count() == 0
        assert ref not in blob_store

    def test_editor_cannot_delete(self, resources, db, alice, bob):
        repo = resources.create_repository("r", alice)
        file = resources.create_file(repo.id, "a.md", b"", alice)
        AssignmentService(db).grant(file.id, bob.id, "editor", alice)
        with pytest.raises(ForbiddenError):
            resources.delete_resource(file.id, bob)

    def test_repository_owner_and_admin_can_delete(self, resources, db, alice, bob, admin):
        repo = resources.create_repository("r", alice)
        shared = resources.create_folder(repo.id, "shared", alice)
        AssignmentService(db).grant(shared.id, bob.id, "editor", alice)
        first = resources.create_file(repo.id, "1.md", b"", bob, parent_id=shared.id)
        second = resources.create_file(repo.id, "2.md", b"", bob, parent_id=shared.id)

        assert resources.delete_resource(first.id, alice) == 1
        assert resources.delete_resource(second.id, admin) == 1

    def test_delete_missing(self, resources, alice):
        with pytest.raises(ResourceNotFoundError):
            resources.delete_resource("missing", alice)
