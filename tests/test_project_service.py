"""
Project service: CRUD, child records and delete cascade.
"""

import pytest

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.preference import UserProjectPreference
from projecthub.models.research import ResearchNote
from projecthub.models.stakeholder import ProjectStakeholder
from projecthub.services import preference_service, project_service, stakeholder_service


def _project(name="Checkout redesign", overview=None):
    return project_service.create_project(name=name, overview=overview)


class TestProjectCrud:
    def test_create_strips_and_persists(self):
        project = _project("  Onboarding  ", overview="  first-run flow ")
        assert project.id
        assert project.name == "Onboarding"
        assert project.overview == "first-run flow"
        assert project_service.get_project(project.id) is project

    def test_create_requires_name(self):
        with pytest.raises(ValidationError):
            project_service.create_project(name="   ")

    def test_blank_overview_is_stored_as_null(self):
        assert _project(overview="   ").overview is None

    def test_get_missing_raises_not_found(self):
        with pytest.raises(NotFoundError):
            project_service.get_project("missing")

    def test_update_name_and_overview(self):
        project = _project()
        updated = project_service.update_project(
            project_id=project.id, data={"name": "Cart", "overview": "Shorter", "ignored": 1}
        )
        assert (updated.name, updated.overview) == ("Cart", "Shorter")

    def test_update_rejects_empty_name(self):
        project = _project()
        with pytest.raises(ValidationError):
            project_service.update_project(project_id=project.id, data={"name": ""})

    def test_list_contains_every_project(self):
        ids = {_project(f"P{i}").id for i in range(3)}
        assert {p.id for p in project_service.list_projects()} == ids


class TestChildRecords:
    def test_add_and_list_per_project(self):
        project = _project()
        other = _project("Other")
        project_service.add_child_record("notes", project.id, {"title": "Interview 1"})
        project_service.add_child_record("notes", other.id, {"title": "Interview 2"})

        notes = project_service.list_project_child_records("notes", project.id)
        assert [n.title for n in notes] == ["Interview 1"]

    def test_unknown_kind_rejected(self):
        project = _project()
        with pytest.raises(ValidationError):
            project_service.add_child_record("comments", project.id, {})
        with pytest.raises(NotFoundError):
            project_service.list_project_child_records("comments", project.id)

    def test_missing_required_field_rejected(self):
        project = _project()
        with pytest.raises(ValidationError) as exc_info:
            project_service.add_child_record("user_stories", project.id, {})
        assert exc_info.value.details == {"title": "required"}

    def test_unknown_project_rejected(self):
        with pytest.raises(NotFoundError):
            project_service.add_child_record("notes", "missing", {"title": "x"})

    def test_list_child_records_covers_every_kind(self):
        project = _project()
        project_service.add_child_record("progress_statuses", project.id, {"label": "Research", "is_completed": True})
        project_service.add_child_record("designs", project.id, {"name": "Wireframes"})

        records = project_service.list_child_records()
        assert set(records) == set(project_service.CHILD_MODELS)
        assert [r.label for r in records["progress_statuses"]] == ["Research"]
        assert records["progress_statuses"][0].is_completed is True
        assert [r.name for r in records["designs"]] == ["Wireframes"]
        assert records["notes"] == []


class TestDelete:
    def test_delete_cascades_to_children_links_and_order(self):
        project = _project()
        keep = _project("Keep")
        project_service.add_child_record("notes", project.id, {"title": "n"})
        sid = stakeholder_service.create_stakeholder({"name": "Dana"})["id"]
        stakeholder_service.link_stakeholder(project.id, sid)
        preference_service.persist_order("user-1", [project.id, keep.id])

        project_service.delete_project(project.id)
        db.session.expire_all()

        assert ResearchNote.query.count() == 0
        assert ProjectStakeholder.query.count() == 0
        assert UserProjectPreference.query.filter_by(project_id=project.id).count() == 0
        assert preference_service.get_user_order_preference("user-1") == [keep.id]

    def test_delete_missing_raises_not_found(self):
        with pytest.raises(NotFoundError):
            project_service.delete_project("missing")
