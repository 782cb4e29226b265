"""Tests for the in-memory project registry."""

from prompt_machine.features.projects.store import ProjectStore
from prompt_machine.models.field import Project


def test_replace_fires_hook_with_old_and_new():
    store = ProjectStore()
    seen = []
    store.on_replace(lambda old, new: seen.append((old.name, new.name)))

    store.register(Project(project_id="p1", name="First"))
    assert seen == []

    store.register(Project(project_id="p1", name="Second"))
    assert seen == [("First", "Second")]
    assert store.get("p1").name == "Second"


def test_unknown_project_is_none():
    assert ProjectStore().get("missing") is None
