from swimtrackr.config.navigation_config import NAVIGATION, compose_navigation
from swimtrackr.core.roles import Role


def names(role):
    return [entry.name for entry in compose_navigation(role)]


def test_admin_and_manager_see_full_menu():
    full = [entry.name for entry in NAVIGATION]
    assert names(Role.ADMIN) == full
    assert names(Role.MANAGER) == full


def test_instructor_menu():
    assert names(Role.INSTRUCTOR) == ["Dashboard", "Students", "Sessions", "Skills & Levels", "Settings"]


def test_parent_menus():
    expected = ["Dashboard", "Students", "Sessions", "Settings"]
    assert names(Role.PARENT) == expected
    assert names(Role.FACILITY_PARENT) == expected


def test_unknown_role_gets_empty_menu():
    assert compose_navigation(None) == []


def test_composition_does_not_mutate_the_table():
    before = list(NAVIGATION)
    compose_navigation(Role.PARENT)
    assert list(NAVIGATION) == before


def test_entry_serialization():
    assert compose_navigation(Role.PARENT)[0].to_dict() == {"name": "Dashboard", "href": "/dashboard", "icon": "home"}
