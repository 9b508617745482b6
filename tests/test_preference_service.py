"""
Order preferences: seed once, full-order writes, single-entry removal.
"""

from projecthub.models.preference import UserProjectPreference
from projecthub.services import preference_service, project_service


def _ids(n):
    return [project_service.create_project(name=f"Project {i}").id for i in range(n)]


def test_empty_preference_is_empty_list():
    assert preference_service.get_user_order_preference("nobody") == []


def test_initialize_writes_positions():
    a, b, c = _ids(3)
    assert preference_service.initialize_order_preference("user-1", [c, a, b]) == 3
    assert preference_service.get_user_order_preference("user-1") == [c, a, b]
    positions = [
        row.position
        for row in UserProjectPreference.query.filter_by(user_id="user-1").order_by(UserProjectPreference.position)
    ]
    assert positions == [0, 1, 2]


def test_initialize_is_noop_when_preference_exists():
    a, b = _ids(2)
    preference_service.initialize_order_preference("user-1", [a, b])
    assert preference_service.initialize_order_preference("user-1", [b, a]) == 0
    assert preference_service.get_user_order_preference("user-1") == [a, b]


def test_persist_replaces_whole_order():
    a, b, c = _ids(3)
    preference_service.initialize_order_preference("user-1", [a, b, c])
    stored = preference_service.persist_order("user-1", [c, b])
    assert stored == [c, b]
    assert preference_service.get_user_order_preference("user-1") == [c, b]


def test_persist_is_idempotent():
    a, b = _ids(2)
    preference_service.persist_order("user-1", [b, a])
    preference_service.persist_order("user-1", [b, a])
    assert UserProjectPreference.query.filter_by(user_id="user-1").count() == 2
    assert preference_service.get_user_order_preference("user-1") == [b, a]


def test_duplicate_and_unknown_ids_dropped():
    a, b = _ids(2)
    stored = preference_service.persist_order("user-1", [a, "ghost", b, a])
    assert stored == [a, b]


def test_orders_are_per_user():
    a, b = _ids(2)
    preference_service.persist_order("user-1", [a, b])
    preference_service.persist_order("user-2", [b, a])
    assert preference_service.get_user_order_preference("user-1") == [a, b]
    assert preference_service.get_user_order_preference("user-2") == [b, a]


def test_remove_order_entry():
    a, b, c = _ids(3)
    preference_service.persist_order("user-1", [a, b, c])
    assert preference_service.remove_order_entry("user-1", b) is True
    assert preference_service.remove_order_entry("user-1", b) is False
    assert preference_service.get_user_order_preference("user-1") == [a, c]
