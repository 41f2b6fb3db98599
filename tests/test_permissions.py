from itertools import product

import pytest

from pinmap.services.permissions import Authorizer, PinAction, Requester

ADMIN = Requester(id="u-admin", email="boss@example.com")
ALICE = Requester(id="u-alice", email="alice@example.com")
BOB = Requester(id="u-bob", email="bob@example.com")
PEOPLE = [ADMIN, ALICE, BOB]


@pytest.mark.parametrize("action", list(PinAction))
def test_admin_or_self_rule_holds_for_every_pair(action):
    authorizer = Authorizer(["boss@example.com"])

    for requester, target in product(PEOPLE, PEOPLE):
        expected = requester is ADMIN or requester.id == target.id
        assert authorizer.allows(action, requester, target) is expected


@pytest.mark.parametrize("admins", [[], [""], ["  "], None])
def test_empty_or_blank_admin_list_grants_nothing(admins):
    authorizer = Authorizer(admins or [])

    assert authorizer.is_admin(ADMIN) is False
    assert authorizer.can_move(ADMIN, ALICE) is False
    assert authorizer.can_delete(BOB, ALICE) is False
    assert authorizer.can_pin(ALICE, ALICE) is True


def test_requester_without_email_is_never_admin():
    authorizer = Authorizer(["boss@example.com"])
    anonymous = Requester(id="u-x", email=None)

    assert authorizer.is_admin(anonymous) is False
    assert authorizer.permission_level(anonymous) == "user"


def test_admin_match_is_case_sensitive_on_stored_email():
    authorizer = Authorizer(["boss@example.com"])

    assert authorizer.is_admin(Requester(id="u-1", email="Boss@example.com")) is False
    assert authorizer.permission_level(ADMIN) == "admin"
    assert authorizer.can_move_any(ADMIN) is True
    assert authorizer.can_move_any(ALICE) is False


def test_missing_ids_do_not_match_each_other():
    authorizer = Authorizer()

    assert authorizer.can_pin(Requester(id=None), Requester(id=None)) is False


def test_service_requester_is_trusted():
    authorizer = Authorizer()
    service = Requester(id=None, is_service=True)

    assert authorizer.can_delete(service, ALICE) is True
    assert authorizer.is_admin(service) is False


def test_admin_set_is_isolated_per_instance():
    first = Authorizer(["alice@example.com"])
    second = Authorizer(["bob@example.com"])

    assert first.can_move(ALICE, BOB) is True
    assert second.can_move(ALICE, BOB) is False
