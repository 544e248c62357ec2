import queue
import threading

import pytest

from warpnet.auth import MAX_LATENCY, AuthError, AuthService, validate_password
from warpnet.events import LoginEvent

NODE_INFO = {"identity": {"owner": {"node_id": "node-1"}, "token": "token"}}


def _strengthen(word):
    return word.capitalize() + str(len(word)) + chr(35)


class FakeAuthRepo:
    def __init__(self, password, owner=None):
        self.password = password
        self.owner = dict(owner or {})
        self.authenticated_with = []

    def authenticate(self, username, password):
        self.authenticated_with.append((username, password))
        if password != self.password:
            raise ValueError("bad credentials")

    def session_token(self):
        return "token"

    def get_owner(self):
        return dict(self.owner)

    def set_owner(self, owner):
        self.owner = dict(owner)
        return dict(owner)


class FakeUserRepo:
    def __init__(self, fail_create=False):
        self.fail_create = fail_create
        self.created = []
        self.updated = []

    def create(self, user):
        if self.fail_create:
            raise RuntimeError("disk full")
        self.created.append(dict(user))
        return dict(user)

    def update(self, user_id, user):
        self.updated.append((user_id, dict(user)))
        return dict(user)


def _service(auth_repo, user_repo, node_info=None, timeout=1.0):
    interrupt = threading.Event()
    auth_ready = queue.Queue()
    node_ready = queue.Queue()
    if node_info is not None:
        node_ready.put(node_info)
    service = AuthService(auth_repo, user_repo, interrupt, auth_ready, node_ready, timeout)
    return service, interrupt, auth_ready


def test_login_creates_owner_and_user():
    password = _strengthen("password")
    auth_repo = FakeAuthRepo(password)
    user_repo = FakeUserRepo()
    service, _, auth_ready = _service(auth_repo, user_repo, NODE_INFO)

    result = service.auth_login(LoginEvent(password=password, username="alice"))

    assert result == NODE_INFO
    assert service.is_authenticated()
    sent = auth_ready.get_nowait()
    assert sent["identity"]["token"] == "token"
    assert sent["identity"]["owner"]["username"] == "alice"

    user_id = auth_repo.owner["user_id"]
    assert len(user_id) == 26
    assert auth_repo.owner["node_id"] == "node-1"

    created = user_repo.created[0]
    assert created["id"] == user_id
    assert created["node_id"] == "None"
    assert created["latency"] == MAX_LATENCY

    updated_id, updated = user_repo.updated[0]
    assert updated_id == user_id
    assert updated["node_id"] == "node-1"
    assert updated["latency"] == MAX_LATENCY
    assert updated["username"] == "alice"


def test_login_trims_password():
    password = _strengthen("password")
    auth_repo = FakeAuthRepo(password)
    service, _, _ = _service(auth_repo, FakeUserRepo(), NODE_INFO)
    padded = chr(32) * 2 + password + chr(32) * 2

    service.auth_login(LoginEvent(password=padded, username="alice"))

    assert auth_repo.authenticated_with == [("alice", password)]


def test_login_with_existing_owner_updates_user():
    password = _strengthen("password")
    auth_repo = FakeAuthRepo(password, owner={"user_id": "owner-1", "username": "alice"})
    user_repo = FakeUserRepo()
    service, _, _ = _service(auth_repo, user_repo, NODE_INFO)

    service.auth_login(LoginEvent(password=password, username="alice"))

    assert user_repo.created == []
    updated_id, updated = user_repo.updated[0]
    assert updated_id == "owner-1"
    assert updated["node_id"] == "node-1"
    assert auth_repo.owner == {"user_id": "owner-1", "username": "alice", "node_id": "node-1"}


def test_second_login_returns_session_identity():
    password = _strengthen("password")
    auth_repo = FakeAuthRepo(password, owner={"user_id": "owner-1", "username": "alice"})
    service, _, _ = _service(auth_repo, FakeUserRepo(), NODE_INFO)
    service.auth_login(LoginEvent(password=password, username="alice"))

    again = service.auth_login(LoginEvent(password=password, username="alice"))

    assert again["identity"]["token"] == "token"
    assert again["identity"]["owner"]["user_id"] == "owner-1"
    assert len(auth_repo.authenticated_with) == 1


def test_login_unknown_username():
    password = _strengthen("password")
    auth_repo = FakeAuthRepo(password, owner={"user_id": "owner-1", "username": "alice"})
    service, _, auth_ready = _service(auth_repo, FakeUserRepo(), NODE_INFO)

    with pytest.raises(AuthError, match="user bob doesn't exist"):
        service.auth_login(LoginEvent(password=password, username="bob"))
    assert auth_ready.empty()
    assert not service.is_authenticated()


def test_login_authentication_failure():
    auth_repo = FakeAuthRepo(_strengthen("secret"))
    service, _, _ = _service(auth_repo, FakeUserRepo(), NODE_INFO)
    password = _strengthen("password")

    with pytest.raises(AuthError, match="authentication failed: bad credentials"):
        service.auth_login(LoginEvent(password=password, username="alice"))


def test_login_weak_password_never_reaches_repository():
    password = "password"
    auth_repo = FakeAuthRepo(password)
    service, _, _ = _service(auth_repo, FakeUserRepo(), NODE_INFO)

    with pytest.raises(AuthError, match="uppercase"):
        service.auth_login(LoginEvent(password=password, username="alice"))
    assert auth_repo.authenticated_with == []


def test_login_user_creation_failure():
    password = _strengthen("password")
    service, _, _ = _service(FakeAuthRepo(password), FakeUserRepo(fail_create=True), NODE_INFO)

    with pytest.raises(AuthError, match="new user creation failed: disk full"):
        service.auth_login(LoginEvent(password=password, username="alice"))


def test_login_node_startup_timeout():
    password = _strengthen("password")
    service, _, _ = _service(FakeAuthRepo(password), FakeUserRepo(), None, timeout=0.01)

    with pytest.raises(AuthError, match="node starting is timed out"):
        service.auth_login(LoginEvent(password=password, username="alice"))
    assert not service.is_authenticated()


def test_logout_interrupts_and_clears():
    password = _strengthen("password")
    service, interrupt, _ = _service(FakeAuthRepo(password), FakeUserRepo(), NODE_INFO)
    service.auth_login(LoginEvent(password=password, username="alice"))
    assert service.is_authenticated()

    service.auth_logout()

    assert interrupt.is_set()
    assert not service.is_authenticated()


@pytest.mark.parametrize(
    "make, message",
    [
        (lambda w: "", "empty password"),
        (lambda w: _strengthen(w)[:5], "at least 8 characters"),
        (lambda w: _strengthen(w) * 4, "less than 32 characters"),
        (lambda w: _strengthen(w).lower(), "uppercase letter"),
        (lambda w: _strengthen(w).upper(), "lowercase letter"),
        (lambda w: w.capitalize() + chr(35) * 2, "one digit"),
        (lambda w: w.capitalize() + str(12), "special character"),
    ],
)
def test_validate_password_rejects(make, message):
    with pytest.raises(AuthError, match=message):
        validate_password(make("password"))