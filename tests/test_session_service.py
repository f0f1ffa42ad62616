import pytest
from pydantic import ValidationError

from vibecheck.models.event import EventKind
from vibecheck.models.user import ProfileUpdate, StyleVibe, UserProfile
from vibecheck.services.session_service import SessionService

USER_KEY = "vibecheck_user"


@pytest.fixture
def hooks(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "vibecheck.services.session_service.atexit.register",
        lambda fn: calls.append(("register", fn)),
    )
    monkeypatch.setattr(
        "vibecheck.services.session_service.atexit.unregister",
        lambda fn: calls.append(("unregister", fn)),
    )
    return calls


@pytest.fixture
def session(tracker, storage, hooks):
    return SessionService(tracker, storage, user_key=USER_KEY)


def actions(store):
    return [r.action for r in store.get()]


def test_sign_up_saves_profile_and_opens_session(session, storage, store, user, hooks):
    session.sign_up(user)

    assert actions(store) == [EventKind.SIGN_UP, EventKind.SESSION_START]
    assert UserProfile.model_validate_json(storage.get_item(USER_KEY)) == user
    assert hooks == [("register", session.end_session)]


def test_resume_without_saved_user_emits_nothing(session, store):
    assert session.resume() is None
    assert store.get() == []


def test_resume_restores_saved_user(tracker, storage, store, user, hooks):
    storage.set_item(USER_KEY, user.model_dump_json(by_alias=True))
    session = SessionService(tracker, storage, user_key=USER_KEY)

    restored = session.resume()

    assert restored == user
    assert actions(store) == [EventKind.LOGIN, EventKind.SESSION_START]
    assert len(hooks) == 1


def test_resume_ignores_unreadable_profile(session, storage, store):
    storage.set_item(USER_KEY, "{broken")

    assert session.resume() is None
    assert store.get() == []


def test_logout_is_beaconed_and_clears_profile(session, storage, store, transport, user):
    session.sign_up(user)

    session.logout()

    assert actions(store)[-1] == EventKind.LOGOUT
    assert [r.action for r in transport.durable] == [EventKind.LOGOUT]
    assert storage.get_item(USER_KEY) is None
    assert session.user is None

    session.end_session()
    session.logout()
    assert actions(store)[-1] == EventKind.LOGOUT


def test_end_session_fires_once(session, store, transport, user):
    session.sign_up(user)

    session.end_session()
    session.end_session()

    assert actions(store).count(EventKind.SESSION_END) == 1
    assert [r.action for r in transport.durable] == [EventKind.SESSION_END]


def test_logout_removes_teardown_hook_until_next_session(session, user, hooks):
    session.sign_up(user)
    session.logout()

    assert hooks == [("register", session.end_session), ("unregister", session.end_session)]

    session.sign_up(user)
    session.sign_up(user)

    assert hooks[2:] == [("register", session.end_session)]


def test_profile_update_affects_later_events_only(session, store, user):
    session.sign_up(user)

    updated = session.update_profile(ProfileUpdate(style_vibe=StyleVibe.MINIMALIST))

    assert updated.style_vibe == StyleVibe.MINIMALIST
    log = store.get()
    assert log[-1].action == EventKind.STYLE_SAVED
    assert log[-1].metadata.style_vibe == StyleVibe.MINIMALIST
    assert log[0].metadata.style_vibe == StyleVibe.STREETWEAR
    assert "style_vibe=Minimalist" in log[-1].details


def test_profile_update_without_user_is_ignored(session, store):
    assert session.update_profile(ProfileUpdate(style_vibe=StyleVibe.GORPCORE)) is None
    assert store.get() == []


def test_profile_update_rejects_blank_name(session, storage, store, user):
    session.sign_up(user)

    with pytest.raises(ValidationError):
        session.update_profile(ProfileUpdate(name="   "))

    assert session.user == user
    assert UserProfile.model_validate_json(storage.get_item(USER_KEY)) == user
    assert EventKind.STYLE_SAVED not in actions(store)
