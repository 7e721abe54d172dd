from storefront.models.user import User
from storefront.services import users as users_service


async def test_google_login_creates_then_updates_user(db):
    claims = {"sub": "g-1", "email": "new@example.com", "given_name": "Ravi", "family_name": "K", "name": "Ravi K"}
    user = await users_service.upsert_user_from_google(claims)
    assert user.display_name == "Ravi K"
    assert user.role == "customer"

    await users_service.update_profile(user.id, {"first_name": "Ravindra", "city": "Pune", "role": "admin"})
    again = await users_service.upsert_user_from_google({**claims, "email": "ravi@example.com"})
    assert again.id == user.id
    assert again.first_name == "Ravindra"
    assert again.email == "ravi@example.com"
    assert again.role == "customer"
    assert await User.find_all().count() == 1


async def test_profile_update_recomputes_display_name(user):
    updated = await users_service.update_profile(user.id, {"last_name": "Iyer"})
    assert updated.display_name == "Asha Iyer"


async def test_authorization_request_notifies_until_approved(user, enqueued):
    await users_service.request_authorization(user.id)
    assert [name for name, _ in enqueued] == ["send_authorization_notification"]
    assert [u.id for u in await users_service.list_pending_authorizations()] == [user.id]

    await users_service.set_approval(user.id, True)
    await users_service.request_authorization(user.id)
    assert len(enqueued) == 1
    assert await users_service.list_pending_authorizations() == []


async def test_role_change_invalidates_sessions(user):
    before = user.session_version
    updated = await users_service.set_role(user.id, "manager")
    assert updated.role == "manager"
    assert updated.is_admin
    assert (await User.get(user.id)).session_version == before + 1
