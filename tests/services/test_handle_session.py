"""Session Handlers: join, me, admin login and game reset."""

import pytest
from sqlalchemy import func, select

from jokefactory.config import Settings
from jokefactory.core.domain_types import ParticipantStatus, Role, RoundStatus
from jokefactory.core.errors import UnauthorizedError, ValidationError
from jokefactory.models import Batch, Round, Team, User
from jokefactory.services.handle_session import SessionHandlers
from tests.services.seed_data import submit_batch


async def test_join_seeds_first_round(test_db, test_settings):
    user, round_ = await SessionHandlers(test_db, test_settings).join("  ana  ")
    await test_db.commit()

    assert user.display_name == "ana"
    assert user.status == ParticipantStatus.WAITING
    assert user.role is None
    assert round_.round_id == 1
    assert round_.status == RoundStatus.CONFIGURED
    assert round_.customer_budget == 10
    assert round_.batch_size == 3


async def test_join_reuses_existing_name(test_db, test_settings):
    handlers = SessionHandlers(test_db, test_settings)
    first, _ = await handlers.join("ana")
    await test_db.commit()
    again, _ = await handlers.join("ana")

    assert again.user_id == first.user_id


async def test_join_returns_latest_round(test_db, test_settings, game):
    await SessionHandlers(test_db, test_settings).seed_round(2)
    _, round_ = await SessionHandlers(test_db, test_settings).join("newcomer")
    assert round_.round_id == 2


async def test_join_blank_name_rejected(test_db, test_settings):
    with pytest.raises(ValidationError) as exc:
        await SessionHandlers(test_db, test_settings).join("   ")
    assert exc.value.field == "display_name"


async def test_me_includes_team_and_teammates(test_db, test_settings, game):
    view = await SessionHandlers(test_db, test_settings).me(game["jm"].user_id)

    assert view["user"].user_id == game["jm"].user_id
    assert view["team"].name == "Team 1"
    assert view["teammates"] == [
        {"user_id": game["qc"].user_id, "display_name": "qc-bo", "role": "QC"},
    ]
    assert view["round"].round_id == 1


async def test_me_for_customer_has_no_team(test_db, test_settings, game):
    view = await SessionHandlers(test_db, test_settings).me(game["customer"].user_id)
    assert view["team"] is None
    assert view["teammates"] == []


async def test_admin_login_promotes_and_seeds_rounds(test_db, test_settings):
    user, round_ = await SessionHandlers(test_db, test_settings).admin_login(
        "prof", "letmein",
    )
    await test_db.commit()

    assert user.role == Role.INSTRUCTOR
    assert user.status == ParticipantStatus.ASSIGNED
    assert round_.round_id == 2
    ids = (await test_db.execute(select(Round.round_id).order_by(Round.round_id))).scalars().all()
    assert list(ids) == [1, 2]


async def test_admin_login_wrong_password(test_db, test_settings):
    with pytest.raises(UnauthorizedError, match="invalid admin password"):
        await SessionHandlers(test_db, test_settings).admin_login("prof", "guess")


async def test_admin_login_without_configured_password(test_db):
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:", admin_password="")
    with pytest.raises(UnauthorizedError, match="not configured"):
        await SessionHandlers(test_db, settings).admin_login("prof", "")


async def test_reset_keeps_only_instructors(test_db, test_settings, game):
    await submit_batch(test_db, game)
    instructor_id = game["instructor"].user_id

    await SessionHandlers(test_db, test_settings).reset_game()
    await test_db.commit()

    users = (await test_db.execute(select(User))).scalars().all()
    assert [u.user_id for u in users] == [instructor_id]
    assert (await test_db.execute(select(func.count()).select_from(Batch))).scalar_one() == 0
    assert (await test_db.execute(select(func.count()).select_from(Team))).scalar_one() == 0
    rounds = (await test_db.execute(select(Round).order_by(Round.round_id))).scalars().all()
    assert [(r.round_id, r.status) for r in rounds] == [
        (1, RoundStatus.CONFIGURED), (2, RoundStatus.CONFIGURED),
    ]
