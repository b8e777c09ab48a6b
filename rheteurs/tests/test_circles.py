"""Tests for reading circles: membership and the reading schedule."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
import pytest_asyncio

from rheteurs.models.circle import CircleDraft, CircleReading, ReadingDraft, active_reading
from rheteurs.services.circles import CREATOR_ONLY, NOT_A_MEMBER, CirclesBoard

pytestmark = pytest.mark.asyncio(loop_scope="session")


@pytest_asyncio.fixture(loop_scope="session")
async def board(session):
    controller = CirclesBoard(session)
    yield controller
    await controller.close()


@pytest.fixture
def circle_ids(fake, ana_id):
    """A circle founded by Ana (older) and one founded by someone else."""
    [stoics, russians] = fake.seed(
        "circles",
        {"name": "Stoïciens", "theme": "Philosophie", "creator_id": ana_id},
        {"name": "Russes", "theme": "Fiction", "creator_id": "u-leo"},
    )
    fake.seed("circle_members", {"circle_id": stoics["id"], "user_id": ana_id})
    return stoics["id"], russians["id"]


def reading(reading_id: str, created: datetime | None) -> CircleReading:
    return CircleReading(id=reading_id, circle_id="c1", created_at=created, book_title=reading_id)


async def test_active_reading_is_most_recent():
    readings = [
        reading("ancien", datetime(2025, 1, 1, tzinfo=UTC)),
        reading("récent", datetime(2025, 3, 1, tzinfo=UTC)),
        reading("sans-date", None),
    ]

    assert active_reading(readings).id == "récent"
    assert active_reading([]) is None


async def test_refresh_lists_circles_with_counts_and_membership(ana_session, board, circle_ids):
    stoics, russians = circle_ids

    await board.refresh()

    assert [(s.circle.name, s.member_count, s.is_member) for s in board.circles] == [
        ("Russes", 0, False),
        ("Stoïciens", 1, True),
    ]
    assert board.memberships == {stoics}


async def test_refresh_without_session_has_no_memberships(fake, board, circle_ids):
    await board.refresh()

    assert all(not s.is_member for s in board.circles)
    assert fake.calls_to("circle_members", "select") == 0


async def test_join_requires_session(fake, board, circle_ids):
    await board.refresh()

    result = await board.join(circle_ids[1])

    assert result.status == "auth_required"
    assert fake.calls_to("circle_members", "insert") == 0


async def test_join_and_leave(fake, ana_session, board, circle_ids):
    _, russians = circle_ids
    await board.refresh()

    result = await board.join(russians)

    assert result.ok
    assert russians in board.memberships
    assert board._summary(russians).member_count == 1

    result = await board.leave(russians)

    assert result.ok
    assert russians not in board.memberships


async def test_leave_without_membership_fails(fake, ana_session, board, circle_ids):
    _, russians = circle_ids
    await board.refresh()

    result = await board.leave(russians)

    assert result.status == "failed"
    assert result.message == f"Erreur : {NOT_A_MEMBER}"
    assert fake.calls_to("circle_members", "delete") == 1


async def test_join_twice_reports_backend_message(fake, ana_session, board, circle_ids):
    stoics, _ = circle_ids
    await board.refresh()

    result = await board.join(stoics)

    assert result.status == "failed"
    assert "duplicate key" in result.message


async def test_create_circle_joins_founder(fake, ana_session, ana_id, board):
    await board.refresh()

    result = await board.create_circle(CircleDraft(name="Proustiens", theme="Fiction"))

    assert result.ok
    [stored] = fake.rows("circles")
    assert stored["creator_id"] == ana_id
    assert board.circles[0].circle.name == "Proustiens"
    assert board.circles[0].is_member
    assert board.circles[0].member_count == 1


async def test_create_circle_needs_a_name(fake, ana_session, board):
    result = await board.create_circle(CircleDraft(name=" "))

    assert result.status == "invalid"
    assert fake.calls_to("circles", "insert") == 0


async def test_open_circle_loads_roster_and_readings(fake, ana_session, board, circle_ids):
    stoics, _ = circle_ids
    fake.seed(
        "circle_readings",
        {"circle_id": stoics, "book_title": "Pensées", "book_author": "Marc Aurèle", "end_date": "2025-02-01"},
        {"circle_id": stoics, "book_title": "Lettres à Lucilius", "book_author": "Sénèque", "end_date": "2025-04-01"},
    )
    await board.refresh()

    detail = await board.open_circle(stoics)

    assert [m.full_name for m in detail.members] == ["Ana Karénine"]
    assert [r.book_title for r in detail.readings] == ["Lettres à Lucilius", "Pensées"]
    assert detail.active_reading.book_title == "Lettres à Lucilius"


async def test_open_unknown_circle(board):
    await board.refresh()

    assert await board.open_circle("missing") is None


async def test_founder_schedules_a_reading(fake, ana_session, board, circle_ids):
    stoics, _ = circle_ids
    await board.refresh()
    await board.open_circle(stoics)

    assert board.start_reading_edit() is True
    result = await board.save_reading(
        ReadingDraft(book_title="De la brièveté de la vie", book_author="Sénèque", end_date=date(2025, 6, 1))
    )

    assert result.ok
    assert board.reading_draft is None
    assert board.selected.active_reading.book_title == "De la brièveté de la vie"
    assert fake.rows("circle_readings")[0]["circle_id"] == stoics
    assert fake.rows("circle_readings")[0]["end_date"] == "2025-06-01"


async def test_founder_edits_a_reading(fake, ana_session, board, circle_ids):
    stoics, _ = circle_ids
    [row] = fake.seed("circle_readings", {"circle_id": stoics, "book_title": "Pensée", "end_date": "2025-02-01"})
    await board.refresh()
    await board.open_circle(stoics)

    board.start_reading_edit(board.selected.readings[0])
    draft = board.reading_draft.model_copy(update={"book_title": "Pensées"})
    result = await board.save_reading(draft)

    assert result.ok
    assert fake.rows("circle_readings")[0]["book_title"] == "Pensées"
    assert fake.rows("circle_readings")[0]["id"] == row["id"]


async def test_only_founder_schedules_readings(fake, ana_session, board, circle_ids):
    _, russians = circle_ids
    await board.refresh()
    await board.open_circle(russians)

    assert board.start_reading_edit() is False
    result = await board.save_reading(
        ReadingDraft(book_title="Guerre et Paix", end_date=date(2025, 9, 1))
    )

    assert result.status == "invalid"
    assert result.message == CREATOR_ONLY
    assert fake.calls_to("circle_readings", "insert") == 0


async def test_reading_failure_shows_backend_message_alone(fake, ana_session, board, circle_ids):
    stoics, _ = circle_ids
    await board.refresh()
    await board.open_circle(stoics)
    board.start_reading_edit()
    fake.fail_next("circle_readings", "permission denied for table circle_readings", op="insert")

    result = await board.save_reading(ReadingDraft(book_title="Pensées", end_date=date(2025, 6, 1)))

    assert result.status == "failed"
    assert result.message == "permission denied for table circle_readings"
    assert board.reading_draft is not None


async def test_reading_needs_title_and_end_date(fake, ana_session, board, circle_ids):
    stoics, _ = circle_ids
    await board.refresh()
    await board.open_circle(stoics)

    result = await board.save_reading(ReadingDraft(book_title="Pensées"))

    assert result.status == "invalid"
    assert "end_date" in result.message
    assert fake.calls_to("circle_readings", "insert") == 0


async def test_sign_out_reloads_without_memberships(fake, ana_session, board, circle_ids):
    await board.refresh()
    assert board.memberships

    await ana_session.sign_out()
    assert board.memberships == set()
    assert all(not s.is_member for s in board.circles)
