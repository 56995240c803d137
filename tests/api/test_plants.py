from datetime import timedelta

from httpx import AsyncClient

from tests.factories import auth_headers, create_plant, create_task, create_user, days_ago, utcnow


async def test_plant_health_with_overdue_task(client: AsyncClient, db):
    user = await create_user(db)
    plant = await create_plant(db, user, pet_name="Fern")
    await create_task(db, plant, next_due_on=days_ago(5))

    res = await client.get(f"/api/v1/plants/{plant.id}/health", headers=auth_headers(user))

    assert res.status_code == 200
    data = res.json()
    assert data["display_name"] == "Fern"
    assert data["health_score"] == 95
    assert data["care_streak"] == 1
    assert data["badge"]["name"] == "Sprout Starter"


async def test_plant_health_well_kept(client: AsyncClient, db):
    user = await create_user(db)
    plant = await create_plant(db, user, created_at=days_ago(40))
    await create_task(db, plant, next_due_on=utcnow() + timedelta(days=2))

    res = await client.get(f"/api/v1/plants/{plant.id}/health", headers=auth_headers(user))

    assert res.status_code == 200
    data = res.json()
    assert data["health_score"] == 100
    assert data["care_streak"] == 41
    assert data["badge"]["name"] == "Bloom Buddy"


async def test_plant_health_not_found(client: AsyncClient, db):
    owner = await create_user(db)
    stranger = await create_user(db)
    plant = await create_plant(db, owner)

    res = await client.get(f"/api/v1/plants/{plant.id}/health", headers=auth_headers(stranger))
    assert res.status_code == 404
