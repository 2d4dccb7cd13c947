from datetime import date, timedelta

from sqlalchemy import select, update

from qbuilder.core.scheduler import cleanup_job, expire_quotes_job, scheduler
from qbuilder.models.quotes.quote_models import Quote
from qbuilder.services.auth.oauth_state import oauth_state_store


def test_jobs_registered():
    jobs = {job.name: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"expire_quotes_job", "cleanup_job"}


async def test_cleanup_job_purges_stale_oauth_states(monkeypatch):
    oauth_state_store.clear()
    monkeypatch.setattr(oauth_state_store, "ttl_seconds", -1)
    oauth_state_store.issue("google", "http://localhost/cb")

    await cleanup_job()
    assert len(oauth_state_store) == 0


async def test_expire_quotes_job(client, db, auth_headers, create_client_record, create_quote):
    customer = await create_client_record(auth_headers)
    quote = await create_quote(auth_headers, customer["id"])
    await client.post(f"/quotes/{quote['id']}/send", params={"version": 1}, headers=auth_headers)

    today = date.today()
    await db.execute(
        update(Quote)
        .where(Quote.id == quote["id"])
        .values(issue_date=today - timedelta(days=10), expiry_date=today - timedelta(days=1))
    )
    await db.commit()

    await expire_quotes_job()

    status = await db.scalar(
        select(Quote.status).where(Quote.id == quote["id"]).execution_options(populate_existing=True)
    )
    assert status.value == "expired"
