"""
Rebuild the cached fields on Client documents from source records.

Meant to be run out of band (a cron job or an admin command) after
interrupted cascades or lost updates from concurrent writers. Nothing on the
request path calls into this module.
"""
import logging
from operator import attrgetter
from typing import List

from .aggregates import ClientAggregates, PostsCount, summarize_calendars
from .enums import EntityKind
from .exceptions import NotFoundError
from .models import Calendar, CalendarSummary, Client, Post
from .pydantic_compat import BaseModel, Field

logger = logging.getLogger(__name__)


class ReconciliationReport(BaseModel):
    client_id: str
    stored_posts_count: int
    actual_posts_count: int
    stored_calendars: List[CalendarSummary] = Field(default_factory=list)
    actual_calendars: List[CalendarSummary] = Field(default_factory=list)
    applied: bool = False

    @property
    def posts_count_drifted(self) -> bool:
        return self.stored_posts_count != self.actual_posts_count

    @property
    def calendars_drifted(self) -> bool:
        by_id = attrgetter("id")
        return sorted(self.stored_calendars, key=by_id) != sorted(self.actual_calendars, key=by_id)

    @property
    def drifted(self) -> bool:
        return self.posts_count_drifted or self.calendars_drifted


class OrphanReport(BaseModel):
    calendar_ids: List[str] = Field(default_factory=list)
    post_ids: List[str] = Field(default_factory=list)


class Reconciler:

    async def compute_client_aggregates(self, client_id: str) -> ClientAggregates:
        calendars = await Calendar.find_all([Calendar.client_id == client_id])
        posts_count = await Post.count([Post.client_id == client_id])
        return ClientAggregates(
            calendars=summarize_calendars(calendars),
            posts_count=PostsCount(value=posts_count),
        )

    async def reconcile_client(self, client_id: str, dry_run: bool = False) -> ReconciliationReport:
        client = await Client.get(client_id)
        if client is None:
            raise NotFoundError(EntityKind.CLIENT, client_id, "Client not found")

        actual = await self.compute_client_aggregates(client_id)
        report = ReconciliationReport(
            client_id=client_id,
            stored_posts_count=client.posts_count,
            actual_posts_count=actual.posts_count.value,
            stored_calendars=client.calendars,
            actual_calendars=actual.calendars,
        )
        if not report.drifted:
            return report

        logger.warning(
            "Client %s drifted: postsCount %d -> %d, calendars %d -> %d",
            client_id,
            report.stored_posts_count, report.actual_posts_count,
            len(report.stored_calendars), len(report.actual_calendars),
        )
        if dry_run:
            return report

        updates = {}
        if report.posts_count_drifted:
            updates["posts_count"] = report.actual_posts_count
        if report.calendars_drifted:
            # keep the stored order for calendars that are still listed
            position = {summary.id: index for index, summary in enumerate(client.calendars)}
            updates["calendars"] = sorted(
                actual.calendars,
                key=lambda summary: position.get(summary.id, len(position)),
            )
        await Client.update_fields(client_id, updates)
        report.applied = True
        return report

    async def reconcile_all(self, dry_run: bool = False) -> List[ReconciliationReport]:
        reports = []
        async for client in Client.find():
            reports.append(await self.reconcile_client(client.id, dry_run=dry_run))
        drifted = sum(1 for report in reports if report.drifted)
        logger.info("Reconciled %d clients, %d drifted", len(reports), drifted)
        return reports

    async def find_orphans(self) -> OrphanReport:
        """Calendars and posts whose client no longer exists."""
        client_ids = {client.id async for client in Client.find()}
        report = OrphanReport()
        async for calendar in Calendar.find():
            if calendar.client_id not in client_ids:
                report.calendar_ids.append(calendar.id)
        async for post in Post.find():
            if post.client_id not in client_ids:
                report.post_ids.append(post.id)
        return report
