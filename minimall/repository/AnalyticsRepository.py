from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select

from minimall.core.database.models import AnalyticsEvent, PerformanceMetric
from minimall.core.database.session import get_session_context


class AnalyticsRepository:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_context

    async def add_event(self, **values: Any) -> AnalyticsEvent:
        async with self.session_factory() as session:
            event = AnalyticsEvent(**values)
            session.add(event)
            await session.commit()
            return event

    async def add_performance_metric(self, **values: Any) -> PerformanceMetric:
        async with self.session_factory() as session:
            metric = PerformanceMetric(**values)
            session.add(metric)
            await session.commit()
            return metric

    @staticmethod
    def _event_filters(
        config_id: str,
        event: Optional[str],
        start_date: Optional[datetime],
        end_date: Optional[datetime],
    ) -> list:
        conditions = [AnalyticsEvent.config_id == config_id]
        if event:
            conditions.append(AnalyticsEvent.event == event)
        if start_date:
            conditions.append(AnalyticsEvent.timestamp >= start_date)
        if end_date:
            conditions.append(AnalyticsEvent.timestamp <= end_date)
        return conditions

    async def get_events(
        self,
        config_id: str,
        event: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AnalyticsEvent]:
        async with self.session_factory() as session:
            statement = (
                select(AnalyticsEvent)
                .where(*self._event_filters(config_id, event, start_date, end_date))
                .order_by(AnalyticsEvent.timestamp.desc())
                .limit(limit)
                .offset(offset)
            )
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def get_performance(
        self,
        config_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[PerformanceMetric]:
        async with self.session_factory() as session:
            statement = select(PerformanceMetric).where(
                PerformanceMetric.config_id == config_id
            )
            if start_date:
                statement = statement.where(PerformanceMetric.timestamp >= start_date)
            if end_date:
                statement = statement.where(PerformanceMetric.timestamp <= end_date)
            statement = statement.order_by(PerformanceMetric.timestamp.desc()).limit(
                limit
            )
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def get_summary(
        self,
        config_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        top_n: int = 10,
    ) -> Dict[str, Any]:
        """Event counts, distinct sessions and average web vitals"""
        filters = self._event_filters(config_id, None, start_date, end_date)
        async with self.session_factory() as session:
            totals = (
                await session.execute(
                    select(
                        func.count(AnalyticsEvent.id),
                        func.count(func.distinct(AnalyticsEvent.session_id)),
                    ).where(*filters)
                )
            ).one()

            top_events = (
                await session.execute(
                    select(AnalyticsEvent.event, func.count(AnalyticsEvent.id).label("n"))
                    .where(*filters)
                    .group_by(AnalyticsEvent.event)
                    .order_by(func.count(AnalyticsEvent.id).desc())
                    .limit(top_n)
                )
            ).all()

            perf_statement = select(
                func.avg(PerformanceMetric.lcp),
                func.avg(PerformanceMetric.fid),
                func.avg(PerformanceMetric.cls),
            ).where(PerformanceMetric.config_id == config_id)
            if start_date:
                perf_statement = perf_statement.where(
                    PerformanceMetric.timestamp >= start_date
                )
            if end_date:
                perf_statement = perf_statement.where(
                    PerformanceMetric.timestamp <= end_date
                )
            averages = (await session.execute(perf_statement)).one()

        return {
            "total_events": int(totals[0] or 0),
            "unique_users": int(totals[1] or 0),
            "avg_lcp": float(averages[0]) if averages[0] is not None else None,
            "avg_fid": float(averages[1]) if averages[1] is not None else None,
            "avg_cls_scaled": float(averages[2]) if averages[2] is not None else None,
            "top_events": [{"event": row[0], "count": int(row[1])} for row in top_events],
        }

    async def delete_events_for_configs(self, config_ids: List[str]) -> int:
        if not config_ids:
            return 0
        async with self.session_factory() as session:
            result = await session.execute(
                delete(AnalyticsEvent).where(AnalyticsEvent.config_id.in_(config_ids))
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_performance_for_configs(self, config_ids: List[str]) -> int:
        if not config_ids:
            return 0
        async with self.session_factory() as session:
            result = await session.execute(
                delete(PerformanceMetric).where(PerformanceMetric.config_id.in_(config_ids))
            )
            await session.commit()
            return result.rowcount or 0
