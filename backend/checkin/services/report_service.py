"""Attendance reporting and analytics aggregation."""
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import func

from checkin import db
from checkin.models.attendance import Attendance
from checkin.models.member import Member
from checkin.models.session import Session
from checkin.services.member_service import MemberService
from checkin.services.session_service import SessionService
from checkin.services.session_status import configured_buffer
from checkin.utils.exceptions import ValidationError
from checkin.utils.helpers import isoformat, utcnow

DEFAULT_ANALYTICS_DAYS = 30
DEFAULT_TRENDS_DAYS = 90
DAILY_CHART_DAYS = 30
RECENT_DAYS = 30
MAX_PERIOD_DAYS = 3650
TOP_LIST_SIZE = 10

def percentage(part: int, whole: int) -> float:
    return round(part * 100 / whole, 1) if whole else 0.0

def week_start(value: datetime) -> date:
    """Sunday that begins the week containing ``value``."""
    day = value.date()
    return day - timedelta(days=(day.weekday() + 1) % 7)

def counts_by(values) -> Dict[str, int]:
    return {str(key): count for key, count in sorted(Counter(values).items())}

class ReportService:
    """Service for attendance reports and analytics."""

    @staticmethod
    def period_start(days: int, now: datetime) -> datetime:
        if days is None or not 1 <= days <= MAX_PERIOD_DAYS:
            raise ValidationError(f"Period must be between 1 and {MAX_PERIOD_DAYS} days")
        return now - timedelta(days=days)

    @staticmethod
    def _session_rows(sessions) -> list:
        counts = SessionService.attendance_counts([s.id for s in sessions])
        return [
            {
                'id': session.id,
                'theme': session.theme,
                'start_time': isoformat(session.start_time),
                'is_active': session.is_active,
                'attendance_count': counts.get(session.id, 0)
            }
            for session in sessions
        ]

    @staticmethod
    def session_report(session_id: int) -> Dict:
        """Roster, hourly timeline and attendance rate against active members."""
        session = SessionService.get_session(session_id)

        records = (
            db.session.query(Attendance, Member)
            .join(Member, Attendance.member_id == Member.id)
            .filter(Attendance.session_id == session.id)
            .order_by(Attendance.checked_in_at.asc())
            .all()
        )
        total_members = Member.query.filter(Member.is_active.is_(True)).count()

        return {
            'session': {
                'id': session.id,
                'theme': session.theme,
                'start_time': isoformat(session.start_time),
                'end_time': isoformat(session.end_time),
                'created_at': isoformat(session.created_at),
                'is_active': session.is_active
            },
            'statistics': {
                'total_attendance': len(records),
                'total_members': total_members,
                'attendance_rate': percentage(len(records), total_members),
                'attendance_by_hour': counts_by(a.checked_in_at.hour for a, _ in records)
            },
            'attendance': [
                {
                    'id': attendance.id,
                    'checked_in_at': isoformat(attendance.checked_in_at),
                    'ip_address': attendance.ip_address,
                    'member': {
                        'id': member.id,
                        'name': member.name,
                        'email': member.email,
                        'phone': member.phone
                    }
                }
                for attendance, member in records
            ]
        }

    @staticmethod
    def member_attendance(
        member_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        limit: int = 50,
        now: Optional[datetime] = None
    ) -> Dict:
        """Attendance history of one member and their rate over sessions held so far.

        The date range filters the history by session start; the statistics
        always cover the member's whole record.
        """
        now = now or utcnow()
        member = MemberService.get_member(member_id)

        q = (
            db.session.query(Attendance, Session)
            .join(Session, Attendance.session_id == Session.id)
            .filter(Attendance.member_id == member.id)
        )
        if from_date:
            q = q.filter(Session.start_time >= from_date)
        if to_date:
            q = q.filter(Session.start_time <= to_date)
        rows = q.order_by(Attendance.checked_in_at.desc()).limit(limit).all()

        total = member.attendance.count()
        recent = member.attendance.filter(
            Attendance.checked_in_at >= now - timedelta(days=RECENT_DAYS)
        ).count()
        # Sessions whose check-in window has opened
        sessions_held = Session.query.filter(
            Session.start_time <= now + configured_buffer()
        ).count()

        return {
            'member': {
                'id': member.id,
                'name': member.name,
                'email': member.email,
                'is_active': member.is_active
            },
            'statistics': {
                'total_attendance': total,
                'recent_attendance': recent,
                'sessions_held': sessions_held,
                'attendance_rate': percentage(total, sessions_held)
            },
            'attendance': [
                {
                    'id': attendance.id,
                    'checked_in_at': isoformat(attendance.checked_in_at),
                    'session': {
                        'id': session.id,
                        'theme': session.theme,
                        'start_time': isoformat(session.start_time),
                        'end_time': isoformat(session.end_time)
                    }
                }
                for attendance, session in rows
            ]
        }

    @classmethod
    def analytics(
        cls,
        days: int = DEFAULT_ANALYTICS_DAYS,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        now: Optional[datetime] = None
    ) -> Dict:
        """Dashboard overview: totals, engagement, charts and top lists."""
        now = now or utcnow()

        if from_date and to_date:
            if from_date > to_date:
                raise ValidationError("from_date must not be after to_date")
            window = [Attendance.checked_in_at >= from_date, Attendance.checked_in_at <= to_date]
            period = f'{isoformat(from_date)} to {isoformat(to_date)}'
        else:
            window = [Attendance.checked_in_at >= cls.period_start(days, now)]
            period = f'Last {days} days'

        opens_before = now + configured_buffer()
        total_members = Member.query.count()
        active_members = Member.query.filter(Member.is_active.is_(True)).count()
        total_sessions = Session.query.count()
        total_attendance = Attendance.query.count()

        engaged_members = (
            db.session.query(func.count(func.distinct(Attendance.member_id)))
            .join(Member, Attendance.member_id == Member.id)
            .filter(Member.is_active.is_(True))
            .scalar()
        ) or 0

        daily = db.session.query(Attendance.checked_in_at).filter(
            Attendance.checked_in_at >= now - timedelta(days=DAILY_CHART_DAYS)
        ).all()
        in_window = db.session.query(Attendance.checked_in_at).filter(*window).all()

        attendance_count = func.count(Attendance.id)
        top_members = (
            db.session.query(Member, attendance_count)
            .outerjoin(Attendance, Attendance.member_id == Member.id)
            .filter(Member.is_active.is_(True))
            .group_by(Member.id)
            .order_by(attendance_count.desc(), Member.name.asc())
            .limit(TOP_LIST_SIZE)
            .all()
        )
        recent_sessions = Session.query.order_by(Session.start_time.desc()).limit(TOP_LIST_SIZE).all()

        return {
            'summary': {
                'total_members': total_members,
                'active_members': active_members,
                'total_sessions': total_sessions,
                'active_sessions': Session.query.filter(
                    Session.is_active.is_(True),
                    Session.start_time <= opens_before,
                    Session.end_time >= now
                ).count(),
                'upcoming_sessions': Session.query.filter(
                    Session.is_active.is_(True),
                    Session.start_time > opens_before
                ).count(),
                'total_attendance': total_attendance,
                'recent_attendance': len(in_window),
                'engagement_rate': percentage(engaged_members, active_members),
                'avg_attendance_per_session': (
                    round(total_attendance / total_sessions, 1) if total_sessions else 0.0
                )
            },
            'charts': {
                'attendance_by_day': counts_by(t.date().isoformat() for (t,) in daily),
                'attendance_by_hour': counts_by(t.hour for (t,) in in_window)
            },
            'top_members': [
                {
                    'id': member.id,
                    'name': member.name,
                    'email': member.email,
                    'attendance_count': count
                }
                for member, count in top_members
            ],
            'recent_sessions': cls._session_rows(recent_sessions),
            'period': period
        }

    @classmethod
    def attendance_trends(cls, days: int = DEFAULT_TRENDS_DAYS, now: Optional[datetime] = None) -> Dict:
        """Weekly and day-of-week attendance counts over the period."""
        now = now or utcnow()
        since = cls.period_start(days, now)

        timestamps = [
            checked_in_at for (checked_in_at,) in
            db.session.query(Attendance.checked_in_at)
            .filter(Attendance.checked_in_at >= since)
            .order_by(Attendance.checked_in_at.asc())
            .all()
        ]
        weekly = counts_by(week_start(t).isoformat() for t in timestamps)

        recent_sessions = (
            Session.query
            .filter(Session.start_time >= since)
            .order_by(Session.start_time.desc())
            .limit(TOP_LIST_SIZE)
            .all()
        )

        return {
            'trends': {
                'weekly': weekly,
                'day_of_week': dict(Counter(t.strftime('%A') for t in timestamps))
            },
            'statistics': {
                'total_attendance': len(timestamps),
                'week_count': len(weekly),
                'avg_weekly_attendance': round(len(timestamps) / len(weekly), 1) if weekly else 0.0,
                'period': f'Last {days} days'
            },
            'recent_sessions': cls._session_rows(recent_sessions)
        }
