"""Member directory service."""
from typing import Dict, Optional

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from checkin import db
from checkin.models.attendance import Attendance
from checkin.models.member import Member
from checkin.services.pin_service import PinService
from checkin.utils.exceptions import Conflict, NotFound, ValidationError
from checkin.utils.validators import Validator, optional_bool

SORTABLE_FIELDS = {'name': Member.name, 'email': Member.email, 'created_at': Member.created_at}

class MemberService:
    """Service for managing members."""
    
    @staticmethod
    def _validate_fields(data: Dict, partial: bool = False) -> Dict:
        errors = []
        cleaned = {}
        
        if not partial or 'name' in data:
            errors += Validator.validate_text(data.get('name'), 'Name', 2, 100)
            if not errors:
                cleaned['name'] = data['name'].strip()
        
        if not partial or 'email' in data:
            email = data.get('email')
            if not isinstance(email, str) or not Validator.validate_email(email.strip()):
                errors.append("Email must be a valid email address")
            else:
                cleaned['email'] = email.strip().lower()
        
        if 'phone' in data:
            phone = data.get('phone') or ''
            if not isinstance(phone, str) or not Validator.validate_phone(phone.strip()):
                errors.append("Phone number format is invalid")
            else:
                cleaned['phone'] = phone.strip() or None
        
        if errors:
            raise ValidationError("Invalid input data", details=errors)
        return cleaned
    
    @staticmethod
    def get_member(member_id: int) -> Member:
        member = db.session.get(Member, member_id)
        if member is None:
            raise NotFound("Member with the specified ID does not exist")
        return member
    
    @classmethod
    def create_member(cls, data: Dict) -> Member:
        """Create a member and issue a unique PIN."""
        cleaned = cls._validate_fields(data)
        
        if Member.query.filter_by(email=cleaned['email']).first():
            raise Conflict("A member with this email address already exists")
        
        pin, pin_hash = PinService.generate_member_pin()
        member = Member(pin=pin, pin_hash=pin_hash, is_active=True, **cleaned)
        
        try:
            db.session.add(member)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("A member with this email address or PIN already exists")
        
        current_app.logger.info('Member %s created', member.id)
        return member
    
    @classmethod
    def update_member(cls, member_id: int, data: Dict) -> Member:
        member = cls.get_member(member_id)
        cleaned = cls._validate_fields(data, partial=True)
        is_active = optional_bool(data, 'is_active')
        
        if 'email' in cleaned and cleaned['email'] != member.email:
            if Member.query.filter_by(email=cleaned['email']).first():
                raise Conflict("A member with this email address already exists")
        
        for key, value in cleaned.items():
            setattr(member, key, value)
        if is_active is not None:
            member.is_active = is_active
        
        db.session.commit()
        current_app.logger.info('Member %s updated', member.id)
        return member
    
    @classmethod
    def deactivate_member(cls, member_id: int) -> Member:
        """Soft delete; members are never hard-deleted."""
        member = cls.get_member(member_id)
        member.is_active = False
        db.session.commit()
        current_app.logger.info('Member %s deactivated', member.id)
        return member
    
    @staticmethod
    def search_members(
        query: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        per_page: int = 20,
        sort_by: str = 'name',
        sort_order: str = 'asc'
    ):
        """Paginated search across name, email, phone and exact PIN."""
        q = Member.query
        
        if query:
            pattern = f"%{query.strip()}%"
            q = q.filter(or_(
                Member.name.ilike(pattern),
                Member.email.ilike(pattern),
                Member.phone.ilike(pattern),
                Member.pin == query.strip()
            ))
        if is_active is not None:
            q = q.filter(Member.is_active.is_(is_active))
        
        column = SORTABLE_FIELDS.get(sort_by, Member.name)
        q = q.order_by(column.desc() if sort_order == 'desc' else column.asc())
        
        return q.paginate(page=page, per_page=per_page, error_out=False)
    
    @staticmethod
    def recent_attendance(member: Member, limit: int = 50) -> list:
        records = (
            member.attendance
            .order_by(Attendance.checked_in_at.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                'id': record.id,
                'checked_in_at': record.checked_in_at.isoformat(),
                'session': {
                    'id': record.session.id,
                    'theme': record.session.theme,
                    'start_time': record.session.start_time.isoformat(),
                    'end_time': record.session.end_time.isoformat()
                }
            }
            for record in records
        ]
