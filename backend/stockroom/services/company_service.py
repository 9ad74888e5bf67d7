# Overview: Service-layer operations for companies; encapsulates business logic and database work.

from __future__ import annotations

import logging

from sqlalchemy import func

from ..errors import NotFoundError
from ..extensions import db
from ..models import Company, UserProfile
from ..validation import ModelValidationPolicy, validate_payload

logger = logging.getLogger(__name__)

COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address", "phone", "email"},
    required_on_create={"name"},
)

OPTIONAL_FIELDS = ("address", "phone", "email")


def _blank_to_null(patch: dict) -> dict:
    for field in OPTIONAL_FIELDS:
        if field in patch and patch[field] == "":
            patch[field] = None
    return patch


def _user_counts() -> dict[str, int]:
    rows = (
        db.session.query(UserProfile.company_id, func.count(UserProfile.id))
        .filter(UserProfile.company_id.isnot(None))
        .group_by(UserProfile.company_id)
        .all()
    )
    return {company_id: count for company_id, count in rows}


def list_companies() -> list[dict]:
    """Companies newest first, each with the number of profiles attached."""
    counts = _user_counts()
    rows = db.session.query(Company).order_by(Company.created_at.desc()).all()
    items = []
    for company in rows:
        data = company.to_dict()
        data["user_count"] = counts.get(company.id, 0)
        items.append(data)
    return items


def get_company(company_id: str) -> Company:
    company = db.session.get(Company, company_id)
    if not company:
        raise NotFoundError("Company not found")
    return company


def create_company(payload: dict) -> dict:
    patch = _blank_to_null(validate_payload(model=Company, payload=payload, policy=COMPANY_POLICY, partial=False))
    company = Company(**patch)
    db.session.add(company)
    db.session.commit()
    logger.info("Company created: %s", company.name)
    data = company.to_dict()
    data["user_count"] = 0
    return data


def update_company(company_id: str, payload: dict) -> dict:
    company = get_company(company_id)
    patch = _blank_to_null(validate_payload(model=Company, payload=payload, policy=COMPANY_POLICY, partial=True))
    for k, v in patch.items():
        setattr(company, k, v)
    db.session.commit()
    data = company.to_dict()
    data["user_count"] = _user_counts().get(company.id, 0)
    return data


def delete_company(company_id: str) -> None:
    """Profiles of the company are kept and detached (company_id -> NULL)."""
    company = get_company(company_id)
    db.session.query(UserProfile).filter(UserProfile.company_id == company.id).update(
        {UserProfile.company_id: None}, synchronize_session=False
    )
    db.session.delete(company)
    db.session.commit()
    logger.info("Company deleted: %s", company_id)
