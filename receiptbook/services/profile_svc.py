from __future__ import annotations

from typing import Optional

from ..db import Storage
from ..errors import ValidationError
from ..logs import Activity
from ..models import BusinessProfile
from ..repository import profile_repo


def _row_to_profile(r) -> BusinessProfile:
    return BusinessProfile(
        id=r["id"],
        name=r["name"],
        phone=r["phone"],
        address=r["address"],
        cac_number=r["cacNumber"],
        logo_uri=r["logoUri"],
        website_uri=r["websiteUri"],
        custom_footer=r["customFooter"],
    )


def _clean(p: BusinessProfile) -> BusinessProfile:
    name = (p.name or "").strip()
    phone = (p.phone or "").strip()
    if not name:
        raise ValidationError("name", "business name is required")
    if not phone:
        raise ValidationError("phone", "phone number is required")

    def opt(v):
        v = (v or "").strip()
        return v or None

    return BusinessProfile(
        name=name,
        phone=phone,
        address=opt(p.address),
        cac_number=opt(p.cac_number),
        logo_uri=opt(p.logo_uri),
        website_uri=opt(p.website_uri),
        custom_footer=opt(p.custom_footer),
    )


def get_business_profile(storage: Storage) -> Optional[BusinessProfile]:
    if not storage.persistent:
        return None
    with storage.read() as conn:
        r = profile_repo.get_first(conn)
        return _row_to_profile(r) if r else None


def save_business_profile(storage: Storage, profile: BusinessProfile, activity: Optional[Activity] = None) -> int:
    """
    Upsert the single profile row: update it in place when one exists,
    insert otherwise. The check and the write share one transaction; there is
    no cross-process guarantee.
    """
    storage.require_persistent()
    p = _clean(profile)
    with storage.transaction() as conn:
        before = profile_repo.get_first(conn)
        if before is not None:
            profile_id = int(before["id"])
            profile_repo.update_profile(conn, profile_id, p)
        else:
            profile_id = profile_repo.insert_profile(conn, p)
    if activity is not None:
        activity.track(
            profile_id,
            before=_row_to_profile(before).to_dict() if before is not None else None,
            after=p.to_dict(),
        )
    return profile_id
