# fitwork/serializers.py
"""Plain-dict views of models for the JSON API."""
from datetime import date, datetime


def _iso(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def user_json(u):
    if u is None:
        return None
    return {
        "id": u.id,
        "email": u.email,
        "display_name": u.display_name,
        "role": u.role,
        "status": u.status,
        "is_email_verified": bool(u.is_email_verified),
        "profile_id": u.profile.id if u.profile else None,
    }


def experience_json(e):
    return {
        "title": e.title,
        "company": e.company,
        "period": e.period,
        "is_active": bool(e.is_active),
    }


def profile_json(p, private: bool = False):
    if p is None:
        return None
    data = {
        "id": p.id,
        "user_type": p.user_type,
        "status": p.status,
        "profile_completed": bool(p.profile_completed),
        "display_name": p.display_name,
        "avatar": p.avatar,
        "location": p.location,
        "rating": p.rating or 0.0,
        "view_count": p.view_count or 0,
        "created_at": _iso(p.created_at),
    }
    if p.is_instructor:
        data.update({
            "full_name": p.full_name,
            "headline": p.headline,
            "bio": p.bio,
            "travel_preference": p.travel_preference,
            "availability_slots": p.availability_slots or [],
            "certifications": p.certifications or [],
            "other_certifications": p.other_certifications,
            "fitness_styles": p.fitness_styles or [],
            "profile_photo": p.profile_photo,
            "gallery_images": p.gallery_images or [],
            "open_to_work": bool(p.open_to_work),
            "open_to_guest_spots": bool(p.open_to_guest_spots),
            "touring_ready": bool(p.touring_ready),
            "guest_spot_rate": p.guest_spot_rate,
            "preferred_guest_cities": p.preferred_guest_cities or [],
            "years_of_experience": p.years_of_experience,
            "hourly_rate": p.hourly_rate,
            "experience": [experience_json(e) for e in p.experience],
        })
    else:
        data.update({
            "name": p.name,
            "tagline": p.tagline,
            "description": p.description,
            "website": p.website,
            "instagram": p.instagram,
            "styles": p.styles or [],
            "amenities": p.amenities or [],
            "images": p.images or [],
        })
    if private:
        data.update({
            "email": p.email,
            "contact_number": p.contact_number,
            "postal_code": p.postal_code,
            "saved_at": _iso(p.saved_at),
            "submitted_at": _iso(p.submitted_at),
            "verified_at": _iso(p.verified_at),
            "rejected_at": _iso(p.rejected_at),
            "rejection_reason": p.rejection_reason,
        })
    return data


def studio_summary(p):
    if p is None:
        return None
    return {"id": p.id, "name": p.name, "location": p.location, "images": p.images or []}


def job_json(j):
    return {
        "id": j.id,
        "kind": "job",
        "studio_id": j.studio_id,
        "studio": studio_summary(j.studio),
        "position": j.position,
        "description": j.description,
        "requirements": j.requirements or [],
        "start_date": _iso(j.start_date),
        "end_date": _iso(j.end_date),
        "compensation": j.compensation,
        "styles": j.styles or [],
        "location": j.location,
        "is_urgent": bool(j.is_urgent),
        "applicant_count": j.applicant_count,
        "status": j.status,
        "created_at": _iso(j.created_at),
    }


def guest_spot_json(s):
    return {
        "id": s.id,
        "kind": "guest_spot",
        "studio_id": s.studio_id,
        "studio": studio_summary(s.studio),
        "title": s.title,
        "description": s.description,
        "style": s.style,
        "start_date": _iso(s.start_date),
        "end_date": _iso(s.end_date),
        "compensation": s.compensation,
        "travel_covered": bool(s.travel_covered),
        "accommodation_provided": bool(s.accommodation_provided),
        "location": s.location,
        "is_urgent": bool(s.is_urgent),
        "applicant_count": s.applicant_count,
        "status": s.status,
        "created_at": _iso(s.created_at),
    }


def posting_json(posting):
    return job_json(posting) if posting.kind == "job" else guest_spot_json(posting)


def application_json(a, with_applicant: bool = False):
    data = {
        "id": a.id,
        "kind": a.kind,
        "posting_id": a.posting_id,
        "posting_title": a.posting.title if a.posting else None,
        "applicant_id": a.applicant_id,
        "type": a.type,
        "status": a.status,
        "message": a.message,
        "applied_at": _iso(a.applied_at),
        "updated_at": _iso(a.updated_at),
    }
    if a.kind == "guest_spot":
        data["proposed_rate"] = a.proposed_rate
    if with_applicant:
        data["applicant"] = profile_json(a.applicant)
    return data


def message_json(m):
    data = {
        "id": m.id,
        "conversation_id": m.conversation_id,
        "sender_id": m.sender_id,
        "sender_name": m.sender_name,
        "content": m.content,
        "type": m.type,
        "read": bool(m.read),
        "created_at": _iso(m.created_at),
    }
    if m.type != "text":
        app = m.application
        offer = dict(m.payload or {})
        offer["application_id"] = app.id if app else None
        offer["status"] = app.status if app else None
        data["offer"] = offer
    return data


def conversation_json(c, viewer_profile_id: int):
    other_id = c.other_participant(viewer_profile_id)
    other = c.member(other_id)
    return {
        "id": c.id,
        "participants": c.participants,
        "other": {
            "profile_id": other_id,
            "display_name": other.display_name if other else None,
            "avatar": other.avatar if other else None,
            "user_type": other.user_type if other else None,
        },
        "last_message": {
            "content": c.last_message_content,
            "sender_id": c.last_message_sender_id,
            "type": c.last_message_type,
            "at": _iso(c.last_message_at),
        } if c.last_message_at else None,
        "unread_count": c.unread_for(viewer_profile_id),
        "updated_at": _iso(c.updated_at),
    }
