"""
Role-based job views.

Contact details are released to the other party only once payment is
locked, and technicians see net amounts instead of dealer prices.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from techmarket.domain.entities.dealer import Dealer
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.technician import Technician
from techmarket.domain.value_objects.actor_role import ActorRole

REDACTED_FIELDS_FOR_TECHNICIAN = (
    "customer_name",
    "customer_phone",
    "street",
    "pincode",
    "dealer",
)


def contact_visible_to_technician(job: Job, technician_id: UUID) -> bool:
    """Technicians see contacts only on their own payment-locked jobs."""
    return job.technician_id == technician_id and job.status.is_payment_locked()


def technician_contact_visible_to_dealer(job: Job) -> bool:
    return job.technician_id is not None and job.status.is_payment_locked()


def job_view(
    job: Job,
    role: ActorRole,
    actor_id: Optional[UUID] = None,
    dealer: Optional[Dealer] = None,
    technician: Optional[Technician] = None,
    net_amount_for: Optional[Callable[[Optional[Decimal]], Optional[Decimal]]] = None,
) -> Dict[str, Any]:
    """Build the dict a caller with ``role`` may see for ``job``."""
    view: Dict[str, Any] = {
        "id": job.id,
        "job_number": job.job_number,
        "status": job.status,
        "title": job.title,
        "description": job.description,
        "work_details": job.work_details,
        "service_domain_id": job.service_domain_id,
        "service_category_id": job.service_category_id,
        "service_sub_category_id": job.service_sub_category_id,
        "skill_id": job.skill_id,
        "priority": job.priority,
        "city": job.address.city,
        "state": job.address.state,
        "street": job.address.street,
        "pincode": job.address.pincode,
        "latitude": job.latitude,
        "longitude": job.longitude,
        "customer_name": job.customer_name,
        "customer_phone": job.customer_phone,
        "scheduled_at": job.scheduled_at,
        "estimated_duration_hours": job.estimated_duration_hours,
        "estimated_price": job.estimated_price,
        "final_price": job.final_price,
        "price_locked": job.price_locked,
        "warranty_days": job.warranty_days,
        "dealer_id": job.dealer_id,
        "technician_id": job.technician_id,
        "soft_lock_expires_at": job.soft_lock_expires_at,
        "payment_deadline_at": job.payment_deadline_at,
        "negotiation_expires_at": job.negotiation_expires_at,
        "offer_amount": job.offer_amount,
        "offer_by": job.offer_by,
        "negotiation_rounds": job.negotiation_rounds,
        "payment_method": job.payment_method,
        "assigned_at": job.assigned_at,
        "started_at": job.started_at,
        "completed_at": job.completed_at,
        "repost_count": job.repost_count,
        "max_reposts": job.max_reposts,
        "timeout_reasons": list(job.timeout_reasons),
        "closure_reason": job.closure_reason,
        "permanently_rejected": job.is_permanently_rejected,
        "status_note": job.status_note,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
        "dealer": dealer.to_dict() if dealer else None,
        "technician": technician.to_dict() if technician else None,
        "net_amount": None,
    }

    if role == ActorRole.TECHNICIAN:
        # dealer prices are never shown, and the offer on the table is net too
        net = net_amount_for or (lambda gross: gross)
        view["net_amount"] = net(job.gross_amount)
        view["offer_amount"] = net(job.offer_amount)
        view["estimated_price"] = None
        view["final_price"] = None
        view["technician"] = None
        if not contact_visible_to_technician(job, actor_id):
            for key in REDACTED_FIELDS_FOR_TECHNICIAN:
                view[key] = None

    elif role == ActorRole.DEALER:
        if not technician_contact_visible_to_dealer(job):
            view["technician"] = None

    return view
