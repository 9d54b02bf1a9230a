"""Contact form endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.db.data_service import DataService, desc, eq
from studyhub.utils.validators import now_iso, validate_email
from studyhub.web.deps import get_data_service
from studyhub.web.schemas import ContactCreate, ContactStatusUpdate, Envelope

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/contact", tags=["contact"])


@router.post("/submit", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def submit_contact_form(
    body: ContactCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Store a contact message as pending."""
    if not validate_email(body.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a valid email address",
        )

    contact = service.insert(
        "contacts",
        {
            "first_name": body.first_name,
            "last_name": body.last_name,
            "email": body.email.lower(),
            "phone": body.phone.strip() if body.phone else None,
            "subject": body.subject,
            "message": body.message,
            "status": "pending",
        },
    )
    logger.info("contact_submitted", contact_id=contact["id"], subject=body.subject)
    return Envelope(
        message="Thank you for your message! We'll get back to you soon.",
        data={"id": contact["id"], "created_at": contact["created_at"]},
    )


@router.get("/", response_model=Envelope)
def get_contact_submissions(
    service: DataService = Depends(get_data_service),
) -> Envelope:
    contacts = service.select("contacts", order=[desc("created_at")])
    return Envelope(data=contacts)


@router.patch("/{contact_id}/status", response_model=Envelope)
def update_contact_status(
    contact_id: str,
    body: ContactStatusUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    updated = service.update(
        "contacts",
        {"status": body.status, "updated_at": now_iso()},
        [eq("id", contact_id)],
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact submission not found",
        )
    return Envelope(message="Status updated successfully", data=updated[0])
