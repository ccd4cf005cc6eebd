"""Inbound webhooks from Zoom, Calendly and Stripe.

Zoom recordings land on the call record for the meeting (created when the
tenant is known and no record exists yet) and are analysed in-process.
Calendly bookings and cancellations update the prospect's latest
discovery or strategy call. Stripe events keep tenant subscriptions in
sync.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from shared.schemas import CallStatus, CallType
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.billing.stripe_client import StripeClient, get_stripe_client
from api.billing.subscriptions import apply_stripe_event
from api.db.database import get_db
from api.db.models import (
    Contact,
    DiscoveryCall,
    PodcastInterview,
    PreQualificationCall,
    StrategyCall,
)
from api.integrations.base import IntegrationError
from api.integrations.instantly import InstantlyClient, get_instantly_client
from api.integrations.zoom import (
    ZoomClient,
    classify_topic,
    get_zoom_client,
    is_media_file,
    is_transcript_file,
)
from api.responses import success
from api.tenancy import optional_tenant_id
from api.workflow.analysis import (
    analyze_discovery,
    analyze_podcast,
    analyze_prequal,
    analyze_sales,
)
from api.workflow.scoring import TranscriptScorer, get_scorer

logger = logging.getLogger("growth-manager-webhooks")

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


# =============================================================================
# Zoom
# =============================================================================


Analyzer = Callable[..., Awaitable[dict]]


@dataclass(frozen=True)
class RecordedCallTable:
    """Where a recorded call of one type is stored and how it is scored."""

    model: Any
    status_field: str
    name_field: str
    email_field: str
    analyze: Analyzer
    uses_instantly: bool = True


CALL_TABLES: dict[CallType, RecordedCallTable] = {
    CallType.PREQUAL: RecordedCallTable(
        PreQualificationCall, "call_status", "guest_name", "guest_email", analyze_prequal
    ),
    CallType.PODCAST: RecordedCallTable(
        PodcastInterview, "interview_status", "guest_name", "guest_email", analyze_podcast
    ),
    CallType.DISCOVERY: RecordedCallTable(
        DiscoveryCall, "status", "prospect_name", "prospect_email", analyze_discovery
    ),
    CallType.STRATEGY: RecordedCallTable(
        StrategyCall,
        "status",
        "prospect_name",
        "prospect_email",
        analyze_sales,
        uses_instantly=False,
    ),
}


async def _find_by_meeting(
    db: AsyncSession, table: RecordedCallTable, meeting_id: str, tenant_id: UUID | None
) -> Any:
    model = table.model
    query = select(model).where(model.zoom_meeting_id == meeting_id)
    if tenant_id is not None:
        query = query.where(model.tenant_id == tenant_id)
    result = await db.execute(query.order_by(model.created_at.desc()).limit(1))
    return result.scalar_one_or_none()


async def _fetch_transcript(zoom: ZoomClient, recording_files: list[dict]) -> str | None:
    transcript_file = next((f for f in recording_files if is_transcript_file(f)), None)
    if transcript_file is None or not transcript_file.get("download_url"):
        return None

    try:
        token = await zoom.get_access_token()
        return await zoom.download_transcript(transcript_file["download_url"], token)
    except IntegrationError as e:
        logger.warning(f"Transcript download failed: {e}")
        return None


@router.post("/zoom")
async def zoom_webhook(
    request: Request,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    zoom: ZoomClient = Depends(get_zoom_client),
    scorer: TranscriptScorer = Depends(get_scorer),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Handle Zoom URL validation and completed recordings."""
    body = await request.json()
    event = body.get("event")
    payload = body.get("payload") or {}

    if event == "endpoint.url_validation":
        plain_token = payload.get("plainToken", "")
        try:
            encrypted = zoom.sign_validation_token(plain_token)
        except IntegrationError as e:
            logger.error(f"Zoom URL validation failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Webhook secret not configured",
            ) from e
        # Zoom expects the bare challenge response, not the envelope
        return {"plainToken": plain_token, "encryptedToken": encrypted}

    if event != "recording.completed":
        return success(message="Event received")

    meeting = payload.get("object") or {}
    topic = meeting.get("topic")
    call_type = classify_topic(topic)
    if call_type is None:
        logger.info(f"Ignoring recording for untracked meeting '{topic}'")
        return success(message="Not a tracked call type")

    table = CALL_TABLES[call_type]
    meeting_id = str(meeting.get("id") or meeting.get("uuid") or "")
    recording_files = meeting.get("recording_files") or []

    transcript = await _fetch_transcript(zoom, recording_files)
    media = next((f for f in recording_files if is_media_file(f)), None)
    recording_url = meeting.get("share_url") or (media or {}).get("play_url")

    record = await _find_by_meeting(db, table, meeting_id, tenant_id)
    if record is None:
        if tenant_id is None:
            logger.warning(f"No {call_type.value} call record for Zoom meeting {meeting_id}")
            return success({"call_type": call_type.value}, message="No matching call record")
        record = table.model(
            tenant_id=tenant_id,
            zoom_meeting_id=meeting_id,
            **{
                table.name_field: topic or "Zoom participant",
                table.email_field: "",
            },
        )
        db.add(record)

    setattr(record, table.status_field, CallStatus.RECORDED.value)
    if recording_url:
        record.recording_url = recording_url
    if transcript:
        record.transcript = transcript
    await db.commit()

    record_id, record_tenant_id = record.id, record.tenant_id
    logger.info(f"Zoom recording saved to {call_type.value} call {record_id}")

    analyzed = False
    if transcript:
        kwargs = {"transcript": transcript}
        if table.uses_instantly:
            kwargs["instantly"] = instantly
        try:
            await table.analyze(db, record_id, record_tenant_id, scorer, **kwargs)
            await db.commit()
            analyzed = True
        except HTTPException as e:
            await db.rollback()
            logger.warning(f"Analysis of {call_type.value} call {record_id} failed: {e.detail}")

    return success(
        {
            "call_type": call_type.value,
            "record_id": str(record_id),
            "transcript_saved": bool(transcript),
            "analyzed": analyzed,
        },
        message="Recording processed",
    )


# =============================================================================
# Calendly
# =============================================================================


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def _contact_by_email(
    db: AsyncSession, email: str, tenant_id: UUID | None
) -> Contact | None:
    query = select(Contact).where(func.lower(Contact.email) == email.lower())
    if tenant_id is not None:
        query = query.where(Contact.tenant_id == tenant_id)
    result = await db.execute(query.order_by(Contact.created_at.desc()).limit(1))
    return result.scalar_one_or_none()


def _booked_call_model(event_type_name: str) -> Any:
    name = event_type_name.lower()
    if "discovery" in name:
        return DiscoveryCall
    if "strategy" in name or "sales" in name:
        return StrategyCall
    return None


async def _handle_booking(db: AsyncSession, payload: dict, tenant_id: UUID | None) -> dict:
    scheduled = payload.get("scheduled_event") or {}
    event_type_name = payload.get("event_type_name") or scheduled.get("name") or ""

    contact = await _contact_by_email(db, payload.get("email") or "", tenant_id)
    if contact is None:
        return {"received": True, "message": "Contact not found in system"}

    model = _booked_call_model(event_type_name)
    if model is None:
        return {"received": True, "contact_found": True, "call_type": "unknown"}

    result = await db.execute(
        select(model)
        .where(model.contact_id == contact.id)
        .order_by(model.created_at.desc())
        .limit(1)
    )
    call = result.scalar_one_or_none()
    if call is not None:
        call.call_date = _parse_time(scheduled.get("start_time"))
        call.calendly_link = scheduled.get("uri")
        call.status = CallStatus.SCHEDULED.value
        await db.commit()
        logger.info(f"Calendly booking recorded on {model.__tablename__} {call.id}")

    return {
        "received": True,
        "contact_found": True,
        "call_type": "discovery" if model is DiscoveryCall else "strategy",
        "call_updated": call is not None,
    }


async def _handle_cancellation(
    db: AsyncSession, payload: dict, tenant_id: UUID | None
) -> dict:
    uri = (payload.get("scheduled_event") or {}).get("uri")
    canceled = 0
    if uri:
        for model in (DiscoveryCall, StrategyCall):
            query = select(model).where(model.calendly_link == uri)
            if tenant_id is not None:
                query = query.where(model.tenant_id == tenant_id)
            result = await db.execute(query)
            for call in result.scalars().all():
                call.status = CallStatus.CANCELED.value
                canceled += 1
        await db.commit()

    logger.info(f"Calendly cancellation marked {canceled} call(s) canceled")
    return {"received": True, "canceled": canceled, "message": "Cancellation processed"}


@router.post("/calendly")
async def calendly_webhook(
    request: Request,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Record Calendly bookings and cancellations.

    Always answers 200 so Calendly does not retry; failures are logged.
    """
    try:
        body = await request.json()
        event = body.get("event")
        payload = body.get("payload") or {}

        if event == "invitee.created":
            return await _handle_booking(db, payload, tenant_id)
        if event == "invitee.canceled":
            return await _handle_cancellation(db, payload, tenant_id)
        return {"received": True, "message": f"Event type {event} received but not processed"}

    except (SQLAlchemyError, ValueError, AttributeError, TypeError) as e:
        await db.rollback()
        logger.error(f"Calendly webhook processing failed: {e}")
        return {"received": True, "error": str(e)}


# =============================================================================
# Stripe
# =============================================================================


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    """Handle Stripe webhooks.

    Processes subscription lifecycle events:
    - customer.subscription.created / updated / deleted / trial_will_end
    - invoice.payment_succeeded
    - invoice.payment_failed
    """
    payload = await request.body()

    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe-Signature header",
        )

    try:
        event = stripe_client.verify_webhook(payload, stripe_signature)
    except ValueError as e:
        logger.error(f"Stripe signature verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    logger.info(f"Stripe event received: {event.get('type')}")

    try:
        await apply_stripe_event(db, event)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Stripe webhook processing failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from e

    return {"received": True}
