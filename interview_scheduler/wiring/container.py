from __future__ import annotations

import logging
from dataclasses import dataclass

from interview_scheduler.application.ports.booking_store import BookingStorePort
from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.application.ports.email_transport import EmailTransportPort
from interview_scheduler.application.ports.invitation_store import InvitationStorePort
from interview_scheduler.application.ports.notification_sink import NotificationSinkPort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.application.use_cases.availability import AvailabilityQueryUseCase
from interview_scheduler.application.use_cases.bookings import BookingUseCase
from interview_scheduler.application.use_cases.invitations import InvitationUseCase
from interview_scheduler.application.use_cases.notifications import NotificationDispatcher, ReminderUseCase
from interview_scheduler.application.use_cases.slots import SlotManagementUseCase
from interview_scheduler.core.config import Settings
from interview_scheduler.infrastructure.directory.memory_directory import MemoryDirectory
from interview_scheduler.infrastructure.email.http_email_client import HttpEmailTransport
from interview_scheduler.infrastructure.email.mock_email import MockEmailTransport
from interview_scheduler.infrastructure.notifications.memory_sink import MemoryNotificationSink
from interview_scheduler.infrastructure.store.json_store import JsonBookingStore, JsonInvitationStore, JsonSlotStore
from interview_scheduler.infrastructure.store.memory_store import (
    MemoryBookingStore,
    MemoryInvitationStore,
    MemorySlotStore,
)


logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    slot_store: SlotStorePort
    booking_store: BookingStorePort
    invitation_store: InvitationStorePort
    directory: DirectoryPort
    sink: NotificationSinkPort
    email: EmailTransportPort
    slots: SlotManagementUseCase
    availability: AvailabilityQueryUseCase
    bookings: BookingUseCase
    invitations: InvitationUseCase
    reminders: ReminderUseCase
    dispatcher: NotificationDispatcher

    def close(self) -> None:
        close = getattr(self.email, "close", None)
        if close is not None:
            close()


def build_stores(settings: Settings) -> tuple[SlotStorePort, BookingStorePort, InvitationStorePort]:
    provider = settings.STORE_PROVIDER.lower()
    if provider == "json":
        logger.info("Using JSON stores", extra={"status": settings.DATA_DIR})
        return (
            JsonSlotStore(settings.DATA_DIR),
            JsonBookingStore(settings.DATA_DIR),
            JsonInvitationStore(settings.DATA_DIR),
        )
    if provider == "memory":
        return MemorySlotStore(), MemoryBookingStore(), MemoryInvitationStore()
    raise ValueError(f"Unknown STORE_PROVIDER: {settings.STORE_PROVIDER}")


def build_email(settings: Settings) -> EmailTransportPort:
    if not settings.EMAIL_API_KEY:
        if settings.ENV.lower() in {"dev", "local", "test"}:
            logger.info("Using MockEmailTransport (EMAIL_API_KEY missing, ENV=dev/local/test)")
            return MockEmailTransport()
        raise ValueError("EMAIL_API_KEY is required to send interview emails.")
    return HttpEmailTransport(
        api_key=settings.EMAIL_API_KEY,
        api_url=settings.EMAIL_API_URL,
        sender=settings.EMAIL_FROM,
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )


def build_container(
    settings: Settings,
    directory: DirectoryPort | None = None,
    email: EmailTransportPort | None = None,
    sink: NotificationSinkPort | None = None,
) -> Container:
    slot_store, booking_store, invitation_store = build_stores(settings)
    if directory is None:
        directory = MemoryDirectory.from_file(settings.DIRECTORY_FILE) if settings.DIRECTORY_FILE else MemoryDirectory()
    email = email or build_email(settings)
    sink = sink or MemoryNotificationSink()

    return Container(
        settings=settings,
        slot_store=slot_store,
        booking_store=booking_store,
        invitation_store=invitation_store,
        directory=directory,
        sink=sink,
        email=email,
        slots=SlotManagementUseCase(
            slots=slot_store,
            directory=directory,
            default_timezone=settings.DEFAULT_TIMEZONE,
            default_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
        ),
        availability=AvailabilityQueryUseCase(
            slots=slot_store,
            directory=directory,
            default_timezone=settings.DEFAULT_TIMEZONE,
        ),
        bookings=BookingUseCase(
            slots=slot_store,
            bookings=booking_store,
            directory=directory,
            notice_window_minutes=settings.NOTICE_WINDOW_MINUTES,
            employer_cancel_respects_notice=settings.EMPLOYER_CANCEL_RESPECTS_NOTICE,
        ),
        invitations=InvitationUseCase(
            slots=slot_store,
            bookings=booking_store,
            invitations=invitation_store,
            directory=directory,
            eligible_statuses=settings.INTERVIEW_ELIGIBLE_STATUSES,
            ttl_days=settings.INVITATION_TTL_DAYS,
            placeholder_lead_days=settings.PLACEHOLDER_LEAD_DAYS,
            placeholder_start_time=settings.PLACEHOLDER_START_TIME,
            default_timezone=settings.DEFAULT_TIMEZONE,
            default_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
        ),
        reminders=ReminderUseCase(bookings=booking_store, slots=slot_store),
        dispatcher=NotificationDispatcher(
            sink=sink,
            email=email,
            directory=directory,
            frontend_base_url=settings.FRONTEND_BASE_URL,
        ),
    )
