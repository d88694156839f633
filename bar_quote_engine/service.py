"""Quote lifecycle: save, status changes, acceptance into bookings, payments.

Every function takes the store and settings explicitly; nothing reads
module-level state.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from .calculators.totals import quote_totals
from .errors import InvalidTransitionError, QuoteValidationError
from .invoice import build_invoice_lines
from .logging_config import get_logger
from .logic.defaults import apply_costing_defaults, load_costing
from .models import (
    Booking,
    BookingStatus,
    CostingData,
    Customer,
    EventInfo,
    Quote,
    QuoteStatus,
    Settings,
)
from .normalize.quote_lines import QuoteForm, build_quote_lines, default_vat
from .store import QuoteStore
from .utils import generate_id, non_negative, round2


logger = get_logger(__name__)

QUOTE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "Draft": frozenset({"Sent", "Accepted", "Declined", "Expired"}),
    "Sent": frozenset({"Accepted", "Declined", "Expired"}),
    "Accepted": frozenset(),
    "Declined": frozenset(),
    "Expired": frozenset(),
}

BOOKING_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "Confirmed": frozenset({"Completed", "Cancelled"}),
    "Completed": frozenset(),
    "Cancelled": frozenset(),
}


def quote_from_form(
    form: QuoteForm,
    settings: Settings,
    customer: Optional[Customer] = None,
    event: Optional[EventInfo] = None,
    quote_id: Optional[str] = None,
) -> Quote:
    """A draft quote built from editor input; VAT defaults from settings."""
    return Quote(
        id=quote_id or generate_id(),
        customer=customer or Customer(),
        event=event or EventInfo(),
        lines=build_quote_lines(form, settings),
        vat=form.vat or default_vat(settings),
        currency=settings.currency.default,
    )


def validate_quote(quote: Quote, costing: Optional[CostingData] = None) -> None:
    if not (quote.customer.name.strip() and quote.event.type.strip() and quote.event.location.strip()):
        raise QuoteValidationError("Name, event type, and location are required.")
    billable = [line for line in build_invoice_lines(quote, costing) if line.visible and line.amount > 0]
    if not billable:
        raise QuoteValidationError("Add at least one billable item before saving.")
    if quote_totals(quote).gross <= 0:
        raise QuoteValidationError("Quote total must be greater than zero.")


def save_quote(
    store: QuoteStore,
    quote: Quote,
    settings: Settings,
    costing: Optional[CostingData] = None,
) -> Quote:
    """Validate and persist a quote, bringing its costing record in line."""
    validate_quote(quote, costing)
    saved = store.put_quote(quote)
    stored = costing if costing is not None else store.get_costing(saved.id)
    store.put_costing(load_costing(saved, settings, stored))
    logger.info("Saved quote %s (gross %s)", saved.id, saved.totals.gross)
    return saved


def get_costing(store: QuoteStore, quote_id: str, settings: Settings) -> CostingData:
    """Costing for a quote, created from the settings defaults on first access."""
    quote = store.get_quote(quote_id)
    stored = store.get_costing(quote_id)
    if stored is None:
        logger.debug("No costing for quote %s; creating defaults", quote_id)
    return store.put_costing(load_costing(quote, settings, stored))


def apply_settings(
    store: QuoteStore,
    quote_id: str,
    settings: Settings,
    previous: Optional[Settings] = None,
) -> CostingData:
    """Push new settings prices into a quote's costing, keeping custom prices."""
    quote = store.get_quote(quote_id)
    costing = get_costing(store, quote_id, settings)
    return store.put_costing(apply_costing_defaults(costing, quote, settings, previous))


def _move_quote(store: QuoteStore, quote: Quote, status: QuoteStatus) -> Quote:
    if status == quote.status:
        return quote
    if status not in QUOTE_TRANSITIONS[quote.status]:
        raise InvalidTransitionError(f"Cannot move quote {quote.id} from {quote.status} to {status}")
    logger.info("Quote %s: %s -> %s", quote.id, quote.status, status)
    return store.put_quote(quote.model_copy(update={"status": status}))


def set_quote_status(store: QuoteStore, quote_id: str, status: QuoteStatus) -> Quote:
    """Change a quote's status; accepting goes through accept_quote so a booking exists."""
    if status == "Accepted":
        accept_quote(store, quote_id)
        return store.get_quote(quote_id)
    return _move_quote(store, store.get_quote(quote_id), status)


def accept_quote(store: QuoteStore, quote_id: str) -> Booking:
    """Mark a quote Accepted and create its booking.

    A quote has at most one booking: accepting again returns the existing one.
    The booking total is a snapshot of the quote's gross at acceptance.
    """
    existing = store.booking_for_quote(quote_id)
    if existing is not None:
        return existing
    quote = _move_quote(store, store.get_quote(quote_id), "Accepted")
    booking = Booking(
        id=generate_id(),
        quote_id=quote.id,
        customer=quote.customer,
        event=quote.event,
        total=quote_totals(quote).gross,
    )
    logger.info("Created booking %s for quote %s", booking.id, quote_id)
    return store.add_booking(booking)


def _payment_status(total: Decimal, paid: Decimal) -> str:
    if paid <= 0:
        return "Pending"
    if total > 0 and paid >= total:
        return "PaidInFull"
    return "DepositPaid"


def record_payment(store: QuoteStore, booking_id: str, deposit) -> Booking:
    """Set the amount paid so far and derive the payment status from it."""
    booking = store.get_booking(booking_id)
    paid = round2(non_negative(deposit))
    updated = booking.model_copy(
        update={"deposit_paid": paid, "payment_status": _payment_status(booking.total, paid)}
    )
    return store.put_booking(updated)


def mark_paid_in_full(store: QuoteStore, booking_id: str) -> Booking:
    booking = store.get_booking(booking_id)
    updated = booking.model_copy(update={"deposit_paid": booking.total, "payment_status": "PaidInFull"})
    return store.put_booking(updated)


def set_booking_status(store: QuoteStore, booking_id: str, status: BookingStatus) -> Booking:
    booking = store.get_booking(booking_id)
    if status == booking.status:
        return booking
    if status not in BOOKING_TRANSITIONS[booking.status]:
        raise InvalidTransitionError(f"Cannot move booking {booking_id} from {booking.status} to {status}")
    logger.info("Booking %s: %s -> %s", booking_id, booking.status, status)
    return store.put_booking(booking.model_copy(update={"status": status}))


def archive_booking(store: QuoteStore, booking_id: str) -> Booking:
    booking = store.get_booking(booking_id)
    return store.put_booking(booking.model_copy(update={"archived": True}))
