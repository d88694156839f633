from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from .calculators.totals import with_totals
from .errors import NotFoundError
from .models import Booking, CostingData, Quote, utcnow
from .normalize.costing import normalize_costing


M = TypeVar("M", bound=BaseModel)


class QuoteStore:
    """Quotes, costing records and bookings keyed by id.

    Records live in memory; with ``root`` set, each record is also written as a
    camelCase JSON file under ``root/<kind>/<id>.json`` and read back from
    there on a cache miss. Storage errors propagate to the caller.
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else None
        self._quotes: Dict[str, Quote] = {}
        self._costings: Dict[str, CostingData] = {}
        self._bookings: Dict[str, Booking] = {}

    # -- file backing ---------------------------------------------------------

    def _path(self, kind: str, key: str) -> Path:
        assert self.root is not None
        return self.root / kind / f"{key}.json"

    def _write(self, kind: str, key: str, record: BaseModel) -> None:
        if self.root is None:
            return
        path = self._path(kind, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(record.model_dump_json(by_alias=True, indent=2), encoding="utf-8")

    def _read(self, kind: str, key: str, model: Type[M]) -> Optional[M]:
        if self.root is None:
            return None
        path = self._path(kind, key)
        if not path.exists():
            return None
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))

    def _read_all(self, kind: str, model: Type[M]) -> List[M]:
        if self.root is None or not (self.root / kind).is_dir():
            return []
        return [
            model.model_validate(json.loads(p.read_text(encoding="utf-8")))
            for p in sorted((self.root / kind).glob("*.json"))
        ]

    # -- quotes ---------------------------------------------------------------

    def get_quote(self, quote_id: str) -> Quote:
        quote = self._quotes.get(quote_id) or self._read("quotes", quote_id, Quote)
        if quote is None:
            raise NotFoundError(f"Quote not found: {quote_id}")
        self._quotes[quote_id] = quote
        return quote

    def put_quote(self, quote: Quote) -> Quote:
        """Full replace; totals are recomputed from the lines on every write."""
        saved = with_totals(quote).model_copy(update={"updated_at": utcnow()})
        self._quotes[saved.id] = saved
        self._write("quotes", saved.id, saved)
        return saved

    def list_quotes(self) -> List[Quote]:
        merged = {q.id: q for q in self._read_all("quotes", Quote)}
        merged.update(self._quotes)
        return sorted(merged.values(), key=lambda q: q.created_at)

    # -- costing --------------------------------------------------------------

    def get_costing(self, quote_id: str) -> Optional[CostingData]:
        costing = self._costings.get(quote_id) or self._read("costing", quote_id, CostingData)
        if costing is not None:
            self._costings[quote_id] = costing
        return costing

    def put_costing(self, costing: CostingData) -> CostingData:
        saved = normalize_costing(costing)
        self._costings[saved.quote_id] = saved
        self._write("costing", saved.quote_id, saved)
        return saved

    # -- bookings -------------------------------------------------------------

    def add_booking(self, booking: Booking) -> Booking:
        return self.put_booking(booking)

    def put_booking(self, booking: Booking) -> Booking:
        self._bookings[booking.id] = booking
        self._write("bookings", booking.id, booking)
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id) or self._read("bookings", booking_id, Booking)
        if booking is None:
            raise NotFoundError(f"Booking not found: {booking_id}")
        self._bookings[booking_id] = booking
        return booking

    def list_bookings(self, include_archived: bool = False) -> List[Booking]:
        merged = {b.id: b for b in self._read_all("bookings", Booking)}
        merged.update(self._bookings)
        bookings = sorted(merged.values(), key=lambda b: b.created_at)
        if include_archived:
            return bookings
        return [b for b in bookings if not b.archived]

    def booking_for_quote(self, quote_id: str) -> Optional[Booking]:
        for booking in self.list_bookings(include_archived=True):
            if booking.quote_id == quote_id:
                return booking
        return None
