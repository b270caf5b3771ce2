"""Shipment tracking — courier assignment, status updates and the upsert used by fulfilment."""

from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from procurement.domain import logger, procurement
from procurement.logistics.logistics import LogisticsEntry, LogisticsStatus
from procurement.rfq.rfq import Rfq
from procurement.store import find_all, find_first, load


@procurement.command(part_of="LogisticsEntry")
class AssignLogistics:
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    tracking_number = String(max_length=255)
    estimated_delivery = DateTime()
    notes = Text()


@procurement.command(part_of="LogisticsEntry")
class AdvanceLogistics:
    logistics_entry_id = Identifier(required=True)
    status = String(required=True, choices=LogisticsStatus)
    tracking_number = String(max_length=255)
    notes = Text()


def upsert_entry(
    rfq_id,
    supplier_id,
    pharmacy_id,
    status=LogisticsStatus.PENDING.value,
    tracking_number=None,
    estimated_delivery=None,
    notes=None,
):
    """Find or create the entry for (RFQ, supplier, pharmacy) and move it forward to ``status``."""
    entry = find_first(
        LogisticsEntry,
        rfq_id=str(rfq_id),
        supplier_id=str(supplier_id),
        pharmacy_id=str(pharmacy_id),
    )
    if entry is None:
        entry = LogisticsEntry.assign(
            rfq_id=rfq_id,
            supplier_id=supplier_id,
            pharmacy_id=pharmacy_id,
            tracking_number=tracking_number,
            estimated_delivery=estimated_delivery,
            notes=notes,
        )
    else:
        entry.update_details(tracking_number=tracking_number, estimated_delivery=estimated_delivery, notes=notes)

    entry.advance_to(status)
    current_domain.repository_for(LogisticsEntry).add(entry)
    return entry


def entries_for(rfq_id, pharmacy_id=None, supplier_id=None) -> list[LogisticsEntry]:
    filters = {"rfq_id": str(rfq_id)}
    if pharmacy_id:
        filters["pharmacy_id"] = str(pharmacy_id)
    if supplier_id:
        filters["supplier_id"] = str(supplier_id)
    return find_all(LogisticsEntry, **filters)


@procurement.command_handler(part_of=LogisticsEntry)
class TrackingHandler:
    @handle(AssignLogistics)
    def assign_logistics(self, command):
        load(Rfq, command.rfq_id)
        entry = upsert_entry(
            rfq_id=command.rfq_id,
            supplier_id=command.supplier_id,
            pharmacy_id=command.pharmacy_id,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
            notes=command.notes,
        )
        logger.info(
            "Courier assigned",
            logistics_entry_id=str(entry.id),
            rfq_id=str(command.rfq_id),
            pharmacy_id=str(command.pharmacy_id),
        )
        return str(entry.id)

    @handle(AdvanceLogistics)
    def advance_logistics(self, command):
        entry = load(LogisticsEntry, command.logistics_entry_id)
        if entry.advance_to(command.status, tracking_number=command.tracking_number, notes=command.notes):
            logger.info("Shipment advanced", logistics_entry_id=str(entry.id), status=entry.status)
        current_domain.repository_for(LogisticsEntry).add(entry)
        return str(entry.id)
