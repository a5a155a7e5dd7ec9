"""
Enums for Cargoman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class TrackingMethod(models.TextChoices):
    """
    How an asset is counted.

    INDIVIDUAL: Each unit has its own QR code, scanned one at a time.
    BATCH:      One QR code for a stack of identical units, scanned with a quantity.
    """
    INDIVIDUAL = 'INDIVIDUAL', _('Individual')
    BATCH = 'BATCH', _('Batch')


class AssetStatus(models.TextChoices):
    """Asset record lifecycle."""
    ACTIVE = 'ACTIVE', _('Active')
    TRANSFORMED = 'TRANSFORMED', _('Transformed')   # Replaced by transformed_to
    RETIRED = 'RETIRED', _('Retired')


class Condition(models.TextChoices):
    GREEN = 'GREEN', _('Good')
    ORANGE = 'ORANGE', _('Needs attention')
    RED = 'RED', _('Damaged')


class LedgerKind(models.TextChoices):
    """Kind of availability ledger entry. Effects live in models.ledger.EFFECTS."""
    INTAKE = 'INTAKE', _('Intake')
    RETIRE = 'RETIRE', _('Retire')
    RESERVE = 'RESERVE', _('Reserve')
    RELEASE = 'RELEASE', _('Release')
    SCAN_OUT = 'SCAN_OUT', _('Scan out')
    SCAN_IN = 'SCAN_IN', _('Scan in')
    MAINTENANCE_IN = 'MAINTENANCE_IN', _('Into maintenance')
    MAINTENANCE_OUT = 'MAINTENANCE_OUT', _('Out of maintenance')


class ReservationStatus(models.TextChoices):
    """Reservation lifecycle status."""
    ACTIVE = 'ACTIVE', _('Active')           # Holding quantity for an order
    RELEASED = 'RELEASED', _('Released')     # Cancelled, quantity freed
    FULFILLED = 'FULFILLED', _('Fulfilled')  # Order closed


class OrderStatus(models.TextChoices):
    DRAFT = 'DRAFT', _('Draft')
    SUBMITTED = 'SUBMITTED', _('Submitted')
    PRICING_REVIEW = 'PRICING_REVIEW', _('Pricing review')
    PENDING_APPROVAL = 'PENDING_APPROVAL', _('Pending approval')
    QUOTED = 'QUOTED', _('Quoted')
    DECLINED = 'DECLINED', _('Declined')
    CONFIRMED = 'CONFIRMED', _('Confirmed')
    AWAITING_FABRICATION = 'AWAITING_FABRICATION', _('Awaiting fabrication')
    IN_PREPARATION = 'IN_PREPARATION', _('In preparation')
    READY_FOR_DELIVERY = 'READY_FOR_DELIVERY', _('Ready for delivery')
    IN_TRANSIT = 'IN_TRANSIT', _('In transit')
    DELIVERED = 'DELIVERED', _('Delivered')
    IN_USE = 'IN_USE', _('In use')
    AWAITING_RETURN = 'AWAITING_RETURN', _('Awaiting return')
    RETURN_IN_TRANSIT = 'RETURN_IN_TRANSIT', _('Return in transit')
    CLOSED = 'CLOSED', _('Closed')
    CANCELLED = 'CANCELLED', _('Cancelled')


class InboundRequestStatus(models.TextChoices):
    PRICING_REVIEW = 'PRICING_REVIEW', _('Pricing review')
    PENDING_APPROVAL = 'PENDING_APPROVAL', _('Pending approval')
    QUOTED = 'QUOTED', _('Quoted')
    CONFIRMED = 'CONFIRMED', _('Confirmed')
    DECLINED = 'DECLINED', _('Declined')
    IN_PROGRESS = 'IN_PROGRESS', _('In progress')
    COMPLETED = 'COMPLETED', _('Completed')
    CANCELLED = 'CANCELLED', _('Cancelled')


class FinancialStatus(models.TextChoices):
    """Commercial status, tracked separately from fulfillment."""
    PENDING_QUOTE = 'PENDING_QUOTE', _('Pending quote')
    QUOTE_SENT = 'QUOTE_SENT', _('Quote sent')
    QUOTE_REVISED = 'QUOTE_REVISED', _('Quote revised')
    QUOTE_ACCEPTED = 'QUOTE_ACCEPTED', _('Quote accepted')
    PENDING_INVOICE = 'PENDING_INVOICE', _('Pending invoice')
    INVOICED = 'INVOICED', _('Invoiced')
    PAID = 'PAID', _('Paid')
    CANCELLED = 'CANCELLED', _('Cancelled')


class TripType(models.TextChoices):
    ONE_WAY = 'ONE_WAY', _('One way')
    ROUND_TRIP = 'ROUND_TRIP', _('Round trip')


class TripLeg(models.TextChoices):
    DELIVERY = 'DELIVERY', _('Delivery')
    PICKUP = 'PICKUP', _('Pickup')
    ACCESS = 'ACCESS', _('Access')
    TRANSFER = 'TRANSFER', _('Transfer')


class LineItemType(models.TextChoices):
    CATALOG = 'CATALOG', _('Catalog')   # Priced from a ServiceType
    CUSTOM = 'CUSTOM', _('Custom')      # Free-form amount with justification


class BillingMode(models.TextChoices):
    BILLABLE = 'BILLABLE', _('Billable')
    NON_BILLABLE = 'NON_BILLABLE', _('Non billable')
    COMPLIMENTARY = 'COMPLIMENTARY', _('Complimentary')


class LineItemRequestStatus(models.TextChoices):
    REQUESTED = 'REQUESTED', _('Requested')
    APPROVED = 'APPROVED', _('Approved')     # Became a LineItem
    REJECTED = 'REJECTED', _('Rejected')


class ServiceCategory(models.TextChoices):
    ASSEMBLY = 'ASSEMBLY', _('Assembly')
    EQUIPMENT = 'EQUIPMENT', _('Equipment')
    HANDLING = 'HANDLING', _('Handling')
    RESKIN = 'RESKIN', _('Reskin')
    TRANSPORT = 'TRANSPORT', _('Transport')
    OTHER = 'OTHER', _('Other')


class ScanDirection(models.TextChoices):
    OUTBOUND = 'OUTBOUND', _('Outbound')   # Warehouse -> venue
    INBOUND = 'INBOUND', _('Inbound')      # Venue -> warehouse


class ScanStatus(models.TextChoices):
    NOT_STARTED = 'NOT_STARTED', _('Not started')
    IN_PROGRESS = 'IN_PROGRESS', _('In progress')
    COMPLETE = 'COMPLETE', _('Complete')


class DiscrepancyReason(models.TextChoices):
    BROKEN = 'BROKEN', _('Broken')
    LOST = 'LOST', _('Lost')
    OTHER = 'OTHER', _('Other')


class ReskinStatus(models.TextChoices):
    PENDING = 'PENDING', _('Pending')
    COMPLETE = 'COMPLETE', _('Complete')
    CANCELLED = 'CANCELLED', _('Cancelled')
