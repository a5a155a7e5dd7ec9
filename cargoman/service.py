"""
Cargo Service — The single public interface for fulfillment operations.

Usage:
    from cargoman import cargo, CargoError, Actor

    staff = Actor.from_template('u-7', 'LOGISTICS_STAFF')
    order = cargo.create_order('acme', staff, venue_city='Dubai')
    cargo.add_item(order, stage_set, 2, staff)
    cargo.submit_order(order, staff)
"""

from cargoman.services.assets import CargoAssets
from cargoman.services.inbound import CargoInbound
from cargoman.services.ledger import CargoLedger
from cargoman.services.line_items import CargoLineItemRequests
from cargoman.services.orders import CargoOrders
from cargoman.services.pricing import CargoPricing
from cargoman.services.reskins import CargoReskins
from cargoman.services.scanning import CargoScanning


class Cargo:
    """
    Single interface for all fulfillment operations.

    Parameter convention follows the ledger: (quantity, asset, order, actor).
    Every state-changing method runs in one transaction.atomic() and either
    applies completely or raises CargoError.
    """

    # ══════════════════════════════════════════════════════════════
    # AVAILABILITY
    # ══════════════════════════════════════════════════════════════

    snapshot = staticmethod(CargoLedger.snapshot)
    replay = staticmethod(CargoLedger.replay)
    reserve = staticmethod(CargoLedger.reserve_for_order)
    release = staticmethod(CargoLedger.release_reservation)
    checkpoint = staticmethod(CargoLedger.checkpoint)
    reconcile = staticmethod(CargoLedger.reconcile)

    # ══════════════════════════════════════════════════════════════
    # ASSETS
    # ══════════════════════════════════════════════════════════════

    create_asset = staticmethod(CargoAssets.create_asset)
    add_stock = staticmethod(CargoAssets.add_stock)
    retire_asset = staticmethod(CargoAssets.retire)
    transform_asset = staticmethod(CargoAssets.transform)
    send_to_maintenance = staticmethod(CargoAssets.send_to_maintenance)
    complete_maintenance = staticmethod(CargoAssets.complete_maintenance)

    # ══════════════════════════════════════════════════════════════
    # ORDERS
    # ══════════════════════════════════════════════════════════════

    create_order = staticmethod(CargoOrders.create_order)
    add_item = staticmethod(CargoOrders.add_item)
    update_item = staticmethod(CargoOrders.update_item)
    remove_item = staticmethod(CargoOrders.remove_item)
    submit_order = staticmethod(CargoOrders.submit_order)
    transition_status = staticmethod(CargoOrders.transition_status)
    cancel_order = staticmethod(CargoOrders.cancel_order)
    decline_quote = staticmethod(CargoOrders.decline_quote)
    allowed_transitions = staticmethod(CargoOrders.allowed_transitions)

    # ══════════════════════════════════════════════════════════════
    # PRICING
    # ══════════════════════════════════════════════════════════════

    recalculate_pricing = staticmethod(CargoPricing.reprice)
    add_catalog_line_item = staticmethod(CargoPricing.add_catalog_line_item)
    add_custom_line_item = staticmethod(CargoPricing.add_custom_line_item)
    void_line_item = staticmethod(CargoPricing.void_line_item)
    add_trip = staticmethod(CargoPricing.add_trip)
    update_trip = staticmethod(CargoPricing.update_trip)
    remove_trip = staticmethod(CargoPricing.remove_trip)
    set_margin_percent = staticmethod(CargoPricing.set_margin_percent)
    override_margin = staticmethod(CargoPricing.override_margin)
    request_line_item = staticmethod(CargoLineItemRequests.request_line_item)
    approve_line_item_request = staticmethod(CargoLineItemRequests.approve)
    reject_line_item_request = staticmethod(CargoLineItemRequests.reject)

    # ══════════════════════════════════════════════════════════════
    # SCANNING
    # ══════════════════════════════════════════════════════════════

    record_scan = staticmethod(CargoScanning.record_scan)
    upload_truck_photos = staticmethod(CargoScanning.upload_truck_photos)
    scan_progress = staticmethod(CargoScanning.progress)

    # ══════════════════════════════════════════════════════════════
    # RESKINS
    # ══════════════════════════════════════════════════════════════

    complete_reskin = staticmethod(CargoReskins.complete_reskin)
    cancel_reskin = staticmethod(CargoReskins.cancel_reskin)

    # ══════════════════════════════════════════════════════════════
    # INBOUND REQUESTS
    # ══════════════════════════════════════════════════════════════

    create_inbound_request = staticmethod(CargoInbound.create_inbound_request)
    add_inbound_item = staticmethod(CargoInbound.add_item)
    update_inbound_item = staticmethod(CargoInbound.update_item)
    remove_inbound_item = staticmethod(CargoInbound.remove_item)
    transition_inbound_status = staticmethod(CargoInbound.transition_status)
    cancel_inbound_request = staticmethod(CargoInbound.cancel_request)
    decline_inbound_quote = staticmethod(CargoInbound.decline_quote)
    complete_inbound_request = staticmethod(CargoInbound.complete_inbound_request)
