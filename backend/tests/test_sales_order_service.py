from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from foodhub.cart import Cart
from foodhub.models import Activity, Association, Product, SalesOrder, SalesOrderRow
from foodhub.services import sales_order_service
from foodhub.services.activity_service import (
    SALES_ORDER_CREATED,
    ROW_QUANTITY_TOTAL_UPDATED,
)
from foodhub.services.errors import ActivityRecordingError, SalesOrderError
from foodhub.services.sales_order_service import (
    NewOrder,
    PersistedOrder,
    SalesOrderConfirmation,
    order_state,
)


def _activities(db_session, order):
    return (
        db_session.query(Activity)
        .filter_by(object_type="sales_order", object_id=order.id)
        .order_by(Activity.id.asc())
        .all()
    )


class TestCreateFromCart:
    def test_builds_one_row_per_item_with_product_snapshot(self, db_session, manager, cart, occurrence, user,
                                                           tracked_product, free_product):
        order = manager.create_from_cart(cart, occurrence, user)

        assert order.id is None
        assert order.ref is None
        assert len(order.sales_order_rows) == 2

        tomato_row, egg_row = order.sales_order_rows
        assert tomato_row.product is tracked_product
        assert tomato_row.producer is tracked_product.producer
        assert (tomato_row.name, tomato_row.ref, tomato_row.is_bio, tomato_row.unit_price_cents) == (
            "Tomatoes 1kg", "TOM-1", False, 250,
        )
        assert tomato_row.quantity == Decimal("2")
        assert (egg_row.name, egg_row.ref, egg_row.is_bio, egg_row.unit_price_cents) == (
            "Organic Eggs x6", "EGG-6", True, 400,
        )
        assert egg_row.quantity == Decimal("1")

    def test_leaves_cart_and_session_untouched(self, db_session, manager, cart, occurrence, user):
        order = manager.create_from_cart(cart, occurrence, user)

        assert cart.count_items() == 2
        assert order not in db_session
        assert db_session.query(SalesOrder).count() == 0

    def test_copies_buyer_fields_as_snapshot(self, db_session, manager, cart, occurrence, user, association):
        order = manager.create_from_cart(cart, occurrence, user)

        assert order.firstname == "Camille"
        assert order.lastname == "Martin"
        assert order.address1 == "12 rue des Lilas"
        assert order.zipcode == "69003"
        assert order.city == "Lyon"
        assert order.branch_occurrence is occurrence
        assert order.association is association

        user.city = "Villeurbanne"
        assert order.city == "Lyon"

    def test_row_snapshot_ignores_later_product_changes(self, db_session, manager, cart, occurrence, user,
                                                       tracked_product):
        order = manager.create_from_cart(cart, occurrence, user)
        manager.save(order, occurrence.branch.association, user)

        tracked_product.name = "Heirloom tomatoes"
        tracked_product.price_cents = 300
        db_session.commit()

        row = order.sales_order_rows[0]
        assert row.name == "Tomatoes 1kg"
        assert row.unit_price_cents == 250

    def test_empty_cart_is_rejected(self, db_session, manager, occurrence, user):
        with pytest.raises(SalesOrderError):
            manager.create_from_cart(Cart(), occurrence, user)


class TestProcessSalesOrderFromCart:
    def test_checkout_saves_order_and_clears_cart(self, db_session, manager, cart, occurrence, user, association,
                                                  tracked_product):
        order = manager.process_sales_order_from_cart(
            cart, occurrence, user, SalesOrderConfirmation(consumer_comment="Ring twice"),
        )

        assert order.id is not None
        assert order.ref == "CMD-0001"
        assert order.consumer_comment == "Ring twice"
        assert order.total_cents == 2 * 250 + 400
        assert cart.is_empty()

        payload = order.to_dict()
        assert payload["ref"] == "CMD-0001"
        assert payload["city"] == "Lyon"
        assert [row["ref"] for row in payload["rows"]] == ["TOM-1", "EGG-6"]

        assert db_session.get(Association, association.id).order_ref_counter == 1
        assert db_session.get(Product, tracked_product.id).stock == Decimal("8")

    def test_checkout_records_creation_activity(self, db_session, manager, cart, occurrence, user, association):
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        activities = _activities(db_session, order)
        assert len(activities) == 1
        assert activities[0].trans_key == SALES_ORDER_CREATED
        assert activities[0].get_params() == {"ref": "CMD-0001"}
        assert activities[0].target_type == "association"
        assert activities[0].target_id == association.id
        assert activities[0].user_id == user.id

    def test_successive_checkouts_get_successive_references(self, db_session, manager, occurrence, user,
                                                            free_product):
        refs = []
        for _ in range(3):
            cart = Cart()
            cart.add_product(free_product, 1)
            refs.append(manager.process_sales_order_from_cart(cart, occurrence, user).ref)

        assert refs == ["CMD-0001", "CMD-0002", "CMD-0003"]

    def test_failed_save_keeps_cart_counter_and_stock(self, db_session, manager, cart, occurrence, user,
                                                     association, tracked_product, monkeypatch):
        real_reconcile = sales_order_service.reconcile_order_stock

        def reconcile_then_fail(order):
            real_reconcile(order)
            raise OperationalError("INSERT INTO sales_orders", {}, Exception("disk I/O error"))

        monkeypatch.setattr(sales_order_service, "reconcile_order_stock", reconcile_then_fail)
        items_before = cart.count_items()

        with pytest.raises(OperationalError):
            manager.process_sales_order_from_cart(cart, occurrence, user)

        assert cart.count_items() == items_before
        assert db_session.query(SalesOrder).count() == 0
        assert db_session.query(Activity).count() == 0
        assert db_session.get(Association, association.id).order_ref_counter == 0
        assert db_session.get(Product, tracked_product.id).stock == Decimal("10")

    def test_retry_after_failed_save_succeeds(self, db_session, manager, cart, occurrence, user, monkeypatch):
        real_reconcile = sales_order_service.reconcile_order_stock
        calls = []

        def fail_once(order):
            calls.append(order)
            if len(calls) == 1:
                raise OperationalError("UPDATE products", {}, Exception("database is locked"))
            return real_reconcile(order)

        monkeypatch.setattr(sales_order_service, "reconcile_order_stock", fail_once)

        with pytest.raises(OperationalError):
            manager.process_sales_order_from_cart(cart, occurrence, user)
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        assert order.ref == "CMD-0001"
        assert cart.is_empty()

    def test_activity_failure_keeps_order_and_clears_cart(self, db_session, manager, cart, occurrence, user,
                                                          tracked_product, monkeypatch, caplog):
        def broken_record(activities):
            raise RuntimeError("activity store unavailable")

        monkeypatch.setattr(manager.activity_manager, "record", broken_record)

        with pytest.raises(ActivityRecordingError) as excinfo:
            manager.process_sales_order_from_cart(cart, occurrence, user)

        order = excinfo.value.order
        assert order.ref == "CMD-0001"
        assert excinfo.value.details == {"trans_keys": [SALES_ORDER_CREATED]}
        assert cart.is_empty()
        assert db_session.query(SalesOrder).count() == 1
        assert db_session.query(Activity).count() == 0
        assert db_session.get(Product, tracked_product.id).stock == Decimal("8")
        assert "Failed to record activities for sales order CMD-0001" in caplog.text


class TestSave:
    def test_order_state_distinguishes_new_and_persisted(self, db_session, manager, cart, occurrence, user):
        order = manager.create_from_cart(cart, occurrence, user)
        assert isinstance(order_state(order), NewOrder)

        manager.save(order, occurrence.branch.association, user)

        state = order_state(order)
        assert isinstance(state, PersistedOrder)
        assert state.id == order.id
        assert state.ref == "CMD-0001"

    def test_resave_without_changes_records_nothing(self, db_session, manager, cart, occurrence, user,
                                                    association, tracked_product):
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        manager.save(order, association, user)

        assert order.ref == "CMD-0001"
        assert len(_activities(db_session, order)) == 1
        assert db_session.get(Product, tracked_product.id).stock == Decimal("8")
        assert db_session.get(Association, association.id).order_ref_counter == 1

    def test_quantity_edit_records_change_and_restocks(self, db_session, manager, cart, occurrence, user,
                                                       association, tracked_product):
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        order.sales_order_rows[0].quantity = Decimal("1")
        manager.save(order, association, user)

        activities = _activities(db_session, order)
        assert [a.trans_key for a in activities] == [SALES_ORDER_CREATED, ROW_QUANTITY_TOTAL_UPDATED]
        assert activities[1].get_params() == {
            "order_ref": "CMD-0001",
            "ref": "TOM-1",
            "old_quantity": "2",
            "quantity": "1",
            "old_total": "5",
            "total": "2.5",
        }
        assert order.total_cents == 250 + 400
        assert db_session.get(Product, tracked_product.id).stock == Decimal("9")

    def test_row_added_to_saved_order_is_recorded_and_deducted(self, db_session, manager, cart, occurrence, user,
                                                               association, cheese):
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        order.add_sales_order_row(SalesOrderRow(
            product=cheese,
            producer=cheese.producer,
            name=cheese.name,
            ref=cheese.ref,
            is_bio=cheese.is_bio,
            unit_price_cents=cheese.price_cents,
            quantity=Decimal("2"),
        ))
        manager.save(order, association, user)

        activities = _activities(db_session, order)
        assert [a.trans_key for a in activities] == [SALES_ORDER_CREATED, ROW_QUANTITY_TOTAL_UPDATED]
        assert activities[1].get_params() == {
            "order_ref": "CMD-0001",
            "ref": "CHE-1",
            "old_quantity": "0",
            "quantity": "2",
            "old_total": "0",
            "total": "7.5",
        }
        assert order.total_cents == 2 * 250 + 400 + 2 * 375
        assert db_session.get(Product, cheese.id).stock == Decimal("3")

        manager.save(order, association, user)
        assert len(_activities(db_session, order)) == 2

    def test_edit_of_freshly_loaded_order(self, db_session, manager, cart, occurrence, user, association,
                                          tracked_product):
        order_id = manager.process_sales_order_from_cart(cart, occurrence, user).id
        association_id, product_id = association.id, tracked_product.id
        db_session.expunge_all()

        order = db_session.get(SalesOrder, order_id)
        order.sales_order_rows[0].quantity = Decimal("5")
        manager.save(order, db_session.get(Association, association_id))

        activities = _activities(db_session, order)
        assert activities[-1].get_params()["old_quantity"] == "2"
        assert activities[-1].get_params()["quantity"] == "5"
        assert activities[-1].user_id is None
        assert db_session.get(Product, product_id).stock == Decimal("5")

    def test_row_of_removed_product_keeps_snapshot_and_skips_stock(self, db_session, manager, cart, occurrence,
                                                                  user, association, tracked_product):
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        row = order.sales_order_rows[0]
        row.product = None
        row.quantity = Decimal("4")
        manager.save(order, association, user)

        assert row.name == "Tomatoes 1kg"
        assert row.total_cents == 1000
        assert db_session.get(Product, tracked_product.id).stock == Decimal("8")
        assert _activities(db_session, order)[-1].trans_key == ROW_QUANTITY_TOTAL_UPDATED

    def test_producer_context_targets_producer(self, db_session, manager, cart, occurrence, user, producer):
        order = manager.process_sales_order_from_cart(cart, occurrence, user)

        order.sales_order_rows[1].quantity = Decimal("3")
        manager.save(order, producer)

        last = _activities(db_session, order)[-1]
        assert last.target_type == "producer"
        assert last.target_id == producer.id
