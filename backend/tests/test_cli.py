from foodhub.cart import Cart
from foodhub.services.sales_order_service import SalesOrderConfirmation


def test_orders_list_and_show(app, db_session, manager, cart, occurrence, user):
    order = manager.process_sales_order_from_cart(
        cart, occurrence, user, SalesOrderConfirmation(consumer_comment="Leave at the door"),
    )
    runner = app.test_cli_runner()

    listed = runner.invoke(args=["orders", "list"])
    assert listed.exit_code == 0
    assert "CMD-0001" in listed.output
    assert "Camille Martin" in listed.output

    shown = runner.invoke(args=["orders", "show", str(order.id)])
    assert shown.exit_code == 0
    assert "Leave at the door" in shown.output
    assert "TOM-1" in shown.output
    assert "Total: 9" in shown.output


def test_orders_activities(app, db_session, manager, cart, occurrence, user):
    order = manager.process_sales_order_from_cart(cart, occurrence, user)

    result = app.test_cli_runner().invoke(args=["orders", "activities", str(order.id)])

    assert result.exit_code == 0
    assert "Order CMD-0001 created" in result.output


def test_orders_producer(app, db_session, manager, occurrence, user, producer, free_product):
    cart = Cart()
    cart.add_product(free_product, 2)
    manager.process_sales_order_from_cart(cart, occurrence, user)

    result = app.test_cli_runner().invoke(args=["orders", "producer", str(producer.id)])

    assert result.exit_code == 0
    assert "Market Hall" in result.output
    assert "CMD-0001" in result.output


def test_show_unknown_order_fails(app, db_session):
    result = app.test_cli_runner().invoke(args=["orders", "show", "999"])

    assert result.exit_code == 1
    assert "not found" in result.output
