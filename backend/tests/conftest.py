"""
Pytest fixtures for foodhub backend tests.

Provides test database setup, catalog fixtures and a configured
sales order manager.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from foodhub import create_app
from foodhub.cart import Cart
from foodhub.extensions import db
from foodhub.models import Association, Branch, BranchOccurrence, Producer, Product, User
from foodhub.services.sales_order_service import sales_order_manager_from_config
from foodhub.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ORDER_REF_PREFIX': 'CMD-',
        'ORDER_REF_PAD_LENGTH': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        db.session.remove()


@pytest.fixture(scope='function')
def association(db_session):
    association = Association(name="Paniers du Val")
    db_session.add(association)
    db_session.commit()
    return association


@pytest.fixture(scope='function')
def other_association(db_session):
    association = Association(name="Ferme en Ville")
    db_session.add(association)
    db_session.commit()
    return association


@pytest.fixture(scope='function')
def branch(db_session, association):
    branch = Branch(association_id=association.id, name="Market Hall", city="Lyon")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def occurrence(db_session, branch):
    begin = utcnow() + timedelta(days=2)
    occurrence = BranchOccurrence(branch_id=branch.id, begin=begin, end=begin + timedelta(hours=3))
    db_session.add(occurrence)
    db_session.commit()
    return occurrence


@pytest.fixture(scope='function')
def producer(db_session, branch):
    producer = Producer(name="Green Acres")
    producer.branches.append(branch)
    db_session.add(producer)
    db_session.commit()
    return producer


@pytest.fixture(scope='function')
def other_producer(db_session, branch):
    producer = Producer(name="Hill Dairy")
    producer.branches.append(branch)
    db_session.add(producer)
    db_session.commit()
    return producer


@pytest.fixture(scope='function')
def tracked_product(db_session, producer):
    """Stock-tracked product, 10 units, 2.50 each."""
    product = Product(
        producer_id=producer.id,
        name="Tomatoes 1kg",
        ref="TOM-1",
        is_bio=False,
        price_cents=250,
        availability=Product.AVAILABILITY_TRACKED_BY_STOCK,
        stock=Decimal("10"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def free_product(db_session, producer):
    """Always-available organic product, 4.00 each."""
    product = Product(
        producer_id=producer.id,
        name="Organic Eggs x6",
        ref="EGG-6",
        is_bio=True,
        price_cents=400,
        availability=Product.AVAILABILITY_AVAILABLE,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def cheese(db_session, other_producer):
    product = Product(
        producer_id=other_producer.id,
        name="Goat Cheese",
        ref="CHE-1",
        is_bio=False,
        price_cents=375,
        availability=Product.AVAILABILITY_TRACKED_BY_STOCK,
        stock=Decimal("5"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def user(db_session):
    user = User(
        email="camille@example.org",
        firstname="Camille",
        lastname="Martin",
        address1="12 rue des Lilas",
        address2=None,
        zipcode="69003",
        city="Lyon",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def cart(tracked_product, free_product):
    """Cart with 2 tomatoes and 1 box of eggs."""
    cart = Cart()
    cart.add_product(tracked_product, 2)
    cart.add_product(free_product, 1)
    return cart


@pytest.fixture(scope='function')
def manager(app):
    return sales_order_manager_from_config(app.config)
