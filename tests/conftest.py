import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.database import Base, get_db
from storefront.main import app
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product, ProductColor, ProductLength
from storefront.models.users import User, UserRole, UserStatus
from storefront.utils.hashing import get_password_hash

PASSWORD = "password123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _override_db(db):
    def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="customer@shop.com", role=UserRole.USER, status=UserStatus.ACTIVE, name="Test Customer"):
        user = User(
            email=email,
            password_hash=get_password_hash(PASSWORD),
            name=name,
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Body Wave Bundle", price=129.99, category="Bundles", colors=("Black",),
              lengths=("18 inches",), featured=False, stock=10, description="Virgin hair bundle"):
        product = Product(
            name=name,
            description=description,
            price=price,
            images=[f"/images/{name.lower().replace(' ', '-')}.jpg"],
            category=category,
            featured=featured,
            stock=stock,
            colors=[ProductColor(name=c, value="#000000") for c in colors],
            lengths=[ProductLength(length=label) for label in lengths],
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_order(db):
    def _make(user, product, quantity=1, status=OrderStatus.PENDING):
        subtotal = round(product.price * quantity, 2)
        order = Order(
            user_id=user.id,
            status=status,
            subtotal=subtotal,
            shipping=10.0,
            tax=0.0,
            discount=0.0,
            total=subtotal + 10.0,
            shipping_address="1 Main St, Springfield, IL 62701, United States",
            items=[OrderItem(product_id=product.id, product_name=product.name,
                             price=product.price, quantity=quantity)],
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order
    return _make


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@shop.com", role=UserRole.ADMIN, name="Admin")


def _login(email):
    client = TestClient(app)
    response = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def customer_client(customer):
    return _login(customer.email)


@pytest.fixture
def admin_client(admin):
    return _login(admin.email)


@pytest.fixture
def shipping():
    return {
        "first_name": "Sarah",
        "last_name": "Johnson",
        "email": "sarah@shop.com",
        "phone": "212-555-1234",
        "street": "123 Main St",
        "apt": "Apt 4",
        "city": "New York",
        "state": "NY",
        "zip": "10001",
        "country": "United States",
    }
