"""Seed the database with an admin, a customer and a small hair-extension catalog.

Run with ``storefront-seed`` (or ``python -m storefront.seed``). Existing
users and products with the same e-mail or name are left untouched.
"""
import logging

from storefront.database import SessionLocal, init_db
from storefront.models.product import Product, ProductColor, ProductLength
from storefront.models.users import User, UserRole
from storefront.utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

USERS = [
    {
        "name": "Admin User", "email": "admin@lushhair.shop", "password": "admin123",
        "role": UserRole.ADMIN, "phone": "800-555-0000", "street": "1 Admin Plaza",
        "city": "San Francisco", "state": "CA", "zip": "94107", "country": "United States",
    },
    {
        "name": "Sarah Johnson", "email": "user@lushhair.shop", "password": "password123",
        "role": UserRole.USER, "phone": "212-555-1234", "street": "123 Main St",
        "city": "New York", "state": "NY", "zip": "10001", "country": "United States",
    },
]

COLORS = [("Black", "#000000"), ("Dark Brown", "#3B2F2F"), ("Blonde", "#E6C88F")]
LENGTHS = ["14 inches", "18 inches", "22 inches"]

PRODUCTS = [
    {"name": "Brazilian Body Wave Bundle", "price": 129.99, "category": "Bundles", "featured": True, "stock": 40,
     "description": "100% virgin Brazilian hair with a soft, natural body wave."},
    {"name": "Peruvian Straight Bundle", "price": 119.99, "category": "Bundles", "featured": False, "stock": 35,
     "description": "Silky straight Peruvian hair that holds curls well."},
    {"name": "HD Lace Closure 4x4", "price": 89.99, "category": "Closures", "featured": True, "stock": 20,
     "description": "Transparent HD lace closure with pre-plucked hairline."},
    {"name": "Deep Wave Frontal Wig", "price": 249.99, "category": "Wigs", "featured": True, "stock": 12,
     "description": "13x4 lace frontal wig with a defined deep wave pattern."},
    {"name": "Clip-In Extensions Set", "price": 79.99, "category": "Extensions", "featured": False, "stock": 50,
     "description": "Seven-piece clip-in set for instant length and volume."},
]


def seed() -> None:
    init_db()
    db = SessionLocal()
    try:
        for data in USERS:
            data = dict(data)
            if db.query(User).filter(User.email == data["email"]).first():
                continue
            password = data.pop("password")
            db.add(User(password_hash=get_password_hash(password), **data))
            logger.info("Created user %s", data["email"])

        for data in PRODUCTS:
            if db.query(Product).filter(Product.name == data["name"]).first():
                continue
            product = Product(
                images=[f"/images/{data['name'].lower().replace(' ', '-')}.jpg"],
                rating=4.5,
                review_count=0,
                colors=[ProductColor(name=n, value=v) for n, v in COLORS],
                lengths=[ProductLength(length=label) for label in LENGTHS],
                **data,
            )
            db.add(product)
            logger.info("Created product %s", data["name"])

        db.commit()
    finally:
        db.close()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    seed()


if __name__ == "__main__":
    main()
