# storefront/models/order.py
import enum
from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from storefront.database import Base


# Order lifecycle states; allowed moves live in services/orders.py
class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)

    # Totals, rounded to cents at creation
    subtotal = Column(Float, nullable=False)
    shipping = Column(Float, nullable=False, default=0.0)
    tax = Column(Float, nullable=False, default=0.0)
    discount = Column(Float, nullable=False, default=0.0)
    coupon_code = Column(String, nullable=True)
    total = Column(Float, nullable=False)

    # Shipping and contact snapshot
    shipping_address = Column(String, nullable=False)
    contact_name = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)

    # Payment snapshot
    payment_method = Column(String, nullable=True)
    payment_last4 = Column(String, nullable=True)
    payment_brand = Column(String, nullable=True)
    payment_email = Column(String, nullable=True)

    # Tracking triple, set once shipped
    tracking_carrier = Column(String, nullable=True)
    tracking_number = Column(String, nullable=True)
    tracking_url = Column(String, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")


# Purchase-time snapshot of a cart line; does not follow later product edits
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    color = Column(String, nullable=True)
    length = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
