# storefront/models/product.py
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Text, JSON, ForeignKey, DateTime,
    CheckConstraint, func,
)
from sqlalchemy.orm import relationship
from storefront.database import Base


# Catalog entry. Colors and lengths are owned variant lists that are
# replaced wholesale on update and removed together with the product.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    images = Column(JSON, nullable=False, default=list)
    category = Column(String, nullable=False, index=True)
    featured = Column(Boolean, nullable=False, default=False)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)

    # Review aggregates
    rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    colors = relationship(
        "ProductColor", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductColor.id",
    )
    lengths = relationship(
        "ProductLength", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductLength.id",
    )


class ProductColor(Base):
    __tablename__ = "product_colors"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    value = Column(String, nullable=False) # Swatch, e.g. "#000000"

    product = relationship("Product", back_populates="colors")


class ProductLength(Base):
    __tablename__ = "product_lengths"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    length = Column(String, nullable=False) # Label, e.g. "18 inches"

    product = relationship("Product", back_populates="lengths")
