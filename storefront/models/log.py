from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, func
from sqlalchemy.orm import relationship
from storefront.database import Base


# One audited event: a sign-in attempt or a back office change to a product,
# order or customer account. resource_id points at the touched row when there is one.
class Log(Base):
    __tablename__ = "logs"
    __table_args__ = (
        Index("ix_logs_resource_resource_id", "resource", "resource_id"),
    )

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), index=True) # LOGIN, ORDER_UPDATE, PRODUCT_DELETE, ...
    resource = Column(String(50), index=True) # auth, products, orders, users
    resource_id = Column(Integer, nullable=True)
    status = Column(String(20), index=True) # SUCCESS, FAIL or PARTIAL
    ip = Column(String(64), nullable=True)

    # Before/after snapshots, e-mail on auth events, bulk counts
    meta = Column(JSON, nullable=True)

    actor = relationship("User", lazy="joined", uselist=False)
