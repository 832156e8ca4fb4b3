"""
Trip database model.

A trip is one inventory entry: where it starts, where it ends,
the fare class and what it costs.
"""

from sqlalchemy import Column, Integer, Text, CheckConstraint
from inventory.app.db.session import Base


class Trip(Base):
    """
    Trip model.

    ``class`` is a Python keyword, so the column is mapped to ``fare_class``.
    Rows are listed in id (SQLite rowid) order.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Route
    origin = Column(Text, nullable=False)
    destination = Column(Text, nullable=False)

    # Fare
    fare_class = Column("class", Text, nullable=False)
    cost = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("cost >= 0", name="chk_trips_cost_non_negative"),
    )

    def __repr__(self):
        return f"<Trip(id={self.id}, origin='{self.origin}', destination='{self.destination}', class='{self.fare_class}')>"
