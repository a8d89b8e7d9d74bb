"""Buyer order history models"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class OrderLine:
    id: str
    title: str = ""
    price: float = 0.0
    quantity: int = 1
    image: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "price": self.price,
                "quantity": self.quantity, "image": self.image}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderLine":
        return cls(
            id=str(data.get("id") or data.get("_id") or data.get("productId") or ""),
            title=data.get("title", ""),
            price=float(data.get("price") or 0),
            quantity=int(data.get("quantity") or 1),
            image=data.get("image", "")
        )


@dataclass
class TrackingEvent:
    status: str
    timestamp: str = ""
    location: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "timestamp": self.timestamp,
                "location": self.location, "description": self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackingEvent":
        return cls(
            status=data.get("status", ""),
            timestamp=str(data.get("timestamp") or ""),
            location=data.get("location") or "",
            description=data.get("description") or ""
        )


@dataclass
class Order:
    id: str
    order_number: str = ""
    status: str = ""
    amount: float = 0.0
    date: str = ""
    products: List[OrderLine] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    tracking_history: List[TrackingEvent] = field(default_factory=list)
    cancel_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "status": self.status,
            "amount": self.amount,
            "date": self.date,
            "products": [line.to_dict() for line in self.products],
            "orderSummary": self.summary,
            "trackingHistory": [event.to_dict() for event in self.tracking_history],
            "cancelReason": self.cancel_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        summary = data.get("orderSummary") or {}
        amount = data.get("amount")
        if amount is None:
            amount = summary.get("total", 0)
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            order_number=str(data.get("orderNumber") or ""),
            status=data.get("status", ""),
            amount=float(amount or 0),
            date=str(data.get("date") or data.get("createdAt") or ""),
            products=[OrderLine.from_dict(p) for p in data.get("products") or []],
            summary=summary,
            tracking_history=[TrackingEvent.from_dict(e) for e in data.get("trackingHistory") or []],
            cancel_reason=data.get("cancelReason")
        )
